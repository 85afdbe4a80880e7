from typing import Any, Dict, List, Optional, Tuple
import time

from .logging import log_event
from .marketplace_api import MarketplaceApiClient
from ..utils.dto import to_product_dto
from ..utils.image_source import DEFAULT_API_ORIGIN, PLACEHOLDER_IMAGE_URL
from ..utils.pagination import paginate


FILTER_KEYS = ("search", "category", "min_price", "max_price", "craft_type", "region", "sort")


class CatalogService:
    """Catalog browsing over the marketplace API.

    Responsibilities:
    - List/search products with optional filters and client-side paging
    - Product detail with a resolved image gallery, similar products
    - Categories, reviews and the AI confidence score
    """

    _cache_ttl_seconds: int = 60

    def __init__(
        self,
        api: MarketplaceApiClient,
        *,
        asset_origin: str = DEFAULT_API_ORIGIN,
        placeholder: str = PLACEHOLDER_IMAGE_URL,
    ):
        self._api = api
        self._asset_origin = asset_origin
        self._placeholder = placeholder
        # naive in-process cache: key -> (ts, items)
        self._cache: Dict[Tuple, Tuple[float, List[Dict]]] = {}

    def _dto(self, row: Dict) -> Dict:
        return to_product_dto(row, self._asset_origin, self._placeholder)

    @staticmethod
    def clean_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Drop unknown keys and empty values before they reach the API."""
        cleaned = {}
        for key in FILTER_KEYS:
            value = (filters or {}).get(key)
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            cleaned[key] = value
        return cleaned

    def list_products(
        self,
        filters: Optional[Dict[str, Any]] = None,
        *,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict:
        """Return dict: { items: [ProductDTO], page, page_size, total }"""
        params = self.clean_filters(filters)
        cache_key = tuple(sorted((k, str(v)) for k, v in params.items()))
        now = time.time()
        cached = self._cache.get(cache_key)
        if cached and now - cached[0] <= self._cache_ttl_seconds:
            items = cached[1]
        else:
            rows = self._api.list_products(params) or []
            items = [self._dto(r) for r in rows if isinstance(r, dict)]
            self._evict_expired(now)
            self._cache[cache_key] = (now, items)
            log_event("debug", "catalog.fetched", filters=params, total=len(items))
        page_items, p, ps = paginate(items, page, page_size)
        return {"items": page_items, "page": p, "page_size": ps, "total": len(items)}

    def get_product(self, product_id: Any) -> Dict:
        row = self._api.get_product(product_id)
        return self._dto(row) if row else {}

    def similar_products(self, product: Dict, limit: int = 4) -> List[Dict]:
        category = (product.get("category_name") or "").lower()
        if not category:
            return []
        items = self.list_products({"category": category}, page_size=100)["items"]
        return [p for p in items if p.get("id") != product.get("id")][:limit]

    def list_categories(self) -> List[Dict]:
        return list(self._api.list_categories() or [])

    def list_reviews(self, product_id: Any) -> List[Dict]:
        return list(self._api.list_reviews(product_id) or [])

    def create_review(self, *, product_id: Any, rating: Any, comment: str = "", order_id: Any = None) -> Dict:
        try:
            stars = int(rating)
        except (TypeError, ValueError):
            raise ValueError("rating must be a whole number") from None
        if not 1 <= stars <= 5:
            raise ValueError("rating must be between 1 and 5")
        payload = {"product_id": product_id, "rating": stars, "comment": (comment or "").strip()}
        if order_id is not None:
            payload["order_id"] = order_id
        review = self._api.create_review(payload)
        log_event("info", "review.created", product_id=product_id, rating=stars)
        return review

    def confidence_score(self, product_id: Any) -> Dict:
        return self._api.confidence_score(product_id)

    def _evict_expired(self, now: float) -> None:
        stale = [k for k, (ts, _) in self._cache.items() if now - ts > self._cache_ttl_seconds]
        for key in stale:
            del self._cache[key]

    def invalidate_cache(self) -> None:
        self._cache.clear()
