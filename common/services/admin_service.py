import re
from typing import Any, Dict, List

from .logging import log_event
from .marketplace_api import MarketplaceApiClient
from ..utils.dto import to_product_dto
from ..utils.image_source import DEFAULT_API_ORIGIN, PLACEHOLDER_IMAGE_URL
from ..utils.validators import require_text


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class AdminService:
    """Approval console: artisan verification, product approval, categories."""

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

    def pending_artisans(self) -> List[Dict]:
        return list(self._api.pending_artisans() or [])

    def verify_artisan(self, artisan_id: Any) -> Dict:
        result = self._api.verify_artisan(artisan_id)
        log_event("info", "admin.artisan_verified", artisan_id=artisan_id)
        return result

    def pending_products(self) -> List[Dict]:
        rows = self._api.pending_products() or []
        return [to_product_dto(r, self._asset_origin, self._placeholder) for r in rows]

    def approve_product(self, product_id: Any) -> Dict:
        result = self._api.approve_product(product_id)
        log_event("info", "admin.product_approved", product_id=product_id)
        return result

    def create_category(self, payload: Dict[str, Any]) -> Dict:
        data = require_text(payload, ("name",))
        data["slug"] = str(payload.get("slug") or "").strip() or slugify(data["name"])
        data["description"] = str(payload.get("description") or "").strip()
        data["image_url"] = str(payload.get("image_url") or "").strip()
        category = self._api.create_category(data)
        log_event("info", "admin.category_created", slug=data["slug"])
        return category

    def analytics(self) -> Dict:
        return self._api.analytics()
