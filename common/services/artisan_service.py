from collections import Counter
from typing import Any, Dict

from .logging import log_event
from .marketplace_api import MarketplaceApiClient
from .order_service import ORDER_STATUSES, OrderService
from ..utils.validators import ensure_positive_int, ensure_positive_number, require_text


ONBOARDING_REQUIRED = ("business_name", "craft_type", "region")
ONBOARDING_OPTIONAL = ("bio", "verification_docs")
PRODUCT_OPTIONAL = ("description", "materials", "image_urls", "category_id", "stock", "crafting_time")


class ArtisanService:
    """Artisan onboarding, catalogue upkeep and dashboard figures."""

    def __init__(self, api: MarketplaceApiClient, orders: OrderService):
        self._api = api
        self._orders = orders

    def onboard(self, payload: Dict[str, Any]) -> Dict:
        data = require_text(payload, ONBOARDING_REQUIRED)
        for key in ONBOARDING_OPTIONAL:
            data[key] = str(payload.get(key) or "").strip()
        artisan = self._api.onboard_artisan(data)
        log_event("info", "artisan.onboarded", business_name=data["business_name"], region=data["region"])
        return artisan

    def update_profile(self, payload: Dict[str, Any]) -> Dict:
        data = {
            k: str(v).strip()
            for k, v in (payload or {}).items()
            if k in ONBOARDING_REQUIRED + ONBOARDING_OPTIONAL and v is not None
        }
        if not data:
            raise ValueError("nothing to update")
        return self._api.update_artisan_profile(data)

    def profile(self, artisan_id: Any) -> Dict:
        return self._api.get_artisan(artisan_id)

    def _product_payload(self, payload: Dict[str, Any]) -> Dict:
        data: Dict[str, Any] = require_text(payload, ("name",))
        data["price"] = ensure_positive_number(payload.get("price"), "price")
        for key in PRODUCT_OPTIONAL:
            if payload.get(key) not in (None, ""):
                data[key] = payload[key]
        if "stock" in data:
            data["stock"] = ensure_positive_int(data["stock"], "stock")
        return data

    def create_product(self, payload: Dict[str, Any]) -> Dict:
        product = self._api.create_product(self._product_payload(payload))
        log_event("info", "product.submitted", product_id=product.get("id"))
        return product

    def update_product(self, product_id: Any, payload: Dict[str, Any]) -> Dict:
        return self._api.update_product(product_id, self._product_payload(payload))

    def generate_story(self, payload: Dict[str, Any]) -> Dict:
        data = require_text(payload, ("name", "craft_type"))
        for key in ("region", "materials"):
            data[key] = str(payload.get(key) or "").strip()
        return self._api.generate_story(data)

    def dashboard(self) -> Dict:
        orders = self._orders.list_artisan_orders()
        counts = Counter(o["status"] for o in orders)
        delivered = [o for o in orders if o["status"] == "delivered"]
        return {
            "total_orders": len(orders),
            "by_status": {status: counts.get(status, 0) for status in ORDER_STATUSES},
            "delivered": len(delivered),
            "revenue": round(sum(o["total_amount"] for o in delivered), 2),
            "orders": orders,
        }

    def earnings(self) -> Dict:
        return self._api.artisan_earnings()
