import random
from typing import Any, Callable, Dict, List, Optional

from .logging import log_event
from .marketplace_api import ApiError, MarketplaceApiClient
from ..utils.dto import to_order_dto
from ..utils.image_source import DEFAULT_API_ORIGIN, PLACEHOLDER_IMAGE_URL
from ..utils.validators import ensure_positive_int, require_text


ORDER_STATUSES = ("pending", "confirmed", "crafting", "shipping", "delivered", "cancelled")


class PaymentDeclined(Exception):
    """Simulated payment failed; no order was placed."""


class OrderPlacementError(Exception):
    """Payment went through but the API refused the order."""


class OrderService:
    """Order placement (behind a simulated payment) and order tracking."""

    def __init__(
        self,
        api: MarketplaceApiClient,
        *,
        payment_success_rate: float = 0.9,
        rng: Optional[Callable[[], float]] = None,
        asset_origin: str = DEFAULT_API_ORIGIN,
        placeholder: str = PLACEHOLDER_IMAGE_URL,
    ):
        self._api = api
        self._payment_success_rate = payment_success_rate
        self._rng = rng or random.random
        self._asset_origin = asset_origin
        self._placeholder = placeholder

    def _dto(self, row: Dict) -> Dict:
        return to_order_dto(row, self._asset_origin, self._placeholder)

    def simulate_payment(self) -> bool:
        return self._rng() < self._payment_success_rate

    def place_order(self, *, product_id: Any, quantity: Any, shipping_address: str) -> Dict:
        """Run the simulated payment, then create the order."""
        pid = ensure_positive_int(product_id, "product_id")
        qty = ensure_positive_int(quantity, "quantity")
        address = require_text({"shipping_address": shipping_address}, ("shipping_address",))["shipping_address"]

        if not self.simulate_payment():
            log_event("warning", "payment.declined", product_id=pid)
            raise PaymentDeclined("Payment Failed! Please try again.")

        try:
            order = self._api.create_order(
                {"product_id": pid, "quantity": qty, "shipping_address": address}
            )
        except ApiError as exc:
            log_event("error", "order.placement_failed", product_id=pid, status=exc.status_code, error=exc.message)
            raise OrderPlacementError("Order placement failed. Payment will be refunded.") from exc
        log_event("info", "order.created", order_id=order.get("id"), product_id=pid, quantity=qty)
        return self._dto(order)

    def list_orders(self) -> List[Dict]:
        return [self._dto(o) for o in (self._api.list_orders() or [])]

    def track_order(self, order_id: Any) -> Dict:
        order = self._api.get_order(order_id)
        if not order:
            return {}
        return self._dto(order)

    def delivery_eta(self, order_id: Any) -> Dict:
        return self._api.delivery_eta(order_id)

    def list_artisan_orders(self) -> List[Dict]:
        return [self._dto(o) for o in (self._api.list_artisan_orders() or [])]

    def update_status(self, order_id: Any, status: str) -> Dict:
        status = (status or "").strip().lower()
        if status not in ORDER_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ORDER_STATUSES)}")
        result = self._api.update_order_status(order_id, status)
        log_event("info", "order.status_updated", order_id=order_id, status=status)
        return result

    def add_progress(self, order_id: Any, *, stage: str, description: str = "", image_url: str = "") -> Dict:
        data = require_text({"stage": stage}, ("stage",))
        data["description"] = (description or "").strip()
        data["image_url"] = (image_url or "").strip()
        progress = self._api.add_progress_update(order_id, data)
        log_event("info", "order.progress_added", order_id=order_id, stage=data["stage"])
        return progress
