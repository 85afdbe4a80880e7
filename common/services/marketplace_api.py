"""
KalaSetu marketplace API client.

Thin wrapper over the remote REST API. Every call returns the decoded JSON
body; failures surface as ``ApiError`` carrying the API's ``error`` message.
"""
import logging
from typing import Any, Callable, Dict, Optional

import requests


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MarketplaceApiClient:
    """
    KalaSetu API integration:
    - Bearer token authentication (set after login)
    - product, order, artisan, review, AI, admin and video-call endpoints
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider or (lambda: None)
        self.logger = logging.getLogger(__name__)
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            self.logger.warning("API timeout %s %s", method, path)
            raise ApiError("Request timed out", 504) from None
        except requests.exceptions.RequestException as exc:
            self.logger.warning("API unreachable %s %s: %s", method, path, exc)
            raise ApiError("API unreachable", 502) from exc

        if not 200 <= response.status_code < 300:
            try:
                message = response.json().get("error") or "Unknown error"
            except (ValueError, AttributeError):
                message = "Unknown error"
            self.logger.info("API error %s %s: HTTP %s %s", method, path, response.status_code, message)
            raise ApiError(message, response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise ApiError("Malformed API response", response.status_code) from None

    # Auth
    def register(self, data: Dict) -> Dict:
        return self._request("POST", "/auth/register", json=data)

    def login(self, data: Dict) -> Dict:
        return self._request("POST", "/auth/login", json=data)

    # Products
    def list_products(self, params: Optional[Dict] = None) -> Any:
        return self._request("GET", "/products", params=params)

    def get_product(self, product_id: Any) -> Dict:
        return self._request("GET", f"/products/{product_id}")

    def list_categories(self) -> Any:
        return self._request("GET", "/categories")

    def create_product(self, data: Dict) -> Dict:
        return self._request("POST", "/artisan/products", json=data)

    def update_product(self, product_id: Any, data: Dict) -> Dict:
        return self._request("PUT", f"/artisan/products/{product_id}", json=data)

    # Orders
    def create_order(self, data: Dict) -> Dict:
        return self._request("POST", "/orders", json=data)

    def list_orders(self) -> Any:
        return self._request("GET", "/orders")

    def get_order(self, order_id: Any) -> Dict:
        return self._request("GET", f"/orders/{order_id}")

    def list_artisan_orders(self) -> Any:
        return self._request("GET", "/artisan/orders")

    def update_order_status(self, order_id: Any, status: str) -> Dict:
        return self._request("PUT", f"/artisan/orders/{order_id}/status", json={"status": status})

    def add_progress_update(self, order_id: Any, data: Dict) -> Dict:
        return self._request("POST", f"/artisan/orders/{order_id}/progress", json=data)

    # Artisans
    def onboard_artisan(self, data: Dict) -> Dict:
        return self._request("POST", "/artisan/onboard", json=data)

    def update_artisan_profile(self, data: Dict) -> Dict:
        return self._request("PUT", "/artisan/profile", json=data)

    def get_artisan(self, artisan_id: Any) -> Dict:
        return self._request("GET", f"/artisans/{artisan_id}")

    def artisan_earnings(self) -> Dict:
        return self._request("GET", "/artisan/earnings")

    # Reviews
    def create_review(self, data: Dict) -> Dict:
        return self._request("POST", "/reviews", json=data)

    def list_reviews(self, product_id: Any) -> Any:
        return self._request("GET", f"/products/{product_id}/reviews")

    # AI
    def generate_story(self, data: Dict) -> Dict:
        return self._request("POST", "/ai/generate-story", json=data)

    def confidence_score(self, product_id: Any) -> Dict:
        return self._request("GET", f"/ai/confidence-score/{product_id}")

    def delivery_eta(self, order_id: Any) -> Dict:
        return self._request("GET", f"/ai/delivery-eta/{order_id}")

    # Admin
    def pending_artisans(self) -> Any:
        return self._request("GET", "/admin/pending-artisans")

    def verify_artisan(self, artisan_id: Any) -> Dict:
        return self._request("PUT", f"/admin/artisans/{artisan_id}/verify")

    def pending_products(self) -> Any:
        return self._request("GET", "/admin/pending-products")

    def approve_product(self, product_id: Any) -> Dict:
        return self._request("PUT", f"/admin/products/{product_id}/approve")

    def create_category(self, data: Dict) -> Dict:
        return self._request("POST", "/admin/categories", json=data)

    def analytics(self) -> Dict:
        return self._request("GET", "/admin/analytics")

    # Video calls
    def request_video_call(self, data: Dict) -> Dict:
        return self._request("POST", "/video-call/request", json=data)

    def video_call_status(self, request_id: Any) -> Dict:
        return self._request("GET", f"/video-call/{request_id}/status")

    def pending_video_calls(self) -> Any:
        return self._request("GET", "/video-call/pending")

    def accept_video_call(self, request_id: Any) -> Dict:
        return self._request("PUT", f"/video-call/{request_id}/accept")
