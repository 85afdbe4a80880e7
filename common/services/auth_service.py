import time
from typing import Dict, Optional

import jwt

from .logging import log_event
from .marketplace_api import MarketplaceApiClient
from ..utils.validators import require_text


ROLES = {"buyer", "artisan", "admin"}
LANDING_PATHS = {"artisan": "/artisan/dashboard", "admin": "/admin"}


class AuthService:
    """Login/registration against the marketplace API."""

    def __init__(self, api: MarketplaceApiClient):
        self._api = api

    def login(self, *, email: str, password: str) -> Dict:
        creds = require_text({"email": email, "password": password}, ("email", "password"))
        result = self._api.login(creds)
        log_event("info", "auth.login", role=(result.get("user") or {}).get("role"))
        return self._session_payload(result)

    def register(self, *, email: str, password: str, name: str, role: str = "buyer") -> Dict:
        data = require_text({"email": email, "password": password, "name": name}, ("email", "password", "name"))
        role = (role or "buyer").strip().lower()
        if role not in ROLES:
            raise ValueError(f"role must be one of {sorted(ROLES)}")
        data["role"] = role
        result = self._api.register(data)
        log_event("info", "auth.registered", role=role)
        return self._session_payload(result)

    @staticmethod
    def landing_path(user: Optional[Dict]) -> str:
        return LANDING_PATHS.get((user or {}).get("role"), "/")

    @staticmethod
    def token_expired(token: Optional[str], now: Optional[float] = None) -> bool:
        """A missing, undecodable or past-``exp`` token counts as signed out."""
        if not token:
            return True
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return True
        exp = claims.get("exp")
        if exp is None:
            return False
        return float(exp) <= (now if now is not None else time.time())

    def _session_payload(self, result: Dict) -> Dict:
        token = result.get("token")
        user = result.get("user") or {}
        if not token:
            raise ValueError("Login response did not include a token")
        return {"token": token, "user": user, "redirect": self.landing_path(user)}
