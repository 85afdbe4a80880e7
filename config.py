"""KalaSetu client application settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv


DEFAULT_SETTINGS = {
    "API_BASE_URL": "http://localhost:8080/api",
    "PLACEHOLDER_IMAGE_URL": "https://via.placeholder.com/200",
    "REQUEST_TIMEOUT": "10",
    "VIDEO_CALL_POLL_SECONDS": "3",
    "PAYMENT_SUCCESS_RATE": "0.9",
    "LOG_LEVEL": "INFO",
    "CAMERA_INDEX": "0",
}


def _origin(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return url.rstrip("/")
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass
class KalaSetuConfig:
    """Settings for the marketplace client."""

    secret_key: str
    api_base_url: str
    placeholder_image_url: str
    request_timeout: float
    video_call_poll_seconds: float
    payment_success_rate: float
    log_level: str
    camera_index: int
    app_root: Path

    @property
    def asset_origin(self) -> str:
        """Origin that root-relative image paths are served from."""
        return _origin(self.api_base_url)

    @property
    def data_dir(self) -> Path:
        return self.app_root / "data"

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    @property
    def capture_dir(self) -> Path:
        return self.app_root / "static" / "captures"

    @classmethod
    def load(cls, app_root: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> "KalaSetuConfig":
        """Build settings from .env, environment and data/settings.json (file wins)."""

        app_root = app_root or Path(__file__).resolve().parent
        load_dotenv(app_root / ".env")

        data_dir = app_root / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        (app_root / "static" / "captures").mkdir(parents=True, exist_ok=True)

        settings_file = data_dir / "settings.json"
        if not settings_file.exists():
            settings_file.write_text(
                json.dumps(DEFAULT_SETTINGS, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )

        try:
            settings = json.loads(settings_file.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ValueError(f"settings.json is not valid JSON: {settings_file}") from exc
        if not isinstance(settings, dict):
            raise ValueError(f"settings.json must contain an object: {settings_file}")
        settings.update(overrides or {})

        def pick(key: str) -> str:
            for value in (settings.get(key), os.getenv(key), DEFAULT_SETTINGS.get(key)):
                if value is not None and str(value).strip():
                    return str(value).strip()
            return ""

        try:
            request_timeout = float(pick("REQUEST_TIMEOUT"))
            poll_seconds = float(pick("VIDEO_CALL_POLL_SECONDS"))
            payment_rate = float(pick("PAYMENT_SUCCESS_RATE"))
            camera_index = int(pick("CAMERA_INDEX"))
        except ValueError as exc:
            raise ValueError(f"Invalid numeric setting: {exc}") from exc
        if not 0.0 <= payment_rate <= 1.0:
            raise ValueError("PAYMENT_SUCCESS_RATE must be between 0 and 1")
        if poll_seconds <= 0:
            raise ValueError("VIDEO_CALL_POLL_SECONDS must be > 0")

        return cls(
            secret_key=settings.get("SECRET_KEY") or os.getenv("SECRET_KEY") or "kalasetu-dev-secret",
            api_base_url=pick("API_BASE_URL").rstrip("/"),
            placeholder_image_url=pick("PLACEHOLDER_IMAGE_URL"),
            request_timeout=request_timeout,
            video_call_poll_seconds=poll_seconds,
            payment_success_rate=payment_rate,
            log_level=pick("LOG_LEVEL").upper(),
            camera_index=camera_index,
            app_root=app_root,
        )
