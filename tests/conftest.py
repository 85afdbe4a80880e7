"""Shared fixtures: a scripted marketplace API, fake HTTP for overlay loads, frames."""

from __future__ import annotations

import copy
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests
from PIL import Image

from app import build_components, create_app
from common.services.order_service import OrderService
from config import KalaSetuConfig
from services.ar_compositor import ArCaptureCompositor, OverlayLoader


class FakeMarketplaceApi:
    """Records every call; answers from ``responses`` keyed by method name.

    A response may be a value, a callable taking the call's arguments, or an
    exception instance to raise.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, tuple, dict]] = []
        self.responses: Dict[str, Any] = {}

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            value = self.responses.get(name)
            if isinstance(value, Exception):
                raise value
            if callable(value):
                return value(*args, **kwargs)
            return copy.deepcopy(value) if value is not None else {}

        return call

    def called(self, name: str) -> List[Tuple[tuple, dict]]:
        return [(args, kwargs) for n, args, kwargs in self.calls if n == name]


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def close(self) -> None:
        self.closed = True


class TruncatedResponse(FakeResponse):
    """Headers promised more bytes than the connection delivered."""

    def iter_content(self, chunk_size: int = 1):
        yield self.content[:30]
        raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")


class FakeHttp:
    """Stands in for ``requests.Session`` inside ``OverlayLoader``.

    ``direct`` and ``blob`` are either bytes to serve or an exception to raise
    for streamed (direct) and buffered (blob) requests respectively, or a
    ready-made ``FakeResponse``.
    """

    def __init__(self, direct: Any = None, blob: Any = None) -> None:
        self.direct = direct
        self.blob = blob
        self.requests: List[Tuple[str, bool]] = []

    def get(self, url: str, stream: bool = False, timeout: Optional[float] = None) -> FakeResponse:
        self.requests.append((url, stream))
        outcome = self.direct if stream else self.blob
        if outcome is None:
            raise requests.ConnectionError("offline")
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse(200, outcome)


def png_bytes(size=(50, 50), color=(0, 255, 0, 255), mode="RGBA") -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def split_frame_bytes(width: int = 640, height: int = 480) -> bytes:
    """Left half red, right half blue."""
    image = Image.new("RGB", (width, height), (0, 0, 255))
    image.paste((255, 0, 0), (0, 0, width // 2, height))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def fake_api() -> FakeMarketplaceApi:
    return FakeMarketplaceApi()


@pytest.fixture
def config(tmp_path) -> KalaSetuConfig:
    return KalaSetuConfig.load(
        app_root=tmp_path,
        overrides={
            "API_BASE_URL": "http://api.test:8080/api",
            "SECRET_KEY": "test-secret",
            "LOG_LEVEL": "ERROR",
        },
    )


@pytest.fixture
def offline_compositor(config) -> ArCaptureCompositor:
    return ArCaptureCompositor(
        OverlayLoader(http=FakeHttp()),
        asset_origin=config.asset_origin,
        placeholder=config.placeholder_image_url,
        clock=lambda: 1700000000.5,
    )


@pytest.fixture
def app(config, fake_api, offline_compositor):
    components = build_components(config, api_client=fake_api)
    components["compositor"] = offline_compositor
    components["orders"] = OrderService(
        fake_api,
        rng=lambda: 0.0,
        asset_origin=config.asset_origin,
        placeholder=config.placeholder_image_url,
    )
    flask_app = create_app(config, components)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sign_in(client):
    def _sign_in(role: str = "buyer", token: str = "token-abc") -> None:
        with client.session_transaction() as sess:
            sess["token"] = token
            sess["user"] = {"id": 7, "name": "Asha", "role": role}

    return _sign_in
