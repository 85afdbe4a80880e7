"""KalaSetu marketplace client Flask application."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, session

from common.services.admin_service import AdminService
from common.services.artisan_service import ArtisanService
from common.services.auth_service import AuthService
from common.services.catalog_service import CatalogService
from common.services.logging import configure_logging, log_event
from common.services.marketplace_api import ApiError, MarketplaceApiClient
from common.services.order_service import OrderPlacementError, OrderService, PaymentDeclined
from config import KalaSetuConfig
from routes import admin, api, artisan, user
from services import ArCaptureCompositor, OverlayLoader, PhotoService, VideoCallService
from services.ar_compositor import CaptureError
from services.frame_source import CameraError


def _session_token() -> Optional[str]:
    return session.get("token")


def build_components(config: KalaSetuConfig, api_client: Optional[MarketplaceApiClient] = None) -> Dict[str, Any]:
    client = api_client or MarketplaceApiClient(
        config.api_base_url,
        timeout=config.request_timeout,
        token_provider=_session_token,
    )
    images = {"asset_origin": config.asset_origin, "placeholder": config.placeholder_image_url}
    orders = OrderService(client, payment_success_rate=config.payment_success_rate, **images)
    return {
        "api": client,
        "auth": AuthService(client),
        "catalog": CatalogService(client, **images),
        "orders": orders,
        "artisan": ArtisanService(client, orders),
        "admin": AdminService(client, **images),
        "compositor": ArCaptureCompositor(OverlayLoader(timeout=config.request_timeout), **images),
        "photo_service": PhotoService(config.capture_dir),
        "video_calls": VideoCallService(client, poll_interval=config.video_call_poll_seconds),
    }


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValueError)
    def _bad_request(exc: ValueError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        status = exc.status_code if exc.status_code and 400 <= exc.status_code < 600 else 502
        return jsonify({"error": exc.message}), status

    @app.errorhandler(PaymentDeclined)
    def _payment_declined(exc: PaymentDeclined):
        return jsonify({"error": str(exc)}), 402

    @app.errorhandler(OrderPlacementError)
    def _order_failed(exc: OrderPlacementError):
        return jsonify({"error": str(exc)}), 502

    @app.errorhandler(CaptureError)
    def _capture_failed(exc: CaptureError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(CameraError)
    def _camera_failed(exc: CameraError):
        log_event("warning", "camera.unavailable", reason=str(exc))
        return jsonify({"error": str(exc)}), 409


def create_app(
    config: Optional[KalaSetuConfig] = None,
    components: Optional[Dict[str, Any]] = None,
) -> Flask:
    config = config or KalaSetuConfig.load()
    configure_logging(config.log_level)
    app = Flask(
        __name__,
        static_folder=str(Path(config.app_root) / "static"),
    )
    app.config["SECRET_KEY"] = config.secret_key
    app.config["KALASETU_CONFIG"] = config
    app.extensions["kalasetu_components"] = components or build_components(config)

    app.register_blueprint(user.user_bp)
    app.register_blueprint(api.api_bp)
    app.register_blueprint(artisan.artisan_bp)
    app.register_blueprint(admin.admin_bp)
    _register_error_handlers(app)

    log_event("info", "app.started", api_base_url=config.api_base_url)
    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5173, debug=False)


if __name__ == "__main__":
    main()
