"""Buyer-facing JSON API: catalog, orders, AR try-on and video calls."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, send_file, session

from common.services.logging import log_event
from common.services.marketplace_api import ApiError
from services.frame_source import CameraFrameSource, UploadedFrameSource
from services.video_call_service import CallRequest


api_bp = Blueprint("kalasetu_api", __name__, url_prefix="/api")

MAX_WAIT_SECONDS = 60


def _components() -> Dict[str, Any]:
    return current_app.extensions["kalasetu_components"]


def _config():
    return current_app.config["KALASETU_CONFIG"]


def _require_login():
    if session.get("token"):
        return None
    return jsonify({"error": "Please sign in first."}), 401


@api_bp.get("/products")
def list_products():
    catalog = _components()["catalog"]
    filters = {key: request.args.get(key) for key in request.args}
    result = catalog.list_products(
        filters,
        page=request.args.get("page", 1, type=int),
        page_size=request.args.get("page_size", 20, type=int),
    )
    return jsonify(result)


@api_bp.get("/products/<int:product_id>")
def product_detail(product_id: int):
    product = _components()["catalog"].get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found."}), 404
    return jsonify({"product": product})


@api_bp.get("/products/<int:product_id>/similar")
def similar_products(product_id: int):
    catalog = _components()["catalog"]
    product = catalog.get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found."}), 404
    return jsonify({"products": catalog.similar_products(product)})


@api_bp.get("/categories")
def list_categories():
    return jsonify({"categories": _components()["catalog"].list_categories()})


@api_bp.get("/products/<int:product_id>/reviews")
def list_reviews(product_id: int):
    return jsonify({"reviews": _components()["catalog"].list_reviews(product_id)})


@api_bp.post("/products/<int:product_id>/reviews")
def create_review(product_id: int):
    denied = _require_login()
    if denied:
        return denied
    payload = request.get_json(silent=True) or {}
    review = _components()["catalog"].create_review(
        product_id=product_id,
        rating=payload.get("rating"),
        comment=payload.get("comment", ""),
        order_id=payload.get("order_id"),
    )
    return jsonify({"review": review}), 201


@api_bp.get("/products/<int:product_id>/confidence")
def confidence_score(product_id: int):
    return jsonify(_components()["catalog"].confidence_score(product_id))


@api_bp.post("/orders")
def place_order():
    denied = _require_login()
    if denied:
        return denied
    payload = request.get_json(silent=True) or {}
    order = _components()["orders"].place_order(
        product_id=payload.get("product_id"),
        quantity=payload.get("quantity", 1),
        shipping_address=payload.get("shipping_address", ""),
    )
    return jsonify({"status": "ok", "order": order}), 201


@api_bp.get("/orders")
def list_orders():
    denied = _require_login()
    if denied:
        return denied
    return jsonify({"orders": _components()["orders"].list_orders()})


@api_bp.get("/orders/<int:order_id>")
def track_order(order_id: int):
    denied = _require_login()
    if denied:
        return denied
    order = _components()["orders"].track_order(order_id)
    if not order:
        return jsonify({"error": "Order not found."}), 404
    return jsonify({"order": order})


@api_bp.get("/orders/<int:order_id>/eta")
def delivery_eta(order_id: int):
    denied = _require_login()
    if denied:
        return denied
    return jsonify(_components()["orders"].delivery_eta(order_id))


def _overlay_field(form) -> Any:
    """image_urls from the form, or looked up from product_id."""
    if form.get("image_urls"):
        return form.get("image_urls")
    product_id = form.get("product_id", type=int)
    if product_id is None:
        return None
    try:
        product = _components()["catalog"].get_product(product_id)
    except ApiError as exc:
        # capture still goes ahead, just without the overlay
        log_event("warning", "ar.product_lookup_failed", product_id=product_id, error=exc.message)
        return None
    return product.get("image_urls")


def _capture_response(result, as_json: bool):
    photo_service = _components()["photo_service"]
    _, rel_path = photo_service.save_capture(result)
    if as_json:
        return jsonify(
            {
                "status": "ok",
                "filename": result.filename,
                "image": result.data_url,
                "url": "/" + rel_path.replace("\\", "/"),
                "overlay_applied": result.overlay_applied,
                "mode": result.mode.value,
            }
        )
    return send_file(
        BytesIO(result.png_bytes),
        mimetype="image/png",
        as_attachment=True,
        download_name=result.filename,
    )


@api_bp.post("/ar/capture")
def ar_capture():
    upload = request.files.get("frame")
    frame_bytes = _components()["photo_service"].read_frame_upload(upload) if upload else b""
    result = _components()["compositor"].capture(
        UploadedFrameSource(frame_bytes),
        _overlay_field(request.form),
        request.form.get("mode", "jewelry"),
    )
    return _capture_response(result, request.args.get("format") == "json")


@api_bp.post("/ar/capture/camera")
def ar_capture_camera():
    """Kiosk mode: grab the frame from the local camera instead of the browser."""
    overlay_field = _overlay_field(request.form)
    with CameraFrameSource(_config().camera_index) as camera:
        result = _components()["compositor"].capture(
            camera,
            overlay_field,
            request.form.get("mode", "jewelry"),
        )
    return _capture_response(result, request.args.get("format") == "json")


@api_bp.post("/video-call/request")
def request_video_call():
    denied = _require_login()
    if denied:
        return denied
    payload = request.get_json(silent=True) or {}
    call = _components()["video_calls"].request_call(
        product_id=payload.get("product_id"),
        artisan_id=payload.get("artisan_id"),
    )
    session["video_call"] = call.to_dict()
    return jsonify(call.to_dict()), 201


def _known_call(request_id: int) -> CallRequest:
    remembered = session.get("video_call") or {}
    room_name = remembered.get("room_name", "") if remembered.get("id") == request_id else ""
    return CallRequest(request_id=request_id, room_name=room_name)


@api_bp.get("/video-call/<int:request_id>/status")
def video_call_status(request_id: int):
    denied = _require_login()
    if denied:
        return denied
    call = _components()["video_calls"].check_status(_known_call(request_id))
    return jsonify(call.to_dict())


@api_bp.get("/video-call/<int:request_id>/wait")
def wait_for_video_call(request_id: int):
    denied = _require_login()
    if denied:
        return denied
    timeout = min(request.args.get("timeout", 30, type=float), MAX_WAIT_SECONDS)
    call = _components()["video_calls"].wait_for_acceptance(_known_call(request_id), timeout=timeout)
    return jsonify(call.to_dict())
