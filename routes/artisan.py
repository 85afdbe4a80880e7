"""Artisan onboarding and dashboard routes."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session


artisan_bp = Blueprint("kalasetu_artisan", __name__, url_prefix="/artisan")

# reachable by any signed-in user; everything else needs the artisan role
OPEN_TO_ANY_USER = {"kalasetu_artisan.onboard"}


def _components() -> dict:
    return current_app.extensions["kalasetu_components"]


@artisan_bp.before_request
def guard_artisan_routes():
    if not session.get("token"):
        return jsonify({"error": "Please sign in first."}), 401
    if request.endpoint in OPEN_TO_ANY_USER:
        return None
    if (session.get("user") or {}).get("role") != "artisan":
        return jsonify({"error": "Artisan account required."}), 403
    return None


@artisan_bp.post("/onboard")
def onboard():
    artisan = _components()["artisan"].onboard(request.get_json(silent=True) or {})
    return jsonify({"status": "ok", "artisan": artisan, "redirect": "/artisan/dashboard"}), 201


@artisan_bp.put("/profile")
def update_profile():
    artisan = _components()["artisan"].update_profile(request.get_json(silent=True) or {})
    return jsonify({"status": "ok", "artisan": artisan})


@artisan_bp.get("/dashboard")
def dashboard():
    return jsonify(_components()["artisan"].dashboard())


@artisan_bp.get("/earnings")
def earnings():
    return jsonify(_components()["artisan"].earnings())


@artisan_bp.post("/products")
def create_product():
    product = _components()["artisan"].create_product(request.get_json(silent=True) or {})
    _components()["catalog"].invalidate_cache()
    return jsonify({"status": "ok", "product": product}), 201


@artisan_bp.put("/products/<int:product_id>")
def update_product(product_id: int):
    product = _components()["artisan"].update_product(product_id, request.get_json(silent=True) or {})
    _components()["catalog"].invalidate_cache()
    return jsonify({"status": "ok", "product": product})


@artisan_bp.post("/story")
def generate_story():
    return jsonify(_components()["artisan"].generate_story(request.get_json(silent=True) or {}))


@artisan_bp.get("/orders")
def list_orders():
    return jsonify({"orders": _components()["orders"].list_artisan_orders()})


@artisan_bp.put("/orders/<int:order_id>/status")
def update_order_status(order_id: int):
    payload = request.get_json(silent=True) or {}
    result = _components()["orders"].update_status(order_id, payload.get("status", ""))
    return jsonify({"status": "ok", "order": result})


@artisan_bp.post("/orders/<int:order_id>/progress")
def add_progress(order_id: int):
    payload = request.get_json(silent=True) or {}
    progress = _components()["orders"].add_progress(
        order_id,
        stage=payload.get("stage", ""),
        description=payload.get("description", ""),
        image_url=payload.get("image_url", ""),
    )
    return jsonify({"status": "ok", "progress": progress}), 201


@artisan_bp.get("/video-calls")
def pending_video_calls():
    return jsonify({"requests": _components()["video_calls"].pending_calls()})


@artisan_bp.put("/video-calls/<int:request_id>/accept")
def accept_video_call(request_id: int):
    return jsonify(_components()["video_calls"].accept_call(request_id))
