"""Admin approval console routes."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session


admin_bp = Blueprint("kalasetu_admin", __name__, url_prefix="/admin")


def _components() -> dict:
    return current_app.extensions["kalasetu_components"]


def _is_admin() -> bool:
    return bool(session.get("token")) and (session.get("user") or {}).get("role") == "admin"


@admin_bp.before_request
def guard_private_routes():
    if not session.get("token"):
        return jsonify({"error": "Please sign in first."}), 401
    if not _is_admin():
        return jsonify({"error": "Admin access required."}), 403
    return None


@admin_bp.get("/")
def dashboard():
    admin = _components()["admin"]
    return jsonify(
        {
            "analytics": admin.analytics(),
            "pending_artisans": admin.pending_artisans(),
            "pending_products": admin.pending_products(),
        }
    )


@admin_bp.get("/analytics")
def analytics():
    return jsonify(_components()["admin"].analytics())


@admin_bp.get("/pending-artisans")
def pending_artisans():
    return jsonify({"artisans": _components()["admin"].pending_artisans()})


@admin_bp.put("/artisans/<int:artisan_id>/verify")
def verify_artisan(artisan_id: int):
    return jsonify({"status": "ok", "result": _components()["admin"].verify_artisan(artisan_id)})


@admin_bp.get("/pending-products")
def pending_products():
    return jsonify({"products": _components()["admin"].pending_products()})


@admin_bp.put("/products/<int:product_id>/approve")
def approve_product(product_id: int):
    result = _components()["admin"].approve_product(product_id)
    _components()["catalog"].invalidate_cache()
    return jsonify({"status": "ok", "result": result})


@admin_bp.post("/categories")
def create_category():
    category = _components()["admin"].create_category(request.get_json(silent=True) or {})
    return jsonify({"status": "ok", "category": category}), 201
