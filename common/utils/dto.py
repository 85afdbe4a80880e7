from typing import Any, Dict

from .image_source import DEFAULT_API_ORIGIN, PLACEHOLDER_IMAGE_URL, resolve_image_list, resolve_image_source


def _price(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def to_product_dto(
    row: Dict,
    base_url: str = DEFAULT_API_ORIGIN,
    placeholder: str = PLACEHOLDER_IMAGE_URL,
) -> Dict:
    raw_images = row.get("image_urls")
    return {
        "id": row.get("id"),
        "name": row.get("name"),
        "description": row.get("description"),
        "price": _price(row.get("price")),
        "stock": row.get("stock") or 0,
        "category_id": row.get("category_id"),
        "category_name": row.get("category_name"),
        "craft_type": row.get("craft_type"),
        "region": row.get("region"),
        "artisan_id": row.get("artisan_id"),
        "artisan": row.get("artisan") or {},
        "is_approved": bool(row.get("is_approved", True)),
        "image_url": resolve_image_source(raw_images, 0, base_url, placeholder),
        "images": resolve_image_list(raw_images, base_url, placeholder),
        "image_urls": raw_images,
    }


def to_order_dto(
    row: Dict,
    base_url: str = DEFAULT_API_ORIGIN,
    placeholder: str = PLACEHOLDER_IMAGE_URL,
) -> Dict:
    return {
        "id": row.get("id"),
        "product_id": row.get("product_id"),
        "product_name": row.get("product_name"),
        "quantity": row.get("quantity") or 1,
        "total_amount": _price(row.get("total_amount")),
        "status": row.get("status") or "pending",
        "shipping_address": row.get("shipping_address"),
        "created_at": row.get("created_at"),
        "image_url": resolve_image_source(row.get("product_image"), 0, base_url, placeholder),
        "estimated_eta": row.get("estimated_eta"),
        "progress": list(row.get("progress") or []),
    }
