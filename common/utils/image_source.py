"""Resolve a product's image field to a single displayable URL.

The marketplace API is not consistent about ``image_urls`` (and
``product_image`` on orders): the same field can arrive as a list, a raw
URL, a root-relative path or a JSON-encoded list. Every screen goes through
``resolve_image_source`` so they all agree on the outcome.
"""

import json
from typing import Any, List

from ..services.logging import log_event


PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/200"
DEFAULT_API_ORIGIN = "http://localhost:8080"


def _pick(items: Any, index: int, placeholder: str) -> str:
    if index < 0 or index >= len(items):
        return placeholder
    value = items[index]
    if isinstance(value, str) and value.strip():
        return value
    return placeholder


def _absolute(url: str, base_url: str) -> str:
    if url.startswith("/"):
        return f"{(base_url or '').rstrip('/')}{url}"
    return url


def resolve_image_source(
    field: Any,
    index: int = 0,
    base_url: str = DEFAULT_API_ORIGIN,
    placeholder: str = PLACEHOLDER_IMAGE_URL,
) -> str:
    """Return one usable URL for ``field`` or ``placeholder``; never raises."""

    if isinstance(field, (list, tuple)):
        return _pick(field, index, placeholder)

    if not isinstance(field, str):
        return placeholder

    if field.startswith("http") or field.startswith("/"):
        return _absolute(field, base_url)

    if field.strip().startswith("["):
        try:
            parsed = json.loads(field)
        except (ValueError, RecursionError) as exc:
            log_event("warning", "image_source.malformed", reason=str(exc), raw=field[:80])
            return placeholder
        if isinstance(parsed, list):
            return _pick(parsed, index, placeholder)
        log_event("warning", "image_source.malformed", reason="not a list", raw=field[:80])

    return placeholder


def resolve_image_list(
    field: Any,
    base_url: str = DEFAULT_API_ORIGIN,
    placeholder: str = PLACEHOLDER_IMAGE_URL,
) -> List[str]:
    """Every usable URL in ``field``, in order; ``[placeholder]`` when none."""

    if isinstance(field, str) and field.strip().startswith("["):
        try:
            field = json.loads(field)
        except (ValueError, RecursionError):
            return [placeholder]

    if isinstance(field, str):
        if field.startswith("http") or field.startswith("/"):
            return [_absolute(field, base_url)]
        return [placeholder]
    if not isinstance(field, (list, tuple)):
        return [placeholder]

    urls = [
        _absolute(item, base_url)
        for item in field
        if isinstance(item, str) and item.strip()
    ]
    return urls or [placeholder]
