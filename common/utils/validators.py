from typing import Any, Dict, Iterable


def ensure_positive_int(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a whole number") from None
    if number <= 0:
        raise ValueError(f"{field} must be > 0")
    return number


def ensure_positive_number(value: Any, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number") from None
    if number <= 0:
        raise ValueError(f"{field} must be > 0")
    return number


def require_text(payload: Dict, fields: Iterable[str]) -> Dict[str, str]:
    """Strip the named fields and fail on the first one left empty."""
    cleaned = {}
    for field in fields:
        value = str(payload.get(field) or "").strip()
        if not value:
            raise ValueError(f"{field} is required")
        cleaned[field] = value
    return cleaned
