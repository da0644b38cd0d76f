from typing import Any, Iterable, Optional

from app.core.exceptions import ValidationError


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Success body: {"success": true, "data": ..., "message"?: ...}"""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def reject_nulls(update_data: dict, fields: Iterable[str]) -> None:
    """Partial updates may omit a required column but never send it as null."""
    nulls = [name for name in fields if name in update_data and update_data[name] is None]
    if nulls:
        raise ValidationError(
            f"{', '.join(nulls)} cannot be null",
            details=[{"field": name, "message": "cannot be null"} for name in nulls],
        )
