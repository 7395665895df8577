"""
Helpers shared by the route blueprints.

Request parsing, input sanitization and access to the register state.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Any, Optional

import bleach
from flask import current_app, request

from core.exceptions import ValidationError
from models.money import to_decimal
from services.pos_state import PosState


def get_state() -> PosState:
    """The PosState injected by create_app()."""
    return current_app.config["POS_STATE"]


def get_json_body() -> Dict[str, Any]:
    """
    Parsed JSON object of the request, or {} when the body is empty.

    Raises:
        ValidationError: If the body is present but not a JSON object
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def sanitize_text(text: Any, max_length: Optional[int] = None) -> str:
    """Strip markup and surrounding whitespace, then truncate."""
    if text is None:
        return ""
    text = str(text).strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length is None:
        max_length = current_app.config.get("MAX_TEXT_LENGTH")
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def require_text(data: Dict[str, Any], field: str) -> str:
    value = sanitize_text(data.get(field))
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


def optional_text(data: Dict[str, Any], field: str) -> Optional[str]:
    value = sanitize_text(data.get(field))
    return value or None


def parse_decimal(
    data: Dict[str, Any],
    field: str,
    required: bool = True,
    minimum: Optional[Decimal] = Decimal(0),
    maximum: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """
    Read a decimal amount from a request body.

    Raises:
        ValidationError: Missing, not a number, or out of range
    """
    raw = data.get(field)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        value = to_decimal(raw)
    except ValueError:
        raise ValidationError(f"{field} must be a number", field=field)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be at most {maximum}", field=field)
    return value


def parse_int(data: Dict[str, Any], field: str, required: bool = True) -> Optional[int]:
    """
    Read an integer from a request body; "3" is accepted, 2.5 is not.

    Raises:
        ValidationError: Missing or not an integer
    """
    raw = data.get(field)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if isinstance(raw, bool) or isinstance(raw, float):
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)
