# backend/command_ops/schemas/common.py
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from command_ops.errors import ValidationError

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")

M = TypeVar("M", bound=BaseModel)


def sanitize_input(value: str) -> str:
    """Strip script blocks and any HTML tags, then trim."""
    value = _SCRIPT_RE.sub("", value)
    value = _TAG_RE.sub("", value)
    return value.strip()


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = sanitize_input(value)
    return cleaned or None


def clean_text(v: Any) -> Any:
    """Body of ``mode="before"`` validators: sanitize before length checks run."""
    if isinstance(v, str):
        return sanitize_input(v)
    return v


def clean_optional_text(v: Any) -> Any:
    if isinstance(v, str):
        return sanitize_optional(v)
    return v


def validate_payload(model: Type[M], data: Any) -> M:
    """Parse ``data`` into ``model`` or raise ValidationError with the first issue."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        msg = first.get("msg", "Invalid input")
        raise ValidationError(f"{loc}: {msg}" if loc else msg, details=errors) from e


def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored naive in server-local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
