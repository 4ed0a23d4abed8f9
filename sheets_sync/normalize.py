"""Turn raw backend payloads into ContentRecord objects."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .models import ContentRecord

logger = logging.getLogger(__name__)

# Apps Script deployments are not consistent about field casing.
_FIELD_ALIASES = {
    "updated_at": ("updated_at", "updatedAt"),
    "updated_by": ("updated_by", "updatedBy"),
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _field(data: Dict[str, Any], name: str) -> str:
    for alias in _FIELD_ALIASES.get(name, (name,)):
        if data.get(alias) not in (None, ""):
            return _text(data[alias])
    return ""


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the decoded object, or None when ``text`` is not a JSON object."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def normalize_payload(payload: Any, status: int, key: str, *, raw_text: str = "") -> ContentRecord:
    """Build a record from an already-decoded payload.

    Args:
        payload: Decoded backend response. Anything other than a dict is
            treated as raw HTML.
        status: Transport status code.
        key: Key the caller asked for; used when the payload omits one.
        raw_text: Undecoded body, used as the error message for failed
            statuses without an ``error`` field.
    """
    data = payload if isinstance(payload, dict) else None

    if not is_success_status(status):
        error = _field(data, "error") if data else ""
        logger.warning("Backend returned HTTP %d for key=%s", status, key)
        return ContentRecord(
            ok=False,
            status=status,
            key=key,
            error=error or raw_text or _text(payload) or f"HTTP {status}",
        )

    if data is None:
        # Raw-HTML fallback: the endpoint answered without a JSON envelope.
        html = raw_text if raw_text else _text(payload)
        logger.debug("Non-JSON payload for key=%s; using raw text (%d chars)", key, len(html))
        return ContentRecord(ok=True, status=status, key=key, html=html)

    ok = bool(data.get("ok"))
    error = _field(data, "error")
    if not ok and not error:
        error = "Backend did not confirm success"

    return ContentRecord(
        ok=ok,
        status=status,
        key=_field(data, "key") or key,
        html=_field(data, "html"),
        updated_at=_field(data, "updated_at"),
        updated_by=_field(data, "updated_by"),
        error="" if ok else error,
    )


def normalize_response(text: str, status: int, key: str) -> ContentRecord:
    """Build a record from a raw response body.

    Bodies that are not a JSON object become the ``html`` of an ``ok=True``
    record with empty metadata.
    """
    data = parse_json_object(text)
    return normalize_payload(data if data is not None else text, status, key, raw_text=text)
