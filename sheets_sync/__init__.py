"""sheets-sync — HTML content sync with a spreadsheet-backed web endpoint."""

from .client import SheetsClient
from .config import DEFAULT_KEY, Settings, TransportStrategy, WriteEncoding, get_settings
from .errors import ScriptTimeoutError, SyncError, TransportError
from .models import ContentRecord
from .normalize import normalize_payload, normalize_response
from .transport import (
    CallbackRegistry,
    DirectTransport,
    ScriptInjectionTransport,
    Transport,
    build_transports,
)
from .urls import build_action_url
from .wrapper import escape_html, is_full_document, wrap_if_fragment

__all__ = [
    "DEFAULT_KEY",
    "Settings",
    "TransportStrategy",
    "WriteEncoding",
    "get_settings",
    "ContentRecord",
    "SheetsClient",
    "Transport",
    "DirectTransport",
    "ScriptInjectionTransport",
    "CallbackRegistry",
    "build_transports",
    "build_action_url",
    "normalize_response",
    "normalize_payload",
    "wrap_if_fragment",
    "is_full_document",
    "escape_html",
    "SyncError",
    "TransportError",
    "ScriptTimeoutError",
]
