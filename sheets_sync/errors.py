"""Exceptions raised by sheets-sync.

Only transport-level failures are raised. HTTP error statuses, unparseable
payloads and backend rejections all come back as a ContentRecord with
``ok=False`` (or the raw-HTML fallback) instead.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all sheets-sync errors."""


class TransportError(SyncError):
    """The request never produced a usable response (network, DNS, script load)."""


class ScriptTimeoutError(TransportError, TimeoutError):
    """A script-injection read was not answered within its timeout."""

    def __init__(self, callback: str, timeout: float) -> None:
        super().__init__(f"Callback {callback} not invoked within {timeout:g}s")
        self.callback = callback
        self.timeout = timeout
