"""Action URL construction for the spreadsheet endpoint."""

from __future__ import annotations

import time

import httpx

ACTIONS = frozenset({"get", "save", "clear"})


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def with_cache_bust(url: str | httpx.URL) -> str:
    """Set ``cb`` to the current epoch milliseconds."""
    return str(httpx.URL(url).copy_set_param("cb", str(_now_ms())))


def build_action_url(
    endpoint: str,
    action: str,
    key: str,
    *,
    cache_bust: bool = False,
) -> str:
    """Compose ``endpoint?...&action=<action>&key=<key>[&cb=<ms>]``.

    Existing query parameters on ``endpoint`` are kept; ``action`` and
    ``key`` overwrite any values already present.

    Raises:
        ValueError: On an unknown action or a relative endpoint.
    """
    if action not in ACTIONS:
        raise ValueError(f"Unknown action: {action!r}")

    url = httpx.URL(endpoint)
    if not url.is_absolute_url:
        raise ValueError(f"Endpoint must be an absolute URL: {endpoint!r}")

    url = url.copy_set_param("action", action).copy_set_param("key", key)
    if cache_bust:
        return with_cache_bust(url)
    return str(url)
