"""Pydantic models shared across the client."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_KEY


class ContentRecord(BaseModel):
    """Uniform result of a single get/save/clear exchange.

    Built fresh per call and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    status: int
    key: str = DEFAULT_KEY
    html: str = ""
    updated_at: str = ""
    updated_by: str = ""
    error: str = ""

    @property
    def is_empty(self) -> bool:
        """Return True when the backend holds no content for this key."""
        return not self.html.strip()

    @property
    def is_http_error(self) -> bool:
        """Return True when the transport reported a non-2xx status."""
        return not 200 <= self.status < 300
