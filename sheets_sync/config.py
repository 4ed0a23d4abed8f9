"""Configuration for sheets-sync using pydantic-settings.

All settings are driven by environment variables with the SHEETS_SYNC_ prefix.
See .env.example for the full list of configurable options.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_KEY = "staffride_main"


class TransportStrategy(str, Enum):
    """How reads (and writes) reach the backend."""

    DIRECT_JSON = "direct_json"
    DIRECT_FORM = "direct_form"
    SCRIPT_INJECTION = "script_injection"


class WriteEncoding(str, Enum):
    JSON = "json"
    FORM = "form"


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETS_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint: str = ""
    default_key: str = DEFAULT_KEY

    transport: TransportStrategy = TransportStrategy.DIRECT_JSON
    write_encoding: WriteEncoding = WriteEncoding.JSON
    opaque_writes: bool = False
    cache_bust: bool = True

    script_timeout: float = 15.0
    timeout_total: float = 30.0

    user_agent: str = "sheets-sync/0.1"

    document_title: str = "Document"
    include_base_styles: bool = True

    password: Optional[str] = None

    def effective_write_encoding(self) -> WriteEncoding:
        """Encoding used for save/clear bodies.

        The form strategy always posts form bodies; the other strategies
        follow ``write_encoding``.
        """
        if self.transport is TransportStrategy.DIRECT_FORM:
            return WriteEncoding.FORM
        return self.write_encoding

    def effective_opaque_writes(self) -> bool:
        """Script injection implies the backend is not readable cross-origin."""
        if self.transport is TransportStrategy.SCRIPT_INJECTION:
            if not self.opaque_writes:
                logger.debug("Script injection transport: writes forced to opaque mode")
            return True
        return self.opaque_writes


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()
