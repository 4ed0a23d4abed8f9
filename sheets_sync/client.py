"""Get, save and clear content on the spreadsheet endpoint."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import httpx

from .config import DEFAULT_KEY, Settings, get_settings
from .models import ContentRecord
from .normalize import normalize_payload, normalize_response
from .transport import DirectTransport, RawResponse, Transport, build_transports
from .urls import build_action_url
from .wrapper import wrap_if_fragment

logger = logging.getLogger(__name__)


def _http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.timeout_total,
        follow_redirects=True,
        headers={"user-agent": settings.user_agent},
    )


class SheetsClient:
    """Client bound to one endpoint and one reader/writer transport pair.

    Use as an async context manager when built with ``from_settings`` so the
    underlying httpx client is closed::

        async with SheetsClient.from_settings() as sheets:
            record = await sheets.get_content("staffride_main")
    """

    def __init__(
        self,
        endpoint: str,
        reader: Transport,
        writer: Optional[Transport] = None,
        *,
        default_key: str = DEFAULT_KEY,
        cache_bust: bool = True,
        document_title: str = "Document",
        include_base_styles: bool = True,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not endpoint:
            raise ValueError("endpoint is required")
        self.endpoint = endpoint
        self.reader = reader
        if writer is None:
            if not isinstance(reader, DirectTransport):
                raise ValueError(f"a writer is required with the read-only {reader.name} reader")
            writer = reader
        self.writer = writer
        self.default_key = default_key
        self.cache_bust = cache_bust
        self.document_title = document_title
        self.include_base_styles = include_base_styles
        self._http_client = http_client

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SheetsClient":
        """Build a client from settings; an httpx client is created if none is given."""
        s = settings or get_settings()
        owned = http_client is None
        client = http_client or _http_client(s)
        reader, writer = build_transports(s, client)
        logger.debug("Using %s reader, %s writer", reader.name, writer.name)
        return cls(
            s.endpoint,
            reader,
            writer,
            default_key=s.default_key,
            cache_bust=s.cache_bust,
            document_title=s.document_title,
            include_base_styles=s.include_base_styles,
            http_client=client if owned else None,
        )

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "SheetsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _key(self, key: Optional[str]) -> str:
        return key or self.default_key

    @staticmethod
    def _normalize(raw: RawResponse, key: str) -> ContentRecord:
        if raw.decoded:
            return normalize_payload(raw.payload, raw.status, key)
        return normalize_response(raw.text, raw.status, key)

    async def get_content(
        self, key: Optional[str] = None, cache_bust: Optional[bool] = None
    ) -> ContentRecord:
        """Read the content stored under ``key``.

        Raises:
            TransportError: When no response was received at all.
        """
        k = self._key(key)
        bust = self.cache_bust if cache_bust is None else cache_bust
        url = build_action_url(self.endpoint, "get", k, cache_bust=bust)

        logger.info("Fetching key=%s via %s (cache_bust=%s)", k, self.reader.name, bust)
        raw = await self.reader.read(url)
        record = self._normalize(raw, k)
        logger.info("Fetched key=%s ok=%s status=%d (%d chars)", k, record.ok, record.status, len(record.html))
        return record

    async def _write_then_read(self, action: str, k: str, data: Dict[str, str]) -> ContentRecord:
        url = build_action_url(self.endpoint, action, k)
        logger.info("Sending %s for key=%s via %s", action, k, self.writer.name)
        raw = await self.writer.write(url, data)

        if raw is None:
            logger.debug("%s for key=%s sent opaque; confirming by read", action, k)
        else:
            ack = normalize_response(raw.text, raw.status, k)
            if not ack.ok:
                logger.warning("Backend rejected %s for key=%s: %s", action, k, ack.error)

        return await self.get_content(k, cache_bust=True)

    async def save_content(
        self, key: Optional[str], html: str, password: Optional[str] = None
    ) -> ContentRecord:
        """Store ``html`` under ``key`` and return the state read back afterwards."""
        k = self._key(key)
        return await self._write_then_read(
            "save", k, {"key": k, "html": html or "", "password": password or ""}
        )

    async def clear_content(
        self, key: Optional[str], password: Optional[str] = None
    ) -> ContentRecord:
        """Clear ``key`` and return the state read back afterwards."""
        k = self._key(key)
        return await self._write_then_read(
            "clear", k, {"key": k, "password": password or ""}
        )

    async def get_document(
        self,
        key: Optional[str] = None,
        *,
        title: Optional[str] = None,
        include_base_styles: Optional[bool] = None,
    ) -> Tuple[ContentRecord, str]:
        """Fetch ``key`` and return it along with a renderable document."""
        record = await self.get_content(key)
        document = wrap_if_fragment(
            record.html,
            title=title or self.document_title,
            include_base_styles=(
                self.include_base_styles if include_base_styles is None else include_base_styles
            ),
        )
        return record, document

