"""Network strategies for talking to the spreadsheet endpoint.

Three named strategies share one contract:

* ``direct_json`` / ``direct_form``: plain request/response over httpx.
  Writes carry a JSON or form-encoded body. In opaque mode the write
  response is discarded unread.
* ``script_injection``: JSONP style reads. A one-time callback is
  registered, the script is loaded with ``callback=<id>`` and its call to
  that callback delivers the payload.
"""

from __future__ import annotations

import abc
import asyncio
import contextlib
import json
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Tuple

import httpx

from .config import Settings, TransportStrategy, WriteEncoding
from .errors import ScriptTimeoutError, SyncError, TransportError
from .urls import with_cache_bust

logger = logging.getLogger(__name__)

READ_HEADERS = {
    "accept": "application/json,text/plain,*/*",
    "cache-control": "no-cache",
    "pragma": "no-cache",
}
SCRIPT_HEADERS = {
    "accept": "application/javascript,text/javascript,*/*;q=0.8",
    "cache-control": "no-cache",
    "pragma": "no-cache",
}

# Script loads expose no status; successful deliveries report this one.
SCRIPT_STATUS = 200

_JSONP_CALL_RE = re.compile(
    r"^\s*(?:/\*\*/\s*)?([A-Za-z_$][\w$]*)\s*\((.*)\)\s*;?\s*$",
    re.DOTALL,
)


@dataclass(frozen=True)
class RawResponse:
    """What a transport got back, before normalization."""

    status: int
    text: str = ""
    payload: Any = None
    decoded: bool = False


class Transport(abc.ABC):
    """A way of reading from and writing to the endpoint."""

    name: str = ""

    @abc.abstractmethod
    async def read(self, url: str) -> RawResponse:
        """Fetch ``url``. Raises TransportError when nothing usable came back."""

    @abc.abstractmethod
    async def write(self, url: str, data: Mapping[str, str]) -> Optional[RawResponse]:
        """Post ``data`` to ``url``. Returns None for opaque writes."""


class DirectTransport(Transport):
    """Plain httpx request/response exchange."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        encoding: WriteEncoding = WriteEncoding.JSON,
        opaque: bool = False,
    ) -> None:
        self._client = client
        self.encoding = encoding
        self.opaque = opaque
        self.name = (
            TransportStrategy.DIRECT_FORM.value
            if encoding is WriteEncoding.FORM
            else TransportStrategy.DIRECT_JSON.value
        )

    async def read(self, url: str) -> RawResponse:
        logger.debug("GET %s", url)
        try:
            resp = await self._client.get(url, headers=READ_HEADERS, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise TransportError(f"GET failed: {exc}") from exc
        return RawResponse(status=resp.status_code, text=resp.text)

    async def write(self, url: str, data: Mapping[str, str]) -> Optional[RawResponse]:
        if self.encoding is WriteEncoding.FORM:
            kwargs: Dict[str, Any] = {"data": dict(data)}
        else:
            kwargs = {"json": dict(data)}

        logger.debug("POST %s (encoding=%s, opaque=%s)", url, self.encoding.value, self.opaque)
        try:
            resp = await self._client.post(url, follow_redirects=True, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"POST failed: {exc}") from exc

        if self.opaque:
            return None
        return RawResponse(status=resp.status_code, text=resp.text)


class CallbackRegistry:
    """Pending script callbacks, keyed by their one-time identifier."""

    def __init__(self, prefix: str = "__sheets_sync_cb_") -> None:
        self.prefix = prefix
        self._pending: Dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, name: object) -> bool:
        return name in self._pending

    @contextlib.asynccontextmanager
    async def register(self) -> AsyncIterator[Tuple[str, asyncio.Future]]:
        """Register a fresh callback; it is removed when the block exits."""
        name = f"{self.prefix}{uuid.uuid4().hex}"
        future = asyncio.get_running_loop().create_future()
        self._pending[name] = future
        try:
            yield name, future
        finally:
            self._pending.pop(name, None)
            if not future.done():
                future.cancel()

    def invoke(self, name: str, payload: Any) -> bool:
        """Deliver ``payload`` to callback ``name``. False if it is not pending."""
        future = self._pending.get(name)
        if future is None or future.done():
            return False
        future.set_result(payload)
        return True

    def fail(self, name: str, exc: BaseException) -> bool:
        future = self._pending.get(name)
        if future is None or future.done():
            return False
        future.set_exception(exc)
        return True

    def execute(self, script: str) -> bool:
        """Run a loaded JSONP script against the registry.

        Only the ``name(<json>)`` call form is understood. Returns True if
        a pending callback was invoked.

        Raises:
            ValueError: When the call argument is not valid JSON.
            RecursionError: When the argument is nested too deeply to decode.
        """
        m = _JSONP_CALL_RE.match(script)
        if not m:
            return False
        name, arg = m.group(1), m.group(2).strip()
        if name not in self._pending:
            logger.debug("Script called unknown callback %s", name)
            return False
        payload = json.loads(arg) if arg else None
        return self.invoke(name, payload)


class ScriptInjectionTransport(Transport):
    """Read-only JSONP transport with a per-call callback and timeout."""

    name = TransportStrategy.SCRIPT_INJECTION.value

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float = 15.0,
        registry: Optional[CallbackRegistry] = None,
    ) -> None:
        self._client = client
        self.timeout = timeout
        self.registry = registry if registry is not None else CallbackRegistry()

    async def _load(self, url: str, callback: str) -> None:
        logger.debug("Loading script %s", url)
        try:
            resp = await self._client.get(url, headers=SCRIPT_HEADERS, follow_redirects=True)
        except httpx.HTTPError as exc:
            self.registry.fail(callback, TransportError(f"Script load failed: {exc}"))
            return
        if not 200 <= resp.status_code < 300:
            self.registry.fail(
                callback, TransportError(f"Script load failed: HTTP {resp.status_code}")
            )
            return
        try:
            invoked = self.registry.execute(resp.text)
        except (ValueError, RecursionError) as exc:
            self.registry.fail(callback, TransportError(f"Malformed script payload: {exc}"))
            return
        if not invoked:
            logger.warning("Script for %s loaded without invoking its callback", callback)

    def _loader_done(self, task: asyncio.Task, callback: str) -> None:
        """Fail the pending read right away if the loader itself crashed."""
        if task.cancelled() or task.exception() is None:
            return
        exc = task.exception()
        err = TransportError(f"Script load failed: {exc!r}")
        err.__cause__ = exc
        self.registry.fail(callback, err)

    async def read(self, url: str) -> RawResponse:
        async with self.registry.register() as (callback, future):
            script_url = with_cache_bust(httpx.URL(url).copy_set_param("callback", callback))
            loader = asyncio.create_task(self._load(script_url, callback))
            loader.add_done_callback(lambda task: self._loader_done(task, callback))
            try:
                payload = await asyncio.wait_for(future, timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                raise ScriptTimeoutError(callback, self.timeout) from exc
            finally:
                loader.cancel()
                await asyncio.gather(loader, return_exceptions=True)

        return RawResponse(status=SCRIPT_STATUS, payload=payload, decoded=True)

    async def write(self, url: str, data: Mapping[str, str]) -> Optional[RawResponse]:
        raise SyncError("Script injection transport is read-only")


def build_transports(
    settings: Settings, client: httpx.AsyncClient
) -> Tuple[Transport, Transport]:
    """Return the (reader, writer) pair for the configured strategy.

    Writes always go through a DirectTransport.
    """
    writer = DirectTransport(
        client,
        encoding=settings.effective_write_encoding(),
        opaque=settings.effective_opaque_writes(),
    )
    if settings.transport is TransportStrategy.SCRIPT_INJECTION:
        reader: Transport = ScriptInjectionTransport(client, timeout=settings.script_timeout)
    else:
        reader = writer
    return reader, writer
