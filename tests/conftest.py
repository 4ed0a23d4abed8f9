"""Shared test fixtures for sheets-sync tests."""

import json
from typing import Dict, List, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

ENDPOINT = "https://script.example.com/macros/s/abc123/exec?v=2"
UPDATED_AT = "2024-01-01T00:00:00Z"


class FakeSheet:
    """In-memory stand-in for the Apps Script endpoint."""

    def __init__(self, password: str = "secret", store: Optional[Dict[str, str]] = None) -> None:
        self.password = password
        self.store: Dict[str, str] = dict(store or {})
        self.requests: List[httpx.Request] = []

    def _body(self, request: httpx.Request) -> Dict[str, str]:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            return json.loads(request.content)
        return dict(parse_qsl(request.content.decode("utf-8")))

    def _record(self, key: str) -> Dict[str, object]:
        return {
            "ok": True,
            "key": key,
            "html": self.store.get(key, ""),
            "updated_at": UPDATED_AT if key in self.store else "",
            "updated_by": "editor@example.com" if key in self.store else "",
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        key = params.get("key", "")

        if request.method == "GET":
            callback = params.get("callback")
            if callback:
                return httpx.Response(200, text=f"{callback}({json.dumps(self._record(key))});")
            return httpx.Response(200, json=self._record(key))

        data = self._body(request)
        if data.get("password") != self.password:
            return httpx.Response(200, json={"ok": False, "error": "bad password"})
        if params.get("action") == "save":
            self.store[data["key"]] = data.get("html", "")
        elif params.get("action") == "clear":
            self.store.pop(data["key"], None)
        return httpx.Response(200, json=self._record(data["key"]))

    def mock_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def endpoint() -> str:
    return ENDPOINT


@pytest.fixture
def sheet() -> FakeSheet:
    """Backend holding one piece of content under k1."""
    return FakeSheet(store={"k1": "<p>hi</p>"})


@pytest.fixture
def fragment_html() -> str:
    return "<h1>Staff ride</h1>\n<p>Meet at the car park at 08:00.</p>"


@pytest.fixture
def full_document_html() -> str:
    return "<!DOCTYPE html><html><head><title>x</title></head><body><p>x</p></body></html>"
