"""
Shared fixtures for the PNWER AI test suite.

Nothing here reaches the network: the Claude API is replaced with an
``httpx.MockTransport`` and the proxy with scripted fakes.
"""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app, get_upstream_client
from config.settings import Settings, get_settings


class FakeUpstream:
    """Records Claude API requests and answers them with ``responder``."""

    def __init__(self, responder: Optional[Callable[[dict], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.responder = responder or (
            lambda body: httpx.Response(200, json={"content": [{"type": "text", "text": "ok"}]})
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(json.loads(request.content))

    @property
    def bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


class FakeSource:
    """Scripted stand-in for ProxyClient used by controller tests.

    Each entry in ``replies`` is either a string to return or an exception
    to raise.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: List[Dict] = []
        self.on_call: Optional[Callable[[], None]] = None

    def ask(self, messages, preprompt):
        self.calls.append({"messages": [dict(m) for m in messages], "preprompt": preprompt})
        if self.on_call is not None:
            self.on_call()
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("CLAUDE_MODEL", raising=False)
    monkeypatch.delenv("CLAUDE_MAX_TOKENS", raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def api(env, upstream):
    def _client():
        client = upstream.client()
        try:
            yield client
        finally:
            client.close()

    app.dependency_overrides[get_settings] = lambda: Settings()
    app.dependency_overrides[get_upstream_client] = _client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
