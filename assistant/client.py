from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

import httpx

from assistant.errors import TransportError


class ReplySource(Protocol):
    def ask(self, messages: List[Dict[str, str]], preprompt: str) -> str: ...


class ProxyClient:
    """Talks to the ``/api/claude`` endpoint the way the chat page does.

    The reply is read from the JSON body whatever the status code is, since
    the proxy reports failures as bracketed sentinel replies.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        client: Optional[httpx.Client] = None,
        path: str = "/api/claude",
        timeout: Optional[float] = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.path = path
        self._client = client
        self.timeout = timeout

    def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return self._client.post(url, json=payload)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, json=payload)

    def ask(self, messages: List[Dict[str, str]], preprompt: str) -> str:
        if self._client is not None and str(self._client.base_url):
            url = self.path
        else:
            url = f"{self.base_url}{self.path}"
        payload = {"preprompt": preprompt, "messages": messages}
        try:
            response = self._post(url, payload)
            data = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"Proxy call failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Proxy returned invalid JSON: {exc}") from exc

        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise TransportError("Proxy response has no reply")
        return reply
