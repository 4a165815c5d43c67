from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from assistant.core.prompt import NO_RESPONSE_REPLY
from assistant.errors import ConfigurationError, TransportError, UpstreamError
from config.settings import Settings, get_settings


logger = logging.getLogger("pnwer.claude")


def build_headers(settings: Settings) -> Dict[str, str]:
    return {
        "x-api-key": settings.anthropic_api_key or "",
        "anthropic-version": settings.anthropic_version,
        "content-type": "application/json",
    }


def build_payload(
    messages: List[Any], preprompt: Optional[str], settings: Settings
) -> Dict[str, Any]:
    # messages go through untouched; the API validates roles and content itself
    return {
        "model": settings.claude_model,
        "max_tokens": settings.max_tokens,
        "system": preprompt or "",
        "messages": messages,
    }


def build_http_client(settings: Optional[Settings] = None) -> httpx.Client:
    settings = settings or get_settings()
    return httpx.Client(timeout=settings.request_timeout)


def _extract_text(data: Dict[str, Any]) -> Optional[str]:
    content = data.get("content")
    if not isinstance(content, list) or not content:
        return None
    first = content[0]
    if not isinstance(first, dict):
        return None
    text = first.get("text")
    return text if isinstance(text, str) and text else None


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or "")
    return str(error)


def call_claude(
    messages: List[Any],
    preprompt: Optional[str] = None,
    *,
    client: Optional[httpx.Client] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Send one Messages API request and return the reply text.

    Raises ConfigurationError before touching the network when no API key is
    set, UpstreamError when the body carries an ``error`` object, and
    TransportError for network failures or a body that is not a JSON object.
    A response without text yields the ``[No response]`` sentinel.
    """
    settings = settings or get_settings()
    if not settings.anthropic_api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY not set")

    payload = build_payload(messages, preprompt, settings)
    owns_client = client is None
    http = client or build_http_client(settings)
    try:
        response = http.post(
            settings.anthropic_api_url,
            headers=build_headers(settings),
            json=payload,
        )
        data = response.json()
    except httpx.HTTPError as exc:
        raise TransportError(f"Claude API call failed: {exc}") from exc
    except ValueError as exc:
        raise TransportError(f"Claude API returned invalid JSON: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    if not isinstance(data, dict):
        raise TransportError("Claude API returned a non-object body")

    if data.get("error"):
        raise UpstreamError(_error_message(data["error"]))

    text = _extract_text(data)
    if text is None:
        logger.info("Claude returned no text (status=%s)", response.status_code)
        return NO_RESPONSE_REPLY
    return text
