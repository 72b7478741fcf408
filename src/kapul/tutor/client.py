"""HTTP client for the AI proxy (status + completion endpoints)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from kapul.config import ProxyConfig

log = logging.getLogger(__name__)


class AIRequestError(RuntimeError):
    """The proxy could not produce a completion."""


class ProxyClient:
    def __init__(self, config: ProxyConfig) -> None:
        self._config = config
        self._client: Optional[httpx.AsyncClient] = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout)
        return self._client

    async def status(self) -> dict[str, Any]:
        url = self._config.status_url
        try:
            resp = await self._http().get(url)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise AIRequestError(f"Status check failed: HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise AIRequestError(f"Status check failed: {type(e).__name__} ({url})") from e
        except ValueError as e:
            raise AIRequestError("Status check failed: invalid JSON") from e
        if not isinstance(data, dict):
            raise AIRequestError("Status check failed: unexpected response format")
        return data

    async def complete(self, messages: list[dict[str, str]], system: str) -> str:
        """Send a conversation to the proxy and return the first text block."""
        url = self._config.completion_url
        payload = {"messages": messages, "system": system}

        try:
            resp = await self._http().post(url, json=payload)
        except httpx.RequestError as e:
            log.warning("AI request error: %s %s -> %s", type(e).__name__, url, e)
            raise AIRequestError(f"{type(e).__name__} ({url})") from e

        if not resp.is_success:
            raise AIRequestError(_error_message(resp))

        try:
            data = resp.json()
            content = data.get("content") or []
            return (content[0].get("text") if content else "") or ""
        except (ValueError, AttributeError, IndexError, TypeError) as e:
            log.warning("Unexpected AI response format: %s", e)
            raise AIRequestError("Unexpected response format") from e

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


def _error_message(resp: httpx.Response) -> str:
    fallback = f"API Error: {resp.status_code}"
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message") or fallback
    return fallback
