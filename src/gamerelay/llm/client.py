"""HTTP client for OpenAI-compatible chat-completion backends."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, ClassVar

import httpx
from loguru import logger

from gamerelay.errors import BackendError, BackendResponseError
from gamerelay.llm.providers import Provider, select_provider

Message = dict[str, str]
MAX_ERROR_BODY_CHARS = 500


class ChatBackend:
    """Send chat messages to the provider that serves ``model`` and return the reply text."""

    DEFAULT_HEADERS: ClassVar[dict[str, str]] = {
        "HTTP-Referer": "https://github.com/gamerelay/gamerelay",
        "X-Title": "gamerelay",
    }

    def __init__(
        self,
        model: str,
        providers: Sequence[Provider],
        *,
        api_key: str | None = None,
        key_url: str | None = None,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = model
        self.provider = select_provider(model, providers)
        self._api_key = api_key
        self._key_url = key_url
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.provider.requires_auth and self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
            headers.update(self.DEFAULT_HEADERS)
        return headers

    async def complete(self, messages: Sequence[Message], *, max_tokens: int, temperature: float) -> str:
        """Run one chat completion; raises ``BackendError`` on any failure."""

        body = {
            "model": self.model,
            "messages": list(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            response = await self._client.post(self.provider.api_url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise BackendError(f"{self.provider.name} request failed: {exc!s}") from exc

        if response.is_error:
            raise BackendError(
                f"{self.provider.name} returned {response.status_code}: {response.text[:MAX_ERROR_BODY_CHARS]}",
                status=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            message = f"{self.provider.name} returned non-JSON body"
            raise BackendResponseError(message, status=response.status_code) from exc
        return _extract_content(data, self.provider.name)

    async def validate_api_key(self) -> bool:
        """Check the bearer key against the provider; without a key only local use is possible."""

        if not self._api_key:
            logger.info("backend.key.absent provider={} using local endpoint", self.provider.name)
            return True
        if not self._key_url:
            return True
        try:
            response = await self._client.get(self._key_url, headers={"Authorization": f"Bearer {self._api_key}"})
        except httpx.HTTPError:
            logger.exception("backend.key.error")
            return False
        if response.is_error:
            logger.error("backend.key.invalid status={}", response.status_code)
            return False
        try:
            usage = response.json().get("data", {}).get("usage", "N/A")
        except (ValueError, AttributeError):
            usage = "N/A"
        logger.info("backend.key.valid usage={}", usage)
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _extract_content(data: Any, provider_name: str) -> str:
    try:
        content = data["choices"][0]["message"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise BackendResponseError(f"{provider_name} response has no choices[0].message") from exc
    if content is None:
        return ""
    if isinstance(content, list):
        return "".join(str(part.get("text", "")) for part in content if isinstance(part, dict))
    return str(content)
