"""Runtime bootstrap helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from gamerelay.bus import EventBus
from gamerelay.config import Settings
from gamerelay.llm.client import ChatBackend
from gamerelay.llm.invoker import DecisionInvoker
from gamerelay.llm.providers import default_providers
from gamerelay.prompts import FilePromptResolver, PromptResolver, StaticPromptResolver
from gamerelay.relay.relay import Relay

DRAIN_GRACE_SECONDS = 1.0


@dataclass
class RelayRuntime:
    """Everything one relay session needs, wired from settings."""

    settings: Settings
    events: EventBus
    backend: ChatBackend
    relay: Relay

    async def run(self) -> None:
        """Connect to the peer, serve until the session closes, then release resources."""
        try:
            await self.relay.run(self.settings.host, self.settings.port)
        finally:
            self.relay.stop()
            await self.relay.drain(timeout=self.settings.decision_timeout_seconds + DRAIN_GRACE_SECONDS)
            await self.backend.aclose()

    async def validate_api_key(self) -> bool:
        return await self.backend.validate_api_key()


def build_resolver(settings: Settings) -> PromptResolver:
    if settings.prompts_dir is None:
        return StaticPromptResolver()
    if not settings.prompts_dir.is_dir():
        logger.warning("prompts.dir.missing path={}", settings.prompts_dir)
    return FilePromptResolver(settings.prompts_dir, ttl_seconds=settings.prompt_cache_ttl_seconds)


def build_runtime(
    settings: Settings,
    *,
    game_id: str | None = None,
    game_name: str | None = None,
    events: EventBus | None = None,
    backend: ChatBackend | None = None,
    on_session_end: Callable[[str], None] | None = None,
) -> RelayRuntime:
    """Wire resolver, backend, invoker and relay for one game session."""

    events = events or EventBus()
    backend = backend or ChatBackend(
        settings.model,
        default_providers(settings),
        api_key=settings.api_key,
        key_url=settings.openrouter_key_url,
        timeout_seconds=settings.decision_timeout_seconds,
    )
    invoker = DecisionInvoker(backend, events, timeout_seconds=settings.decision_timeout_seconds)
    relay = Relay(
        invoker,
        build_resolver(settings),
        events,
        backend_id=settings.model,
        game_id=game_id,
        game_name=game_name,
        min_interval_seconds=settings.min_invocation_interval_seconds,
        on_session_end=on_session_end,
    )
    return RelayRuntime(settings=settings, events=events, backend=backend, relay=relay)
