"""Decision invocation: compose, call the backend, parse."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from gamerelay.bus import EventBus
from gamerelay.channels.events import InvocationError
from gamerelay.core.actions import Action, parse_action
from gamerelay.core.composer import ComposedPrompt, compose_prompt
from gamerelay.core.snapshot import StateSnapshot
from gamerelay.errors import BackendError
from gamerelay.prompts import LayeredConfig


class CompletionBackend(Protocol):
    async def complete(self, messages: Sequence[dict[str, str]], *, max_tokens: int, temperature: float) -> str: ...


@dataclass(frozen=True)
class DecisionResult:
    """A validated action together with how it was obtained."""

    action: Action
    raw_text: str
    elapsed_ms: float
    prompt: ComposedPrompt
    matched: bool


class DecisionInvoker:
    """Turn one snapshot into one action. Never raises for backend faults."""

    def __init__(self, backend: CompletionBackend, events: EventBus, *, timeout_seconds: float | None = None) -> None:
        self._backend = backend
        self._events = events
        self._timeout_seconds = timeout_seconds

    async def invoke(self, snapshot: StateSnapshot, config: LayeredConfig) -> DecisionResult | None:
        prompt = compose_prompt(snapshot, config)
        started = time.perf_counter()
        try:
            async with asyncio.timeout(self._timeout_seconds):
                text = await self._backend.complete(
                    prompt.messages(),
                    max_tokens=config.settings.max_tokens,
                    temperature=config.settings.temperature,
                )
        except TimeoutError:
            self._fail(f"decision_timeout: no response within {self._timeout_seconds}s")
            return None
        except BackendError as exc:
            self._fail(str(exc), status=exc.status)
            return None
        except Exception as exc:
            logger.exception("decision.invoke.error")
            self._fail(f"decision_error: {exc!s}")
            return None

        elapsed_ms = (time.perf_counter() - started) * 1000
        parsed = parse_action(text, snapshot.available_actions)
        logger.info(
            "decision.complete elapsed_ms={:.0f} action={} matched={}", elapsed_ms, parsed.action, parsed.matched
        )
        return DecisionResult(
            action=parsed.action,
            raw_text=text,
            elapsed_ms=elapsed_ms,
            prompt=prompt,
            matched=parsed.matched,
        )

    def _fail(self, message: str, *, status: int | None = None) -> None:
        logger.error("decision.invoke.failed status={} message={}", status, message)
        self._events.emit(InvocationError(message=message, status=status))
