"""Observability events emitted by the relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar


@dataclass(frozen=True)
class RelayEvent:
    """Base for every event published on the event bus."""

    name: ClassVar[str] = "relay-event"

    def to_payload(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class StateUpdate(RelayEvent):
    """Per-tick state as seen when the reply was sent."""

    name: ClassVar[str] = "game-state"

    score: float
    health: float | None
    max_health: float | None
    tick: int
    action: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "health": self.health,
            "maxHealth": self.max_health,
            "tick": self.tick,
            "action": self.action,
        }


@dataclass(frozen=True)
class DecisionRecord(RelayEvent):
    """One completed decision call and what it produced."""

    name: ClassVar[str] = "llm-reasoning"

    prompt: str
    system_prompt: str | None
    response: str
    action: str
    matched: bool
    elapsed_ms: float
    score: float
    health: float | None
    tick: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "systemPrompt": self.system_prompt,
            "response": self.response,
            "action": self.action,
            "parsed": self.matched,
            "elapsed": round(self.elapsed_ms),
            "gameState": {"score": self.score, "health": self.health, "tick": self.tick},
        }


@dataclass(frozen=True)
class LevelEnd(RelayEvent):
    name: ClassVar[str] = "level-end"

    score: float
    winner: str | None
    ticks: int
    level: int

    def to_payload(self) -> dict[str, Any]:
        return {"score": self.score, "winner": self.winner, "ticks": self.ticks, "level": self.level}


@dataclass(frozen=True)
class SessionEnd(RelayEvent):
    name: ClassVar[str] = "session-end"

    reason: str
    levels_played: int

    def to_payload(self) -> dict[str, Any]:
        return {"reason": self.reason, "levelsPlayed": self.levels_played}


@dataclass(frozen=True)
class InvocationError(RelayEvent):
    """A decision call failed; the cached action was left as it was."""

    name: ClassVar[str] = "llm-error"

    message: str
    status: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message, "timestamp": self.timestamp.isoformat()}
