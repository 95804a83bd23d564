"""Per-connection session record and its transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from gamerelay.core.actions import NEUTRAL_ACTION, Action
from gamerelay.prompts import LayeredConfig


class RelayState(StrEnum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


@dataclass
class Session:
    """State of one simulation run against one decision backend.

    Mutated only through the methods below, all called from the relay's event loop.
    ``generation`` changes whenever cached results must stop being accepted (level end,
    close); a background decision commits only if its generation is still current.
    """

    backend_id: str
    game_id: str | None
    game_name: str | None
    config: LayeredConfig = field(default_factory=LayeredConfig)
    state: RelayState = RelayState.CONNECTING
    level: int = 0
    cached_action: Action | None = None
    in_flight: bool = False
    last_invoked_at: float | None = None
    generation: int = 0

    @property
    def is_closed(self) -> bool:
        return self.state is RelayState.CLOSED

    def current_action(self) -> Action:
        return self.cached_action or NEUTRAL_ACTION

    def activate(self) -> None:
        if not self.is_closed:
            self.state = RelayState.ACTIVE

    def reconfigure(self, config: LayeredConfig) -> None:
        self.config = config

    def can_admit(self, now: float, min_interval: float) -> bool:
        if self.state is not RelayState.ACTIVE or self.in_flight:
            return False
        return self.last_invoked_at is None or now - self.last_invoked_at >= min_interval

    def begin_invocation(self, now: float) -> int:
        self.in_flight = True
        self.last_invoked_at = now
        return self.generation

    def finish_invocation(self) -> None:
        # The call has physically ended, whatever generation it belonged to.
        self.in_flight = False

    def commit(self, generation: int, action: Action) -> bool:
        if self.is_closed or generation != self.generation:
            return False
        self.cached_action = action
        return True

    def advance_level(self) -> int:
        self.level += 1
        self.cached_action = None
        self.last_invoked_at = None
        self.generation += 1
        return self.level

    def close(self) -> bool:
        if self.is_closed:
            return False
        self.state = RelayState.CLOSED
        self.generation += 1
        return True
