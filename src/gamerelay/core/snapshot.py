"""Simulation state snapshot received from the peer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

Number = int | float


class StateSnapshot(BaseModel):
    """Facts about one simulation tick. Only the fields the relay reads are modelled."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    phase: str | None = None
    game_score: Number = Field(default=0, alias="gameScore")
    avatar_health_points: Number | None = Field(default=None, alias="avatarHealthPoints")
    avatar_max_health_points: Number | None = Field(default=None, alias="avatarMaxHealthPoints")
    game_tick: int = Field(default=0, alias="gameTick")
    avatar_position: tuple[Number, Number] | None = Field(default=None, alias="avatarPosition")
    available_actions: tuple[str, ...] = Field(default=(), alias="availableActions")
    game_winner: str | None = Field(default=None, alias="gameWinner")

    @field_validator("avatar_position", mode="before")
    @classmethod
    def _first_two_coordinates(cls, value: object) -> object:
        if isinstance(value, (list, tuple)) and len(value) > 2:
            return tuple(value[:2])
        return value

    @field_validator("available_actions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return () if value is None else value

    @classmethod
    def from_payload(cls, payload: str) -> StateSnapshot:
        """Parse one JSON payload; raises ``pydantic.ValidationError`` when malformed."""
        return cls.model_validate_json(payload)
