"""Pure decision-side building blocks."""

from gamerelay.core.actions import NEUTRAL_ACTION, VALID_ACTIONS, Action, ParsedAction, parse_action
from gamerelay.core.composer import ComposedPrompt, compose_prompt
from gamerelay.core.phase import Phase, classify_phase
from gamerelay.core.snapshot import StateSnapshot

__all__ = [
    "NEUTRAL_ACTION",
    "VALID_ACTIONS",
    "Action",
    "ComposedPrompt",
    "ParsedAction",
    "Phase",
    "StateSnapshot",
    "classify_phase",
    "compose_prompt",
    "parse_action",
]
