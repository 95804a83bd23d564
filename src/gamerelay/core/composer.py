"""Decision input composition from state snapshots and layered configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass

from gamerelay.core.actions import NEUTRAL_ACTION
from gamerelay.core.snapshot import Number, StateSnapshot
from gamerelay.prompts import LayeredConfig

TEMPLATE_VAR_RE = re.compile(r"\{\{(\w+)\}\}")
ANSWER_INSTRUCTION = "Choose ONE action. Respond with ONLY the action name (e.g., ACTION_UP)."
DEFAULT_TICK_HEALTH = 100


@dataclass(frozen=True)
class ComposedPrompt:
    """System and user segments for one decision call."""

    system: str | None
    user: str

    def messages(self) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.user})
        return messages


def format_number(value: Number | None) -> str:
    if value is None:
        return "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_position(snapshot: StateSnapshot) -> str:
    if snapshot.avatar_position is None:
        return "(0, 0)"
    x, y = snapshot.avatar_position
    return f"({format_number(x)}, {format_number(y)})"


def format_actions(snapshot: StateSnapshot) -> str:
    return ", ".join(snapshot.available_actions or (NEUTRAL_ACTION.value,))


def template_variables(snapshot: StateSnapshot, game_name: str | None) -> dict[str, str]:
    return {
        "gameName": game_name or "unknown",
        "gameScore": format_number(snapshot.game_score),
        "avatarHealthPoints": format_number(snapshot.avatar_health_points),
        "gameTick": str(snapshot.game_tick),
        "avatarPosition": format_position(snapshot),
        "availableActions": format_actions(snapshot),
    }


def render_template(content: str | None, variables: dict[str, str]) -> str | None:
    """Substitute known ``{{name}}`` placeholders; unknown ones are kept verbatim."""

    if not content:
        return None

    def _replace(match: re.Match[str]) -> str:
        return variables.get(match.group(1), match.group(0))

    return TEMPLATE_VAR_RE.sub(_replace, content)


def tick_block(snapshot: StateSnapshot) -> str:
    health = snapshot.avatar_health_points
    if health is None:
        health = DEFAULT_TICK_HEALTH
    return (
        f"Current State - Score: {format_number(snapshot.game_score)}"
        f" | Health: {format_number(health)}"
        f" | Tick: {snapshot.game_tick}\n"
        f"Available actions: {format_actions(snapshot)}\n\n"
        f"{ANSWER_INSTRUCTION}"
    )


def compose_prompt(snapshot: StateSnapshot, config: LayeredConfig) -> ComposedPrompt:
    """Build the decision input: optional system layer, then game, level and tick blocks."""

    variables = template_variables(snapshot, config.game_name)
    system = render_template(config.system_content, variables)
    parts = [
        render_template(config.game_content, variables),
        render_template(config.level_content, variables),
        tick_block(snapshot),
    ]
    return ComposedPrompt(system=system, user="\n\n".join(part for part in parts if part))
