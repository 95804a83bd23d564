from __future__ import annotations

from gamerelay.core.composer import (
    ANSWER_INSTRUCTION,
    compose_prompt,
    format_number,
    render_template,
    template_variables,
)
from gamerelay.core.snapshot import StateSnapshot
from gamerelay.prompts import LayeredConfig


def _snapshot(**fields: object) -> StateSnapshot:
    data: dict[str, object] = {
        "phase": "ACT",
        "gameScore": 42,
        "avatarHealthPoints": 7,
        "gameTick": 12,
        "avatarPosition": [3.0, 4.5, 0.0],
        "availableActions": ["ACTION_UP", "ACTION_LEFT"],
    }
    data.update(fields)
    return StateSnapshot.model_validate(data)


def test_render_template_substitutes_known_placeholders() -> None:
    variables = template_variables(_snapshot(), "Aliens")

    assert render_template("Score is {{gameScore}}", variables) == "Score is 42"
    assert render_template("{{gameName}} at {{avatarPosition}}", variables) == "Aliens at (3, 4.5)"


def test_render_template_keeps_unknown_placeholders() -> None:
    variables = template_variables(_snapshot(), None)

    assert render_template("{{foo}} and {{gameTick}}", variables) == "{{foo}} and 12"
    assert render_template("", variables) is None


def test_template_variables_defaults() -> None:
    snapshot = StateSnapshot.model_validate({"phase": "ACT"})
    variables = template_variables(snapshot, None)

    assert variables["gameName"] == "unknown"
    assert variables["gameScore"] == "0"
    assert variables["avatarHealthPoints"] == "0"
    assert variables["avatarPosition"] == "(0, 0)"
    assert variables["availableActions"] == "ACTION_NIL"


def test_format_number_drops_integral_fraction() -> None:
    assert format_number(3.0) == "3"
    assert format_number(2.5) == "2.5"
    assert format_number(None) == "0"


def test_compose_prompt_orders_layers() -> None:
    config = LayeredConfig(
        system_content="You play {{gameName}}.",
        game_content="Game rules for {{gameName}}.",
        level_content="Level hint: health {{avatarHealthPoints}}.",
        game_name="Aliens",
    )

    prompt = compose_prompt(_snapshot(), config)

    assert prompt.system == "You play Aliens."
    game, level, tick = prompt.user.split("\n\n", 2)
    assert game == "Game rules for Aliens."
    assert level == "Level hint: health 7."
    assert tick.startswith("Current State - Score: 42 | Health: 7 | Tick: 12\n")
    assert "Available actions: ACTION_UP, ACTION_LEFT" in tick
    assert tick.endswith(ANSWER_INSTRUCTION)


def test_compose_prompt_omits_absent_layers() -> None:
    prompt = compose_prompt(_snapshot(avatarHealthPoints=None), LayeredConfig(system_content=None))

    assert prompt.system is None
    assert prompt.user.startswith("Current State - Score: 42 | Health: 100 | Tick: 12")
    assert prompt.messages() == [{"role": "user", "content": prompt.user}]


def test_compose_prompt_messages_include_system_first() -> None:
    prompt = compose_prompt(_snapshot(), LayeredConfig())

    messages = prompt.messages()

    assert [message["role"] for message in messages] == ["system", "user"]
    assert messages[0]["content"] == prompt.system
