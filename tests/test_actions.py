from __future__ import annotations

import pytest

from gamerelay.core.actions import NEUTRAL_ACTION, VALID_ACTIONS, Action, legal_actions_of, parse_action


@pytest.mark.parametrize(
    ("text", "legal", "expected"),
    [
        ("I will move ACTION_UP now", ["ACTION_UP", "ACTION_DOWN"], Action.UP),
        ("action_left is best", ["ACTION_LEFT", "ACTION_RIGHT"], Action.LEFT),
        ("Reasoning...\nAction: ACTION_RIGHT", None, Action.RIGHT),
        ("ACTION_USE", ["ACTION_USE"], Action.USE),
    ],
)
def test_parse_action_finds_legal_token(text: str, legal: list[str] | None, expected: Action) -> None:
    parsed = parse_action(text, legal)

    assert parsed.action is expected
    assert parsed.matched is True


def test_parse_action_falls_back_to_neutral_when_nothing_matches() -> None:
    parsed = parse_action("I think I should jump", ["ACTION_UP"])

    assert parsed.action is NEUTRAL_ACTION
    assert parsed.matched is False


@pytest.mark.parametrize("text", ["", None])
def test_parse_action_handles_empty_text(text: str | None) -> None:
    parsed = parse_action(text, ["ACTION_UP"])

    assert parsed.action is NEUTRAL_ACTION
    assert parsed.matched is False


def test_parse_action_breaks_ties_by_legal_order() -> None:
    text = "either ACTION_DOWN or ACTION_UP"

    assert parse_action(text, ["ACTION_UP", "ACTION_DOWN"]).action is Action.UP
    assert parse_action(text, ["ACTION_DOWN", "ACTION_UP"]).action is Action.DOWN


def test_parse_action_ignores_actions_outside_legal_set() -> None:
    parsed = parse_action("Action: ACTION_ESCAPE", ["ACTION_UP", "ACTION_DOWN"])

    assert parsed.action is NEUTRAL_ACTION
    assert parsed.matched is False


def test_parse_action_with_empty_legal_list_is_neutral() -> None:
    parsed = parse_action("go ACTION_ESCAPE\nAction: ACTION_UP", [])

    assert parsed.action is NEUTRAL_ACTION
    assert parsed.matched is False


def test_parse_action_without_legal_list_uses_vocabulary() -> None:
    assert parse_action("go ACTION_ESCAPE").action is Action.ESCAPE


def test_legal_actions_of_keeps_known_tokens_in_order() -> None:
    legal = legal_actions_of(["action_down", "ACTION_JUMP", "ACTION_UP", "ACTION_DOWN"])

    assert legal == (Action.DOWN, Action.UP)


def test_legal_actions_of_defaults_to_vocabulary_only_without_input() -> None:
    assert legal_actions_of(None) == VALID_ACTIONS
    assert legal_actions_of([]) == ()
    assert legal_actions_of(["ACTION_JUMP"]) == ()
