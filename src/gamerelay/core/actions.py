"""Action vocabulary and free-text action extraction."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

STRUCTURED_ACTION_RE = re.compile(r"ACTION:\s*(ACTION_\w+)")


class Action(StrEnum):
    """Commands the simulation peer accepts."""

    NIL = "ACTION_NIL"
    UP = "ACTION_UP"
    DOWN = "ACTION_DOWN"
    LEFT = "ACTION_LEFT"
    RIGHT = "ACTION_RIGHT"
    USE = "ACTION_USE"
    ESCAPE = "ACTION_ESCAPE"


NEUTRAL_ACTION = Action.NIL
VALID_ACTIONS: tuple[Action, ...] = tuple(Action)


@dataclass(frozen=True)
class ParsedAction:
    """One action extracted from model output."""

    action: Action
    matched: bool


def legal_actions_of(raw: Iterable[str] | None) -> tuple[Action, ...]:
    """Keep the known tokens of ``raw`` in order; ``None`` means the full vocabulary."""

    if raw is None:
        return VALID_ACTIONS
    known: list[Action] = []
    for token in raw:
        try:
            action = Action(str(token).strip().upper())
        except ValueError:
            logger.debug("actions.unknown_token token={}", token)
            continue
        if action not in known:
            known.append(action)
    return tuple(known)


def parse_action(text: str | None, legal_actions: Iterable[str] | None = None) -> ParsedAction:
    """Extract one legal action from free text.

    Legal tokens are tried as case-insensitive substrings in the order given, so the
    caller decides tie-breaks. A structured ``Action: ACTION_X`` answer is accepted next.
    An empty legal list admits nothing. Anything else yields the neutral action with ``matched=False``.
    """

    if not text:
        return ParsedAction(action=NEUTRAL_ACTION, matched=False)

    legal = legal_actions_of(legal_actions)
    upper = text.upper()
    for action in legal:
        if action.value in upper:
            return ParsedAction(action=action, matched=True)

    match = STRUCTURED_ACTION_RE.search(upper)
    if match is not None and match.group(1) in legal:
        return ParsedAction(action=Action(match.group(1)), matched=True)

    logger.warning("actions.unparsed text={!r}", text[:200])
    return ParsedAction(action=NEUTRAL_ACTION, matched=False)
