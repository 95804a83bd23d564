from __future__ import annotations

import json

import pytest

from gamerelay.core.phase import CONTROL_TOKEN_MAX_CHARS, PHASE_PREFIX_CHARS, Phase, classify_phase


@pytest.mark.parametrize(
    ("payload", "expected"),
    [("START", Phase.START), ("FINISH", Phase.FINISH), (" START\r", Phase.START)],
)
def test_classify_control_tokens(payload: str, expected: Phase) -> None:
    assert classify_phase(payload) is expected


@pytest.mark.parametrize("phase", ["INIT", "ACT", "END"])
def test_classify_declared_phase(phase: str) -> None:
    payload = json.dumps({"phase": phase, "gameTick": 3})

    assert classify_phase(payload) is Phase(phase)


def test_classify_tolerates_whitespace_around_colon() -> None:
    assert classify_phase('{"gameTick": 1, "phase" :  "ACT"}') is Phase.ACT


def test_classify_finds_marker_past_the_prefix() -> None:
    padding = "x" * (PHASE_PREFIX_CHARS + 500)
    payload = json.dumps({"observation": padding, "phase": "END"})

    assert payload.index('"phase"') > PHASE_PREFIX_CHARS
    assert classify_phase(payload) is Phase.END


@pytest.mark.parametrize("payload", ['{"gameTick": 1}', '{"phase": "PAUSE"}', "hello", ""])
def test_classify_unknown(payload: str) -> None:
    assert classify_phase(payload) is Phase.UNKNOWN


def test_control_token_lookup_is_limited_to_short_payloads() -> None:
    padded = "FINISH" + " " * (CONTROL_TOKEN_MAX_CHARS * 100)

    assert classify_phase("FINISH" + " " * (CONTROL_TOKEN_MAX_CHARS - 6)) is Phase.FINISH
    assert classify_phase(padded) is Phase.UNKNOWN
