"""Phase classification of peer payloads."""

from __future__ import annotations

import re
from enum import StrEnum

PHASE_PREFIX_CHARS = 2000
PHASE_MARKER_RE = re.compile(r'"phase"\s*:\s*"(INIT|ACT|END)"')


class Phase(StrEnum):
    START = "START"
    FINISH = "FINISH"
    INIT = "INIT"
    ACT = "ACT"
    END = "END"
    UNKNOWN = "UNKNOWN"


CONTROL_TOKENS = {Phase.START.value: Phase.START, Phase.FINISH.value: Phase.FINISH}
# Room for a control token plus surrounding whitespace such as a trailing CR.
CONTROL_TOKEN_MAX_CHARS = 16


def classify_phase(payload: str) -> Phase:
    """Classify a payload by its control token or declared phase.

    Only the leading ``PHASE_PREFIX_CHARS`` characters are searched first; the full
    payload is scanned only when the prefix holds no marker.
    """

    if len(payload) <= CONTROL_TOKEN_MAX_CHARS:
        control = CONTROL_TOKENS.get(payload.strip())
        if control is not None:
            return control

    match = PHASE_MARKER_RE.search(payload, 0, PHASE_PREFIX_CHARS)
    if match is None and len(payload) > PHASE_PREFIX_CHARS:
        match = PHASE_MARKER_RE.search(payload)
    if match is None:
        return Phase.UNKNOWN
    return Phase(match.group(1))
