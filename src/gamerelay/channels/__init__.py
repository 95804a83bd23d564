"""Simulation channel, wire framing and observability events."""

from gamerelay.channels.events import DecisionRecord, InvocationError, LevelEnd, RelayEvent, SessionEnd, StateUpdate
from gamerelay.channels.framing import Frame, FrameDecoder, encode_frame, split_frame
from gamerelay.channels.simulation import SimulationChannel

__all__ = [
    "DecisionRecord",
    "Frame",
    "FrameDecoder",
    "InvocationError",
    "LevelEnd",
    "RelayEvent",
    "SessionEnd",
    "SimulationChannel",
    "StateUpdate",
    "encode_frame",
    "split_frame",
]
