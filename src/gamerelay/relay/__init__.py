"""Relay orchestration and session state."""

from gamerelay.relay.relay import Relay
from gamerelay.relay.session import RelayState, Session

__all__ = ["Relay", "RelayState", "Session"]
