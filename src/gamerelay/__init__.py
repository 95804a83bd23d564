"""gamerelay - keep a real-time game loop moving while an LLM decides."""

from gamerelay.app import RelayRuntime, build_runtime
from gamerelay.bus import EventBus
from gamerelay.config import Settings, load_settings
from gamerelay.relay import Relay, RelayState, Session

__version__ = "0.1.0"

__all__ = ["EventBus", "Relay", "RelayRuntime", "RelayState", "Session", "Settings", "build_runtime", "load_settings"]
