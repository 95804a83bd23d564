"""Decision backend access."""

from gamerelay.llm.client import ChatBackend
from gamerelay.llm.invoker import DecisionInvoker, DecisionResult
from gamerelay.llm.providers import Provider, default_providers, select_provider

__all__ = ["ChatBackend", "DecisionInvoker", "DecisionResult", "Provider", "default_providers", "select_provider"]
