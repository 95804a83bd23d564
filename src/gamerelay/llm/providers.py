"""Table-driven routing of model ids to chat-completion providers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from gamerelay.config import Settings
from gamerelay.errors import ProviderNotFoundError

NAMESPACE_SEPARATOR = "/"

ModelMatcher = Callable[[str], bool]


@dataclass(frozen=True)
class Provider:
    """One chat-completions endpoint and the model ids it serves."""

    name: str
    api_url: str
    matches: ModelMatcher
    requires_auth: bool = False


def is_namespaced(model: str) -> bool:
    return NAMESPACE_SEPARATOR in model


def match_any(_model: str) -> bool:
    return True


def default_providers(settings: Settings) -> tuple[Provider, ...]:
    """Namespaced ids (``org/model``) go to OpenRouter; bare ids to the local Ollama server."""

    return (
        Provider("openrouter", settings.openrouter_api_url, is_namespaced, requires_auth=True),
        Provider("ollama", settings.ollama_api_url, match_any),
    )


def select_provider(model: str, providers: Sequence[Provider]) -> Provider:
    for provider in providers:
        if provider.matches(model):
            return provider
    raise ProviderNotFoundError(f"no provider serves model {model!r}")
