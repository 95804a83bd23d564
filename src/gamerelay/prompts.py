"""Layered prompt configuration and its resolvers."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gamerelay.errors import PromptConfigError

DEFAULT_SYSTEM_CONTENT = "You are playing a 2D game. Respond with ONE action name."
DEFAULT_SYSTEM_TEMPLATE_ID = "default-system"
DEFAULT_MAX_TOKENS = 100
DEFAULT_TEMPERATURE = 0.7


@dataclass(frozen=True)
class InvocationSettings:
    """Backend settings applied to every decision call of one game."""

    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


@dataclass(frozen=True)
class LayeredConfig:
    """Resolved prompt layers for one (game, level) pair."""

    system_content: str | None = DEFAULT_SYSTEM_CONTENT
    game_content: str | None = None
    level_content: str | None = None
    game_name: str | None = None
    settings: InvocationSettings = field(default_factory=InvocationSettings)

    def with_game_name(self, game_name: str | None) -> LayeredConfig:
        """Fill the game name when the stored configuration has none."""
        if self.game_name or not game_name:
            return self
        return LayeredConfig(
            system_content=self.system_content,
            game_content=self.game_content,
            level_content=self.level_content,
            game_name=game_name,
            settings=self.settings,
        )


class PromptResolver(Protocol):
    def resolve(self, game_id: str | None, level: int) -> LayeredConfig: ...


class StaticPromptResolver:
    """Resolver returning one fixed configuration for every level."""

    def __init__(self, config: LayeredConfig | None = None) -> None:
        self._config = config or LayeredConfig()

    def resolve(self, game_id: str | None, level: int) -> LayeredConfig:
        return self._config


class _LayerRef(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    template_id: str | None = Field(default=None, alias="templateId")
    custom_override: str | None = Field(default=None, alias="customOverride")


class _LlmSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, alias="maxTokens", gt=0)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)


class _GameConfigFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    game_id: str | int | None = Field(default=None, alias="gameId")
    game_name: str | None = Field(default=None, alias="gameName")
    system_template_id: str | None = Field(default=None, alias="systemTemplateId")
    game_context: _LayerRef | None = Field(default=None, alias="gameContext")
    progression_contexts: dict[str, _LayerRef | None] = Field(default_factory=dict, alias="progressionContexts")
    llm_settings: _LlmSettings | None = Field(default=None, alias="llmSettings")


class _TemplateFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    content: str


@dataclass
class _CacheEntry:
    value: Any
    loaded_at: float


class FilePromptResolver:
    """Resolve layered configuration from ``templates/*.json`` and ``games/*.json``.

    The store is read-only here. Parsed files are cached for ``ttl_seconds`` so the
    resolver stays cheap when called at every level start.
    """

    def __init__(
        self,
        directory: Path,
        *,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.directory = directory
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._templates: dict[str, _CacheEntry] = {}
        self._games: dict[str, _CacheEntry] = {}

    @property
    def templates_dir(self) -> Path:
        return self.directory / "templates"

    @property
    def games_dir(self) -> Path:
        return self.directory / "games"

    def invalidate(self) -> None:
        self._templates.clear()
        self._games.clear()

    def resolve(self, game_id: str | None, level: int) -> LayeredConfig:
        game = self._game(game_id) if game_id is not None else None
        if game is None:
            return self._default_config()

        system_content = None
        if game.system_template_id:
            system_content = self._template_content(game.system_template_id)
        if not system_content:
            system_content = self._default_config().system_content

        level_ref = game.progression_contexts.get(str(level))
        llm = game.llm_settings or _LlmSettings()
        return LayeredConfig(
            system_content=system_content,
            game_content=self._layer_content(game.game_context),
            level_content=self._layer_content(level_ref),
            game_name=game.game_name,
            settings=InvocationSettings(max_tokens=llm.max_tokens, temperature=llm.temperature),
        )

    def _default_config(self) -> LayeredConfig:
        content = self._template_content(DEFAULT_SYSTEM_TEMPLATE_ID)
        return LayeredConfig(system_content=content or DEFAULT_SYSTEM_CONTENT)

    def _layer_content(self, ref: _LayerRef | None) -> str | None:
        if ref is None:
            return None
        if ref.custom_override:
            return ref.custom_override
        if ref.template_id:
            return self._template_content(ref.template_id)
        return None

    def _template_content(self, template_id: str) -> str | None:
        template = self._cached(self._templates, template_id, self._load_template)
        return template.content if template is not None else None

    def _game(self, game_id: str) -> _GameConfigFile | None:
        return self._cached(self._games, str(game_id), self._load_game)

    def _cached(self, cache: dict[str, _CacheEntry], key: str, loader: Callable[[str], Any]) -> Any:
        now = self._clock()
        entry = cache.get(key)
        if entry is not None and now - entry.loaded_at < self._ttl_seconds:
            return entry.value
        value = loader(key)
        if value is not None:
            cache[key] = _CacheEntry(value=value, loaded_at=now)
        return value

    def _load_template(self, template_id: str) -> _TemplateFile | None:
        # A broken template degrades to "missing" so the remaining layers still resolve.
        try:
            raw = _read_json(self.templates_dir / f"{template_id}.json")
            return _TemplateFile.model_validate(raw) if raw is not None else None
        except (PromptConfigError, ValidationError):
            logger.warning("prompts.template.invalid template_id={}", template_id)
            return None

    def _load_game(self, game_id: str) -> _GameConfigFile | None:
        raw = _read_json(self.games_dir / f"{game_id}.json")
        if raw is None:
            return None
        try:
            return _GameConfigFile.model_validate(raw)
        except ValidationError as exc:
            raise PromptConfigError(f"invalid game config for {game_id}: {exc.error_count()} error(s)") from exc


def _read_json(path: Path) -> Any:
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PromptConfigError(f"cannot read {path.name}: {exc}") from exc
