"""Relay between the simulation channel and the decision invoker."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from loguru import logger

from gamerelay.bus import EventBus
from gamerelay.channels.events import DecisionRecord, LevelEnd, SessionEnd, StateUpdate
from gamerelay.channels.simulation import SimulationChannel
from gamerelay.core.actions import NEUTRAL_ACTION, Action
from gamerelay.core.phase import Phase, classify_phase
from gamerelay.core.snapshot import StateSnapshot
from gamerelay.errors import ConfigurationError
from gamerelay.llm.invoker import DecisionInvoker
from gamerelay.prompts import LayeredConfig, PromptResolver
from gamerelay.relay.session import RelayState, Session

IMAGE_SUFFIX = "#IMAGE"
START_DONE = "START_DONE"
INIT_DONE = "INIT_DONE#BOTH"
INIT_FAILED = "INIT_FAILED"
END_DONE = "END_DONE"
END_FAILED = "END_FAILED"
DEFAULT_MIN_INTERVAL_SECONDS = 0.4

FAILURE_REPLIES: dict[Phase, str] = {Phase.INIT: INIT_FAILED, Phase.END: END_FAILED}


class ReplyChannel(Protocol):
    def send(self, correlation_id: str, text: str) -> bool: ...

    def close(self) -> None: ...


def action_reply(action: Action) -> str:
    return f"{action}{IMAGE_SUFFIX}"


class Relay:
    """Answer every tick from the cached action and refresh it in the background.

    ``ACT`` frames are answered before any other work is done for them. Snapshot
    parsing, broadcasting and admission of a new decision call happen after one
    event-loop yield. Decision results are committed through the session's
    generation guard, so a call that outlives its level or session is dropped.
    """

    def __init__(
        self,
        invoker: DecisionInvoker,
        resolver: PromptResolver,
        events: EventBus,
        *,
        backend_id: str,
        game_id: str | None = None,
        game_name: str | None = None,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        on_session_end: Callable[[str], None] | None = None,
    ) -> None:
        self._invoker = invoker
        self._resolver = resolver
        self._events = events
        self._backend_id = backend_id
        self._game_id = game_id
        self._game_name = game_name
        self._min_interval = min_interval_seconds
        self._clock = clock
        self._on_session_end = on_session_end
        self._channel: ReplyChannel | None = None
        self._closed = asyncio.Event()
        self._tasks: set[asyncio.Task[None]] = set()
        self._log = logger.bind(session=f"{game_name or game_id or 'game'}@{backend_id}")
        self._handlers: dict[Phase, Callable[[str, str], None]] = {
            Phase.START: self._on_start,
            Phase.INIT: self._on_init,
            Phase.ACT: self._on_act,
            Phase.END: self._on_end,
            Phase.FINISH: self._on_finish,
        }
        self.session: Session | None = None

    @property
    def state(self) -> RelayState:
        return self.session.state if self.session is not None else RelayState.IDLE

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def attach(self, channel: ReplyChannel) -> Session:
        """Bind a channel and open a new session in ``CONNECTING`` state.

        An unreadable game configuration falls back to the default layers here; a
        later ``INIT`` resolves again and answers ``INIT_FAILED`` if it is still broken.
        """

        self._channel = channel
        self._closed.clear()
        self.session = Session(backend_id=self._backend_id, game_id=self._game_id, game_name=self._game_name)
        try:
            config = self._resolve_config(self.session)
        except ConfigurationError:
            self._log.exception("relay.config.invalid game_id={} using default", self._game_id)
            config = LayeredConfig().with_game_name(self._game_name)
        self.session.reconfigure(config)
        return self.session

    async def connect(self, host: str, port: int) -> Session:
        channel = SimulationChannel(self.handle_message, self._on_channel_closed)
        session = self.attach(channel)
        self._log.info("relay.connecting host={} port={} model={}", host, port, self._backend_id)
        await channel.connect(host, port)
        session.activate()
        self._log.info("relay.active")
        return session

    async def run(self, host: str, port: int) -> None:
        await self.connect(host, port)
        await self.wait_closed()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for background decision calls to finish; cancel what is left after ``timeout``."""

        if not self._tasks:
            return
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def stop(self) -> None:
        self._teardown("stopped")

    def handle_message(self, correlation_id: str, payload: str) -> None:
        """Dispatch one frame. Nothing raised here reaches the channel."""

        try:
            phase = classify_phase(payload)
        except Exception:
            self._log.exception("relay.classify.error id={}", correlation_id)
            self._reply(correlation_id, action_reply(NEUTRAL_ACTION))
            return

        if phase is Phase.UNKNOWN:
            self._log.warning("relay.phase.unknown id={} size={}", correlation_id, len(payload))
            self._reply(correlation_id, action_reply(NEUTRAL_ACTION))
            return

        if self.session is None or self.session.is_closed:
            self._log.warning("relay.message.after_close id={} phase={}", correlation_id, phase)
            return

        try:
            self._handlers[phase](correlation_id, payload)
        except Exception:
            self._log.exception("relay.handle.error id={} phase={} size={}", correlation_id, phase, len(payload))
            failure = FAILURE_REPLIES.get(phase)
            if failure is not None:
                self._reply(correlation_id, failure)

    def _on_start(self, correlation_id: str, _payload: str) -> None:
        self._log.info("relay.start id={}", correlation_id)
        self._reply(correlation_id, START_DONE)

    def _on_init(self, correlation_id: str, payload: str) -> None:
        session = self._require_session()
        StateSnapshot.from_payload(payload)
        session.reconfigure(self._resolve_config(session))
        self._log.info("relay.init id={} level={}", correlation_id, session.level)
        self._reply(correlation_id, INIT_DONE)

    def _on_act(self, correlation_id: str, payload: str) -> None:
        action = self._require_session().current_action()
        self._reply(correlation_id, action_reply(action))
        asyncio.get_running_loop().call_soon(self._after_act, payload, action)

    def _after_act(self, payload: str, action: Action) -> None:
        session = self.session
        if session is None or session.is_closed:
            return
        try:
            snapshot = StateSnapshot.from_payload(payload)
        except ValueError:
            self._log.warning("relay.act.unreadable size={}", len(payload))
            return

        self._events.emit(
            StateUpdate(
                score=snapshot.game_score,
                health=snapshot.avatar_health_points,
                max_health=snapshot.avatar_max_health_points,
                tick=snapshot.game_tick,
                action=action.value,
            )
        )

        now = self._clock()
        if not session.can_admit(now, self._min_interval):
            return
        generation = session.begin_invocation(now)
        self._spawn(self._refresh_decision(session, snapshot, generation))

    async def _refresh_decision(self, session: Session, snapshot: StateSnapshot, generation: int) -> None:
        try:
            result = await self._invoker.invoke(snapshot, session.config)
        finally:
            session.finish_invocation()
        if result is None:
            return
        if not session.commit(generation, result.action):
            self._log.info("relay.decision.stale generation={} current={}", generation, session.generation)
            return
        self._log.info("relay.decision.cached action={} tick={}", result.action, snapshot.game_tick)
        self._events.emit(
            DecisionRecord(
                prompt=result.prompt.user,
                system_prompt=result.prompt.system,
                response=result.raw_text,
                action=result.action.value,
                matched=result.matched,
                elapsed_ms=result.elapsed_ms,
                score=snapshot.game_score,
                health=snapshot.avatar_health_points,
                tick=snapshot.game_tick,
            )
        )

    def _on_end(self, correlation_id: str, payload: str) -> None:
        session = self._require_session()
        snapshot = StateSnapshot.from_payload(payload)
        level = session.advance_level()
        self._log.info("relay.level.end level={} score={} winner={}", level, snapshot.game_score, snapshot.game_winner)
        self._reply(correlation_id, END_DONE)
        self._events.emit(
            LevelEnd(score=snapshot.game_score, winner=snapshot.game_winner, ticks=snapshot.game_tick, level=level)
        )

    def _on_finish(self, correlation_id: str, _payload: str) -> None:
        self._log.info("relay.finish id={}", correlation_id)
        self._teardown("finished")

    def _on_channel_closed(self, exc: BaseException | None) -> None:
        self._teardown("error" if exc is not None else "disconnected")

    def _teardown(self, reason: str) -> None:
        session = self.session
        if session is None or not session.close():
            return
        self._log.info("relay.closed reason={} levels={}", reason, session.level)
        self._events.emit(SessionEnd(reason=reason, levels_played=session.level))
        if self._channel is not None:
            self._channel.close()
        self._closed.set()
        if self._on_session_end is not None:
            callback, self._on_session_end = self._on_session_end, None
            try:
                callback(reason)
            except Exception:
                self._log.exception("relay.session_end_callback.error")

    def _resolve_config(self, session: Session) -> LayeredConfig:
        return self._resolver.resolve(session.game_id, session.level).with_game_name(session.game_name)

    def _require_session(self) -> Session:
        if self.session is None:
            raise RuntimeError("relay has no session; call attach() or connect() first")
        return self.session

    def _reply(self, correlation_id: str, text: str) -> bool:
        if self._channel is None:
            self._log.warning("relay.reply.no_channel id={} text={}", correlation_id, text)
            return False
        return self._channel.send(correlation_id, text)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
