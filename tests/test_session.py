from __future__ import annotations

from gamerelay.core.actions import Action
from gamerelay.relay.session import RelayState, Session


def _active_session() -> Session:
    session = Session(backend_id="gemma3:1b", game_id="aliens", game_name=None)
    session.activate()
    return session


def test_new_session_answers_neutral() -> None:
    session = Session(backend_id="gemma3:1b", game_id=None, game_name=None)

    assert session.state is RelayState.CONNECTING
    assert session.current_action() is Action.NIL
    assert session.can_admit(0.0, 0.4) is False


def test_admission_requires_idle_backend_and_interval() -> None:
    session = _active_session()
    assert session.can_admit(10.0, 0.4) is True

    session.begin_invocation(10.0)
    assert session.can_admit(11.0, 0.4) is False

    session.finish_invocation()
    assert session.can_admit(10.3, 0.4) is False
    assert session.can_admit(10.4, 0.4) is True


def test_commit_honours_generation() -> None:
    session = _active_session()
    generation = session.begin_invocation(1.0)

    assert session.commit(generation, Action.LEFT) is True
    assert session.current_action() is Action.LEFT

    stale = session.begin_invocation(2.0)
    session.advance_level()
    assert session.commit(stale, Action.RIGHT) is False
    assert session.cached_action is None


def test_advance_level_resets_cache_and_timing() -> None:
    session = _active_session()
    session.commit(session.begin_invocation(5.0), Action.UP)

    level = session.advance_level()

    assert level == 1
    assert session.cached_action is None
    assert session.last_invoked_at is None
    assert session.in_flight is True


def test_close_is_idempotent_and_blocks_commits() -> None:
    session = _active_session()
    generation = session.generation

    assert session.close() is True
    assert session.close() is False
    assert session.is_closed
    assert session.commit(generation, Action.UP) is False

    session.activate()
    assert session.state is RelayState.CLOSED
