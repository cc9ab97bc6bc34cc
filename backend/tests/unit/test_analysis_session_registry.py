"""Unit tests for the session registry and the SSE broadcaster."""

import asyncio
import json

import pytest

from app.application.services import AnalysisSessionRegistry, SSEManager
from app.application.services.analysis_session_registry import ANALYSIS_EVENT, channel_for
from app.domain.entities import AnalysisArtifact, SyncState, SyncStatus


class FakeController:
    """Stands in for AnalysisSyncController in registry tests."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.listeners = []
        self.stale_calls: list[bool] = []
        self.cancelled = False

    def add_listener(self, listener) -> None:
        self.listeners.append(listener)

    async def mark_stale(self, *, persist: bool = True):
        self.stale_calls.append(persist)

    def cancel(self) -> bool:
        self.cancelled = True
        return True


def _next_event(raw: str) -> tuple[str, dict]:
    event_line, data_line = raw.strip().split("\n")
    return event_line.removeprefix("event: "), json.loads(data_line.removeprefix("data: "))


def test_registry_creates_one_controller_per_user():
    created: list[str] = []

    def factory(user_id: str) -> FakeController:
        created.append(user_id)
        return FakeController(user_id)

    registry = AnalysisSessionRegistry(factory)

    assert registry.get("u1") is registry.get("u1")
    assert registry.get_existing("u2") is None
    assert created == ["u1"]
    assert registry.active_sessions == 1


@pytest.mark.asyncio
async def test_notify_stale_only_touches_live_sessions():
    registry = AnalysisSessionRegistry(FakeController)
    controller = registry.get("u1")

    await registry.notify_stale("u1")
    await registry.notify_stale("u2")

    assert controller.stale_calls == [False]
    assert registry.get_existing("u2") is None


@pytest.mark.asyncio
async def test_shutdown_cancels_sessions():
    registry = AnalysisSessionRegistry(FakeController)
    controller = registry.get("u1")

    await registry.shutdown()

    assert controller.cancelled is True
    assert registry.active_sessions == 0


@pytest.mark.asyncio
async def test_state_changes_are_broadcast_to_the_users_channel():
    sse = SSEManager()
    registry = AnalysisSessionRegistry(FakeController, sse)
    controller = registry.get("u1")

    stream = sse.subscribe(channel_for("u1"))
    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    assert sse.client_count(channel_for("u1")) == 1

    state = SyncState(status=SyncStatus.FRESH, artifact=AnalysisArtifact(text="Hello", record_count=2))
    await controller.listeners[0](state)

    event_type, data = _next_event(await pending)
    assert event_type == ANALYSIS_EVENT
    assert data["status"] == "fresh"
    assert data["text"] == "Hello"
    assert data["record_count"] == 2
    await stream.aclose()


@pytest.mark.asyncio
async def test_subscribe_sends_initial_event_and_ends_on_shutdown():
    sse = SSEManager()

    stream = sse.subscribe("c", initial=("hello", {"n": 1}))
    assert _next_event(await stream.__anext__()) == ("hello", {"n": 1})

    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    await sse.broadcast("other", "ignored", {})
    await sse.broadcast("c", "update", {"n": 2})
    assert _next_event(await pending) == ("update", {"n": 2})

    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    await sse.shutdown()
    with pytest.raises(StopAsyncIteration):
        await pending
    assert sse.client_count() == 0
