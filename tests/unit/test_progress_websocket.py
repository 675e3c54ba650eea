import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from processed_or_not.api.v1.progress import subscribe_progress
from processed_or_not.services.progress_broadcaster import ProgressBroadcaster
from processed_or_not.services.progress_store import InMemoryProgressStore


class FakeWebSocket:
    """Minimaler WebSocket-Ersatz: zeichnet gesendete Nachrichten auf."""

    def __init__(self, on_accept: Callable[[], None] | None = None) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._on_accept = on_accept
        self._disconnected = asyncio.Event()

    async def accept(self) -> None:
        if self._on_accept is not None:
            self._on_accept()

    async def send_json(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True

    async def receive(self) -> dict[str, Any]:
        await self._disconnected.wait()
        return {"type": "websocket.disconnect"}

    def disconnect(self) -> None:
        self._disconnected.set()


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.mark.asyncio
async def test_events_during_handshake_are_not_replayed_after_snapshot(
    store: InMemoryProgressStore,
) -> None:
    broadcaster = ProgressBroadcaster(store)
    run_id = store.reset("123", total_sources=3)

    def progress_during_handshake() -> None:
        store.update("123", run_id=run_id, completed_sources=("A",))
        store.update("123", run_id=run_id, completed_sources=("A", "B"))

    ws = FakeWebSocket(on_accept=progress_during_handshake)
    task = asyncio.create_task(subscribe_progress(ws, "123", store, broadcaster))  # type: ignore[arg-type]
    await asyncio.sleep(0.01)

    store.complete("123", found=True, source_name="C", run_id=run_id)
    await asyncio.wait_for(task, timeout=1.0)

    assert [m["completedSources"] for m in ws.sent] == [["A", "B"], ["A", "B", "C"]]
    assert [m["type"] for m in ws.sent] == ["progress", "complete"]
    assert ws.closed is True
    assert broadcaster.subscriber_count("123") == 0


@pytest.mark.asyncio
async def test_completed_snapshot_keeps_socket_open_for_next_run(
    store: InMemoryProgressStore,
) -> None:
    broadcaster = ProgressBroadcaster(store)
    first_run = store.reset("123", total_sources=1)
    store.complete("123", found=True, source_name="A", run_id=first_run)

    ws = FakeWebSocket()
    task = asyncio.create_task(subscribe_progress(ws, "123", store, broadcaster))  # type: ignore[arg-type]
    await asyncio.sleep(0.01)

    assert [(m["type"], m["runId"]) for m in ws.sent] == [("complete", first_run)]
    assert ws.closed is False

    second_run = store.reset("123", total_sources=1)
    store.update("123", run_id=second_run, current_source="A")
    store.complete("123", found=False, run_id=second_run)
    await asyncio.wait_for(task, timeout=1.0)

    assert [(m["type"], m["runId"]) for m in ws.sent] == [
        ("complete", first_run),
        ("progress", second_run),
        ("progress", second_run),
        ("complete", second_run),
    ]
    assert ws.sent[1]["completedSources"] == []
    assert ws.sent[1]["isComplete"] is False
    assert ws.closed is True


@pytest.mark.asyncio
async def test_client_disconnect_removes_subscription(store: InMemoryProgressStore) -> None:
    broadcaster = ProgressBroadcaster(store)
    run_id = store.reset("123", total_sources=1)
    store.complete("123", found=False, run_id=run_id)

    ws = FakeWebSocket()
    task = asyncio.create_task(subscribe_progress(ws, "123", store, broadcaster))  # type: ignore[arg-type]
    await asyncio.sleep(0.01)
    assert broadcaster.subscriber_count("123") == 1

    ws.disconnect()
    await asyncio.wait_for(task, timeout=1.0)

    assert broadcaster.subscriber_count("123") == 0
    assert ws.closed is False
