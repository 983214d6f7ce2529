"""Unit tests for EventManager.

The events client is replaced by a stub recording every call, so these
tests can assert both store state and which calls reached the network.
"""

import anyio
import pytest

from errors import (
    AlreadyRegisteredError,
    ApiError,
    CapacityBelowRegisteredError,
    ErrorCode,
    EventFullError,
    EventNotFoundError,
    InvalidCapacityError,
    NotRegisteredError,
    OperationPendingError,
    PreconditionViolation,
)
from manager import EventManager
from models import Event
from schemas import EventFormData, EventUpdate

pytestmark = pytest.mark.anyio


def make_event(id="e1", capacity=10, registered=0, is_registered=False, **fields):
    defaults = dict(
        title="Web Development Workshop",
        description="Hands-on session",
        date="2026-11-02",
        time="14:00",
        location="Lab 3",
        category="workshop",
    )
    defaults.update(fields)
    return Event(id=id, capacity=capacity, registered=registered, is_registered=is_registered, **defaults)


class StubEventsClient:
    def __init__(self):
        self.calls = []
        self.fail_with = None
        self.gate = None  # anyio.Event holding calls until set

    async def _call(self, name, *args):
        self.calls.append((name, *args))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def register(self, event_id):
        await self._call("register", event_id)

    async def unregister(self, event_id):
        await self._call("unregister", event_id)

    async def create(self, data):
        await self._call("create", data)
        return make_event(id="new", capacity=data.capacity, title=data.title)

    async def update(self, event_id, changes):
        await self._call("update", event_id, changes)
        return make_event(id=event_id, **changes.changes())

    async def delete(self, event_id):
        await self._call("delete", event_id)

    async def get_all(self, filters=None):
        await self._call("get_all", filters)
        return [make_event("a"), make_event("b")]


@pytest.fixture
def client():
    return StubEventsClient()


@pytest.fixture
def manager(client):
    m = EventManager(client)
    m.load([make_event("e1"), make_event("e2", capacity=1, registered=1), make_event("e3", registered=3, is_registered=True)])
    return m


async def test_register_commits_after_success(manager, client):
    event = await manager.register("e1")
    assert (event.registered, event.is_registered) == (1, True)
    assert manager.get("e1") == event
    assert client.calls == [("register", "e1")]


async def test_register_full_event_rejected_without_call(manager, client):
    before = manager.get("e2")
    with pytest.raises(EventFullError):
        await manager.register("e2")
    assert client.calls == []
    assert manager.get("e2") == before


async def test_register_twice_is_precondition_violation(manager, client):
    await manager.register("e1")
    with pytest.raises(AlreadyRegisteredError) as exc:
        await manager.register("e1")
    assert exc.value.code is ErrorCode.ALREADY_REGISTERED
    assert client.calls == [("register", "e1")]


async def test_register_unknown_event(manager, client):
    with pytest.raises(EventNotFoundError):
        await manager.register("missing")
    assert client.calls == []


async def test_failed_register_leaves_store_unchanged(manager, client):
    client.fail_with = ApiError(500, "An error occurred")
    before = manager.snapshot()
    with pytest.raises(ApiError):
        await manager.register("e1")
    assert manager.snapshot() == before
    assert not manager.is_pending("e1")


async def test_register_then_unregister_restores_state(manager):
    before = manager.get("e1")
    await manager.register("e1")
    after = await manager.unregister("e1")
    assert after == before


async def test_unregister_requires_registration(manager, client):
    with pytest.raises(NotRegisteredError):
        await manager.unregister("e1")
    assert client.calls == []


async def test_unregister_floors_at_zero(client):
    manager = EventManager(client)
    manager.load([make_event("e1", registered=0, is_registered=True)])
    event = await manager.unregister("e1")
    assert (event.registered, event.is_registered) == (0, False)


async def test_failed_unregister_leaves_store_unchanged(manager, client):
    client.fail_with = ApiError(0, "Unable to reach the server")
    with pytest.raises(ApiError):
        await manager.unregister("e3")
    assert manager.get("e3").registered == 3
    assert manager.get("e3").is_registered


async def test_concurrent_register_same_event_does_not_double_count(manager, client):
    client.gate = anyio.Event()
    errors = []

    async def second_attempt():
        await anyio.sleep(0)
        try:
            await manager.register("e1")
        except PreconditionViolation as e:
            errors.append(e)
        client.gate.set()

    async with anyio.create_task_group() as tg:
        tg.start_soon(manager.register, "e1")
        tg.start_soon(second_attempt)

    assert [type(e) for e in errors] == [OperationPendingError]
    assert manager.get("e1").registered == 1
    assert client.calls == [("register", "e1")]


async def test_different_events_register_concurrently(manager, client):
    client.gate = anyio.Event()
    manager.upsert(make_event("e4"))

    async with anyio.create_task_group() as tg:
        tg.start_soon(manager.register, "e1")
        tg.start_soon(manager.register, "e4")
        await anyio.wait_all_tasks_blocked()
        assert manager.is_pending("e1") and manager.is_pending("e4")
        client.gate.set()

    assert manager.get("e1").is_registered and manager.get("e4").is_registered


async def test_commit_skipped_when_reload_already_reflects_registration(manager, client):
    client.gate = anyio.Event()

    async with anyio.create_task_group() as tg:
        tg.start_soon(manager.register, "e1")
        await anyio.wait_all_tasks_blocked()
        manager.upsert(make_event("e1", registered=1, is_registered=True))
        client.gate.set()

    assert manager.get("e1").registered == 1


async def test_counts_never_exceed_capacity(client):
    manager = EventManager(client)
    manager.load([make_event(str(i), capacity=2) for i in range(3)])
    for event_id in ("0", "1", "2"):
        await manager.register(event_id)
        await manager.unregister(event_id)
        await manager.register(event_id)
    for event in manager.snapshot():
        assert 0 <= event.registered <= event.capacity


async def test_create_rejects_capacity_below_one(manager, client):
    form = EventFormData(
        title="Empty", description="x", date="2026-11-02", time="10:00",
        location="Hall", category="social", capacity=0,
    )
    with pytest.raises(InvalidCapacityError):
        await manager.create(form)
    assert client.calls == []


async def test_create_prepends_new_event(manager):
    form = EventFormData(
        title="Annual Cultural Fest", description="Music and dance", date="2026-12-01",
        time="18:00", location="Main Lawn", category="cultural", capacity=500,
    )
    event = await manager.create(form)
    assert manager.snapshot()[0] == event
    assert len(manager) == 4


async def test_update_merges_supplied_fields_only(manager):
    updated = await manager.update("e3", EventUpdate(title="Renamed", capacity=20))
    assert updated.title == "Renamed"
    assert updated.capacity == 20
    assert updated.location == "Lab 3"
    assert (updated.registered, updated.is_registered) == (3, True)


async def test_update_capacity_below_registered_rejected(manager, client):
    with pytest.raises(CapacityBelowRegisteredError) as exc:
        await manager.update("e3", EventUpdate(capacity=2))
    assert exc.value.registered == 3
    assert client.calls == []


async def test_update_capacity_below_one_rejected(manager, client):
    with pytest.raises(InvalidCapacityError):
        await manager.update("e1", EventUpdate(capacity=0))
    assert client.calls == []


async def test_delete_removes_by_identity(manager):
    removed = await manager.delete("e2")
    assert removed.id == "e2"
    assert "e2" not in manager
    assert [e.id for e in manager.snapshot()] == ["e1", "e3"]


async def test_failed_delete_keeps_event(manager, client):
    client.fail_with = ApiError(403, "Access denied")
    with pytest.raises(ApiError):
        await manager.delete("e1")
    assert "e1" in manager


async def test_upsert_replaces_in_place(manager):
    manager.upsert(make_event("e2", capacity=5, title="Moved?"))
    assert [e.id for e in manager.snapshot()] == ["e1", "e2", "e3"]
    assert manager.get("e2").title == "Moved?"


async def test_load_all_replaces_collection(manager):
    events = await manager.load_all()
    assert [e.id for e in events] == ["a", "b"]
    assert "e1" not in manager


async def test_register_returns_none_when_event_removed_in_flight(manager, client):
    client.gate = anyio.Event()
    results = []

    async def attempt():
        results.append(await manager.register("e1"))

    async with anyio.create_task_group() as tg:
        tg.start_soon(attempt)
        await anyio.wait_all_tasks_blocked()
        manager.remove("e1")
        client.gate.set()

    assert results == [None]
    assert "e1" not in manager
