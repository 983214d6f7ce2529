import logging
from contextlib import contextmanager
from dataclasses import replace

from clients import EventsClient
from errors import (
    AlreadyRegisteredError,
    CapacityBelowRegisteredError,
    EventFullError,
    EventNotFoundError,
    InvalidCapacityError,
    NotRegisteredError,
    OperationPendingError,
)
from models import Event, FilterCriteria
from schemas import EventFormData, EventUpdate

logger = logging.getLogger(__name__)


class EventManager:
    """In-memory source of truth for the events the current user sees.

    The only place `registered` and `is_registered` change. Every mutation
    checks its preconditions against the committed state, refuses to start
    while another mutation on the same event is in flight, and commits only
    after the backend call has succeeded.
    """

    def __init__(self, client: EventsClient):
        """Initialize EventManager with the events client."""
        self.client = client
        self._events: dict[str, Event] = {}
        self._pending: set[str] = set()

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._events

    def snapshot(self) -> list[Event]:
        """Current events in display order."""
        return list(self._events.values())

    def get(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def is_pending(self, event_id: str) -> bool:
        return event_id in self._pending

    # -------------------------------
    # Loading
    # -------------------------------
    def load(self, events: list[Event]) -> list[Event]:
        """Replace the whole collection."""
        self._events = {e.id: e for e in events}
        return self.snapshot()

    async def load_all(self, filters: FilterCriteria | None = None) -> list[Event]:
        return self.load(await self.client.get_all(filters))

    async def load_my_events(self) -> list[Event]:
        return self.load(await self.client.get_my_events())

    async def load_registered(self) -> list[Event]:
        return self.load(await self.client.get_registered_events())

    # -------------------------------
    # Registration
    # -------------------------------
    async def register(self, event_id: str) -> Event | None:
        """Register the current user for an event.

        Raises:
            EventNotFoundError, OperationPendingError, AlreadyRegisteredError,
            EventFullError: before any network call.
            ApiError: if the backend call fails; the store is left unchanged.
        """
        event = self._require(event_id)
        if event.is_registered:
            raise self._reject(AlreadyRegisteredError(event_id))
        if event.is_full:
            raise self._reject(EventFullError(event_id))
        with self._in_flight(event_id):
            await self.client.register(event_id)
        return self._commit_registration(event_id, registered=True)

    async def unregister(self, event_id: str) -> Event | None:
        """Cancel the current user's registration.

        Raises:
            EventNotFoundError, OperationPendingError, NotRegisteredError:
            before any network call.
            ApiError: if the backend call fails; the store is left unchanged.
        """
        event = self._require(event_id)
        if not event.is_registered:
            raise self._reject(NotRegisteredError(event_id))
        with self._in_flight(event_id):
            await self.client.unregister(event_id)
        return self._commit_registration(event_id, registered=False)

    def _commit_registration(self, event_id: str, registered: bool) -> Event | None:
        current = self._events.get(event_id)
        if current is None:
            # removed while the call was outstanding
            return None
        if current.is_registered == registered:
            # a reload already reflects the change
            return current
        if registered:
            count = min(current.registered + 1, current.capacity)
        else:
            count = max(current.registered - 1, 0)
        updated = replace(current, registered=count, is_registered=registered)
        self._events[event_id] = updated
        action = "Registered for" if registered else "Unregistered from"
        logger.info(f"{action} event {event_id} ({updated.registered}/{updated.capacity})")
        return updated

    # -------------------------------
    # Organizer flows
    # -------------------------------
    def upsert(self, event: Event) -> Event:
        """Replace by id in place, or put a new event first."""
        if event.id in self._events:
            self._events[event.id] = event
        else:
            self._events = {event.id: event, **self._events}
        return event

    def remove(self, event_id: str) -> Event | None:
        return self._events.pop(event_id, None)

    async def create(self, data: EventFormData) -> Event:
        if data.capacity < 1:
            raise self._reject(InvalidCapacityError(data.capacity))
        event = await self.client.create(data)
        logger.info(f"Event {event.id} created")
        return self.upsert(event)

    async def update(self, event_id: str, changes: EventUpdate) -> Event | None:
        """Apply an edit; fields the edit does not supply keep their current values."""
        event = self._require(event_id)
        fields = changes.changes()
        capacity = fields.get("capacity")
        if capacity is not None:
            if capacity < 1:
                raise self._reject(InvalidCapacityError(capacity, event_id))
            if capacity < event.registered:
                raise self._reject(
                    CapacityBelowRegisteredError(event_id, capacity, event.registered)
                )
        with self._in_flight(event_id):
            saved = await self.client.update(event_id, changes)
        current = self._events.get(event_id)
        if current is None:
            return None
        try:
            merged = replace(current, **fields)
        except ValueError:
            # a reload during the call moved the count past the new capacity
            merged = saved
        logger.info(f"Event {event_id} updated: {sorted(fields)}")
        return self.upsert(merged)

    async def delete(self, event_id: str) -> Event | None:
        self._require(event_id)
        with self._in_flight(event_id):
            await self.client.delete(event_id)
        logger.info(f"Event {event_id} deleted")
        return self.remove(event_id)

    # -------------------------------
    # Helpers
    # -------------------------------
    def _require(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise self._reject(EventNotFoundError(event_id))
        if event_id in self._pending:
            raise self._reject(OperationPendingError(event_id))
        return event

    @staticmethod
    def _reject(error):
        logger.warning(f"Rejected: {error}")
        return error

    @contextmanager
    def _in_flight(self, event_id: str):
        self._pending.add(event_id)
        try:
            yield
        finally:
            self._pending.discard(event_id)
