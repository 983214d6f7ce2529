from dataclasses import dataclass
from typing import Literal

from schemas import AttendeePayload, EventPayload

Role = Literal["organizer", "student"]

DATE_BUCKETS = ("today", "this-week", "this-month")


@dataclass(frozen=True)
class Event:
    id: str
    title: str
    description: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    location: str
    category: str
    capacity: int
    registered: int = 0
    organizer_id: str = ""
    organizer_name: str = ""
    is_registered: bool = False

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError("Capacity must be positive")
        if not 0 <= self.registered <= self.capacity:
            raise ValueError(f"Registered count {self.registered} outside 0..{self.capacity}")

    @property
    def is_full(self) -> bool:
        return self.registered >= self.capacity

    @property
    def spots_left(self) -> int:
        return self.capacity - self.registered

    @classmethod
    def from_json(cls, data: dict) -> "Event":
        """Build an Event from a backend payload (camelCase keys).

        Raises pydantic.ValidationError for a payload of the wrong shape and
        ValueError for counts outside 0..capacity.
        """
        payload = EventPayload.model_validate(data)
        return cls(
            id=str(payload.id),
            title=payload.title,
            description=payload.description,
            date=payload.date,
            time=payload.time,
            location=payload.location,
            category=payload.category,
            capacity=payload.capacity,
            registered=payload.registered,
            organizer_id=str(payload.organizer_id),
            organizer_name=payload.organizer_name,
            is_registered=payload.is_registered,
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "category": self.category,
            "capacity": self.capacity,
            "registered": self.registered,
            "organizerId": self.organizer_id,
            "organizerName": self.organizer_name,
            "isRegistered": self.is_registered,
        }


@dataclass(frozen=True)
class Attendee:
    id: str
    event_id: str
    name: str
    email: str
    department: str
    registered_at: str  # ISO-8601 timestamp

    @classmethod
    def from_json(cls, data: dict, event_id: str) -> "Attendee":
        payload = AttendeePayload.model_validate(data)
        return cls(
            id=str(payload.id),
            event_id=str(payload.event_id if payload.event_id is not None else event_id),
            name=payload.name,
            email=payload.email,
            department=payload.department,
            registered_at=payload.registered_at,
        )


@dataclass(frozen=True)
class SessionCredential:
    token: str
    role: Role


@dataclass(frozen=True)
class FilterCriteria:
    """Search/category/date constraints; an empty string means no constraint."""

    search: str = ""
    category: str = ""
    date: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.search or self.category or self.date)

    def cleared(self) -> "FilterCriteria":
        return FilterCriteria()

    def as_query(self) -> dict[str, str]:
        """Non-empty fields only; empty ones are omitted, never sent as ''."""
        fields = {"search": self.search, "category": self.category, "date": self.date}
        return {key: value for key, value in fields.items() if value}
