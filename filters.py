"""Filter evaluator and read-only views over the event collection.

Everything here is a pure function of its arguments: nothing is cached
between calls and nothing in the collection is modified.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from models import DATE_BUCKETS, Attendee, Event, FilterCriteria
from utils import parse_date

WEEK = timedelta(days=7)


def in_date_bucket(event_date: str, bucket: str, today: date) -> bool:
    """Whether an event date falls in a bucket, at calendar-day granularity."""
    if not bucket:
        return True
    if bucket not in DATE_BUCKETS:
        raise ValueError(f"Unknown date filter: {bucket!r}")
    try:
        day = parse_date(event_date)
    except (ValueError, TypeError):
        return False
    if bucket == "today":
        return day == today
    if bucket == "this-week":
        return today <= day < today + WEEK
    return (day.year, day.month) == (today.year, today.month)


def matches(event: Event, criteria: FilterCriteria, today: date) -> bool:
    if criteria.category and event.category != criteria.category:
        return False
    if criteria.search and criteria.search.lower() not in event.title.lower():
        return False
    return in_date_bucket(event.date, criteria.date, today)


def apply(events: Iterable[Event], criteria: FilterCriteria, today: date | None = None) -> list[Event]:
    """Events satisfying every constraint of `criteria`, in input order.

    `today` defaults to the local calendar day at call time.
    """
    today = today or date.today()
    return [e for e in events if matches(e, criteria, today)]


def search_attendees(attendees: Iterable[Attendee], query: str) -> list[Attendee]:
    """Case-insensitive match on name, email or department."""
    needle = query.strip().lower()
    if not needle:
        return list(attendees)
    return [
        a for a in attendees
        if needle in a.name.lower()
        or needle in a.email.lower()
        or needle in a.department.lower()
    ]


@dataclass(frozen=True)
class EventStats:
    total_events: int
    total_registered: int
    total_capacity: int
    full_events: int

    @property
    def fill_rate(self) -> float:
        if not self.total_capacity:
            return 0.0
        return self.total_registered / self.total_capacity


def summarize(events: Iterable[Event]) -> EventStats:
    events = list(events)
    return EventStats(
        total_events=len(events),
        total_registered=sum(e.registered for e in events),
        total_capacity=sum(e.capacity for e in events),
        full_events=sum(1 for e in events if e.is_full),
    )
