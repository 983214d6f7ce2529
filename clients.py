"""Typed clients for the auth and events resource families.

Pure request/response: no client writes the session credential, and
gateway errors propagate unchanged. A success payload of the wrong shape is
reported as a malformed response rather than returned half-parsed.
"""

from typing import Any, Callable, TypeVar
from urllib.parse import quote

from errors import ApiError
from gateway import MALFORMED_RESPONSE_MESSAGE, Gateway
from models import Attendee, Event, FilterCriteria
from schemas import AuthResponse, EventFormData, EventUpdate, ProfileUpdate, UserProfile

T = TypeVar("T")


def parse(payload: Any, factory: Callable[[Any], T]) -> T:
    """Run `factory` over a success payload; any shape error is a malformed response."""
    try:
        return factory(payload)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ApiError(200, MALFORMED_RESPONSE_MESSAGE) from e


def parse_list(payload: Any, factory: Callable[[Any], T]) -> list[T]:
    if not isinstance(payload, list):
        raise ApiError(200, MALFORMED_RESPONSE_MESSAGE)
    return [parse(item, factory) for item in payload]


def event_path(event_id: str, action: str = "") -> str:
    path = f"/events/{quote(str(event_id), safe='')}"
    return f"{path}/{action}" if action else path


class AuthClient:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def login(self, email: str, password: str) -> AuthResponse:
        payload = await self.gateway.send(
            "/auth/login", "POST", {"email": email, "password": password}
        )
        return parse(payload, AuthResponse.model_validate)

    async def signup(self, name: str, email: str, password: str, role: str) -> AuthResponse:
        payload = await self.gateway.send(
            "/auth/signup",
            "POST",
            {"name": name, "email": email, "password": password, "role": role},
        )
        return parse(payload, AuthResponse.model_validate)

    async def get_profile(self) -> UserProfile:
        payload = await self.gateway.send("/auth/profile")
        return parse(payload, UserProfile.model_validate)

    async def update_profile(self, changes: ProfileUpdate) -> UserProfile:
        payload = await self.gateway.send(
            "/auth/profile", "PUT", changes.model_dump(exclude_none=True)
        )
        return parse(payload, UserProfile.model_validate)


class EventsClient:
    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def get_all(self, filters: FilterCriteria | None = None) -> list[Event]:
        """List events; only non-empty filter fields become query parameters."""
        params = filters.as_query() if filters else {}
        payload = await self.gateway.send("/events", params=params or None)
        return parse_list(payload, Event.from_json)

    async def get_by_id(self, event_id: str) -> Event:
        payload = await self.gateway.send(event_path(event_id))
        return parse(payload, Event.from_json)

    async def create(self, data: EventFormData) -> Event:
        payload = await self.gateway.send("/events", "POST", data.model_dump())
        return parse(payload, Event.from_json)

    async def update(self, event_id: str, changes: EventUpdate) -> Event:
        payload = await self.gateway.send(event_path(event_id), "PUT", changes.changes())
        return parse(payload, Event.from_json)

    async def delete(self, event_id: str) -> None:
        await self.gateway.send(event_path(event_id), "DELETE")

    async def get_my_events(self) -> list[Event]:
        payload = await self.gateway.send("/events/my-events")
        return parse_list(payload, Event.from_json)

    async def register(self, event_id: str) -> Any:
        return await self.gateway.send(event_path(event_id, "register"), "POST")

    async def unregister(self, event_id: str) -> Any:
        return await self.gateway.send(event_path(event_id, "unregister"), "POST")

    async def get_attendees(self, event_id: str) -> list[Attendee]:
        payload = await self.gateway.send(event_path(event_id, "attendees"))
        return parse_list(payload, lambda item: Attendee.from_json(item, event_id))

    async def get_registered_events(self) -> list[Event]:
        payload = await self.gateway.send("/events/registered")
        return parse_list(payload, Event.from_json)
