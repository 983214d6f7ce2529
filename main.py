"""CampusEvents client: wires storage, session, gateway, clients and store.

The presentation layer talks to a single CampusEvents instance; it reads
`events.snapshot()` / `browse()` and never mutates events directly.
"""

import logging
import os
from io import StringIO
from typing import Optional

import httpx
from dotenv import load_dotenv

from auth import Session
from clients import AuthClient, EventsClient
from filters import EventStats, apply, search_attendees, summarize
from gateway import Gateway
from manager import EventManager
from models import Attendee, Event, FilterCriteria, SessionCredential
from schemas import AuthFormData, EventFormData, EventUpdate, ProfileUpdate, UserProfile
from storage import SqliteStorage, Storage
from utils import generate_csv, require_role

load_dotenv()
SESSION_DB = os.getenv("CAMPUS_EVENTS_SESSION_DB", "session.db")

logger = logging.getLogger(__name__)


class CampusEvents:
    def __init__(
        self,
        base_url: Optional[str] = None,
        storage: Optional[Storage] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.storage = storage if storage is not None else SqliteStorage(SESSION_DB)
        self.session = Session(self.storage)
        self.gateway = Gateway(
            self.session,
            base_url=base_url,
            client=http_client,
            on_auth_failure=self.session.end,
        )
        self.auth = AuthClient(self.gateway)
        self.events_api = EventsClient(self.gateway)
        self.events = EventManager(self.events_api)
        self.profile: UserProfile | None = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self.gateway.close()

    # -------------------------------
    # Session
    # -------------------------------
    def restore(self) -> SessionCredential | None:
        """Pick up a credential persisted by an earlier run."""
        return self.session.restore()

    async def login(self, form: AuthFormData) -> UserProfile:
        response = await self.auth.login(form.email, form.password)
        self.session.start(response)
        self.profile = response.user
        return response.user

    async def signup(self, form: AuthFormData) -> UserProfile:
        response = await self.auth.signup(form.name or "", form.email, form.password, form.role)
        self.session.start(response)
        self.profile = response.user
        return response.user

    def logout(self):
        """End the session locally; the backend keeps no session to close."""
        self.session.end()
        self.profile = None
        self.events.load([])

    async def get_profile(self) -> UserProfile:
        self.profile = await self.auth.get_profile()
        return self.profile

    async def update_profile(self, changes: ProfileUpdate) -> UserProfile:
        self.profile = await self.auth.update_profile(changes)
        return self.profile

    # -------------------------------
    # Students
    # -------------------------------
    def browse(self, criteria: FilterCriteria, today=None) -> list[Event]:
        return apply(self.events.snapshot(), criteria, today)

    async def register(self, event_id: str) -> Event | None:
        return await self.events.register(event_id)

    async def unregister(self, event_id: str) -> Event | None:
        return await self.events.unregister(event_id)

    # -------------------------------
    # Organizers
    # -------------------------------
    async def create_event(self, data: EventFormData) -> Event:
        require_role(self.session.role, "organizer")
        return await self.events.create(data)

    async def update_event(self, event_id: str, changes: EventUpdate) -> Event | None:
        require_role(self.session.role, "organizer")
        return await self.events.update(event_id, changes)

    async def delete_event(self, event_id: str) -> Event | None:
        require_role(self.session.role, "organizer")
        return await self.events.delete(event_id)

    async def attendees(self, event_id: str, search: str = "") -> list[Attendee]:
        """Fetch the roster of one event; never cached."""
        require_role(self.session.role, "organizer")
        roster = await self.events_api.get_attendees(event_id)
        return search_attendees(roster, search)

    async def export_attendees(self, event_id: str) -> StringIO:
        roster = await self.attendees(event_id)
        logger.info(f"Exported {len(roster)} attendees for event {event_id}")
        return generate_csv(roster)

    def stats(self) -> EventStats:
        return summarize(self.events.snapshot())
