"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from fake_backend import create_backend
from main import CampusEvents
from schemas import AuthFormData, EventFormData
from storage import MemoryStorage


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def backend():
    return create_backend()


@pytest.fixture
def make_client(backend):
    """Factory for CampusEvents instances talking to the fake backend."""
    def factory(storage=None):
        http = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=backend), base_url="http://testserver"
        )
        return CampusEvents(storage=storage or MemoryStorage(), http_client=http)
    return factory


@pytest.fixture
def signed_up(make_client):
    """Factory returning a CampusEvents instance with a fresh account signed in."""
    async def factory(name, role="student", storage=None):
        client = make_client(storage)
        email = f"{name.lower().replace(' ', '.')}@college.edu"
        await client.signup(AuthFormData(name=name, email=email, password="password123", role=role))
        return client
    return factory


@pytest.fixture
def workshop_form():
    return EventFormData(
        title="Web Development Workshop",
        description="Build and deploy a small web app in one afternoon.",
        date="2026-11-02",
        time="14:00",
        location="Lab 3, Engineering Block",
        category="workshop",
        capacity=40,
    )
