"""In-memory FastAPI stand-in for the campus events API.

Speaks the same wire contract as the real backend so the client stack can
be exercised end to end through httpx.ASGITransport, without sockets.
"""

import uuid
from datetime import datetime, timedelta, UTC
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from passlib.hash import pbkdf2_sha256
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

SECRET_KEY = "test-secret"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: dict, expires_in: timedelta | None = None):
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_in or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


class SignupBody(BaseModel):
    name: str
    email: str
    password: str
    role: Literal["organizer", "student"]


class LoginBody(BaseModel):
    email: str
    password: str


class ProfileBody(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None


class EventBody(BaseModel):
    title: str
    description: str
    date: str
    time: str
    location: str
    category: str
    capacity: int


class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    capacity: Optional[int] = None


def create_backend() -> FastAPI:
    app = FastAPI()
    users: dict[str, dict] = {}
    events: dict[str, dict] = {}
    registrations: dict[str, dict[str, str]] = {}  # event id -> {user id: registeredAt}
    app.state.users = users
    app.state.events = events

    @app.exception_handler(StarletteHTTPException)
    async def message_handler(request, exc):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    def public(user: dict) -> dict:
        return {k: v for k, v in user.items() if k != "password"}

    def view(event: dict, user: dict | None) -> dict:
        holders = registrations[event["id"]]
        return {
            **event,
            "registered": len(holders),
            "isRegistered": bool(user) and user["id"] in holders,
        }

    async def current_user(authorization: Optional[str] = Header(None)) -> dict:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Not authenticated")
        try:
            payload = jwt.decode(authorization[len("Bearer "):], SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = users.get(payload.get("sub"))
        if user is None:
            raise HTTPException(status_code=401, detail="User not found")
        return user

    def find_event(event_id: str) -> dict:
        event = events.get(event_id)
        if event is None:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    def owned_event(event_id: str, user: dict) -> dict:
        event = find_event(event_id)
        if event["organizerId"] != user["id"]:
            raise HTTPException(status_code=403, detail="Access denied: you are not the event organizer")
        return event

    # -------------------------------
    # Auth Routes
    # -------------------------------
    @app.post("/auth/signup")
    async def signup(body: SignupBody):
        if any(u["email"] == body.email for u in users.values()):
            raise HTTPException(status_code=400, detail="User already exists")
        user = {
            "id": uuid.uuid4().hex,
            "name": body.name,
            "email": body.email,
            "role": body.role,
            "password": pbkdf2_sha256.hash(body.password),
        }
        users[user["id"]] = user
        return {"token": create_access_token({"sub": user["id"]}), "user": public(user)}

    @app.post("/auth/login")
    async def login(body: LoginBody):
        user = next((u for u in users.values() if u["email"] == body.email), None)
        if not user or not pbkdf2_sha256.verify(body.password, user["password"]):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return {"token": create_access_token({"sub": user["id"]}), "user": public(user)}

    @app.get("/auth/profile")
    async def get_profile(user=Depends(current_user)):
        return public(user)

    @app.put("/auth/profile")
    async def update_profile(body: ProfileBody, user=Depends(current_user)):
        user.update(body.model_dump(exclude_none=True))
        return public(user)

    # -------------------------------
    # Event Routes
    # -------------------------------
    @app.get("/events")
    async def list_events(
        search: str = "",
        category: str = "",
        authorization: Optional[str] = Header(None),
    ):
        user = await current_user(authorization) if authorization else None
        found = [
            e for e in events.values()
            if (not category or e["category"] == category)
            and (not search or search.lower() in e["title"].lower())
        ]
        return [view(e, user) for e in found]

    @app.post("/events", status_code=201)
    async def create_event(body: EventBody, user=Depends(current_user)):
        if user["role"] != "organizer":
            raise HTTPException(status_code=403, detail="Only organizers can create events")
        if body.capacity <= 0:
            raise HTTPException(status_code=400, detail="Capacity must be positive")
        event = {
            "id": uuid.uuid4().hex,
            **body.model_dump(),
            "organizerId": user["id"],
            "organizerName": user["name"],
        }
        events[event["id"]] = event
        registrations[event["id"]] = {}
        return view(event, user)

    @app.get("/events/my-events")
    async def my_events(user=Depends(current_user)):
        return [view(e, user) for e in events.values() if e["organizerId"] == user["id"]]

    @app.get("/events/registered")
    async def registered_events(user=Depends(current_user)):
        return [view(e, user) for e in events.values() if user["id"] in registrations[e["id"]]]

    @app.get("/events/{event_id}")
    async def get_event(event_id: str, authorization: Optional[str] = Header(None)):
        user = await current_user(authorization) if authorization else None
        return view(find_event(event_id), user)

    @app.put("/events/{event_id}")
    async def update_event(event_id: str, body: EventPatch, user=Depends(current_user)):
        event = owned_event(event_id, user)
        changes = body.model_dump(exclude_none=True)
        if "capacity" in changes and changes["capacity"] < len(registrations[event_id]):
            raise HTTPException(status_code=400, detail="Capacity below current registrations")
        event.update(changes)
        return view(event, user)

    @app.delete("/events/{event_id}", status_code=204)
    async def delete_event(event_id: str, user=Depends(current_user)):
        owned_event(event_id, user)
        del events[event_id]
        del registrations[event_id]
        return Response(status_code=204)

    @app.post("/events/{event_id}/register")
    async def register(event_id: str, user=Depends(current_user)):
        event = find_event(event_id)
        holders = registrations[event_id]
        if user["id"] in holders:
            raise HTTPException(status_code=400, detail="Already registered")
        if len(holders) >= event["capacity"]:
            raise HTTPException(status_code=400, detail="Registration failed: event is full")
        holders[user["id"]] = datetime.now(UTC).isoformat()
        return view(event, user)

    @app.post("/events/{event_id}/unregister")
    async def unregister(event_id: str, user=Depends(current_user)):
        event = find_event(event_id)
        if registrations[event_id].pop(user["id"], None) is None:
            raise HTTPException(status_code=400, detail="Not registered")
        return view(event, user)

    @app.get("/events/{event_id}/attendees")
    async def attendees(event_id: str, user=Depends(current_user)):
        owned_event(event_id, user)
        return [
            {
                "id": uid,
                "name": users[uid]["name"],
                "email": users[uid]["email"],
                "department": users[uid].get("department") or "",
                "registeredAt": registered_at,
            }
            for uid, registered_at in registrations[event_id].items()
        ]

    return app
