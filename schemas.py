"""Request and response schemas exchanged with the backend.

Form data arrives here already validated by the form layer; these models
only give it a shape, they do not re-check presence or format.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# -------------------------------
# Auth
# -------------------------------
class AuthFormData(BaseModel):
    email: str
    password: str
    name: Optional[str] = None
    role: Literal["organizer", "student"] = "student"


class UserProfile(BaseModel):
    id: str
    name: str
    email: str
    role: Literal["organizer", "student"] = "student"
    department: Optional[str] = None
    phone: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    user: UserProfile


# -------------------------------
# Events
# -------------------------------
class EventFormData(BaseModel):
    title: str
    description: str
    date: str
    time: str
    location: str
    category: str
    capacity: int

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Web Development Workshop",
            "description": "Hands-on introduction to building web apps.",
            "date": "2026-11-02",
            "time": "14:00",
            "location": "Lab 3, Engineering Block",
            "category": "workshop",
            "capacity": 40,
        }
    })


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    capacity: Optional[int] = None

    def changes(self) -> dict:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


class EventPayload(BaseModel):
    """An event as the backend sends it; types are checked, never coerced."""

    id: Union[str, int]
    title: str
    description: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    category: str = ""
    capacity: int
    registered: int = 0
    organizer_id: Union[str, int] = Field(default="", alias="organizerId")
    organizer_name: str = Field(default="", alias="organizerName")
    is_registered: bool = Field(default=False, alias="isRegistered")

    model_config = ConfigDict(strict=True)


class AttendeePayload(BaseModel):
    id: Union[str, int]
    name: str
    email: str
    department: str = ""
    registered_at: str = Field(default="", alias="registeredAt")
    event_id: Optional[Union[str, int]] = Field(default=None, alias="eventId")

    model_config = ConfigDict(strict=True)
