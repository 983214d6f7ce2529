from datetime import date, datetime
from io import StringIO
import csv

from errors import PermissionDeniedError


def parse_date(date_str: str) -> date:
    """Parse an event date string into a calendar date."""
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        try:
            return datetime.fromisoformat(date_str).date()
        except ValueError:
            raise ValueError(f"Invalid date format: {date_str!r}")


def require_role(role: str | None, required: str):
    """Check that the session role allows an action."""
    if role != required:
        raise PermissionDeniedError(required, role)


def generate_csv(attendees):
    """Generate a CSV buffer from a list of attendees."""
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["ID", "Name", "Email", "Department", "Registered At"])
    for a in attendees:
        writer.writerow([a.id, a.name, a.email, a.department, a.registered_at])
    buffer.seek(0)
    return buffer
