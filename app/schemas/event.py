"""
Event schema definitions for the Events API.

Documents live in MongoDB as plain dicts; these models describe what the API
sends back. ``serialize_event`` turns a stored document into the response
shape (string ids, UTC timestamps).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# =====================================================================
# Constants
# =====================================================================

EVENT_TYPE = "event"

MESSAGES = {
    "EVENT_CREATED": "Event created successfully",
    "EVENT_UPDATED": "Event updated successfully",
    "EVENT_DELETED": "Event deleted successfully",
    "EVENT_NOT_FOUND": "Event not found",
    "INVALID_ID": "Invalid event ID format",
    "MISSING_FIELDS": "Missing required fields",
    "INVALID_DATE": "Invalid schedule date format",
    "NO_CHANGES": "No changes detected",
}

# =====================================================================
# Event schemas
# =====================================================================

class EventFiles(BaseModel):
    """Files attached to an event."""
    image: Optional[str] = Field(None, description="Relative URL of the uploaded image")


class EventBase(BaseModel):
    """Fields shared by every event document."""
    type: str = EVENT_TYPE
    uid: Optional[int] = Field(None, description="Submitter reference")
    name: str
    tagline: str
    schedule: datetime
    description: str
    moderator: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    rigor_rank: Optional[int] = None
    attendees: List[str] = Field(default_factory=list, description="Reserved, always empty")
    files: Optional[EventFiles] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "event",
                "uid": 18,
                "name": "PyData Meetup",
                "tagline": "Dataframes after dark",
                "schedule": "2026-03-15T10:00:00Z",
                "description": "Lightning talks on data tooling.",
                "moderator": "Alice",
                "category": "meetup",
                "sub_category": "python",
                "rigor_rank": 3,
                "attendees": [],
                "files": {"image": "/uploads/event-1767225600000-123456789.png"},
            }
        }
    )


class EventResponse(EventBase):
    """
    Schema for event response.

    Extends EventBase with the fields the database assigns.
    """
    id: str
    created_at: datetime
    updated_at: datetime


class PaginationMeta(BaseModel):
    """Position of a page within the full, ordered result set."""
    currentPage: int
    totalPages: int
    totalItems: int
    limit: int
    hasNextPage: bool
    hasPrevPage: bool
    nextPage: Optional[int] = None
    prevPage: Optional[int] = None


class EventPage(BaseModel):
    events: List[EventResponse]
    pagination: PaginationMeta


class EventCreatedResponse(BaseModel):
    message: str = MESSAGES["EVENT_CREATED"]
    id: str
    event: EventResponse


class EventUpdatedResponse(BaseModel):
    message: str
    changed: bool
    event: EventResponse


class EventDeletedResponse(BaseModel):
    message: str = MESSAGES["EVENT_DELETED"]
    id: str


class ErrorResponse(BaseModel):
    """Body of every client or server error."""
    error: str
    code: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="allow")


# =====================================================================
# Serialization
# =====================================================================

def _as_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_event(document: Dict[str, Any]) -> EventResponse:
    """Convert a stored event document into its API representation."""
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    data["attendees"] = [str(attendee) for attendee in data.get("attendees") or []]
    for key in ("schedule", "created_at", "updated_at"):
        data[key] = _as_utc(data.get(key))
    return EventResponse.model_validate(data)
