"""
Validation pipeline for event requests.

Each step either returns the value the next step needs or raises an
``EventAPIError`` that ends the request with a client error. Handlers call
the steps in a fixed order: id format, existence, field validation, and only
then persistence.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.collection import Collection

from app.api.payload import EventPayload
from app.crud.event import get_event
from app.errors import ErrorKind, EventAPIError
from app.schemas.event import EVENT_TYPE, MESSAGES
from app.validation import (
    is_valid_object_id,
    parse_date,
    safe_parse_int,
    sanitize_string,
    utcnow,
)

REQUIRED_FIELDS = ("name", "tagline", "schedule", "description")
TRIMMED_FIELDS = ("name", "tagline", "description", "moderator")
TEXT_FIELDS = ("category", "sub_category")
INTEGER_FIELDS = ("rigor_rank", "uid")

SCHEDULE_HINT = "Use ISO 8601 format (e.g., 2026-03-15T10:00:00.000Z)"


def require_valid_id(event_id: Optional[str]) -> ObjectId:
    """Step 1: the id must be a 24 character hex string."""
    if not is_valid_object_id(event_id):
        raise EventAPIError(
            ErrorKind.INVALID_ID,
            MESSAGES["INVALID_ID"],
            hint="Event ID should be a valid MongoDB ObjectId (24 hex characters)",
        )
    return ObjectId(event_id)


def require_existing_event(collection: Collection, event_id: ObjectId) -> Dict[str, Any]:
    """Step 2: the event must exist."""
    event = get_event(collection, event_id)
    if event is None:
        raise EventAPIError(ErrorKind.EVENT_NOT_FOUND, MESSAGES["EVENT_NOT_FOUND"], id=str(event_id))
    return event


def _is_missing(payload: EventPayload, name: str) -> bool:
    if name == "schedule":
        return not payload.supplied(name)
    return sanitize_string(payload.get(name)) is None


def require_fields(payload: EventPayload) -> None:
    """Step 3a: every required field must be present and non-blank."""
    missing: List[str] = [name for name in REQUIRED_FIELDS if _is_missing(payload, name)]
    if missing:
        raise EventAPIError(ErrorKind.MISSING_FIELDS, MESSAGES["MISSING_FIELDS"], fields=missing)


def require_schedule(value: Any) -> datetime:
    """Step 3b: the schedule must parse as a date."""
    schedule = parse_date(value)
    if schedule is None:
        raise EventAPIError(ErrorKind.INVALID_DATE, MESSAGES["INVALID_DATE"], hint=SCHEDULE_HINT)
    return schedule


def build_new_event(payload: EventPayload) -> Dict[str, Any]:
    """Validate a create request and build the document to insert."""
    require_fields(payload)
    schedule = require_schedule(payload.get("schedule"))
    now = utcnow()

    return {
        "type": EVENT_TYPE,
        "uid": safe_parse_int(payload.get("uid")),
        "name": sanitize_string(payload.get("name")),
        "tagline": sanitize_string(payload.get("tagline")),
        "schedule": schedule,
        "description": sanitize_string(payload.get("description")),
        "moderator": sanitize_string(payload.get("moderator")),
        "category": sanitize_string(payload.get("category")),
        "sub_category": sanitize_string(payload.get("sub_category")),
        "rigor_rank": safe_parse_int(payload.get("rigor_rank")),
        "attendees": [],
        "created_at": now,
        "updated_at": now,
    }


def build_event_changes(payload: EventPayload, existing: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate an update request and collect the fields that would change.

    Omitted or blank fields are left alone; values equal to what is already
    stored are dropped, so an empty result means nothing changed.
    """
    candidates: Dict[str, Any] = {}

    for name in TRIMMED_FIELDS + TEXT_FIELDS:
        value = sanitize_string(payload.get(name))
        if value is not None:
            candidates[name] = value

    for name in INTEGER_FIELDS:
        value = safe_parse_int(payload.get(name))
        if value is not None:
            candidates[name] = value

    if payload.supplied("schedule"):
        candidates["schedule"] = require_schedule(payload.get("schedule"))

    return {
        name: value
        for name, value in candidates.items()
        if existing.get(name) != value
    }


def current_image(event: Dict[str, Any]) -> Optional[str]:
    return (event.get("files") or {}).get("image")
