from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.api.payload import EventPayload, read_event_payload
from app.config import Settings, get_settings
from app.crud.event import (
    count_events,
    create_event,
    delete_event,
    get_events,
    get_latest_events,
    update_event,
)
from app.database import get_events_collection
from app.errors import ErrorKind, EventAPIError
from app.logging_config import get_logger
from app.schemas.event import (
    MESSAGES,
    ErrorResponse,
    EventCreatedResponse,
    EventDeletedResponse,
    EventPage,
    EventResponse,
    EventUpdatedResponse,
    PaginationMeta,
    serialize_event,
)
from app.services.event_service import (
    build_event_changes,
    build_new_event,
    current_image,
    require_existing_event,
    require_valid_id,
)
from app.uploads import ImageStorage, get_image_storage
from app.validation import build_pagination_meta, safe_parse_int, utcnow

router = APIRouter()
logger = get_logger("api.events")

CLIENT_ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


def storage_failure(action: str, error: Exception) -> EventAPIError:
    return EventAPIError(ErrorKind.STORAGE_ERROR, f"Failed to {action}", detail=str(error))


@router.get(
    "",
    response_model=Union[EventPage, EventResponse, List[EventResponse]],
    responses=CLIENT_ERRORS,
)
def read_events(
    event_id: Optional[str] = Query(None, alias="id", description="Return a single event by ID"),
    mode: Optional[str] = Query(None, alias="type", description="Use 'latest' for paginated results"),
    page: Optional[str] = Query(None, description="Page number (latest mode)"),
    limit: Optional[str] = Query(None, description="Items per page (latest mode)"),
    collection: Collection = Depends(get_events_collection),
    settings: Settings = Depends(get_settings),
):
    """
    Retrieve events.

    With ``id`` returns that event; with ``type=latest`` returns a page sorted
    by schedule, newest first; otherwise returns every event.
    """
    try:
        if event_id:
            object_id = require_valid_id(event_id)
            return serialize_event(require_existing_event(collection, object_id))

        if mode == "latest":
            page_limit = safe_parse_int(limit, settings.DEFAULT_PAGE_LIMIT)
            if page_limit < 1:
                page_limit = settings.DEFAULT_PAGE_LIMIT
            page_limit = min(page_limit, settings.MAX_PAGE_LIMIT)
            page_number = max(safe_parse_int(page, 1), 1)
            skip = (page_number - 1) * page_limit

            events = get_latest_events(collection, skip=skip, limit=page_limit)
            total = count_events(collection)
            return EventPage(
                events=[serialize_event(event) for event in events],
                pagination=PaginationMeta(**build_pagination_meta(page_number, page_limit, total)),
            )

        return [serialize_event(event) for event in get_events(collection)]
    except PyMongoError as e:
        logger.error(f"Error retrieving events: {str(e)}")
        raise storage_failure("fetch events", e)


@router.post(
    "",
    response_model=EventCreatedResponse,
    status_code=201,
    responses=CLIENT_ERRORS,
)
def create_new_event(
    payload: EventPayload = Depends(read_event_payload),
    collection: Collection = Depends(get_events_collection),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Create a new event, optionally with an image in the ``image`` field.
    """
    document = build_new_event(payload)

    stored = storage.save(payload.image) if payload.image is not None else None
    try:
        with storage.cleanup_on_failure(stored):
            if stored is not None:
                document["files"] = {"image": stored.url}
            event_id = create_event(collection, document)
    except PyMongoError as e:
        logger.error(f"Error creating event: {str(e)}")
        raise storage_failure("create event", e)

    document["_id"] = event_id
    return EventCreatedResponse(id=str(event_id), event=serialize_event(document))


@router.put(
    "/{event_id}",
    response_model=EventUpdatedResponse,
    responses=CLIENT_ERRORS,
)
def update_event_details(
    event_id: str,
    payload: EventPayload = Depends(read_event_payload),
    collection: Collection = Depends(get_events_collection),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Update the supplied fields of an event; omitted fields are left unchanged.
    """
    object_id = require_valid_id(event_id)
    try:
        existing = require_existing_event(collection, object_id)
    except PyMongoError as e:
        logger.error(f"Error updating event {event_id}: {str(e)}")
        raise storage_failure("update event", e)

    changes = build_event_changes(payload, existing)
    if not changes and payload.image is None:
        logger.info(f"No changes detected for event {event_id}")
        return EventUpdatedResponse(
            message=MESSAGES["NO_CHANGES"],
            changed=False,
            event=serialize_event(existing),
        )

    stored = storage.save(payload.image) if payload.image is not None else None
    try:
        with storage.cleanup_on_failure(stored):
            if stored is not None:
                changes["files.image"] = stored.url
            changes["updated_at"] = utcnow()
            updated = update_event(collection, object_id, changes)
            if updated is None:
                raise EventAPIError(ErrorKind.EVENT_NOT_FOUND, MESSAGES["EVENT_NOT_FOUND"], id=event_id)
    except PyMongoError as e:
        logger.error(f"Error updating event {event_id}: {str(e)}")
        raise storage_failure("update event", e)

    # The new image is in place, the old one can go
    if stored is not None:
        storage.remove(current_image(existing))

    return EventUpdatedResponse(
        message=MESSAGES["EVENT_UPDATED"],
        changed=True,
        event=serialize_event(updated),
    )


@router.delete(
    "/{event_id}",
    response_model=EventDeletedResponse,
    responses=CLIENT_ERRORS,
)
def delete_event_by_id(
    event_id: str,
    collection: Collection = Depends(get_events_collection),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Delete an event and its image.
    """
    object_id = require_valid_id(event_id)
    try:
        existing = require_existing_event(collection, object_id)
        if not delete_event(collection, object_id):
            raise EventAPIError(ErrorKind.EVENT_NOT_FOUND, MESSAGES["EVENT_NOT_FOUND"], id=event_id)
    except PyMongoError as e:
        logger.error(f"Error deleting event {event_id}: {str(e)}")
        raise storage_failure("delete event", e)

    storage.remove(current_image(existing))
    return EventDeletedResponse(id=event_id)
