from typing import List, Optional, Dict, Any

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from app.logging_config import get_logger

logger = get_logger("crud.event")


def get_event(collection: Collection, event_id: ObjectId) -> Optional[Dict[str, Any]]:
    """
    Get a specific event by ID.

    Args:
        collection: Events collection
        event_id: ID of the event to retrieve

    Returns:
        Event document or None if not found
    """
    return collection.find_one({"_id": event_id})


def get_events(collection: Collection) -> List[Dict[str, Any]]:
    """
    Get every event, unfiltered and in natural order.
    """
    return list(collection.find({}))


def get_latest_events(collection: Collection, skip: int = 0, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Get one page of events, most recently scheduled first.

    Args:
        collection: Events collection
        skip: Number of documents to skip
        limit: Maximum number of documents to return

    Returns:
        List of event documents
    """
    cursor = (
        collection.find({})
        .sort("schedule", DESCENDING)
        .skip(skip)
        .limit(limit)
    )
    return list(cursor)


def count_events(collection: Collection) -> int:
    return collection.count_documents({})


def create_event(collection: Collection, document: Dict[str, Any]) -> ObjectId:
    """
    Insert a new event document.

    The document is updated in place with its assigned ``_id``.

    Returns:
        ID assigned by the database
    """
    result = collection.insert_one(document)
    logger.info(f"Created new event: {result.inserted_id} - {document.get('name')}")
    return result.inserted_id


def update_event(
    collection: Collection, event_id: ObjectId, changes: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Merge changes into an existing event.

    Args:
        collection: Events collection
        event_id: ID of the event to update
        changes: Fields to ``$set``; dotted keys address nested fields

    Returns:
        Updated document or None if the event no longer exists
    """
    updated = collection.find_one_and_update(
        {"_id": event_id},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        logger.warning(f"Attempted to update non-existent event: {event_id}")
    else:
        logger.info(f"Updated event: {event_id} ({', '.join(sorted(changes))})")
    return updated


def delete_event(collection: Collection, event_id: ObjectId) -> bool:
    """
    Delete an event.

    Returns:
        True if the event was deleted, False otherwise
    """
    result = collection.delete_one({"_id": event_id})

    if result.deleted_count > 0:
        logger.info(f"Deleted event: {event_id}")
        return True

    logger.warning(f"Attempted to delete non-existent event: {event_id}")
    return False
