import logging
from datetime import datetime

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database import EVENTS_COLLECTION, get_events_collection
from app.uploads import ImageStorage, get_image_storage
from app.validation import utcnow

# Create a logger
logger = logging.getLogger(__name__)


@pytest.fixture
def events_collection():
    """In-memory MongoDB collection, fresh for each test."""
    client = mongomock.MongoClient()
    yield client["test_events_app"][EVENTS_COLLECTION]
    client.close()


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def image_storage(upload_dir):
    return ImageStorage(upload_dir, max_size=5 * 1024 * 1024)


@pytest.fixture
def client(events_collection, image_storage):
    """
    Get a test client wired to the in-memory collection and temp upload dir.

    The client is not used as a context manager, so startup does not try to
    reach a real MongoDB server.
    """
    app.dependency_overrides[get_events_collection] = lambda: events_collection
    app.dependency_overrides[get_image_storage] = lambda: image_storage

    yield TestClient(app)

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def event_data():
    return {
        "name": "PyData Meetup",
        "tagline": "Dataframes after dark",
        "schedule": "2026-03-15T10:00:00.000Z",
        "description": "Lightning talks on data tooling.",
        "moderator": "Bob",
        "category": "meetup",
        "sub_category": "python",
        "rigor_rank": "3",
        "uid": "18",
    }


def make_event_document(**overrides):
    """Build a stored-shape event document."""
    now = utcnow()
    document = {
        "type": "event",
        "uid": 18,
        "name": "Stored Event",
        "tagline": "Already in the database",
        "schedule": datetime(2026, 1, 10, 9, 0),
        "description": "Inserted by a test helper.",
        "moderator": "Carol",
        "category": "workshop",
        "sub_category": None,
        "rigor_rank": 2,
        "attendees": [],
        "created_at": now,
        "updated_at": now,
    }
    document.update(overrides)
    return document


@pytest.fixture
def insert_event(events_collection):
    """Insert an event document directly, bypassing the API."""
    def _insert(**overrides):
        document = make_event_document(**overrides)
        document["_id"] = events_collection.insert_one(document).inserted_id
        logger.info(f"Created test event: {document['_id']} - {document['name']}")
        return document
    return _insert
