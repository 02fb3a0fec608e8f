from typing import Callable, Optional

from fastapi import Depends, Request
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.server_api import ServerApi

from app.config import Settings
from app.logging_config import get_logger

logger = get_logger("database")

EVENTS_COLLECTION = "events"


class MongoDatabase:
    """Owns the MongoDB client for the lifetime of the application.

    Created once at startup, stored on ``app.state`` and handed to request
    handlers through the ``get_db`` dependency.
    """

    def __init__(
        self,
        uri: str,
        db_name: Optional[str] = None,
        default_db_name: str = "events_app",
        connect_timeout_ms: int = 10000,
        socket_timeout_ms: int = 45000,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        self.uri = uri
        self.db_name = db_name
        self.default_db_name = default_db_name
        self.connect_timeout_ms = connect_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self._client_factory = client_factory
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoDatabase":
        if not settings.mongodb_configured:
            raise RuntimeError("MONGODB_URI not configured! Check your .env file")
        return cls(
            uri=settings.MONGODB_URI,
            db_name=settings.MONGODB_DB_NAME,
            default_db_name=settings.MONGODB_DEFAULT_DB_NAME,
            connect_timeout_ms=settings.MONGODB_CONNECT_TIMEOUT_MS,
            socket_timeout_ms=settings.MONGODB_SOCKET_TIMEOUT_MS,
        )

    def connect(self) -> Database:
        """Open the client and verify the server answers a ping."""
        client = self._client_factory(
            self.uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            connectTimeoutMS=self.connect_timeout_ms,
            socketTimeoutMS=self.socket_timeout_ms,
        )
        try:
            client.admin.command("ping")
        except Exception as e:
            logger.error(f"MongoDB connection failed: {str(e)}")
            client.close()
            raise

        if self.db_name:
            db = client.get_database(self.db_name)
        else:
            db = client.get_default_database(default=self.default_db_name)

        self._client = client
        self._db = db
        logger.info(f"MongoDB connected successfully (database: {db.name})")
        return db

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._db = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> Database:
        if self._db is None:
            raise RuntimeError("Database not initialized. Did you forget to call connect()?")
        return self._db

    def collection(self, name: str) -> Collection:
        return self.db[name]


def get_db(request: Request) -> MongoDatabase:
    """Get the application's database client.

    Returns:
        MongoDatabase: Client created during startup
    """
    return request.app.state.database


def get_events_collection(database: MongoDatabase = Depends(get_db)) -> Collection:
    """Get the collection holding event documents."""
    return database.collection(EVENTS_COLLECTION)
