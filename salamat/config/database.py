"""MongoDB client lifecycle for the optional session backend.

Only used when ``settings.session_backend == "mongo"``; the in-memory store
needs none of this.
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from typing import Optional
from salamat.config.settings import settings
import logging

logger = logging.getLogger(__name__)


class Database:
    """Process-wide motor client, opened in the app lifespan."""

    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect_db(cls, uri: Optional[str] = None, database_name: Optional[str] = None):
        """Open the client and verify the server answers a ping."""
        uri = uri or settings.mongodb_uri
        database_name = database_name or settings.mongodb_database

        try:
            cls.client = AsyncIOMotorClient(uri, tz_aware=False)
            cls.database = cls.client[database_name]
            await cls.ping()
            logger.info(f"Connected to MongoDB database '{database_name}'")
        except Exception as e:
            logger.error(f"MongoDB connection failed: {e}")
            cls.client = None
            cls.database = None
            raise

    @classmethod
    async def close_db(cls):
        if cls.client is not None:
            cls.client.close()
            logger.info("MongoDB client closed")
        cls.client = None
        cls.database = None

    @classmethod
    async def ping(cls) -> None:
        """Round-trip to the server; raises if it is unreachable."""
        await cls.get_database().command("ping")

    @classmethod
    def get_database(cls) -> AsyncIOMotorDatabase:
        if cls.database is None:
            raise RuntimeError("MongoDB is not connected; session_backend is probably 'memory'")
        return cls.database


def get_sessions_collection() -> AsyncIOMotorCollection:
    """Collection holding unified sessions."""
    return Database.get_database()[settings.mongodb_collection_sessions]
