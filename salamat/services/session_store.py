"""Storage for unified sessions.

Both stores keep sessions as plain documents and hand out fresh model copies, so
a caller mutating a session never changes what is stored until it calls put().
"""

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from salamat.models.session import UnifiedSession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Storage interface used by the chat service."""

    async def get(self, session_id: str) -> Optional[UnifiedSession]: ...

    async def put(self, session: UnifiedSession) -> None: ...

    async def delete(self, session_id: str) -> bool: ...

    async def count(self) -> int: ...


class InMemorySessionStore:
    """Process-local store with idle-time eviction."""

    def __init__(self, ttl_seconds: int = 7200, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Tuple[float, dict]] = {}

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            session_id
            for session_id, (touched, _) in self._sessions.items()
            if now - touched > self.ttl_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s)")

    async def get(self, session_id: str) -> Optional[UnifiedSession]:
        self._evict_expired()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        return UnifiedSession.model_validate(entry[1])

    async def put(self, session: UnifiedSession) -> None:
        self._evict_expired()
        self._sessions[session.session_id] = (self._clock(), session.model_dump(mode="json"))

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def count(self) -> int:
        self._evict_expired()
        return len(self._sessions)


class MongoSessionStore:
    """MongoDB-backed store; expiry is delegated to a TTL index on last_activity."""

    def __init__(self, collection, ttl_seconds: int = 7200):
        self.collection = collection
        self.ttl_seconds = ttl_seconds

    async def ensure_indexes(self) -> None:
        """Create the unique id index and the TTL index."""
        await self.collection.create_index("session_id", unique=True)
        await self.collection.create_index("last_activity", expireAfterSeconds=self.ttl_seconds)
        logger.info("Session indexes ensured")

    async def get(self, session_id: str) -> Optional[UnifiedSession]:
        doc = await self.collection.find_one({"session_id": session_id}, {"_id": 0})
        if doc is None:
            return None
        return UnifiedSession.model_validate(doc)

    async def put(self, session: UnifiedSession) -> None:
        doc = session.model_dump(mode="json")
        # BSON dates, so the TTL index applies
        doc["start_time"] = session.start_time
        doc["last_activity"] = session.last_activity

        await self.collection.replace_one({"session_id": session.session_id}, doc, upsert=True)

    async def delete(self, session_id: str) -> bool:
        result = await self.collection.delete_one({"session_id": session_id})
        return result.deleted_count > 0

    async def count(self) -> int:
        return await self.collection.count_documents({})
