# checkin/services/checkin_store.py
"""
Persistence of completed check-ins.

The flow engine hands the finished answer record to a CheckInRepository
once, when the session reaches the final step. A False return and a
raised exception both count as a failed save.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from checkin.core.config import Settings, settings
from checkin.core.exceptions import config_error
from checkin.services.redis_service import RedisConfig, RedisService

logger = logging.getLogger(__name__)

KEY_PREFIX = "checkin"


def build_record(session_id: str, answers: Dict[str, Any]) -> Dict[str, Any]:
    """Stored document for one completed check-in"""
    return {
        "session_id": session_id,
        "completed_at": datetime.now(timezone.utc).isoformat(),
        "answers": dict(answers)
    }


class CheckInRepository(ABC):
    """Destination of completed answer records"""

    @abstractmethod
    async def persist(self, session_id: str, answers: Dict[str, Any]) -> bool:
        """Save the answer record of a finished session. Returns success."""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        pass

    async def shutdown(self) -> None:
        pass


class InMemoryCheckInRepository(CheckInRepository):
    """Keeps records in a dict; for development and tests"""

    def __init__(self):
        self.records: Dict[str, Dict[str, Any]] = {}

    async def persist(self, session_id: str, answers: Dict[str, Any]) -> bool:
        self.records[session_id] = build_record(session_id, answers)
        logger.info(f"Stored check-in {session_id} in memory ({len(answers)} answers)")
        return True

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.records.get(session_id)

    async def health_check(self) -> Dict[str, Any]:
        return {
            "healthy": True,
            "status": "memory",
            "details": {"records": len(self.records)}
        }


class RedisCheckInRepository(CheckInRepository):
    """Stores each record as JSON under checkin:<session_id> with a TTL"""

    def __init__(self, redis_service: Optional[RedisService] = None, ttl_seconds: Optional[int] = None):
        self.redis_service = redis_service or RedisService()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.CHECKIN_TTL_SECONDS

    @staticmethod
    def key_for(session_id: str) -> str:
        return f"{KEY_PREFIX}:{session_id}"

    async def persist(self, session_id: str, answers: Dict[str, Any]) -> bool:
        key = self.key_for(session_id)
        stored = await self.redis_service.store_record(key, build_record(session_id, answers), ttl=self.ttl_seconds)
        if stored:
            logger.info(f"Stored check-in {session_id} in Redis under {key}")
        return stored

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return await self.redis_service.load_record(self.key_for(session_id))

    async def health_check(self) -> Dict[str, Any]:
        return await self.redis_service.health_check()

    async def shutdown(self) -> None:
        await self.redis_service.shutdown()


def create_checkin_repository(current: Optional[Settings] = None) -> CheckInRepository:
    """
    Repository for the configured PERSISTENCE_BACKEND.

    Raises:
        ConfigurationError: If the redis backend is selected without REDIS_URL
    """
    current = current or settings

    if current.PERSISTENCE_BACKEND == "redis":
        if not current.REDIS_URL:
            raise config_error("PERSISTENCE_BACKEND=redis requires REDIS_URL", "checkin_store")
        return RedisCheckInRepository(
            RedisService(RedisConfig(url=current.REDIS_URL)),
            ttl_seconds=current.CHECKIN_TTL_SECONDS
        )

    return InMemoryCheckInRepository()
