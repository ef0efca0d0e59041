# checkin/services/redis_service.py
"""
Redis Service for completed check-in records.

Thin async wrapper around redis.asyncio. Records go in and out as JSON
documents; a write that cannot reach Redis raises so the flow engine can
report the failed save, while reads fall back to None.
"""
import json
import redis.asyncio as redis
from typing import Optional, Dict, Any
from dataclasses import dataclass
import logging

from checkin.core.config import settings
from checkin.core.service_base import BaseService, ServiceConfig
from checkin.core.exceptions import RedisServiceError, redis_error

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig(ServiceConfig):
    """Connection settings for the check-in record store"""
    url: Optional[str] = None
    socket_timeout: float = 5.0
    max_connections: int = 10


class RedisService(BaseService[RedisConfig]):
    """
    JSON record store on top of redis.asyncio.

    Without REDIS_URL the service initializes in a disabled state:
    loads return None and writes raise RedisServiceError.
    """

    def __init__(self, config: Optional[RedisConfig] = None):
        super().__init__(config or RedisConfig(url=settings.REDIS_URL), logger)

    def _validate_config(self) -> None:
        super()._validate_config()
        if not self.config.url:
            self.logger.warning("REDIS_URL not set, check-in records cannot be stored in Redis")

    async def _initialize_client(self) -> Optional[redis.Redis]:
        if not self.config.url:
            return None

        client = redis.from_url(
            self.config.url,
            decode_responses=True,
            socket_timeout=self.config.socket_timeout,
            max_connections=self.config.max_connections
        )
        try:
            await client.ping()
        except Exception as e:
            # Unreachable at startup: run disabled, saves will report failure
            self.logger.error(f"Redis at {self.config.url} unreachable: {e}")
            return None

        self.logger.info("Connected to Redis")
        return client

    async def store_record(self, key: str, record: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """
        Write a record as a JSON document.

        Raises:
            RedisServiceError: Redis is disabled or the write failed
        """
        await self.ensure_initialized()
        if self._client is None:
            raise redis_error("Redis is not available", key=key, operation="store_record")

        document = json.dumps(record)
        try:
            if ttl:
                await self._client.setex(key, ttl, document)
            else:
                await self._client.set(key, document)
        except Exception as e:
            self.logger.error(f"Storing '{key}' failed: {e}")
            raise RedisServiceError(f"Redis write failed: {e}", key=key, operation="store_record") from e

        return True

    async def load_record(self, key: str) -> Optional[Dict[str, Any]]:
        """Read a JSON record; None when missing, unreadable or Redis is down"""
        await self.ensure_initialized()
        if self._client is None:
            return None

        try:
            document = await self._client.get(key)
        except Exception as e:
            self.logger.warning(f"Loading '{key}' failed: {e}")
            return None

        if document is None:
            return None
        try:
            return json.loads(document)
        except json.JSONDecodeError:
            self.logger.warning(f"'{key}' does not hold a JSON record")
            return None

    async def health_check(self) -> Dict[str, Any]:
        if not self.config.url:
            return {"healthy": False, "status": "disabled", "details": {"message": "REDIS_URL not set"}}

        try:
            await self.ensure_initialized()
            if self._client is None:
                return {"healthy": False, "status": "not_connected", "details": {}}

            await self._client.ping()
            info = await self._client.info()
        except Exception as e:
            return {"healthy": False, "status": "error", "details": {"error": str(e)}}

        return {
            "healthy": True,
            "status": "connected",
            "details": {
                "redis_version": info.get("redis_version", "unknown"),
                "used_memory_human": info.get("used_memory_human", "unknown")
            }
        }

    async def _cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    def is_connected(self) -> bool:
        return self._client is not None
