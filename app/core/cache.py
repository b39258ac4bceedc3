import json
import logging
from typing import Any, Dict, Optional

import redis
from fastapi.encoders import jsonable_encoder

from app.core.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "payroll"


class PayrollCacheService:
    """Redis-backed cache for payroll summaries and reports.

    Reads fall through to the database whenever Redis is disabled or
    unreachable; every payroll write drops the whole ``payroll:*`` keyspace.
    """

    def __init__(self, redis_url: str = None, password: Optional[str] = None, enabled: bool = None):
        self.redis_url = redis_url or settings.redis_url
        self.password = password or settings.redis_password
        self.cache_ttl = settings.report_cache_ttl
        self.redis_client = None

        if enabled is None:
            enabled = settings.enable_redis_cache
        if not enabled:
            logger.info("Redis cache disabled by configuration")
            return

        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                password=self.password,
                decode_responses=True,
                socket_timeout=settings.redis_socket_timeout,
                socket_connect_timeout=settings.redis_socket_connect_timeout,
                max_connections=settings.redis_max_connections
            )

            self.redis_client.ping()
            logger.info("Redis connection established successfully")

        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {str(e)}")
            self.redis_client = None

    def is_available(self) -> bool:
        """Check if Redis is available"""
        return self.redis_client is not None

    @staticmethod
    def summary_key(month: int, year: int) -> str:
        return f"{KEY_PREFIX}:summary:{month}:{year}"

    @staticmethod
    def report_key(report_type: str, start: str, end: str) -> str:
        return f"{KEY_PREFIX}:report:{report_type}:{start}:{end}"

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a cached JSON document, None on miss or when Redis is down"""
        if not self.is_available():
            return None

        try:
            data = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Error reading {key} from cache: {str(e)}")
            return None

        if data is None:
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return json.loads(data)

    def set_json(self, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        if not self.is_available():
            return False

        try:
            self.redis_client.setex(key, ttl or self.cache_ttl, json.dumps(jsonable_encoder(value)))
            return True
        except redis.RedisError as e:
            logger.error(f"Error caching {key}: {str(e)}")
            return False

    def invalidate_payroll_cache(self) -> bool:
        """Drop every cached payroll summary and report"""
        if not self.is_available():
            return False

        try:
            keys = self.redis_client.keys(f"{KEY_PREFIX}:*")
            if keys:
                self.redis_client.delete(*keys)
            logger.info(f"Invalidated {len(keys)} payroll cache entries")
            return True
        except redis.RedisError as e:
            logger.error(f"Error invalidating payroll cache: {str(e)}")
            return False

    def health_check(self) -> bool:
        """Check Redis connection health"""
        if not self.is_available():
            return False

        try:
            self.redis_client.ping()
            return True
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {str(e)}")
            return False


# Global cache instance
payroll_cache = PayrollCacheService()


def get_payroll_cache() -> PayrollCacheService:
    return payroll_cache
