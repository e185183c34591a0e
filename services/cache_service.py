import redis
import json
import hashlib
import logging
from functools import wraps
from flask import current_app

def _warn(message):
    try:
        current_app.logger.warning(message)
    except RuntimeError:
        logging.getLogger(__name__).warning(message)

class CacheService:
    """Redis cache for external catalog lookups.

    Caching is optional: with no REDIS_URL, or when Redis cannot be reached,
    every read misses and every write is skipped.
    """

    def __init__(self):
        self.redis_client = None
        self._initialized = False

    def _setup_redis(self):
        """Setup Redis connection - only call within app context"""
        if self._initialized:
            return

        try:
            redis_url = current_app.config.get('REDIS_URL')
            if not redis_url:
                current_app.logger.info("Redis not configured - caching disabled")
                self.redis_client = None
                self._initialized = True
                return

            self.redis_client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=2)
            self.redis_client.ping()
            current_app.logger.info("✅ Redis connected successfully")
        except RuntimeError:
            # No app context - try again on next use
            logging.getLogger(__name__).warning("⚠️ Redis setup skipped - no app context available")
            return
        except redis.RedisError as e:
            _warn(f"⚠️ Redis not available - caching disabled: {e}")
            self.redis_client = None
        self._initialized = True

    def reset(self):
        """Forget the current connection so the next use reconnects with fresh config"""
        self.redis_client = None
        self._initialized = False

    def is_available(self):
        """Check if Redis is available"""
        if not self._initialized:
            self._setup_redis()
        return self.redis_client is not None

    def get(self, key):
        """Get value from cache"""
        if not self.is_available():
            return None

        try:
            cached = self.redis_client.get(key)
            if cached:
                return json.loads(cached)
        except (redis.RedisError, ValueError) as e:
            _warn(f"Cache get error: {e}")

        return None

    def set(self, key, value, expire_seconds=3600):
        """Set value in cache with expiration"""
        if not self.is_available():
            return False

        try:
            serialized = json.dumps(value, default=str)
            self.redis_client.setex(key, expire_seconds, serialized)
            return True
        except (redis.RedisError, TypeError) as e:
            _warn(f"Cache set error: {e}")
            return False

    def delete(self, key):
        """Delete key from cache"""
        if not self.is_available():
            return False

        try:
            return self.redis_client.delete(key)
        except redis.RedisError as e:
            _warn(f"Cache delete error: {e}")
            return False

    def flush_all(self):
        """Clear every cached entry written by this application"""
        if not self.is_available():
            return False

        try:
            keys = self.redis_client.keys("cache:*")
            if keys:
                self.redis_client.delete(*keys)
            return True
        except redis.RedisError as e:
            _warn(f"Cache flush error: {e}")
            return False

    def generate_key(self, prefix, *args, **kwargs):
        """Generate a cache key from function name and arguments"""
        args_str = str(args) + str(sorted(kwargs.items()))

        # Hash to avoid key length issues
        args_hash = hashlib.md5(args_str.encode()).hexdigest()

        return f"cache:{prefix}:{args_hash}"


# Global cache service instance
cache_service = CacheService()


def cache_result(expire_seconds=3600, key_prefix=None, skip_self=False):
    """Decorator to cache function results.

    Set skip_self on methods so the instance does not become part of the key.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            prefix = key_prefix or func.__name__
            key_args = args[1:] if skip_self else args
            cache_key = cache_service.generate_key(prefix, *key_args, **kwargs)

            cached_result = cache_service.get(cache_key)
            if cached_result is not None:
                return cached_result

            result = func(*args, **kwargs)
            cache_service.set(cache_key, result, expire_seconds)

            return result
        return wrapper
    return decorator

