"""
Process-wide caches for per-type binding metadata.

Record metadata is derived from class definitions, so entries are built once
and never expire. Caches are shared between threads; every read and insert
goes through the singleton's lock.
"""
import functools
import logging
import threading

import cachetools

logger = logging.getLogger(__name__)


class Cache:
    """Cache manager for the tql package.

    Thread-safe singleton holding named metadata caches.
    """

    _instance = None
    _caches: dict[str, cachetools.Cache] = {}
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_cache(self, name: str, maxsize: int = 1024) -> cachetools.Cache:
        """Get or create a cache with the given name.

        Args:
            name: Name of the cache
            maxsize: Maximum number of entries

        Returns
            cachetools.Cache instance
        """
        if name not in self._caches:
            with self._lock:
                if name not in self._caches:
                    self._caches[name] = cachetools.Cache(maxsize=maxsize)
        return self._caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def clear_cache(self, name: str) -> None:
        """Clear a specific cache by name."""
        with self._lock:
            if name in self._caches:
                self._caches[name].clear()


def _type_name(cls) -> str:
    return f'{getattr(cls, "__module__", "?")}.{getattr(cls, "__qualname__", repr(cls))}'


def cached_metadata(cache_name: str, maxsize: int = 1024):
    """Decorator caching a single-argument metadata builder keyed by type.

    The argument itself is the key, so two classes sharing a name in
    different modules (or scopes) never collide. The builder runs under the
    cache lock; concurrent callers for the same type see exactly one build.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(key):
            manager = Cache.get_instance()
            cache = manager.get_cache(cache_name, maxsize=maxsize)
            with manager.lock:
                try:
                    result = cache[key]
                    logger.debug(f'Cache hit for {func.__name__}({_type_name(key)})')
                    return result
                except KeyError:
                    pass
                logger.debug(f'Cache miss for {func.__name__}({_type_name(key)})')
                result = func(key)
                cache[key] = result
                return result
        return wrapper
    return decorator
