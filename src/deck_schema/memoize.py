"""
Identity Memoization

Opt-in caches for the pure converters. A cached call on the *same* input
object returns the *same* output object, so callers must treat memoized
results as read-only: mutating one in place changes what every later call
with that input receives.

Element dicts are unhashable and cannot be weakly referenced, so the cache
keeps the input alive next to its result; that pins ``id()`` for as long as
the entry exists. Every cache is bounded and evicts its least recently used
entry once ``max_size`` is reached.
"""

import functools
import json
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_MAX_SIZE = 1000


class LRUCache:
    """Bounded mapping from hashable keys to results, least recently used first out."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()

    def _lookup(self, key: Hashable) -> Tuple[bool, Any]:
        if key not in self._entries:
            return False, None
        self._entries.move_to_end(key)
        return True, self._entries[key]

    def _store(self, key: Hashable, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        return self._lookup(key)

    def set(self, key: Hashable, value: Any) -> None:
        self._store(key, value)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


class IdentityCache(LRUCache):
    """Maps input objects, by identity, to previously computed results."""

    def get(self, key: Any) -> Tuple[bool, Any]:
        hit, entry = self._lookup(id(key))
        if hit and entry[0] is key:
            return True, entry[1]
        return False, None

    def set(self, key: Any, value: Any) -> None:
        self._store(id(key), (key, value))


def _value_key(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Hashable:
    try:
        hash(args)
        hash(tuple(sorted(kwargs.items())))
        return args, tuple(sorted(kwargs.items()))
    except TypeError:
        return json.dumps([args, kwargs], sort_keys=True, default=repr)


def memoize(fn: Optional[F] = None, *, max_size: int = DEFAULT_MAX_SIZE) -> Any:
    """Cache ``fn`` by argument identity for a single object argument, by value otherwise.

    Usable bare (``@memoize``) or with a bound (``@memoize(max_size=100)``).
    The wrapper exposes ``cache_clear()`` and ``cache_size()``; each of its
    two caches holds at most ``max_size`` entries.
    """
    if fn is None:
        return functools.partial(memoize, max_size=max_size)

    identity_cache = IdentityCache(max_size)
    value_cache = LRUCache(max_size)

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if len(args) == 1 and not kwargs and isinstance(args[0], (dict, list)):
            hit, value = identity_cache.get(args[0])
            if hit:
                return value
            value = fn(*args)
            identity_cache.set(args[0], value)
            return value

        key = _value_key(args, kwargs)
        hit, value = value_cache.get(key)
        if hit:
            return value
        value = fn(*args, **kwargs)
        value_cache.set(key, value)
        return value

    def cache_clear() -> None:
        identity_cache.clear()
        value_cache.clear()
        logger.debug("Cleared memoization cache for %s", fn.__name__)

    wrapper.cache_clear = cache_clear
    wrapper.cache_size = lambda: identity_cache.size() + value_cache.size()
    return wrapper


def memoize_batch(
    fn: Optional[Callable[[List[Any]], List[Any]]] = None, *, max_size: int = DEFAULT_MAX_SIZE
) -> Any:
    """Cache a list-to-list converter by the identity of the input list."""
    if fn is None:
        return functools.partial(memoize_batch, max_size=max_size)

    cache = IdentityCache(max_size)

    @functools.wraps(fn)
    def wrapper(items: List[Any]) -> List[Any]:
        hit, value = cache.get(items)
        if hit:
            return value
        value = fn(items)
        cache.set(items, value)
        return value

    wrapper.cache_clear = cache.clear
    wrapper.cache_size = cache.size
    return wrapper
