"""
Caching utilities for air quality data

Entries live in the Django cache under a generation number. Clearing the
store bumps the generation with a single atomic incr(), so every entry
written before the clear becomes unreachable at once, including entries
from concurrent writers. A per-generation registry records the keys so
the store can be listed for health and stats.
"""
from django.core.cache import cache
from typing import Optional, Dict, Any, List
from django.conf import settings
import hashlib
import logging

logger = logging.getLogger(__name__)

KEY_PREFIX = 'air'
GENERATION_KEY = 'air:generation'
REGISTRY_KEY = 'air:registry'
HITS_KEY = 'air:stats:hits'
MISSES_KEY = 'air:stats:misses'
CLIENTS_KEY = 'air:ws:clients'
REFRESH_LOCK_KEY = 'air:ws:refresh_lock'


def generate_cache_key(*parts: str) -> str:
    """
    Build a cache key from its parts

    Returns:
        Cache key string, hashed if longer than the Redis-friendly limit
    """
    key_parts = [KEY_PREFIX] + [str(p).strip().lower().replace(' ', '_') for p in parts]
    cache_key = ':'.join(key_parts)

    # Leave room for the generation suffix
    if len(cache_key) > 230:
        cache_key = f'{KEY_PREFIX}:' + hashlib.md5(cache_key.encode()).hexdigest()

    return cache_key


def city_cache_key(city: str, country: str) -> str:
    return generate_cache_key(city, country, 'complete_data')


def _get_ttl(ttl: Optional[int]) -> int:
    if ttl is None:
        ttl = getattr(settings, 'AIR_CACHE_TTL', 900)  # Default 15 minutes
    return ttl


def current_generation() -> int:
    cache.add(GENERATION_KEY, 1, timeout=None)
    return cache.get(GENERATION_KEY) or 1


def storage_key(cache_key: str, generation: Optional[int] = None) -> str:
    """Key under which an entry is actually stored for a generation"""
    if generation is None:
        generation = current_generation()
    return f'{cache_key}:g{generation}'


def _registry_key(generation: int) -> str:
    return f'{REGISTRY_KEY}:g{generation}'


def _registered_keys(generation: int) -> List[str]:
    return list(cache.get(_registry_key(generation)) or [])


def _incr(counter_key: str) -> int:
    # add() is a no-op when the key exists, so incr() always has a base
    cache.add(counter_key, 0, timeout=None)
    try:
        return cache.incr(counter_key)
    except ValueError:
        # Evicted between add() and incr()
        cache.set(counter_key, 1, timeout=None)
        return 1


def get_cached(cache_key: str) -> Optional[Dict[str, Any]]:
    """
    Get cached data and record a hit or miss

    Args:
        cache_key: Key from generate_cache_key / city_cache_key

    Returns:
        Cached data or None if not found
    """
    cached_data = cache.get(storage_key(cache_key))

    if cached_data is not None:
        _incr(HITS_KEY)
        return cached_data

    _incr(MISSES_KEY)
    return None


def set_cached(cache_key: str, data: Any, ttl: Optional[int] = None) -> bool:
    """
    Cache data under the current generation and register its key

    Args:
        cache_key: Key from generate_cache_key / city_cache_key
        data: JSON-serialisable payload
        ttl: Time to live in seconds (defaults to AIR_CACHE_TTL from settings)

    Returns:
        True if cached successfully
    """
    ttl = _get_ttl(ttl)
    generation = current_generation()

    cache.set(storage_key(cache_key, generation), data, timeout=ttl)

    keys = _registered_keys(generation)
    if cache_key not in keys:
        keys.append(cache_key)
        cache.set(_registry_key(generation), keys, timeout=None)

    return True


def delete_cached(cache_key: str) -> None:
    generation = current_generation()
    cache.delete(storage_key(cache_key, generation))
    keys = _registered_keys(generation)
    if cache_key in keys:
        keys.remove(cache_key)
        cache.set(_registry_key(generation), keys, timeout=None)


def get_live_keys() -> List[str]:
    """Registered keys whose entries have not expired"""
    generation = current_generation()
    keys = _registered_keys(generation)
    if not keys:
        return []
    present = cache.get_many([storage_key(k, generation) for k in keys])
    return [k for k in keys if storage_key(k, generation) in present]


def clear_cache() -> Dict[str, Any]:
    """
    Invalidate every data entry and reset the statistics

    Returns:
        Dict with success flag and number of registered keys dropped
    """
    old_generation = current_generation()
    keys = _registered_keys(old_generation)

    _incr(GENERATION_KEY)

    # Entries of the old generation are unreachable now; delete the ones we
    # know about instead of waiting for their TTL
    cache.delete_many(
        [storage_key(k, old_generation) for k in keys]
        + [_registry_key(old_generation), HITS_KEY, MISSES_KEY]
    )

    logger.info(f"Air data cache cleared ({len(keys)} keys, generation {old_generation + 1})")
    return {'success': True, 'message': 'Cache cleared successfully', 'keys_removed': len(keys)}


def get_cache_stats() -> Dict[str, Any]:
    keys = get_live_keys()
    return {
        'keys': keys,
        'keys_count': len(keys),
        'hits': cache.get(HITS_KEY) or 0,
        'misses': cache.get(MISSES_KEY) or 0,
        'ttl': _get_ttl(None),
    }


# WebSocket bookkeeping shared by all worker processes

def increment_connected_clients() -> int:
    return _incr(CLIENTS_KEY)


def decrement_connected_clients() -> int:
    cache.add(CLIENTS_KEY, 0, timeout=None)
    try:
        count = cache.decr(CLIENTS_KEY)
    except ValueError:
        count = 0
    if count < 0:
        cache.set(CLIENTS_KEY, 0, timeout=None)
        count = 0
    return count


def get_connected_clients() -> int:
    return cache.get(CLIENTS_KEY) or 0


def acquire_refresh_slot(cooldown: Optional[int] = None) -> bool:
    """
    Claim the right to force a refresh from the WebSocket

    add() only succeeds when no claim is live, so at most one forced
    refresh runs per cooldown window across all sockets and processes.
    """
    if cooldown is None:
        cooldown = getattr(settings, 'WS_REFRESH_COOLDOWN', 30)
    if cooldown <= 0:
        return True
    return cache.add(REFRESH_LOCK_KEY, 1, timeout=cooldown)
