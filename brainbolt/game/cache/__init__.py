from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.cache.ttl_cache import CacheStats, TtlCache

__all__ = ["CacheLayer", "CacheNamespace", "CacheStats", "TtlCache"]
