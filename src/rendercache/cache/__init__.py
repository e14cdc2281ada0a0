"""
Cache module for rendered output and compiled templates.

Both caches live on the filesystem and may be shared by several
processes; files are always published atomically.
"""

from rendercache.cache.base import (
    CACHE_DISABLED,
    CACHE_INFINITE,
    CacheLookup,
    CacheStatus,
    CompiledArtifact,
    atomic_write,
    resolve_duration,
)
from rendercache.cache.compiled import CompiledArtifactStore
from rendercache.cache.output import OutputCacheStore
from rendercache.cache.factory import (
    get_compiled_store,
    get_memo,
    get_output_store,
    reset_stores,
)

__all__ = [
    "CACHE_DISABLED",
    "CACHE_INFINITE",
    "CacheLookup",
    "CacheStatus",
    "CompiledArtifact",
    "CompiledArtifactStore",
    "OutputCacheStore",
    "atomic_write",
    "get_compiled_store",
    "get_memo",
    "get_output_store",
    "reset_stores",
    "resolve_duration",
]
