"""Rendered output and compiled artifact caches for template rendering hosts."""

from rendercache.cache import (
    CACHE_DISABLED,
    CACHE_INFINITE,
    CacheLookup,
    CacheStatus,
    CompiledArtifact,
    CompiledArtifactStore,
    OutputCacheStore,
    get_compiled_store,
    get_memo,
    get_output_store,
    reset_stores,
)
from rendercache.engine import Compiler, Engine, EngineContext
from rendercache.errors import CacheWriteError, CompileError, RenderCacheError
from rendercache.memo import KeySpace, ProcessLocalMemo
from rendercache.template import CompilationForce, StringTemplate

__version__ = "0.1.0"

__all__ = [
    "CACHE_DISABLED",
    "CACHE_INFINITE",
    "CacheLookup",
    "CacheStatus",
    "CacheWriteError",
    "CompilationForce",
    "CompileError",
    "CompiledArtifact",
    "CompiledArtifactStore",
    "Compiler",
    "Engine",
    "EngineContext",
    "KeySpace",
    "OutputCacheStore",
    "ProcessLocalMemo",
    "RenderCacheError",
    "StringTemplate",
    "get_compiled_store",
    "get_memo",
    "get_output_store",
    "reset_stores",
]
