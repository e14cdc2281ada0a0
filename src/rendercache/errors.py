"""Exceptions raised by the cache stores."""

from pathlib import Path


class RenderCacheError(Exception):
    """Base class for rendercache errors."""

    pass


class CacheWriteError(RenderCacheError, OSError):
    """Raised when an artifact could not be published to its final path."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write {path}: {reason}")


class CompileError(RenderCacheError):
    """Raised when the compiler capability fails to produce output."""

    def __init__(self, compile_key: str, message: str) -> None:
        self.compile_key = compile_key
        super().__init__(f"Compilation of {compile_key!r} failed: {message}")
