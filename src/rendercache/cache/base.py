"""Shared types and the atomic publish helper used by both stores."""

import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from rendercache.errors import CacheWriteError

logger = logging.getLogger(__name__)

# Cache durations are plain ints: n > 0 seconds, or one of these markers.
# None means "inherit the host default".
CACHE_DISABLED = 0
CACHE_INFINITE = -1

TEMP_PREFIX = "temp"


def validate_duration(duration: int | None) -> int | None:
    """
    Validate a cache duration value.

    Args:
        duration: Seconds, ``CACHE_INFINITE``, ``CACHE_DISABLED`` or None

    Returns:
        The duration unchanged

    Raises:
        ValueError: If the duration is negative but not ``CACHE_INFINITE``
    """
    if duration is not None and duration < CACHE_INFINITE:
        raise ValueError(f"Invalid cache duration: {duration}")
    return duration


def resolve_duration(override: int | None, default: int | None) -> int:
    """Pick the template override if set, else the host default."""
    duration = override if override is not None else default
    if duration is None:
        return CACHE_DISABLED
    return validate_duration(duration)


class CacheStatus(str, Enum):
    """Outcome of a rendered output lookup."""

    NOT_CACHEABLE = "not_cacheable"
    MISSING = "missing"
    CACHED = "cached"


@dataclass(frozen=True)
class CacheLookup:
    """Result of an output cache check."""

    status: CacheStatus
    """Whether the output is cached, cacheable but missing, or not cacheable."""

    path: Path | None = None
    """Cache file to serve, only set when cached."""

    @property
    def is_cached(self) -> bool:
        return self.status is CacheStatus.CACHED

    @property
    def is_cacheable(self) -> bool:
        return self.status is not CacheStatus.NOT_CACHEABLE


@dataclass(frozen=True)
class CompiledArtifact:
    """Location of a compiled template and how it was obtained."""

    path: Path
    """Compiled file, named after the compile key and version tag."""

    compiled: bool = False
    """True when this lookup ran the compiler."""

    compiler: Any = None
    """Compiler used when ``compiled`` is True."""


def _discard(path: Path) -> None:
    """Remove a leftover temporary file."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not remove temporary file {path}: {e}")


def _create_temp(directory: Path) -> tuple[int, Path]:
    """
    Create a uniquely named temporary file in ``directory``.

    Falls back to a uuid-based name once if ``mkstemp`` fails.

    Returns:
        Open file descriptor and path of the temporary file

    Raises:
        CacheWriteError: If neither strategy can create a file
    """
    try:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=directory)
        return fd, Path(name)
    except OSError as e:
        logger.debug(f"mkstemp failed in {directory}: {e}")

    temp = directory / f"{TEMP_PREFIX}{uuid.uuid4().hex}"
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
    try:
        return os.open(temp, flags, 0o600), temp
    except OSError as e:
        logger.warning(f"Error writing temporary file '{temp}': {e}")
        raise CacheWriteError(temp, f"cannot create temporary file ({e})") from e


def _destination_blocks(error: OSError, path: Path) -> bool:
    """Whether a failed rename was refused because ``path`` already exists."""
    if isinstance(error, FileExistsError):
        return True
    return isinstance(error, (PermissionError, IsADirectoryError)) and path.exists()


def atomic_write(path: Path, data: str | bytes, mode: int | None = None) -> Path:
    """
    Publish ``data`` at ``path`` without ever exposing a partial file.

    The data goes to a temporary file in the same directory which is then
    renamed over ``path``. A reader opening ``path`` sees either the
    previous complete content or the new one.

    Args:
        path: Final file path
        data: Content to write, str is encoded as UTF-8
        mode: Permissions applied to the published file (best effort)

    Returns:
        The published path

    Raises:
        CacheWriteError: If the temporary file cannot be created or written,
            or the rename fails. The previous content is only removed when
            the existing destination itself blocks the rename, in which case
            the rename is retried once after deleting it.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    fd, temp = _create_temp(path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        _discard(temp)
        raise CacheWriteError(path, f"write to {temp} failed ({e})") from e

    try:
        os.replace(temp, path)
    except OSError as first:
        if not _destination_blocks(first, path):
            _discard(temp)
            logger.warning(f"Could not publish {path}, keeping previous content: {first}")
            raise CacheWriteError(path, f"rename failed ({first})") from first

        logger.debug(f"Rename onto {path} failed ({first}), removing destination and retrying")
        try:
            path.unlink(missing_ok=True)
            os.replace(temp, path)
        except OSError as e:
            _discard(temp)
            logger.warning(f"Could not publish {path} after removing the previous content: {e}")
            raise CacheWriteError(path, f"rename failed ({e})") from e

    if mode is not None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            logger.debug(f"Could not chmod {path}: {e}")

    return path
