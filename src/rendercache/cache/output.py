"""Rendered output cache backed by files in a cache directory."""

import logging
from pathlib import Path

from rendercache.cache.base import (
    CACHE_DISABLED,
    CACHE_INFINITE,
    CacheLookup,
    CacheStatus,
    atomic_write,
    resolve_duration,
)
from rendercache.memo import KeySpace, ProcessLocalMemo

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".html"


class OutputCacheStore:
    """
    File cache for rendered template output.

    Each entry is ``<cache_dir>/<cache_key>.html`` holding the raw rendered
    bytes. Freshness is judged from the file modification time against a
    caller supplied ``now``. Entries are published atomically so that
    concurrent writers from several processes never corrupt a file.
    """

    def __init__(
        self,
        memo: ProcessLocalMemo,
        file_mode: int | None = 0o666,
    ) -> None:
        """
        Initialize the output store.

        Args:
            memo: Memo shared with the other stores of this process
            file_mode: Permissions for published cache files, None to keep
                the temporary file's permissions
        """
        self._memo = memo
        self._file_mode = file_mode

    @staticmethod
    def path_for(cache_dir: Path, cache_key: str) -> Path:
        """Get the cache file path for a cache key."""
        return Path(cache_dir) / f"{cache_key}{OUTPUT_SUFFIX}"

    def check(
        self,
        cache_key: str,
        duration_override: int | None,
        default_duration: int | None,
        cache_dir: Path,
        now: float,
        force: bool = False,
    ) -> CacheLookup:
        """
        Look up rendered output for a cache key.

        Args:
            cache_key: Key of the entry
            duration_override: Template duration, None to inherit
            default_duration: Host default duration
            cache_dir: Cache directory
            now: Current time as a POSIX timestamp
            force: Ignore files on disk unless already memoized, used while
                the template has a pending forced compilation

        Returns:
            CacheLookup with status NOT_CACHEABLE, MISSING or CACHED
        """
        duration = resolve_duration(duration_override, default_duration)
        if duration == CACHE_DISABLED:
            return CacheLookup(CacheStatus.NOT_CACHEABLE)

        path = self.path_for(cache_dir, cache_key)

        if self._memo.is_validated(KeySpace.OUTPUT, cache_key) and path.exists():
            return CacheLookup(CacheStatus.CACHED, path)

        if not force:
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                mtime = None

            if mtime is not None and (duration == CACHE_INFINITE or mtime > now - duration):
                self._memo.mark_validated(KeySpace.OUTPUT, cache_key)
                logger.debug(f"Output cache hit for {cache_key}")
                return CacheLookup(CacheStatus.CACHED, path)

        logger.debug(f"Output cache miss for {cache_key}")
        return CacheLookup(CacheStatus.MISSING)

    def store(self, cache_dir: Path, cache_key: str, output: str | bytes) -> Path:
        """
        Publish rendered output for a cache key.

        Args:
            cache_dir: Cache directory
            cache_key: Key of the entry
            output: Rendered output

        Returns:
            Path of the published cache file

        Raises:
            CacheWriteError: If the output could not be published
        """
        path = atomic_write(self.path_for(cache_dir, cache_key), output, self._file_mode)
        self._memo.mark_validated(KeySpace.OUTPUT, cache_key)
        logger.debug(f"Cached output for {cache_key}")
        return path

    def clear(
        self,
        cache_dir: Path,
        cache_key: str,
        now: float,
        older_than: float = 0,
    ) -> bool:
        """
        Remove a cache entry if it is old enough.

        Age is measured from the file modification time, like freshness.

        Args:
            cache_dir: Cache directory
            cache_key: Key of the entry
            now: Current time as a POSIX timestamp
            older_than: Minimum age in seconds, 0 always clears

        Returns:
            True if the entry is absent or was deleted, False if it remains
        """
        path = self.path_for(cache_dir, cache_key)
        try:
            age = now - path.stat().st_mtime
        except FileNotFoundError:
            return True

        if age < older_than:
            return False

        path.unlink(missing_ok=True)
        logger.info(f"Cleared cached output for {cache_key}")
        return True

    def clear_all(self, cache_dir: Path, now: float, older_than: float = 0) -> int:
        """
        Remove every cache entry at least ``older_than`` seconds old.

        Returns:
            Number of entries removed
        """
        count = 0
        for path in Path(cache_dir).glob(f"*{OUTPUT_SUFFIX}"):
            if self.clear(cache_dir, path.name[: -len(OUTPUT_SUFFIX)], now, older_than):
                count += 1

        if count:
            logger.info(f"Cleared {count} cached outputs from {cache_dir}")
        return count
