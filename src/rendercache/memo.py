"""Process-local record of cache entries already validated by this process."""

import logging
import threading
from enum import Enum

logger = logging.getLogger(__name__)


class KeySpace(str, Enum):
    """Independent key namespaces tracked by the memo."""

    OUTPUT = "output"
    COMPILED = "compiled"


class ProcessLocalMemo:
    """
    Remembers which cache keys and compile keys were found valid.

    Lets the stores skip repeated existence and freshness checks when the
    same template is handled several times in one process.

    Limitations:
    - No eviction, grows for the lifetime of the process
    - A remembered key stays valid even if another process deletes or
      rewrites the file afterwards; only the cost of re-checking is saved,
      content correctness is not claimed
    """

    def __init__(self) -> None:
        self._validated: dict[KeySpace, dict[str, bool]] = {
            space: {} for space in KeySpace
        }
        self._lock = threading.Lock()

    def is_validated(self, space: KeySpace, key: str) -> bool:
        """Check whether ``key`` was already validated in ``space``."""
        with self._lock:
            return self._validated[space].get(key, False)

    def mark_validated(self, space: KeySpace, key: str) -> None:
        """Record ``key`` as validated in ``space``."""
        with self._lock:
            self._validated[space][key] = True
        logger.debug(f"Memoized {space.value} key {key}")

    def size(self, space: KeySpace) -> int:
        """Get the number of validated keys in ``space``."""
        with self._lock:
            return len(self._validated[space])

    def reset(self) -> None:
        """Forget everything. Intended for tests and store resets."""
        with self._lock:
            for entries in self._validated.values():
                entries.clear()
