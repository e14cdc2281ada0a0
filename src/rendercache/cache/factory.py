"""Process-wide memo and store instances."""

import logging

from rendercache.cache.compiled import CompiledArtifactStore
from rendercache.cache.output import OutputCacheStore
from rendercache.config import settings
from rendercache.memo import ProcessLocalMemo

logger = logging.getLogger(__name__)

# Global instances, shared by every engine of this process. Stores are kept
# per file mode and all use the one memo.
_memo_instance: ProcessLocalMemo | None = None
_output_stores: dict[int | None, OutputCacheStore] = {}
_compiled_stores: dict[int | None, CompiledArtifactStore] = {}


def get_memo() -> ProcessLocalMemo:
    """
    Get the process-wide memo.

    Created on first access and kept for the lifetime of the process.

    Returns:
        ProcessLocalMemo instance
    """
    global _memo_instance

    if _memo_instance is None:
        _memo_instance = ProcessLocalMemo()
        logger.debug("Initialized process-local memo")

    return _memo_instance


def get_output_store(file_mode: int | None = None) -> OutputCacheStore:
    """
    Get the process-wide rendered output store.

    Args:
        file_mode: Permissions for published files, defaults to the
            global settings' ``cache_file_mode``

    Returns:
        OutputCacheStore instance for that mode
    """
    if file_mode is None:
        file_mode = settings.cache_file_mode

    if file_mode not in _output_stores:
        _output_stores[file_mode] = OutputCacheStore(get_memo(), file_mode=file_mode)

    return _output_stores[file_mode]


def get_compiled_store(file_mode: int | None = None) -> CompiledArtifactStore:
    """Get the process-wide compiled artifact store for a file mode."""
    if file_mode is None:
        file_mode = settings.cache_file_mode

    if file_mode not in _compiled_stores:
        _compiled_stores[file_mode] = CompiledArtifactStore(get_memo(), file_mode=file_mode)

    return _compiled_stores[file_mode]


def reset_stores() -> None:
    """
    Reset the global memo and stores.

    Useful for testing or when configuration changes.
    """
    global _memo_instance

    if _memo_instance is not None:
        _memo_instance.reset()
    _memo_instance = None
    _output_stores.clear()
    _compiled_stores.clear()
