"""
Engine context and compiler contracts.

The stores only need a handful of things from the rendering host: where the
cache and compile directories live, the default cache duration, which
compiler to use and how to configure it, and the instant the current
operation began. ``EngineContext`` describes that surface; ``Engine`` is a
ready-made host built from ``Settings``.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from rendercache.cache.base import validate_duration
from rendercache.cache.compiled import CompiledArtifactStore
from rendercache.cache.factory import get_compiled_store, get_output_store
from rendercache.cache.output import OutputCacheStore
from rendercache.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@runtime_checkable
class Compiler(Protocol):
    """Turns template source into generated source text."""

    def configure(self, custom_extensions: Mapping[str, Any], security_policy: Any) -> None:
        """Apply the host's extension registry and security policy."""
        ...

    def compile(self, engine: EngineContext, source: str) -> str:
        """Compile ``source``; any exception counts as a compile failure."""
        ...


CompilerFactory = Callable[[], Compiler]


@runtime_checkable
class EngineContext(Protocol):
    """What the template caches need from the rendering host."""

    @property
    def cache_dir(self) -> Path: ...

    @property
    def compile_dir(self) -> Path: ...

    @property
    def default_cache_duration(self) -> int | None: ...

    @property
    def version_tag(self) -> str: ...

    @property
    def custom_extensions(self) -> Mapping[str, Any]: ...

    @property
    def security_policy(self) -> Any: ...

    @property
    def request_time(self) -> float: ...

    @property
    def output_store(self) -> OutputCacheStore: ...

    @property
    def compiled_store(self) -> CompiledArtifactStore: ...

    def clock(self) -> float: ...

    def get_default_compiler_factory(self, resource_name: str) -> CompilerFactory | None: ...


class Engine:
    """
    Default rendering host.

    Holds directories and defaults from ``Settings``, a registry of
    compiler factories per resource kind, custom extensions and the
    security policy handed to compilers, and the reference time of the
    operation in progress.
    """

    def __init__(
        self,
        config: Settings | None = None,
        clock: Callable[[], float] = time.time,
        output_store: OutputCacheStore | None = None,
        compiled_store: CompiledArtifactStore | None = None,
        security_policy: Any = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Settings to use, defaults to the global settings
            clock: Time source returning POSIX timestamps
            output_store: Output store, defaults to the process-wide one
            compiled_store: Compiled store, defaults to the process-wide one
            security_policy: Policy object passed through to compilers
        """
        self._config = config or default_settings
        self._clock = clock
        self._output_store = output_store or get_output_store(self._config.cache_file_mode)
        self._compiled_store = compiled_store or get_compiled_store(self._config.cache_file_mode)
        self._security_policy = security_policy
        self._default_cache_duration = self._config.default_cache_duration
        self._compiler_factories: dict[str, CompilerFactory] = {}
        self._custom_extensions: dict[str, Any] = {}
        self._request_time: float | None = None

        # Ensure directories exist
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.compile_dir.mkdir(parents=True, exist_ok=True)

    @property
    def cache_dir(self) -> Path:
        return Path(self._config.cache_dir)

    @property
    def compile_dir(self) -> Path:
        return Path(self._config.compile_dir)

    @property
    def version_tag(self) -> str:
        return self._config.version_tag

    @property
    def default_cache_duration(self) -> int | None:
        return self._default_cache_duration

    @default_cache_duration.setter
    def default_cache_duration(self, duration: int | None) -> None:
        self._default_cache_duration = validate_duration(duration)

    @property
    def custom_extensions(self) -> Mapping[str, Any]:
        return dict(self._custom_extensions)

    @property
    def security_policy(self) -> Any:
        return self._security_policy

    @security_policy.setter
    def security_policy(self, policy: Any) -> None:
        self._security_policy = policy

    @property
    def output_store(self) -> OutputCacheStore:
        return self._output_store

    @property
    def compiled_store(self) -> CompiledArtifactStore:
        return self._compiled_store

    def clock(self) -> float:
        """Get the current time from the engine's time source."""
        return self._clock()

    @property
    def request_time(self) -> float:
        """
        Reference instant of the current operation.

        Set by ``begin_operation``; the first access starts an operation
        implicitly.
        """
        if self._request_time is None:
            self.begin_operation()
        return self._request_time

    def begin_operation(self, at: float | None = None) -> float:
        """
        Start a new render operation.

        Args:
            at: Reference time, defaults to the clock

        Returns:
            The reference time now in effect
        """
        self._request_time = at if at is not None else self.clock()
        return self._request_time

    def register_compiler_factory(self, resource_name: str, factory: CompilerFactory) -> None:
        """Register the default compiler factory for a resource kind."""
        self._compiler_factories[resource_name] = factory
        logger.debug(f"Registered compiler factory for {resource_name!r} resources")

    def get_default_compiler_factory(self, resource_name: str) -> CompilerFactory | None:
        """Get the compiler factory for a resource kind, if any."""
        return self._compiler_factories.get(resource_name)

    def add_extension(self, name: str, extension: Any) -> None:
        """Register a custom extension passed to compilers."""
        self._custom_extensions[name] = extension

    def remove_extension(self, name: str) -> None:
        """Unregister a custom extension."""
        self._custom_extensions.pop(name, None)

    def clear_cache(self, older_than: float = 0) -> int:
        """
        Remove every cached output at least ``older_than`` seconds old.

        Returns:
            Number of entries removed
        """
        return self._output_store.clear_all(self.cache_dir, self.clock(), older_than)
