"""Template held in a string, with its output and compilation caches."""

import logging
import threading
from enum import Enum
from pathlib import Path

from rendercache.cache.base import CacheLookup, validate_duration
from rendercache.cache.compiled import STRING_RESOURCE
from rendercache.engine import Compiler, EngineContext
from rendercache.errors import CacheWriteError
from rendercache.identity import content_identity, resolve_cache_key, resolve_compile_key

logger = logging.getLogger(__name__)


class CompilationForce(str, Enum):
    """Whether the next compiled artifact lookup must recompile."""

    NORMAL = "normal"
    FORCE_ONCE = "force_once"


class StringTemplate:
    """
    A template whose source is an in-memory string.

    The template owns its compile key, cache key, cache duration override
    and one-shot forced compilation flag. The caches themselves belong to
    the engine's stores.
    """

    def __init__(
        self,
        source: str,
        cache_time: int | None = None,
        cache_id: str | None = None,
        compile_id: str | None = None,
    ) -> None:
        """
        Create a template from a string.

        Args:
            source: Template source
            cache_time: Output cache duration in seconds, -1 for infinite,
                0 to disable, None to use the engine's default
            cache_id: Context id making this output unique (a sanitized
                request path for example); prefixed with the compile id
            compile_id: Compiled artifact id, defaults to the content identity
        """
        self._source = source
        self._name = content_identity(source)
        self._cache_time = validate_duration(cache_time)
        self._compile_id = resolve_compile_key(compile_id, self._name)
        self._cache_id = resolve_cache_key(self._compile_id, cache_id)
        self._compilation = CompilationForce.NORMAL
        self._compilation_lock = threading.Lock()
        self._compiler: Compiler | None = None

    def __repr__(self) -> str:
        return f"StringTemplate({self._name}, compile_id={self._compile_id!r})"

    @property
    def source(self) -> str:
        return self._source

    @property
    def name(self) -> str:
        """Content identity of the template."""
        return self._name

    @property
    def uid(self) -> str:
        """Value that changes whenever the template content changes."""
        return self._name

    @property
    def compile_id(self) -> str:
        return self._compile_id

    @property
    def cache_id(self) -> str:
        return self._cache_id

    @property
    def cache_time(self) -> int | None:
        return self._cache_time

    @property
    def resource_name(self) -> str:
        return STRING_RESOURCE

    @property
    def resource_identifier(self) -> None:
        """Strings have no resource identifier."""
        return None

    @property
    def compiler(self) -> Compiler | None:
        """Compiler that built this template during its last compilation."""
        return self._compiler

    @property
    def compilation_forced(self) -> bool:
        return self._compilation is CompilationForce.FORCE_ONCE

    def force_compilation(self) -> None:
        """
        Recompile on the next compiled template lookup, once.

        Meant for development; needing it in production usually means
        artifacts are being shared across incompatible sources.
        """
        with self._compilation_lock:
            self._compilation = CompilationForce.FORCE_ONCE

    def _consume_force(self) -> bool:
        with self._compilation_lock:
            forced = self._compilation is CompilationForce.FORCE_ONCE
            self._compilation = CompilationForce.NORMAL
        return forced

    def get_cached_template(self, engine: EngineContext) -> CacheLookup:
        """
        Look up this template's cached output.

        Args:
            engine: Engine requesting the output

        Returns:
            CacheLookup telling whether the output is cached, cacheable or not
        """
        return engine.output_store.check(
            self._cache_id,
            self._cache_time,
            engine.default_cache_duration,
            engine.cache_dir,
            now=engine.request_time,
            force=self.compilation_forced,
        )

    def cache(self, engine: EngineContext, output: str | bytes) -> Path | None:
        """
        Store rendered output in the cache.

        Caching is best effort: a failure is logged and rendering goes on.

        Returns:
            Path of the cache file, or None if it could not be written
        """
        try:
            return engine.output_store.store(engine.cache_dir, self._cache_id, output)
        except CacheWriteError as e:
            logger.warning(f"Output of {self._cache_id} not cached: {e}")
            return None

    def clear_cache(self, engine: EngineContext, older_than: float = 0) -> bool:
        """
        Clear the cached output if it is at least ``older_than`` seconds old.

        Returns:
            True if the cache was absent or deleted, False if it remains
        """
        return engine.output_store.clear(
            engine.cache_dir, self._cache_id, engine.clock(), older_than
        )

    def get_compiled_template(
        self,
        engine: EngineContext,
        compiler: Compiler | None = None,
    ) -> Path:
        """
        Get the compiled template file, compiling it if needed.

        A pending forced compilation is consumed by this call even if it
        fails.

        Args:
            engine: Engine requesting the template
            compiler: Compiler to use, defaults to the engine's string compiler

        Returns:
            Path of the compiled file

        Raises:
            CompileError: If compilation fails
        """
        artifact = engine.compiled_store.get_artifact(
            self._compile_id,
            engine.compile_dir,
            engine.version_tag,
            self._source,
            engine,
            reference_time=engine.request_time,
            force=self._consume_force(),
            compiler=compiler,
            resource_name=self.resource_name,
        )
        if artifact.compiled:
            self._compiler = artifact.compiler
        return artifact.path

    @classmethod
    def template_factory(
        cls,
        engine: EngineContext,
        resource_id: str,
        cache_time: int | None = None,
        cache_id: str | None = None,
        compile_id: str | None = None,
    ) -> None:
        """String templates cannot include other templates."""
        return None
