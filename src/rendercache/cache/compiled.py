"""Compiled template artifacts stored as generated source files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from rendercache.cache.base import CompiledArtifact, atomic_write
from rendercache.errors import CompileError
from rendercache.memo import KeySpace, ProcessLocalMemo

if TYPE_CHECKING:
    from rendercache.engine import Compiler, EngineContext

logger = logging.getLogger(__name__)

STRING_RESOURCE = "string"


class CompiledArtifactStore:
    """
    File store for compiled templates.

    An artifact lives at ``<compile_dir>/<compile_key>.<version_tag>``. The
    version tag isolates compiler generations: a tag bump makes every older
    artifact invisible instead of loading code the new runtime cannot use.
    Old-generation files are left on disk.

    An artifact that exists is trusted; there is no age check. Templates
    whose source changes get a new compile key from their content identity.
    """

    def __init__(self, memo: ProcessLocalMemo, file_mode: int | None = 0o666) -> None:
        self._memo = memo
        self._file_mode = file_mode

    @staticmethod
    def path_for(compile_dir: Path, compile_key: str, version_tag: str) -> Path:
        """Get the artifact path for a compile key."""
        return Path(compile_dir) / f"{compile_key}.{version_tag}"

    def get_artifact(
        self,
        compile_key: str,
        compile_dir: Path,
        version_tag: str,
        source: str,
        engine: EngineContext,
        reference_time: float,
        force: bool = False,
        compiler: Compiler | None = None,
        resource_name: str = STRING_RESOURCE,
    ) -> CompiledArtifact:
        """
        Get a usable compiled artifact, compiling it if needed.

        Args:
            compile_key: Key of the template
            compile_dir: Compile directory
            version_tag: Artifact format/compiler generation tag
            source: Template source handed to the compiler
            engine: Host context passed to the compiler
            reference_time: Start of the current operation, written as the
                artifact's modification time
            force: Recompile even if a valid artifact exists
            compiler: Compiler to use, defaults to the engine's factory for
                ``resource_name``
            resource_name: Resource kind used to pick the default compiler

        Returns:
            CompiledArtifact describing the artifact path

        Raises:
            CompileError: If no compiler is available or compilation fails
            CacheWriteError: If the artifact could not be written
        """
        path = self.path_for(compile_dir, compile_key, version_tag)

        if not force:
            if self._memo.is_validated(KeySpace.COMPILED, compile_key):
                return CompiledArtifact(path)
            if path.exists():
                self._memo.mark_validated(KeySpace.COMPILED, compile_key)
                return CompiledArtifact(path)

        if compiler is None:
            compiler = self._default_compiler(engine, compile_key, resource_name)

        try:
            compiler.configure(engine.custom_extensions, engine.security_policy)
            output = compiler.compile(engine, source)
        except CompileError:
            raise
        except Exception as e:
            logger.error(f"Compilation of {compile_key} failed: {e}")
            raise CompileError(compile_key, str(e)) from e

        atomic_write(path, output, self._file_mode)
        try:
            os.utime(path, (reference_time, reference_time))
        except OSError as e:
            logger.debug(f"Could not set modification time of {path}: {e}")
        self._memo.mark_validated(KeySpace.COMPILED, compile_key)

        logger.info(f"Compiled {compile_key} to {path.name}" + (" (forced)" if force else ""))
        return CompiledArtifact(path, compiled=True, compiler=compiler)

    @staticmethod
    def _default_compiler(
        engine: EngineContext,
        compile_key: str,
        resource_name: str,
    ) -> Compiler:
        factory = engine.get_default_compiler_factory(resource_name)
        if factory is None:
            raise CompileError(
                compile_key, f"no compiler registered for {resource_name!r} resources"
            )
        return factory()
