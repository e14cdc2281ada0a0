"""Pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path
from typing import Any, Mapping

import pytest

from rendercache.cache import CompiledArtifactStore, OutputCacheStore, reset_stores
from rendercache.config import Settings
from rendercache.engine import Engine
from rendercache.memo import ProcessLocalMemo

T0 = 1_700_000_000.0


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingCompiler:
    """Compiler double that records its calls."""

    def __init__(self, output: str = "<?py compiled ?>", error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.compile_calls = 0
        self.configured_with: tuple[Mapping[str, Any], Any] | None = None

    def configure(self, custom_extensions: Mapping[str, Any], security_policy: Any) -> None:
        self.configured_with = (custom_extensions, security_policy)

    def compile(self, engine: Any, source: str) -> str:
        self.compile_calls += 1
        if self.error is not None:
            raise self.error
        return f"{self.output}\n{source}"


@pytest.fixture(autouse=True)
def _fresh_stores() -> Generator[None, None, None]:
    """Isolate the process-wide memo between tests."""
    reset_stores()
    yield
    reset_stores()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def compile_dir(tmp_path: Path) -> Path:
    path = tmp_path / "compiled"
    path.mkdir()
    return path


@pytest.fixture
def memo() -> ProcessLocalMemo:
    return ProcessLocalMemo()


@pytest.fixture
def output_store(memo: ProcessLocalMemo) -> OutputCacheStore:
    return OutputCacheStore(memo)


@pytest.fixture
def compiled_store(memo: ProcessLocalMemo) -> CompiledArtifactStore:
    return CompiledArtifactStore(memo)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def compiler() -> CountingCompiler:
    return CountingCompiler()


@pytest.fixture
def test_settings(cache_dir: Path, compile_dir: Path) -> Settings:
    return Settings(
        cache_dir=cache_dir,
        compile_dir=compile_dir,
        default_cache_duration=60,
        version_tag="rc1.py",
    )


@pytest.fixture
def engine(
    test_settings: Settings,
    clock: FakeClock,
    output_store: OutputCacheStore,
    compiled_store: CompiledArtifactStore,
    compiler: CountingCompiler,
) -> Engine:
    """Engine with isolated stores, a fake clock and a registered compiler."""
    engine = Engine(
        config=test_settings,
        clock=clock,
        output_store=output_store,
        compiled_store=compiled_store,
    )
    engine.register_compiler_factory("string", lambda: compiler)
    return engine
