"""Tests for settings and the default engine."""

import logging
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from rendercache.cache.factory import get_memo
from rendercache.config import LOG_FORMAT, Settings, configure_logging
from rendercache.engine import Compiler, Engine, EngineContext
from rendercache.memo import KeySpace

from conftest import CountingCompiler, FakeClock


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RENDERCACHE_DEFAULT_CACHE_DURATION", raising=False)
        config = Settings(_env_file=None)

        assert config.cache_dir == Path("data/cache")
        assert config.compile_dir == Path("data/compiled")
        assert config.default_cache_duration == 0
        assert config.version_tag == "rc1.py"
        assert config.cache_file_mode == 0o666

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test settings are read from RENDERCACHE_ variables."""
        monkeypatch.setenv("RENDERCACHE_CACHE_DIR", str(tmp_path))
        monkeypatch.setenv("RENDERCACHE_DEFAULT_CACHE_DURATION", "-1")

        config = Settings(_env_file=None)
        assert config.cache_dir == tmp_path
        assert config.default_cache_duration == -1

    def test_invalid_duration(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_cache_duration=-3)

    def test_invalid_version_tag(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, version_tag="../rc1.py")
        with pytest.raises(ValidationError):
            Settings(_env_file=None, version_tag="")

    def test_configure_logging(self) -> None:
        with patch("rendercache.config.logging.basicConfig") as basic_config:
            configure_logging("debug")

        basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)


class TestEngine:
    """Tests for the default Engine host."""

    def test_creates_directories(self, tmp_path: Path) -> None:
        config = Settings(
            _env_file=None,
            cache_dir=tmp_path / "a" / "cache",
            compile_dir=tmp_path / "a" / "compiled",
        )
        Engine(config=config)

        assert (tmp_path / "a" / "cache").is_dir()
        assert (tmp_path / "a" / "compiled").is_dir()

    def test_satisfies_protocol(self, engine: Engine) -> None:
        assert isinstance(engine, EngineContext)

    def test_compiler_double_satisfies_protocol(self) -> None:
        assert isinstance(CountingCompiler(), Compiler)

    def test_settings_applied(self, engine: Engine, cache_dir: Path, compile_dir: Path) -> None:
        assert engine.cache_dir == cache_dir
        assert engine.compile_dir == compile_dir
        assert engine.default_cache_duration == 60
        assert engine.version_tag == "rc1.py"

    def test_default_duration_validated(self, engine: Engine) -> None:
        engine.default_cache_duration = None
        assert engine.default_cache_duration is None
        with pytest.raises(ValueError):
            engine.default_cache_duration = -7

    def test_request_time(self, engine: Engine, clock: FakeClock) -> None:
        """Test the reference time is fixed until the next operation begins."""
        assert engine.request_time == clock.now

        start = clock.now
        clock.advance(100)
        assert engine.request_time == start

        assert engine.begin_operation() == clock.now
        assert engine.request_time == clock.now

    def test_compiler_factory_registry(self, engine: Engine, compiler: CountingCompiler) -> None:
        factory = engine.get_default_compiler_factory("string")
        assert factory is not None
        assert factory() is compiler
        assert engine.get_default_compiler_factory("file") is None

    def test_extensions(self, engine: Engine) -> None:
        """Test extensions are exposed as a copy."""
        engine.add_extension("upper", str.upper)
        extensions = engine.custom_extensions
        extensions["other"] = str.lower

        assert engine.custom_extensions == {"upper": str.upper}

        engine.remove_extension("upper")
        engine.remove_extension("missing")
        assert engine.custom_extensions == {}

    def test_shared_stores_by_default(self, test_settings: Settings) -> None:
        """Test engines without explicit stores share the process-wide ones."""
        first = Engine(config=test_settings)
        second = Engine(config=test_settings)

        assert first.output_store is second.output_store
        assert first.compiled_store is second.compiled_store

    def test_file_mode_from_config(self, tmp_path: Path) -> None:
        """Test engines without explicit stores publish with their configured mode."""
        config = Settings(
            _env_file=None,
            cache_dir=tmp_path / "cache",
            compile_dir=tmp_path / "compiled",
            cache_file_mode=0o600,
        )
        engine = Engine(config=config)

        path = engine.output_store.store(engine.cache_dir, "key", "HELLO")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_file_modes_share_memo(self, test_settings: Settings, tmp_path: Path) -> None:
        """Test stores built for different modes still share the process memo."""
        private = Settings(
            _env_file=None,
            cache_dir=tmp_path / "private",
            compile_dir=tmp_path / "private-compiled",
            cache_file_mode=0o600,
        )
        first = Engine(config=test_settings)
        second = Engine(config=private)

        second.output_store.store(second.cache_dir, "key", "HELLO")

        assert first.output_store is not second.output_store
        assert get_memo().is_validated(KeySpace.OUTPUT, "key")
