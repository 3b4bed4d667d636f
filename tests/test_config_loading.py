"""System configuration loading and its override chain."""

from pathlib import Path

import pytest

from gpsync.core.config_loader import load_system_config
from gpsync.core.errors import GPSConfigError
from gpsync.core.system_config import SystemConfig


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_package_defaults():
    config = load_system_config(force_reload=True)

    assert isinstance(config, SystemConfig)
    assert config.checkpoint_timeout == 5.0
    assert config.read_size == 4096
    assert config.persist is True


def test_result_is_cached():
    first = load_system_config(force_reload=True)
    assert load_system_config() is first


def test_user_config_overrides_defaults():
    _write(Path.home() / ".gpsync" / "config.yaml", "checkpoint_timeout: 2.5\n")
    config = load_system_config(force_reload=True)
    assert config.checkpoint_timeout == 2.5
    assert config.read_size == 4096


def test_env_overrides_user(tmp_path, monkeypatch):
    _write(Path.home() / ".gpsync" / "config.yaml", "checkpoint_timeout: 2.5\n")
    env_file = _write(tmp_path / "env.yaml", "checkpoint_timeout: 7\npersist: false\n")
    monkeypatch.setenv("GPSYNC_CONFIG", str(env_file))

    config = load_system_config(force_reload=True)
    assert config.checkpoint_timeout == 7.0
    assert config.persist is False


def test_explicit_path_wins_and_is_not_cached(tmp_path):
    cached = load_system_config(force_reload=True)
    path = _write(tmp_path / "x.yaml", "gnuplot: /opt/gnuplot/bin/gnuplot -d\n")

    config = load_system_config(config_path=path)
    assert config.gnuplot == ["/opt/gnuplot/bin/gnuplot", "-d"]
    assert load_system_config() is cached


def test_broken_user_file_is_skipped(caplog):
    _write(Path.home() / ".gpsync" / "config.yaml", "checkpoint_timeout: [1\n")
    config = load_system_config(force_reload=True)
    assert config.checkpoint_timeout == 5.0
    assert "Failed to load config" in caplog.text


def test_missing_explicit_file(tmp_path):
    with pytest.raises(GPSConfigError, match="explicit config"):
        load_system_config(config_path=tmp_path / "missing.yaml")


def test_invalid_values(tmp_path):
    path = _write(tmp_path / "bad.yaml", "checkpoint_timeout: -1\n")
    with pytest.raises(GPSConfigError, match="checkpoint_timeout"):
        load_system_config(config_path=path)


def test_unknown_keys_rejected(tmp_path):
    path = _write(tmp_path / "bad.yaml", "gnuplot_path: /usr/bin/gnuplot\n")
    with pytest.raises(GPSConfigError):
        load_system_config(config_path=path)


def test_empty_command_rejected():
    with pytest.raises(ValueError):
        SystemConfig(gnuplot=[])
