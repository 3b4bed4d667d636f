"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import pytest

# Add package paths to sys.path
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "gpsync"))

from gpsync.core.config_loader import load_system_config  # noqa: E402
from gpsync.core.system_config import SystemConfig  # noqa: E402
from gpsync.process import detect_features  # noqa: E402

FAKE_GNUPLOT = Path(__file__).parent / "fakes" / "fake_gnuplot.py"


@pytest.fixture(autouse=True)
def isolate_config(tmp_path, monkeypatch):
    """Keep the user's own gpsync configuration out of the tests."""
    monkeypatch.setenv("GPSYNC_CONFIG", "")
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    load_system_config(force_reload=True)
    yield
    load_system_config(force_reload=True)


@pytest.fixture
def gnuplot_log(tmp_path, monkeypatch):
    """Path of the fake gnuplot's transcript; returns parsed entries when called."""
    path = tmp_path / "gnuplot.log"
    monkeypatch.setenv("FAKE_GNUPLOT_LOG", str(path))

    class Transcript:
        def __init__(self, path):
            self.path = path

        def entries(self):
            if not self.path.exists():
                return []
            out = []
            for line in self.path.read_text(encoding="utf-8").splitlines():
                kind, _, rest = line.partition(" ")
                out.append((kind, rest))
            return out

        def commands(self):
            return [text for kind, text in self.entries() if kind == "CMD"]

        def data(self):
            return [json.loads(text) for kind, text in self.entries() if kind == "DATA"]

    return Transcript(path)


@pytest.fixture
def fake_config(gnuplot_log):
    """System configuration that launches the fake gnuplot."""
    config = SystemConfig(
        gnuplot=[sys.executable, str(FAKE_GNUPLOT)],
        checkpoint_timeout=5.0,
        exit_timeout=10.0,
    )
    # capability probes run the fake too; keep them out of the transcript
    with pytest.MonkeyPatch.context() as mp:
        mp.delenv("FAKE_GNUPLOT_LOG")
        detect_features(tuple(config.gnuplot))
    return config


@pytest.fixture
def hang_config(fake_config):
    """Like ``fake_config`` but gives up on gnuplot quickly."""
    return fake_config.model_copy(update={"checkpoint_timeout": 1.0})


@pytest.fixture
def fake_config_file(tmp_path, fake_config):
    """``fake_config`` written to a YAML file, for the CLI."""
    import yaml

    path = tmp_path / "gpsync.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(fake_config.model_dump(), f)
    return path
