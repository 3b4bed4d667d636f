"""Module-level plotting through the default session."""

import pytest

import gpsync
from gpsync.core.config_loader import load_system_config
from gpsync.core.errors import GPSConfigError, GPSDataError


@pytest.fixture
def default_fake(fake_config_file, monkeypatch):
    monkeypatch.setenv("GPSYNC_CONFIG", str(fake_config_file))
    load_system_config(force_reload=True)
    yield
    gpsync.close_default_session()


def test_plot_replaces_default_session(default_fake, gnuplot_log):
    first = gpsync.plot([1, 2, 3])
    assert gpsync.default_session() is first

    second = gpsync.plot([4, 5, 6], title="again")
    assert first.closed
    assert gpsync.default_session() is second
    assert 'set title "again"' in gnuplot_log.commands()


def test_plot3d(default_fake, gnuplot_log):
    s = gpsync.plot3d([[1, 2], [3, 4]])
    assert s.options.is3d
    assert any(c.startswith("splot ") for c in gnuplot_log.commands())


def test_plotlines_and_plotpoints(default_fake, gnuplot_log):
    gpsync.plotlines([1, 2, 3])
    gpsync.plotpoints([1, 2, 3])
    plots = [c for c in gnuplot_log.commands() if c.startswith("plot ")]
    assert "plot '-' notitle with lines" in plots
    assert "plot '-' notitle with points" in plots


def test_explicit_style_wins(default_fake):
    s = gpsync.plotlines([1, 2], globalwith="steps")
    assert s.options.globalwith == "steps"


def test_plot_needs_arguments(default_fake):
    with pytest.raises(GPSDataError):
        gpsync.plot()


def test_bad_plot_option(default_fake):
    with pytest.raises(GPSConfigError):
        gpsync.plot([1, 2], colour="red")


def test_close_default_session(default_fake):
    s = gpsync.plot([1, 2])
    gpsync.close_default_session()
    assert s.closed
    gpsync.close_default_session()
