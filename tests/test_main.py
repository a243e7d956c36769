# tests/test_main.py

from __future__ import annotations

import logging
import signal

import pytest

from ivy_planner.cli import main as cli_main


@pytest.fixture()
def patched_main(monkeypatch, settings, state):
    """main() wired to the test AppState, without touching real logging or signals."""
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: settings.data_dir / "ivy.log")
    monkeypatch.setattr(cli_main, "create_initial_state", lambda *, settings=None: state)
    monkeypatch.setattr(cli_main.signal, "signal", lambda *args: None)
    return cli_main.main


def test_sigterm_unwinds_like_ctrl_c() -> None:
    with pytest.raises(KeyboardInterrupt):
        cli_main._handle_sigterm(signal.SIGTERM, None)


def test_console_disabled_runs_one_daily_check(patched_main, state, store, clock, caplog) -> None:
    state.orchestrator.add_task("Write report")
    caplog.set_level(logging.INFO, logger="ivy_planner.cli.main")

    patched_main()

    saved = store.find_day(clock.today())
    assert saved is not None
    assert saved.statistics is not None
    assert "Queue: 1/6 active" in caplog.text
    assert "Daily check done" in caplog.text


def test_interrupted_console_shuts_down_cleanly(patched_main, monkeypatch, settings, caplog) -> None:
    settings.console_enabled = True
    ran: list[bool] = []

    def interrupted_loop(_state) -> None:
        ran.append(True)
        raise KeyboardInterrupt

    monkeypatch.setattr(cli_main, "run_console_loop", interrupted_loop)
    caplog.set_level(logging.INFO, logger="ivy_planner.cli.main")

    patched_main()

    assert ran == [True]
    assert "Interrupted." in caplog.text
    assert "Bye." in caplog.text
