"""Unit tests for terminal helpers."""

from __future__ import annotations

import io

from hawkeye_cli import ui
from hawkeye_cli.state import config
from hawkeye_cli.ui import C, ConnectSpinner, dbg, notice, strip_ansi


def test_notice_is_indented_and_colored(capsys):
    notice("Saved token", C.GREEN)
    out = capsys.readouterr().out
    assert out.startswith(f"  {C.GREEN}")
    assert strip_ansi(out) == "  Saved token\n"


def test_dbg_silent_without_debug(capsys):
    dbg("hidden")
    assert capsys.readouterr().err == ""


def test_dbg_truncates_with_limit(capsys):
    config.debug = True
    dbg("y" * 50, limit=10)
    assert strip_ansi(capsys.readouterr().err) == "[DEBUG] " + "y" * 10 + "...\n"


def test_spinner_label_shows_elapsed_seconds(monkeypatch):
    spinner = ConnectSpinner("Connecting...")
    spinner._started = 100.0
    monkeypatch.setattr(ui.time, "monotonic", lambda: 100.4)
    assert spinner.label(0) == f"{ui.SPINNER[0]} Connecting..."
    monkeypatch.setattr(ui.time, "monotonic", lambda: 103.2)
    assert spinner.label(1) == f"{ui.SPINNER[1]} Connecting... 3s"


def test_spinner_clears_its_line_on_exit():
    out = io.StringIO()
    with ConnectSpinner("Connecting...", out=out):
        pass
    assert out.getvalue().endswith("\r\033[2K")


def test_recap_skips_empty_answer(capsys):
    ui.print_recap("")
    assert capsys.readouterr().out == ""
