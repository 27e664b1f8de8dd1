from __future__ import annotations

import io

import pytest

from smithy.cli import prompt
from smithy.cli.prompt import TerminalPrompter


@pytest.mark.parametrize(
    "typed, expected",
    [("1\n", "basic"), ("typed\n", "typed"), ("3\n", None), ("nonsense\n", None), ("", None)],
)
def test_choose_project_template(monkeypatch, capsys, typed, expected):
    monkeypatch.setattr("sys.stdin", io.StringIO(typed))
    assert TerminalPrompter().choose_project_template(("basic", "typed")) == expected
    out = capsys.readouterr().out
    assert "1. Create a basic project" in out
    assert "3. Quit" in out


@pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("n", False), ("", False), ("maybe", None)])
def test_consent_answers(monkeypatch, answer, expected):
    monkeypatch.setattr(prompt, "_read_line", lambda timeout: answer)
    assert TerminalPrompter().confirm_telemetry_consent() is expected


def test_consent_timeout(monkeypatch, capsys):
    timeouts: list[float] = []

    def read_line(timeout):
        timeouts.append(timeout)
        return None

    monkeypatch.setattr(prompt, "_read_line", read_line)
    assert TerminalPrompter(consent_timeout=0.5).confirm_telemetry_consent() is None
    assert timeouts == [0.5]


def test_editor_question_reads_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("y\n"))
    assert TerminalPrompter().confirm_editor_extension_installation() is True


def test_secret_is_read_without_echo(monkeypatch):
    monkeypatch.setattr(prompt.getpass, "getpass", lambda message: "s3cret")
    assert TerminalPrompter().ask_secret_value() == "s3cret"
