"""Terminal implementation of the interactive prompts."""

from __future__ import annotations

import getpass
import select
import sys
import time
from typing import Sequence

from smithy.ports.prompts import Prompter

CONSENT_TIMEOUT_SECONDS = 10.0
_YES = {"y", "yes"}
_NO = {"n", "no"}


def _read_line(timeout: float) -> str | None:
    deadline = time.perf_counter() + timeout
    try:
        while True:
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return None
            readable, _, _ = select.select([sys.stdin], [], [], max(remaining, 0.1))
            if readable:
                return sys.stdin.readline().strip()
    except (OSError, ValueError):  # pragma: no cover - stdin without a file descriptor
        return None


def _ask_yes_no(question: str, timeout: float | None = None) -> bool | None:
    print(f"{question} (y/N) ", end="", flush=True)
    if timeout is None:
        try:
            answer: str | None = input().strip()
        except EOFError:
            answer = None
    else:
        answer = _read_line(timeout)
        if answer is None:
            print()
    if answer is None:
        return None
    normalized = answer.lower()
    if normalized in _YES:
        return True
    if normalized in _NO or not normalized:
        return False
    return None


class TerminalPrompter(Prompter):
    def __init__(self, consent_timeout: float = CONSENT_TIMEOUT_SECONDS) -> None:
        self._consent_timeout = consent_timeout

    def confirm_telemetry_consent(self) -> bool | None:
        return _ask_yes_no(
            "Help us improve smithy with anonymous crash reports & basic usage data?",
            timeout=self._consent_timeout,
        )

    def confirm_editor_extension_installation(self) -> bool | None:
        return _ask_yes_no("Would you like to install the smithy extension for your editor?")

    def ask_secret_value(self) -> str:
        return getpass.getpass("Enter secret: ")

    def choose_project_template(self, templates: Sequence[str]) -> str | None:
        print("What do you want to do?")
        for index, name in enumerate(templates, start=1):
            print(f"  {index}. Create a {name} project")
        print(f"  {len(templates) + 1}. Quit")
        try:
            raw = input("> ").strip()
        except EOFError:
            return None
        if raw in templates:
            return raw
        if raw.isdigit() and 1 <= int(raw) <= len(templates):
            return templates[int(raw) - 1]
        return None


__all__ = ["CONSENT_TIMEOUT_SECONDS", "TerminalPrompter"]
