"""Port for interactive questions asked by the dispatcher."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence


class Prompter(ABC):
    @abstractmethod
    def confirm_telemetry_consent(self) -> bool | None:
        """Ask for telemetry consent; None when the question went unanswered."""

    @abstractmethod
    def confirm_editor_extension_installation(self) -> bool | None:
        """Ask whether to install the editor extension."""

    @abstractmethod
    def ask_secret_value(self) -> str:
        """Read a secret without echoing it."""

    @abstractmethod
    def choose_project_template(self, templates: Sequence[str]) -> str | None:
        """Pick one of ``templates``; None means quit."""
