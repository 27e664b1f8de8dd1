"""Port for the interactive project scaffolder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ProjectScaffolder(ABC):
    @abstractmethod
    def create_project(self, target: Path) -> Path | None:
        """Create a project in ``target``; return the config path or None if the user quit."""
