"""Project discovery: locating the user config file from a working directory."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

PLAIN_CONFIG_FILES = ("smithy.yaml", "smithy.yml")
TYPED_CONFIG_FILE = "smithy_config.py"
CONFIG_FILES = PLAIN_CONFIG_FILES + (TYPED_CONFIG_FILE,)


class ProjectNotFoundError(RuntimeError):
    """Raised when no smithy config file exists in a directory or its parents."""


def _candidates(start: Path) -> Iterable[Path]:
    resolved = start.expanduser().resolve()
    return (resolved,) + tuple(resolved.parents)


def find_user_config(cwd: Path) -> Path | None:
    for directory in _candidates(cwd):
        for name in CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def is_cwd_inside_project(cwd: Path) -> bool:
    return find_user_config(cwd) is not None


def get_user_config_path(cwd: Path) -> Path:
    config = find_user_config(cwd)
    if config is None:
        raise ProjectNotFoundError(f"Path {cwd} is not inside a smithy project.")
    return config


def is_typed_config(config_path: Path) -> bool:
    return config_path.suffix == ".py"


__all__ = [
    "CONFIG_FILES",
    "PLAIN_CONFIG_FILES",
    "ProjectNotFoundError",
    "TYPED_CONFIG_FILE",
    "find_user_config",
    "get_user_config_path",
    "is_cwd_inside_project",
    "is_typed_config",
]
