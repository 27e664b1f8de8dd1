"""Detect how the running smithy was installed relative to a project."""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from importlib import metadata
from pathlib import Path

from packaging.utils import canonicalize_name

DISTRIBUTION_NAME = "smithy"


class ExecutionMode(str, Enum):
    LOCAL_INSTALLATION = "local"
    LINKED = "linked"
    GLOBAL_INSTALLATION = "global"


def _find_distribution(name: str) -> metadata.Distribution | None:
    wanted = canonicalize_name(name)
    for distribution in metadata.distributions():
        dist_name = distribution.metadata["Name"] if distribution.metadata else None
        if dist_name and canonicalize_name(dist_name) == wanted:
            return distribution
    return None


def _is_editable(distribution: metadata.Distribution) -> bool:
    raw = distribution.read_text("direct_url.json")
    if not raw:
        return False
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return False
    return bool(payload.get("dir_info", {}).get("editable"))


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _is_pipx_environment(prefix: Path) -> bool:
    pipx_home = os.environ.get("PIPX_HOME")
    homes = [Path(pipx_home)] if pipx_home else []
    homes += [Path.home() / ".local" / "pipx", Path.home() / ".local" / "share" / "pipx"]
    return any(_is_within(prefix, home) for home in homes)


def get_execution_mode(project_root: Path) -> ExecutionMode:
    distribution = _find_distribution(DISTRIBUTION_NAME)
    if distribution is not None and _is_editable(distribution):
        return ExecutionMode.LINKED

    package_dir = Path(__file__).resolve().parents[1]
    prefix = Path(sys.prefix)
    if _is_within(package_dir, project_root) or _is_within(prefix, project_root):
        return ExecutionMode.LOCAL_INSTALLATION
    if sys.prefix != sys.base_prefix and not _is_pipx_environment(prefix):
        return ExecutionMode.LOCAL_INSTALLATION
    return ExecutionMode.GLOBAL_INSTALLATION


def is_installed_locally_or_linked(project_root: Path) -> bool:
    return get_execution_mode(project_root) != ExecutionMode.GLOBAL_INSTALLATION


def is_source_checkout() -> bool:
    """True when running from a git checkout of smithy itself."""

    repo_root = Path(__file__).resolve().parents[3]
    return (repo_root / ".git").exists() and (repo_root / "src" / "smithy").is_dir()


__all__ = [
    "ExecutionMode",
    "get_execution_mode",
    "is_installed_locally_or_linked",
    "is_source_checkout",
]
