"""Typed-config mode: Python config modules, optionally checked with mypy."""

from __future__ import annotations

import importlib.util
import logging
import subprocess
import sys
from pathlib import Path
from typing import List

from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.project import find_user_config, is_typed_config

TYPECHECKER = "mypy"

log = logging.getLogger("smithy.typed")


def will_run_with_typed_config(config_path: Path | None, cwd: Path) -> bool:
    resolved = config_path if config_path is not None else find_user_config(cwd)
    return resolved is not None and is_typed_config(resolved)


def _typecheck_command(config_path: Path, typecheck_config: Path | None) -> List[str]:
    command = [sys.executable, "-m", TYPECHECKER, "--no-error-summary"]
    if typecheck_config is not None:
        command += ["--config-file", str(typecheck_config)]
    command.append(str(config_path))
    return command


def load_typed_support(config_path: Path, typecheck_config: Path | None = None, *, typecheck: bool = False) -> None:
    project_root = str(config_path.resolve().parent)
    if project_root not in sys.path:
        sys.path.insert(0, project_root)

    if not typecheck:
        return
    if importlib.util.find_spec(TYPECHECKER) is None:
        raise SmithyError(ERRORS.GENERAL.TYPED_SUPPORT_UNAVAILABLE, {"tool": TYPECHECKER})

    command = _typecheck_command(config_path, typecheck_config)
    log.debug("Type-checking config: %s", " ".join(command))
    result = subprocess.run(
        command,
        cwd=project_root,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    if result.returncode != 0:
        raise SmithyError(
            ERRORS.GENERAL.TYPECHECK_FAILED,
            {"config_path": str(config_path), "output": result.stdout.strip()},
        )


__all__ = ["TYPECHECKER", "load_typed_support", "will_run_with_typed_config"]
