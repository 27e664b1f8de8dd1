"""Project creation from packaged templates."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from smithy.domain.project import PLAIN_CONFIG_FILES, TYPED_CONFIG_FILE
from smithy.ports.prompts import Prompter
from smithy.ports.scaffolder import ProjectScaffolder
from smithy.resources import TEMPLATE_NAMES, iter_template_files

CREATE_WITH_DEFAULTS_ENV = "SMITHY_CREATE_PROJECT_WITH_DEFAULTS"
CREATE_TYPED_WITH_DEFAULTS_ENV = "SMITHY_CREATE_TYPED_PROJECT_WITH_DEFAULTS"

_RENAMES = {"gitignore": ".gitignore"}
_CONFIG_FILES = {"basic": PLAIN_CONFIG_FILES[0], "typed": TYPED_CONFIG_FILE}

log = logging.getLogger("smithy.scaffold")


def creating_with_defaults(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return CREATE_WITH_DEFAULTS_ENV in env or CREATE_TYPED_WITH_DEFAULTS_ENV in env


class TemplateScaffolder(ProjectScaffolder):
    def __init__(self, prompter: Prompter, environ: Mapping[str, str] | None = None) -> None:
        self._prompter = prompter
        self._environ = os.environ if environ is None else environ

    def create_project(self, target: Path) -> Path | None:
        template = self._select_template()
        if template is None:
            print("Project creation cancelled.")
            return None
        written = copy_template(template, target)
        print(f"Created {template} project in {target} ({len(written)} file(s)).")
        print("Run `smithy help` to list the available tasks.")
        return target / _CONFIG_FILES[template]

    def _select_template(self) -> str | None:
        if CREATE_TYPED_WITH_DEFAULTS_ENV in self._environ:
            return "typed"
        if CREATE_WITH_DEFAULTS_ENV in self._environ:
            return "basic"
        return self._prompter.choose_project_template(TEMPLATE_NAMES)


def copy_template(template: str, target: Path) -> list[Path]:
    """Copy a packaged template into ``target``, keeping files that already exist."""

    written: list[Path] = []
    for relative, resource in iter_template_files(template):
        parts = relative.split("/")
        parts[-1] = _RENAMES.get(parts[-1], parts[-1])
        destination = target.joinpath(*parts)
        if destination.exists():
            log.debug("Skipping existing file %s", destination)
            continue
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(resource.read_bytes())
        written.append(destination)
    return written


__all__ = [
    "CREATE_TYPED_WITH_DEFAULTS_ENV",
    "CREATE_WITH_DEFAULTS_ENV",
    "TemplateScaffolder",
    "copy_template",
    "creating_with_defaults",
]
