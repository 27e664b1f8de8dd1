"""Task and scope definitions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import (
    BOOLEAN,
    GLOBAL_PARAM_DEFINITIONS,
    STRING,
    ArgumentType,
    ParamDefinition,
)

if TYPE_CHECKING:  # pragma: no cover
    from smithy.app.environment import Environment

TaskArguments = Dict[str, Any]
TaskAction = Callable[[TaskArguments, "Environment"], Any]

TASK_HELP = "help"
TASK_COMPILE = "compile"
TASK_TEST = "test"

_PARAM_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


def registration_conflict(kind: str, name: str, reason: str) -> SmithyError:
    return SmithyError(
        ERRORS.GENERAL.TASK_REGISTRATION_CONFLICT,
        {"kind": kind, "name": name, "reason": reason},
    )


@dataclass
class TaskDefinition:
    """A named unit of work with named and positional parameters."""

    name: str
    scope: Optional[str] = None
    description: str = ""
    is_subtask: bool = False
    action: Optional[TaskAction] = None
    param_definitions: Dict[str, ParamDefinition] = field(default_factory=dict)
    positional_param_definitions: List[ParamDefinition] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.scope} {self.name}" if self.scope else self.name

    def set_description(self, description: str) -> "TaskDefinition":
        self.description = description
        return self

    def set_action(self, action: TaskAction) -> "TaskDefinition":
        self.action = action
        return self

    def add_param(
        self,
        name: str,
        description: str = "",
        default: Any = None,
        type: ArgumentType = STRING,
        is_optional: bool | None = None,
    ) -> "TaskDefinition":
        self._validate_param_name(name)
        optional = default is not None if is_optional is None else is_optional
        self.param_definitions[name] = ParamDefinition(
            name, type, default=default, description=description, is_optional=optional
        )
        return self

    def add_optional_param(
        self, name: str, description: str = "", default: Any = None, type: ArgumentType = STRING
    ) -> "TaskDefinition":
        return self.add_param(name, description, default, type, is_optional=True)

    def add_flag(self, name: str, description: str = "") -> "TaskDefinition":
        self._validate_param_name(name)
        self.param_definitions[name] = ParamDefinition(
            name, BOOLEAN, default=False, description=description, is_optional=True, is_flag=True
        )
        return self

    def add_positional_param(
        self,
        name: str,
        description: str = "",
        default: Any = None,
        type: ArgumentType = STRING,
        is_optional: bool | None = None,
    ) -> "TaskDefinition":
        optional = default is not None if is_optional is None else is_optional
        self._validate_positional(name, optional)
        self.positional_param_definitions.append(
            ParamDefinition(name, type, default=default, description=description, is_optional=optional)
        )
        return self

    def add_optional_positional_param(
        self, name: str, description: str = "", default: Any = None, type: ArgumentType = STRING
    ) -> "TaskDefinition":
        return self.add_positional_param(name, description, default, type, is_optional=True)

    def add_variadic_positional_param(
        self,
        name: str,
        description: str = "",
        default: List[Any] | None = None,
        type: ArgumentType = STRING,
        is_optional: bool | None = None,
    ) -> "TaskDefinition":
        optional = default is not None if is_optional is None else is_optional
        self._validate_positional(name, optional)
        self.positional_param_definitions.append(
            ParamDefinition(
                name,
                type,
                default=list(default) if default is not None else [],
                description=description,
                is_optional=optional,
                is_variadic=True,
            )
        )
        return self

    def _validate_param_name(self, name: str) -> None:
        if not _PARAM_NAME.match(name):
            raise registration_conflict("param", name, f"param names of task {self.name} must be lowercase snake_case")
        if name in GLOBAL_PARAM_DEFINITIONS:
            raise registration_conflict("param", name, "it clashes with a global param of the same name")
        taken = set(self.param_definitions) | {p.name for p in self.positional_param_definitions}
        if name in taken:
            raise registration_conflict("param", name, f"task {self.name} already defines it")

    def _validate_positional(self, name: str, optional: bool) -> None:
        self._validate_param_name(name)
        if not self.positional_param_definitions:
            return
        last = self.positional_param_definitions[-1]
        if last.is_variadic:
            raise registration_conflict("param", name, f"it follows the variadic param {last.name}")
        if last.is_optional and not optional:
            raise registration_conflict("param", name, f"a mandatory positional param cannot follow the optional {last.name}")


@dataclass
class ScopeDefinition:
    name: str
    description: str = ""
    tasks: Dict[str, TaskDefinition] = field(default_factory=dict)


TaskDefinitions = Mapping[str, TaskDefinition]
ScopesDefinitions = Mapping[str, ScopeDefinition]


@dataclass(frozen=True)
class ResolvedCommand:
    """The final (scope, task, arguments) triple handed to the environment."""

    task_name: str
    scope_name: Optional[str] = None
    task_arguments: TaskArguments = field(default_factory=dict)


__all__ = [
    "ResolvedCommand",
    "ScopeDefinition",
    "ScopesDefinitions",
    "TASK_COMPILE",
    "TASK_HELP",
    "TASK_TEST",
    "TaskAction",
    "TaskArguments",
    "TaskDefinition",
    "TaskDefinitions",
    "registration_conflict",
]
