"""The built-in ``help`` task and its text formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Mapping

from smithy.app.arguments import param_name_to_cla
from smithy.app.dsl import TasksDSL
from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import GLOBAL_PARAM_DEFINITIONS, ParamDefinition
from smithy.domain.tasks import TASK_HELP, ScopeDefinition, TaskArguments, TaskDefinition

if TYPE_CHECKING:  # pragma: no cover
    from smithy.app.environment import Environment

PROGRAM_NAME = "smithy"


def _columns(rows: Iterable[tuple[str, str]]) -> List[str]:
    rows = list(rows)
    if not rows:
        return []
    width = max(len(name) for name, _ in rows) + 2
    return [f"  {name.ljust(width)}{description}".rstrip() for name, description in rows]


def _visible(tasks: Mapping[str, TaskDefinition]) -> List[TaskDefinition]:
    return sorted((t for t in tasks.values() if not t.is_subtask), key=lambda t: t.name)


class HelpPrinter:
    def __init__(
        self,
        version: str,
        global_params: Mapping[str, ParamDefinition],
        tasks: Mapping[str, TaskDefinition],
        scopes: Mapping[str, ScopeDefinition],
    ) -> None:
        self._version = version
        self._global_params = global_params
        self._tasks = tasks
        self._scopes = scopes

    def global_help(self) -> str:
        lines = [
            f"{PROGRAM_NAME} version {self._version}",
            "",
            f"Usage: {PROGRAM_NAME} [GLOBAL OPTIONS] [SCOPE] <TASK> [TASK OPTIONS]",
            "",
            "GLOBAL OPTIONS:",
            "",
        ]
        lines += _columns(
            (self._param_usage(definition), definition.description)
            for definition in self._global_params.values()
        )
        lines += ["", "AVAILABLE TASKS:", ""]
        lines += _columns((task.name, task.description) for task in _visible(self._tasks))
        if self._scopes:
            lines += ["", "AVAILABLE TASK SCOPES:", ""]
            lines += _columns(
                (scope.name, scope.description) for scope in sorted(self._scopes.values(), key=lambda s: s.name)
            )
        lines += ["", f"To get help for a specific task run: {PROGRAM_NAME} help [SCOPE] <TASK>", ""]
        return "\n".join(lines)

    def scope_help(self, scope: ScopeDefinition) -> str:
        lines = [f"Usage: {PROGRAM_NAME} [GLOBAL OPTIONS] {scope.name} <TASK> [TASK OPTIONS]", ""]
        if scope.description:
            lines += [scope.description, ""]
        lines += ["AVAILABLE TASKS:", ""]
        lines += _columns((task.name, task.description) for task in _visible(scope.tasks))
        lines += ["", f"To get help for a specific task run: {PROGRAM_NAME} help {scope.name} <TASK>", ""]
        return "\n".join(lines)

    def task_help(self, task: TaskDefinition) -> str:
        usage = [PROGRAM_NAME, "[GLOBAL OPTIONS]", task.qualified_name]
        for definition in sorted(task.param_definitions.values(), key=lambda d: d.name):
            piece = self._param_usage(definition)
            usage.append(f"[{piece}]" if definition.is_optional else piece)
        for definition in task.positional_param_definitions:
            piece = f"...{definition.name}" if definition.is_variadic else definition.name
            usage.append(f"[{piece}]" if definition.is_optional else piece)

        lines = [f"Usage: {' '.join(usage)}", ""]
        if task.param_definitions:
            lines += ["OPTIONS:", ""]
            lines += _columns(
                (param_name_to_cla(d.name), self._describe(d))
                for d in sorted(task.param_definitions.values(), key=lambda d: d.name)
            )
            lines.append("")
        if task.positional_param_definitions:
            lines += ["POSITIONAL ARGUMENTS:", ""]
            lines += _columns((d.name, self._describe(d)) for d in task.positional_param_definitions)
            lines.append("")
        lines += [f"{task.name}: {task.description}".rstrip(), ""]
        lines += [f"For global options help run: {PROGRAM_NAME} help", ""]
        return "\n".join(lines)

    def _param_usage(self, definition: ParamDefinition) -> str:
        cla = param_name_to_cla(definition.name)
        if definition.is_flag:
            return cla
        return f"{cla} <{definition.type.name.upper()}>"

    def _describe(self, definition: ParamDefinition) -> str:
        description = definition.description
        if definition.is_optional and not definition.is_flag and definition.default not in (None, []):
            description = f"{description} (default: {definition.default})".strip()
        return description


def _help_action(arguments: TaskArguments, env: "Environment") -> None:
    from smithy import __version__

    printer = HelpPrinter(__version__, GLOBAL_PARAM_DEFINITIONS, env.tasks, env.scopes)
    scope_or_task = arguments.get("scope_or_task")
    task_name = arguments.get("task")

    if scope_or_task is None:
        print(printer.global_help())
        return

    scope = env.scopes.get(scope_or_task)
    if scope is not None:
        if task_name is None:
            print(printer.scope_help(scope))
            return
        definition = scope.tasks.get(task_name)
        if definition is None:
            raise SmithyError(
                ERRORS.ARGUMENTS.UNRECOGNIZED_SCOPED_TASK,
                {"scope": scope_or_task, "task": task_name},
            )
        print(printer.task_help(definition))
        return

    definition = env.tasks.get(scope_or_task)
    if definition is None:
        raise SmithyError(ERRORS.ARGUMENTS.UNRECOGNIZED_TASK, {"task": scope_or_task})
    print(printer.task_help(definition))


def register_help_task(dsl: TasksDSL) -> TaskDefinition:
    return (
        dsl.task(TASK_HELP, "Prints this message", _help_action)
        .add_optional_positional_param("scope_or_task", "An optional scope or task to print more info about")
        .add_optional_positional_param("task", "An optional task to print more info about")
    )


__all__ = ["HelpPrinter", "PROGRAM_NAME", "register_help_task"]
