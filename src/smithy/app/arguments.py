"""Command line grammar: global params, scope/task names and task params.

Parsing happens in three phases because the meaning of the tail depends on
registrations that only exist after the project config has been loaded:

1. :meth:`ArgumentsParser.parse_global_arguments` recognises global params
   anywhere on the command line and keeps every other token, in order, as the
   unparsed tail (the first of which is the scope-or-task candidate).
2. :meth:`ArgumentsParser.parse_scope_and_task_names` splits the tail into an
   optional scope, a task name and the task's own tokens.
3. :meth:`ArgumentsParser.parse_task_arguments` maps those tokens onto the
   task's named and positional params.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import GlobalArguments, ParamDefinition
from smithy.domain.tasks import (
    TASK_HELP,
    ScopesDefinitions,
    TaskArguments,
    TaskDefinition,
    TaskDefinitions,
)

PARAM_PREFIX = "--"


@dataclass(frozen=True)
class GlobalArgumentsParseResult:
    global_arguments: GlobalArguments
    scope_or_task_name: Optional[str]
    all_unparsed_args: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScopeAndTaskNames:
    task_name: str
    scope_name: Optional[str] = None
    unparsed_args: List[str] = field(default_factory=list)


def param_name_to_cla(param_name: str) -> str:
    return PARAM_PREFIX + param_name.replace("_", "-")


def cla_to_param_name(cla: str) -> str:
    if cla.lower() != cla:
        raise SmithyError(ERRORS.ARGUMENTS.PARAM_NAME_INVALID_CASING, {"param": cla})
    return cla[len(PARAM_PREFIX):].replace("-", "_")


class ArgumentsParser:
    """Stateless splitter over command line tokens."""

    def parse_global_arguments(
        self,
        definitions: Mapping[str, ParamDefinition],
        env_arguments: Mapping[str, Any],
        raw_args: Sequence[str],
    ) -> GlobalArgumentsParseResult:
        parsed: Dict[str, Any] = {}
        scope_or_task_name: Optional[str] = None
        unparsed: List[str] = []

        index = 0
        while index < len(raw_args):
            arg = raw_args[index]
            if scope_or_task_name is None:
                if not self._has_param_name_format(arg):
                    scope_or_task_name = arg
                    unparsed.append(arg)
                    index += 1
                    continue
                if not self._is_param_name(arg, definitions):
                    raise SmithyError(ERRORS.ARGUMENTS.UNRECOGNIZED_COMMAND_LINE_ARG, {"argument": arg})
            elif not self._is_param_name(arg, definitions):
                unparsed.append(arg)
                index += 1
                continue
            index = self._parse_argument_at(raw_args, index, definitions, parsed, scope_or_task_name)
            index += 1

        values = dict(env_arguments)
        values.update(parsed)
        return GlobalArgumentsParseResult(
            global_arguments=GlobalArguments.from_mapping(values),
            scope_or_task_name=scope_or_task_name,
            all_unparsed_args=unparsed,
        )

    def parse_scope_and_task_names(
        self,
        all_unparsed_args: Sequence[str],
        task_definitions: TaskDefinitions,
        scopes_definitions: ScopesDefinitions,
    ) -> ScopeAndTaskNames:
        if not all_unparsed_args:
            return ScopeAndTaskNames(task_name=TASK_HELP)

        first = all_unparsed_args[0]
        if first in scopes_definitions and first not in task_definitions:
            if len(all_unparsed_args) < 2 or self._has_param_name_format(all_unparsed_args[1]):
                raise SmithyError(ERRORS.ARGUMENTS.SCOPE_WITHOUT_TASK, {"scope": first})
            return ScopeAndTaskNames(
                scope_name=first,
                task_name=all_unparsed_args[1],
                unparsed_args=list(all_unparsed_args[2:]),
            )
        return ScopeAndTaskNames(task_name=first, unparsed_args=list(all_unparsed_args[1:]))

    def parse_task_arguments(
        self,
        task_definition: TaskDefinition,
        raw_args: Sequence[str],
    ) -> TaskArguments:
        param_arguments, raw_positional = self._parse_task_param_arguments(task_definition, raw_args)
        positional_arguments = self._parse_positional_args(
            raw_positional, task_definition.positional_param_definitions
        )
        return {**param_arguments, **positional_arguments}

    def _parse_task_param_arguments(
        self,
        task_definition: TaskDefinition,
        raw_args: Sequence[str],
    ) -> tuple[Dict[str, Any], List[str]]:
        param_arguments: Dict[str, Any] = {}
        raw_positional: List[str] = []
        index = 0
        while index < len(raw_args):
            arg = raw_args[index]
            if not self._has_param_name_format(arg):
                raw_positional.append(arg)
                index += 1
                continue
            if not self._is_param_name(arg, task_definition.param_definitions):
                raise SmithyError(ERRORS.ARGUMENTS.UNRECOGNIZED_PARAM_NAME, {"param": arg})
            index = self._parse_argument_at(
                raw_args, index, task_definition.param_definitions, param_arguments, task_definition.name
            )
            index += 1

        self._add_task_default_arguments(task_definition, param_arguments)
        return param_arguments, raw_positional

    def _add_task_default_arguments(self, task_definition: TaskDefinition, arguments: Dict[str, Any]) -> None:
        for name, definition in task_definition.param_definitions.items():
            if name in arguments:
                continue
            if not definition.is_optional:
                raise SmithyError(
                    ERRORS.ARGUMENTS.MISSING_TASK_ARGUMENT,
                    {"param": param_name_to_cla(name), "task": task_definition.name},
                )
            arguments[name] = definition.default

    def _parse_positional_args(
        self,
        raw_positional: Sequence[str],
        definitions: Sequence[ParamDefinition],
    ) -> Dict[str, Any]:
        arguments: Dict[str, Any] = {}
        for index, definition in enumerate(definitions):
            if index >= len(raw_positional):
                if not definition.is_optional:
                    raise SmithyError(ERRORS.ARGUMENTS.MISSING_POSITIONAL_ARG, {"param": definition.name})
                arguments[definition.name] = definition.default
            elif definition.is_variadic:
                arguments[definition.name] = [
                    definition.type.parse(definition.name, raw) for raw in raw_positional[index:]
                ]
            else:
                arguments[definition.name] = definition.type.parse(definition.name, raw_positional[index])

        has_variadic = bool(definitions) and definitions[-1].is_variadic
        if not has_variadic and len(raw_positional) > len(definitions):
            raise SmithyError(
                ERRORS.ARGUMENTS.UNRECOGNIZED_POSITIONAL_ARG,
                {"argument": raw_positional[len(definitions)]},
            )
        return arguments

    def _parse_argument_at(
        self,
        raw_args: Sequence[str],
        index: int,
        definitions: Mapping[str, ParamDefinition],
        parsed: Dict[str, Any],
        task_name: Optional[str],
    ) -> int:
        cla = raw_args[index]
        name = cla_to_param_name(cla)
        definition = definitions[name]

        if name in parsed:
            raise SmithyError(ERRORS.ARGUMENTS.REPEATED_PARAM, {"param": cla})

        if definition.is_flag:
            parsed[name] = True
            return index

        index += 1
        if index >= len(raw_args):
            raise SmithyError(
                ERRORS.ARGUMENTS.MISSING_TASK_ARGUMENT,
                {"param": cla, "task": task_name or "smithy"},
            )
        parsed[name] = definition.type.parse(name, raw_args[index])
        return index

    def _has_param_name_format(self, arg: str) -> bool:
        return arg.startswith(PARAM_PREFIX)

    def _is_param_name(self, arg: str, definitions: Mapping[str, ParamDefinition]) -> bool:
        if not self._has_param_name_format(arg):
            return False
        return cla_to_param_name(arg) in definitions


__all__ = [
    "ArgumentsParser",
    "GlobalArgumentsParseResult",
    "PARAM_PREFIX",
    "ScopeAndTaskNames",
    "cla_to_param_name",
    "param_name_to_cla",
]
