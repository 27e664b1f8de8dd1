"""Parameter types and the global (task-independent) parameter table."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from smithy.domain.errors import ERRORS, SmithyError

ENV_VAR_PREFIX = "SMITHY_"

_DECIMAL_INT = re.compile(r"^-?\d+$")
_HEX_INT = re.compile(r"^0x[0-9a-fA-F]+$")


@dataclass(frozen=True)
class ArgumentType:
    """A named coercion from a raw command line token to a typed value."""

    name: str
    parser: Callable[[str, str], Any]

    def parse(self, arg_name: str, raw: str) -> Any:
        return self.parser(arg_name, raw)


def _invalid(arg_name: str, raw: str, type_name: str) -> SmithyError:
    return SmithyError(
        ERRORS.ARGUMENTS.INVALID_VALUE_FOR_TYPE,
        {"value": raw, "name": arg_name, "type_name": type_name},
    )


def _parse_string(arg_name: str, raw: str) -> str:
    return raw


def _parse_boolean(arg_name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise _invalid(arg_name, raw, "boolean")


def _parse_int(arg_name: str, raw: str) -> int:
    if _DECIMAL_INT.match(raw):
        return int(raw, 10)
    if _HEX_INT.match(raw):
        return int(raw, 16)
    raise _invalid(arg_name, raw, "int")


def _parse_float(arg_name: str, raw: str) -> float:
    if _HEX_INT.match(raw):
        return float(int(raw, 16))
    try:
        value = float(raw)
    except ValueError:
        raise _invalid(arg_name, raw, "float") from None
    if value != value or value in (float("inf"), float("-inf")):
        raise _invalid(arg_name, raw, "float")
    return value


def _parse_input_file(arg_name: str, raw: str) -> Path:
    path = Path(raw)
    if not path.is_file() or not os.access(path, os.R_OK):
        raise SmithyError(ERRORS.ARGUMENTS.INVALID_INPUT_FILE, {"name": arg_name, "value": raw})
    return path


def _parse_json(arg_name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SmithyError(
            ERRORS.ARGUMENTS.INVALID_JSON_ARGUMENT,
            {"param": arg_name, "error": exc.msg},
            parent=exc,
        ) from exc


STRING = ArgumentType("string", _parse_string)
BOOLEAN = ArgumentType("boolean", _parse_boolean)
INT = ArgumentType("int", _parse_int)
FLOAT = ArgumentType("float", _parse_float)
INPUT_FILE = ArgumentType("inputFile", _parse_input_file)
JSON = ArgumentType("json", _parse_json)

ARGUMENT_TYPES: Dict[str, ArgumentType] = {
    t.name: t for t in (STRING, BOOLEAN, INT, FLOAT, INPUT_FILE, JSON)
}


@dataclass(frozen=True)
class ParamDefinition:
    name: str
    type: ArgumentType = STRING
    default: Any = None
    description: str = ""
    is_optional: bool = False
    is_flag: bool = False
    is_variadic: bool = False


GLOBAL_PARAM_DEFINITIONS: Dict[str, ParamDefinition] = {
    definition.name: definition
    for definition in (
        ParamDefinition(
            "show_stack_traces",
            BOOLEAN,
            default=False,
            description="Show stack traces (always enabled on CI servers).",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "version",
            BOOLEAN,
            default=False,
            description="Shows smithy's version.",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "help",
            BOOLEAN,
            default=False,
            description="Shows this message, or a task's help if its name is provided.",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "emoji",
            BOOLEAN,
            default=False,
            description="Use emoji in messages.",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "verbose",
            BOOLEAN,
            default=False,
            description="Enables smithy verbose logging.",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "config",
            INPUT_FILE,
            default=None,
            description="A smithy config file.",
            is_optional=True,
        ),
        ParamDefinition(
            "typecheck_config",
            INPUT_FILE,
            default=None,
            description="A type-checker config file used with --typecheck.",
            is_optional=True,
        ),
        ParamDefinition(
            "typecheck",
            BOOLEAN,
            default=False,
            description="Enable type-checking of the config module (typed projects only).",
            is_optional=True,
            is_flag=True,
        ),
        ParamDefinition(
            "flamegraph",
            BOOLEAN,
            default=False,
            description="Generate a flamegraph of your smithy tasks.",
            is_optional=True,
            is_flag=True,
        ),
    )
}


@dataclass(frozen=True)
class GlobalArguments:
    show_stack_traces: bool = False
    version: bool = False
    help: bool = False
    emoji: bool = False
    verbose: bool = False
    config: Path | None = None
    typecheck_config: Path | None = None
    typecheck: bool = False
    flamegraph: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GlobalArguments":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def env_var_name(param_name: str) -> str:
    return ENV_VAR_PREFIX + param_name.upper()


def get_env_global_arguments(
    definitions: Mapping[str, ParamDefinition],
    environ: Mapping[str, str],
) -> Dict[str, Any]:
    """Return every global argument, taking values from the environment when set."""

    values: Dict[str, Any] = {}
    for name, definition in definitions.items():
        var_name = env_var_name(name)
        raw = environ.get(var_name)
        if raw is None:
            values[name] = definition.default
            continue
        try:
            values[name] = definition.type.parse(name, raw)
        except SmithyError as exc:
            raise SmithyError(
                ERRORS.ARGUMENTS.INVALID_ENV_VAR_VALUE,
                {"value": raw, "var_name": var_name, "reason": str(exc)},
                parent=exc,
            ) from exc
    return values


__all__ = [
    "ARGUMENT_TYPES",
    "ArgumentType",
    "BOOLEAN",
    "FLOAT",
    "GLOBAL_PARAM_DEFINITIONS",
    "GlobalArguments",
    "INPUT_FILE",
    "INT",
    "JSON",
    "ParamDefinition",
    "STRING",
    "env_var_name",
    "get_env_global_arguments",
]
