"""Error taxonomy for the smithy CLI.

Every user-facing failure is a :class:`SmithyError` built from an
:class:`ErrorDescriptor`. Descriptors carry a stable number (rendered as
``SM<number>``) so messages and documentation can reference them, and a flag
telling the error reporter whether the failure is worth reporting upstream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ERROR_PREFIX = "SM"


@dataclass(frozen=True)
class ErrorDescriptor:
    number: int
    title: str
    message: str
    should_be_reported: bool = False

    @property
    def code(self) -> str:
        return f"{ERROR_PREFIX}{self.number}"


class _General:
    NOT_INSIDE_PROJECT = ErrorDescriptor(
        1,
        "You are not inside a smithy project",
        "You are not inside a smithy project. Run `smithy init` to create one, "
        "or point to an existing config file with --config.",
    )
    NOT_INSIDE_PROJECT_ON_WINDOWS = ErrorDescriptor(
        2,
        "Project creation cannot run in this terminal",
        "You are not inside a smithy project and this terminal is not interactive. "
        "Run `smithy init` from PowerShell or WSL, or set "
        "SMITHY_CREATE_PROJECT_WITH_DEFAULTS=true.",
    )
    NOT_IN_INTERACTIVE_SHELL = ErrorDescriptor(
        3,
        "Not in an interactive shell",
        "You are trying to initialize a project but you are not in an interactive shell. "
        "Run `smithy init` from a terminal, or set SMITHY_CREATE_PROJECT_WITH_DEFAULTS=true.",
    )
    NON_LOCAL_INSTALLATION = ErrorDescriptor(
        4,
        "smithy is not installed in this project",
        "Trying to use a non-local installation of smithy, which is not supported. "
        "Install smithy into the project's virtual environment (pip install smithy) "
        "or set SMITHY_ALLOW_NON_LOCAL_INSTALLATION=true.",
    )
    PROJECT_ALREADY_CREATED = ErrorDescriptor(
        5,
        "Project already created",
        "You are trying to initialize a project inside an existing smithy project. "
        "The config file of the existing project is {config_path}.",
    )
    CONFIG_NOT_FOUND = ErrorDescriptor(
        6,
        "Config file not found",
        "Config file {config_path} not found.",
    )
    INVALID_CONFIG = ErrorDescriptor(
        7,
        "Invalid config",
        "Invalid smithy config {config_path}:\n{errors}",
    )
    TYPED_SUPPORT_UNAVAILABLE = ErrorDescriptor(
        8,
        "Typed config support unavailable",
        "Your project uses a typed config module but {tool} could not be found. "
        "Install it with `pip install {tool}`.",
    )
    TYPECHECK_FAILED = ErrorDescriptor(
        9,
        "Type-checking failed",
        "Type-checking the config module {config_path} failed:\n{output}",
    )
    INVALID_PLUGIN = ErrorDescriptor(
        10,
        "Invalid plugin",
        "Plugin {plugin} could not be loaded: {reason}",
    )
    TASK_REGISTRATION_CONFLICT = ErrorDescriptor(
        11,
        "Task registration conflict",
        "Cannot register {kind} {name}: {reason}",
    )
    ACTION_NOT_SET = ErrorDescriptor(
        12,
        "Task without action",
        "Task {task} has no action. Call set_action() when defining it.",
    )
    SECRETS_STORE_UNREADABLE = ErrorDescriptor(
        13,
        "Secrets store unusable",
        "The secrets store {store_path} cannot be used: {reason}. "
        "Restore its key file or remove both files to start over.",
    )


class _Arguments:
    INVALID_ENV_VAR_VALUE = ErrorDescriptor(
        300,
        "Invalid environment variable value",
        "Invalid value {value} for environment variable {var_name}: {reason}",
    )
    INVALID_VALUE_FOR_TYPE = ErrorDescriptor(
        301,
        "Invalid argument type",
        "Invalid value {value} for argument {name} of type {type_name}",
    )
    INVALID_INPUT_FILE = ErrorDescriptor(
        302,
        "Invalid file argument",
        "Invalid argument {name}: File {value} doesn't exist or is not a readable file.",
    )
    UNRECOGNIZED_TASK = ErrorDescriptor(
        303,
        "Unrecognized task",
        "Unrecognized task '{task}'",
    )
    UNRECOGNIZED_COMMAND_LINE_ARG = ErrorDescriptor(
        304,
        "Unrecognized command line argument",
        "Unrecognised command line argument {argument}.\n"
        "Note that task arguments must come after the task name.",
    )
    UNRECOGNIZED_PARAM_NAME = ErrorDescriptor(
        305,
        "Unrecognized param",
        "Unrecognized param {param}",
    )
    MISSING_TASK_ARGUMENT = ErrorDescriptor(
        306,
        "Missing task argument",
        "The '{param}' parameter of task '{task}' expects a value, but none was passed.",
    )
    MISSING_POSITIONAL_ARG = ErrorDescriptor(
        307,
        "Missing task positional argument",
        "Missing positional argument {param}",
    )
    UNRECOGNIZED_POSITIONAL_ARG = ErrorDescriptor(
        308,
        "Unrecognized task positional argument",
        "Unrecognized positional argument {argument}",
    )
    REPEATED_PARAM = ErrorDescriptor(
        309,
        "Repeated parameter",
        "Repeated parameter {param}",
    )
    PARAM_NAME_INVALID_CASING = ErrorDescriptor(
        310,
        "Invalid casing in parameter name",
        "Invalid param {param}. Command line params must be lowercase.",
    )
    INVALID_JSON_ARGUMENT = ErrorDescriptor(
        311,
        "Invalid JSON parameter",
        "Error parsing JSON value for argument {param}: {error}",
    )
    RUNNING_SUBTASK_FROM_CLI = ErrorDescriptor(
        312,
        "Subtask run from the command line",
        "Trying to run the {name} subtask from the CLI. Subtasks can only be run "
        "from other tasks.",
    )
    TYPECHECK_IN_NON_TYPED_PROJECT = ErrorDescriptor(
        313,
        "--typecheck used in a plain project",
        "Trying to use the --typecheck flag, but the project config is not a typed "
        "Python module.",
    )
    UNRECOGNIZED_SCOPED_TASK = ErrorDescriptor(
        314,
        "Unrecognized scoped task",
        "Unrecognized task '{task}' under scope '{scope}'",
    )
    SCOPE_WITHOUT_TASK = ErrorDescriptor(
        315,
        "Missing task name",
        "Scope '{scope}' requires a task name, e.g. `smithy {scope} <task>`. "
        "Run `smithy help {scope}` to list its tasks.",
    )
    INVALID_ARGUMENT_VALUE = ErrorDescriptor(
        316,
        "Invalid argument value",
        "Invalid argument '{argument}' with value {value!r}. {reason}",
    )


class ERRORS:
    GENERAL = _General
    ARGUMENTS = _Arguments


class SmithyError(Exception):
    """A failure with a stable, documented shape."""

    def __init__(
        self,
        descriptor: ErrorDescriptor,
        message_arguments: dict[str, Any] | None = None,
        parent: BaseException | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.message_arguments = dict(message_arguments or {})
        self.parent = parent
        body = descriptor.message.format(**self.message_arguments)
        super().__init__(f"{descriptor.code}: {body}")
        if parent is not None:
            self.__cause__ = parent

    @property
    def code(self) -> str:
        return self.descriptor.code


class SmithyPluginError(Exception):
    """Raised by plugins; the plugin name is shown in the error report."""

    def __init__(self, plugin_name: str, message: str, parent: BaseException | None = None) -> None:
        super().__init__(message)
        self.plugin_name = plugin_name
        self.parent = parent
        if parent is not None:
            self.__cause__ = parent


class InvariantViolationError(AssertionError):
    """Internal consistency check failed; always treated as a bug."""


def assert_invariant(condition: Any, message: str) -> None:
    if not condition:
        raise InvariantViolationError(f"Internal invariant was violated: {message}")


__all__ = [
    "ERRORS",
    "ErrorDescriptor",
    "InvariantViolationError",
    "SmithyError",
    "SmithyPluginError",
    "assert_invariant",
]
