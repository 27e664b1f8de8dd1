#!/usr/bin/env python3
"""Entry point for the smithy CLI.

:class:`Dispatcher` walks a fixed sequence of states. Each state returns a
:class:`Step`: either continue with the next state or stop with an exit code.
Expected short-circuits (``--version``, ``init``, ``secrets``) stop through a
step; failures are :class:`~smithy.domain.errors.SmithyError` instances that
are classified once, in :meth:`Dispatcher._handle_error`.
"""

from __future__ import annotations

import logging
import os
import sys
import time
import traceback
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Sequence

from smithy import __version__
from smithy.adapters.secrets import SecretsManager, SecretsStoreError
from smithy.app.analytics import AbortHandle, Analytics
from smithy.app.arguments import ArgumentsParser
from smithy.app.config_loader import YamlConfigLoader
from smithy.app.context import SmithyContext
from smithy.app.environment import Environment
from smithy.app.profiling import save_flamegraph
from smithy.app.reporter import ErrorReporter, ReporterConfig
from smithy.app.scaffold import TemplateScaffolder, creating_with_defaults
from smithy.app.typed_support import load_typed_support, will_run_with_typed_config
from smithy.cli.editor_extension import offer_editor_extension
from smithy.cli.emoji import emoji
from smithy.cli.prompt import TerminalPrompter
from smithy.domain.errors import ERRORS, InvariantViolationError, SmithyError, SmithyPluginError, assert_invariant
from smithy.domain.params import GLOBAL_PARAM_DEFINITIONS, GlobalArguments, get_env_global_arguments
from smithy.domain.project import find_user_config, is_cwd_inside_project
from smithy.domain.tasks import TASK_COMPILE, TASK_HELP, TASK_TEST, TaskArguments
from smithy.ports.config_loader import ConfigLoader, LoadedConfig
from smithy.ports.prompts import Prompter
from smithy.ports.scaffolder import ProjectScaffolder
from smithy.settings import SETTINGS, RuntimeSettings
from smithy.utils.ci import is_running_on_ci_server
from smithy.utils.execution_mode import is_installed_locally_or_linked
from smithy.utils.global_state import has_consented_telemetry, write_telemetry_consent
from smithy.utils.telemetry import record_event

INIT_COMMAND = "init"
SECRETS_COMMAND = "secrets"
SECRETS_ACTIONS = ("set", "get", "list", "delete")
ANALYTICS_SLOW_TASK_THRESHOLD = 0.3
ERROR_REPORT_FLUSH_TIMEOUT = 1.0

ALLOW_NON_LOCAL_INSTALLATION_ENV = "SMITHY_ALLOW_NON_LOCAL_INSTALLATION"
DISABLE_TELEMETRY_PROMPT_ENV = "SMITHY_DISABLE_TELEMETRY_PROMPT"

REPORT_BUG_URL = "https://github.com/smithy-cli/smithy/issues/new"
ERRORS_DOCS_URL = "https://smithy-cli.github.io/smithy/errors"

log = logging.getLogger("smithy.cli")

AnalyticsFactory = Callable[[RuntimeSettings, "bool | None", Mapping[str, str]], Analytics]
SecretsFactory = Callable[[RuntimeSettings], SecretsManager]


@dataclass(frozen=True)
class Step:
    done: bool
    exit_code: int = 0


CONTINUE = Step(done=False)


def finish(exit_code: int = 0) -> Step:
    return Step(done=True, exit_code=exit_code)


@dataclass
class Invocation:
    """Everything one run of the dispatcher has resolved so far."""

    raw_args: List[str]
    show_stack_traces: bool = False
    global_arguments: GlobalArguments = field(default_factory=GlobalArguments)
    scope_or_task_name: str | None = None
    all_unparsed_args: List[str] = field(default_factory=list)
    context: SmithyContext | None = None
    loaded: LoadedConfig | None = None
    scope_name: str | None = None
    task_name: str | None = None
    unparsed_args: List[str] = field(default_factory=list)
    task_arguments: TaskArguments = field(default_factory=dict)
    help_remapped: bool = False
    telemetry_consent: bool | None = None
    abort_analytics: AbortHandle | None = None
    analytics_hit: "Future[None] | None" = None
    environment: Environment | None = None
    exit_code: int = 0

    @property
    def registrations(self) -> SmithyContext:
        if self.context is None:
            raise InvariantViolationError("Internal invariant was violated: tasks resolved before the config was loaded")
        return self.context

    @property
    def config(self) -> LoadedConfig:
        if self.loaded is None:
            raise InvariantViolationError("Internal invariant was violated: config used before it was loaded")
        return self.loaded

    @property
    def resolved_task_name(self) -> str:
        if self.task_name is None:
            raise InvariantViolationError("Internal invariant was violated: task used before it was resolved")
        return self.task_name

    @property
    def command_label(self) -> str:
        if self.task_name is None:
            return self.scope_or_task_name or ""
        if self.scope_name is None:
            return self.task_name
        return f"{self.scope_name} {self.task_name}"


def _default_analytics(settings: RuntimeSettings, consent: bool | None, environ: Mapping[str, str]) -> Analytics:
    return Analytics.create(settings, consent, environ=environ)


def _default_secrets(settings: RuntimeSettings) -> SecretsManager:
    return SecretsManager(settings.secrets_file, settings.secrets_key_file)


def configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logger = logging.getLogger("smithy")
    logger.setLevel(logging.DEBUG)
    if not any(getattr(handler, "name", None) == "smithy-verbose" for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name("smithy-verbose")
        handler.setFormatter(logging.Formatter("%(name)s %(levelname)s %(message)s"))
        logger.addHandler(handler)


class Dispatcher:
    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        environ: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        prompter: Prompter | None = None,
        config_loader: ConfigLoader | None = None,
        scaffolder: ProjectScaffolder | None = None,
        reporter: ErrorReporter | None = None,
        analytics_factory: AnalyticsFactory | None = None,
        secrets_factory: SecretsFactory | None = None,
        is_installed_locally: Callable[[Path], bool] | None = None,
        is_interactive: Callable[[], bool] | None = None,
        clock: Callable[[], float] = time.perf_counter,
        platform: str = sys.platform,
    ) -> None:
        self._settings = settings
        self._environ = os.environ if environ is None else environ
        self._cwd = cwd or Path.cwd()
        self._prompter = prompter or TerminalPrompter()
        self._config_loader = config_loader or YamlConfigLoader(cwd=self._cwd)
        self._scaffolder = scaffolder or TemplateScaffolder(self._prompter, environ=self._environ)
        self._reporter = reporter or ErrorReporter(ReporterConfig.from_environment(self._environ))
        self._analytics_factory = analytics_factory or _default_analytics
        self._secrets_factory = secrets_factory or _default_secrets
        self._is_installed_locally = is_installed_locally or is_installed_locally_or_linked
        self._is_interactive = is_interactive or (lambda: sys.stdout.isatty())
        self._clock = clock
        self._platform = platform
        self._parser = ArgumentsParser()
        self._emoji = False

    @property
    def reporter(self) -> ErrorReporter:
        return self._reporter

    def dispatch(self, argv: Sequence[str]) -> int:
        invocation = Invocation(raw_args=list(argv))
        # Honoured before parsing so that parse errors can show a traceback too.
        invocation.show_stack_traces = "--show-stack-traces" in invocation.raw_args
        states = (
            self._parse_global_arguments,
            self._print_version,
            self._run_init,
            self._run_legacy_init,
            self._guard_project_membership,
            self._run_secrets,
            self._guard_installation,
            self._detect_language_mode,
            self._load_config,
            self._resolve_scope_and_task,
            self._ask_telemetry_consent,
            self._arm_analytics,
            self._remap_help,
            self._lookup_task,
            self._execute,
            self._post_run_advisories,
        )
        try:
            for state in states:
                step = state(invocation)
                if step.done:
                    return step.exit_code
        except Exception as error:  # noqa: BLE001 - classified and reported below
            return self._handle_error(error, invocation)
        log.debug("Finished running task %s", invocation.command_label)
        return invocation.exit_code

    # -- states -------------------------------------------------------------

    def _parse_global_arguments(self, inv: Invocation) -> Step:
        env_arguments = get_env_global_arguments(GLOBAL_PARAM_DEFINITIONS, self._environ)
        result = self._parser.parse_global_arguments(GLOBAL_PARAM_DEFINITIONS, env_arguments, inv.raw_args)
        inv.global_arguments = result.global_arguments
        inv.scope_or_task_name = result.scope_or_task_name
        inv.all_unparsed_args = list(result.all_unparsed_args)
        inv.show_stack_traces = result.global_arguments.show_stack_traces

        if inv.global_arguments.verbose:
            configure_logging(True)
            self._reporter = self._reporter.reconfigure(verbose=True)
        self._emoji = inv.global_arguments.emoji
        return CONTINUE

    def _print_version(self, inv: Invocation) -> Step:
        if not inv.global_arguments.version:
            return CONTINUE
        print(self._settings.cli_version)
        return finish(0)

    def _run_init(self, inv: Invocation) -> Step:
        if inv.scope_or_task_name != INIT_COMMAND:
            return CONTINUE
        return self._create_project(legacy=False)

    def _run_legacy_init(self, inv: Invocation) -> Step:
        if (
            inv.scope_or_task_name is not None
            or inv.global_arguments.config is not None
            or is_cwd_inside_project(self._cwd)
        ):
            return CONTINUE
        step = self._create_project(legacy=True)
        print(
            "\nDEPRECATION WARNING\n\n"
            "Initializing a project with `smithy` is deprecated and will be removed in the future.\n"
            "Please use `smithy init` instead.\n",
            file=sys.stderr,
        )
        return step

    def _guard_project_membership(self, inv: Invocation) -> Step:
        if inv.global_arguments.config is None and not is_cwd_inside_project(self._cwd):
            raise SmithyError(ERRORS.GENERAL.NOT_INSIDE_PROJECT)
        return CONTINUE

    def _run_secrets(self, inv: Invocation) -> Step:
        if inv.scope_or_task_name != SECRETS_COMMAND or len(inv.all_unparsed_args) <= 1:
            return CONTINUE
        return finish(self._handle_secrets(inv.all_unparsed_args))

    def _guard_installation(self, inv: Invocation) -> Step:
        if self._environ.get(ALLOW_NON_LOCAL_INSTALLATION_ENV) == "true":
            return CONTINUE
        if not self._is_installed_locally(self._project_root(inv)):
            raise SmithyError(ERRORS.GENERAL.NON_LOCAL_INSTALLATION)
        return CONTINUE

    def _detect_language_mode(self, inv: Invocation) -> Step:
        arguments = inv.global_arguments
        if will_run_with_typed_config(arguments.config, self._cwd):
            load_typed_support(
                self._config_path(inv),
                arguments.typecheck_config,
                typecheck=arguments.typecheck,
            )
        elif arguments.typecheck:
            raise SmithyError(ERRORS.ARGUMENTS.TYPECHECK_IN_NON_TYPED_PROJECT)
        return CONTINUE

    def _load_config(self, inv: Invocation) -> Step:
        inv.context = SmithyContext(settings=self._settings)
        inv.loaded = self._config_loader.load(
            inv.global_arguments,
            inv.context,
            show_empty_config_warning=True,
            show_compiler_warnings=inv.scope_or_task_name == TASK_COMPILE,
        )
        return CONTINUE

    def _resolve_scope_and_task(self, inv: Invocation) -> Step:
        dsl = inv.registrations.tasks_dsl
        tasks = dsl.get_task_definitions()
        scopes = dsl.get_scopes_definitions()
        tail = inv.all_unparsed_args

        # `smithy <scope> --help` asks for the scope's help instead of naming a task.
        if inv.global_arguments.help and len(tail) == 1 and tail[0] in scopes and tail[0] not in tasks:
            inv.task_name = TASK_HELP
            inv.task_arguments = {"scope_or_task": tail[0]}
            inv.help_remapped = True
            return CONTINUE

        names = self._parser.parse_scope_and_task_names(tail, tasks, scopes)
        inv.scope_name = names.scope_name
        inv.task_name = names.task_name
        inv.unparsed_args = list(names.unparsed_args)
        return CONTINUE

    def _ask_telemetry_consent(self, inv: Invocation) -> Step:
        consent = has_consented_telemetry(self._settings)
        is_help_command = inv.global_arguments.help or inv.task_name == TASK_HELP
        if (
            consent is None
            and not is_help_command
            and not is_running_on_ci_server(self._environ)
            and self._is_interactive()
            and self._environ.get(DISABLE_TELEMETRY_PROMPT_ENV) != "true"
        ):
            consent = self._prompter.confirm_telemetry_consent()
            if consent is not None:
                write_telemetry_consent(self._settings, consent)
        inv.telemetry_consent = consent
        return CONTINUE

    def _arm_analytics(self, inv: Invocation) -> Step:
        analytics = self._analytics_factory(self._settings, inv.telemetry_consent, self._environ)
        self._reporter = self._reporter.reconfigure(
            config_path=inv.config.resolved_config.paths.config_file,
            enabled=inv.telemetry_consent is True,
        )
        inv.abort_analytics, inv.analytics_hit = analytics.send_task_hit()
        return CONTINUE

    def _remap_help(self, inv: Invocation) -> Step:
        if inv.help_remapped or not inv.global_arguments.help or inv.task_name == TASK_HELP:
            return CONTINUE
        if inv.scope_name is not None:
            inv.task_arguments = {"scope_or_task": inv.scope_name, "task": inv.task_name}
        else:
            inv.task_arguments = {"scope_or_task": inv.task_name}
        inv.task_name = TASK_HELP
        inv.scope_name = None
        inv.help_remapped = True
        return CONTINUE

    def _lookup_task(self, inv: Invocation) -> Step:
        if inv.help_remapped:
            return CONTINUE
        task_name = inv.resolved_task_name
        definition = inv.registrations.tasks_dsl.get_task_definition(inv.scope_name, task_name)
        if definition is None:
            if inv.scope_name is not None:
                raise SmithyError(
                    ERRORS.ARGUMENTS.UNRECOGNIZED_SCOPED_TASK,
                    {"scope": inv.scope_name, "task": task_name},
                )
            raise SmithyError(ERRORS.ARGUMENTS.UNRECOGNIZED_TASK, {"task": task_name})
        if definition.is_subtask:
            raise SmithyError(ERRORS.ARGUMENTS.RUNNING_SUBTASK_FROM_CLI, {"name": definition.name})
        inv.task_arguments = self._parser.parse_task_arguments(definition, inv.unparsed_args)
        return CONTINUE

    def _execute(self, inv: Invocation) -> Step:
        loaded = inv.config
        registrations = inv.registrations
        task_name = inv.resolved_task_name
        env = Environment(
            loaded.resolved_config,
            inv.global_arguments,
            registrations.tasks_dsl,
            registrations.environment_extenders,
            loaded.user_config,
        )
        inv.environment = env
        try:
            started = self._clock()
            env.run((inv.scope_name, task_name), inv.task_arguments)
            elapsed = self._clock() - started

            if elapsed > ANALYTICS_SLOW_TASK_THRESHOLD and task_name != TASK_COMPILE:
                if inv.analytics_hit is not None:
                    inv.analytics_hit.result()
            elif inv.abort_analytics is not None:
                inv.abort_analytics()
        finally:
            if inv.global_arguments.flamegraph:
                assert_invariant(
                    env.entry_task_profile is not None,
                    "--flamegraph was set but entry_task_profile is not defined",
                )
                flamegraph_path = save_flamegraph(env.entry_task_profile, self._settings.flamegraph_dir)
                print("Created flamegraph file", flamegraph_path)

        inv.exit_code = env.exit_code
        record_event(
            self._settings,
            "task.run",
            {"task": inv.command_label, "exit_code": inv.exit_code},
            duration_ms=round(elapsed * 1000, 3),
        )
        return CONTINUE

    def _post_run_advisories(self, inv: Invocation) -> Step:
        if (
            inv.task_name != TASK_TEST
            or is_running_on_ci_server(self._environ)
            or not self._is_interactive()
        ):
            return CONTINUE
        offer_editor_extension(self._settings, self._prompter)
        if inv.exit_code != 0 and inv.config.resolved_config.via_ir_enabled:
            print(
                "\nYour compiler settings have via_ir enabled, which is not fully supported yet. "
                "You can still use smithy, but some features, like stack traces, might not work correctly.",
                file=sys.stderr,
            )
        return CONTINUE

    # -- helpers ------------------------------------------------------------

    def _create_project(self, *, legacy: bool) -> Step:
        existing = find_user_config(self._cwd)
        if existing is not None:
            raise SmithyError(ERRORS.GENERAL.PROJECT_ALREADY_CREATED, {"config_path": str(existing)})
        if not self._is_interactive() and not creating_with_defaults(self._environ):
            if self._platform == "win32":
                raise SmithyError(ERRORS.GENERAL.NOT_INSIDE_PROJECT_ON_WINDOWS)
            raise SmithyError(ERRORS.GENERAL.NOT_IN_INTERACTIVE_SHELL)
        config_path = self._scaffolder.create_project(self._cwd)
        record_event(
            self._settings,
            "project.create",
            {"created": config_path is not None, "legacy": legacy},
        )
        return finish(0)

    def _handle_secrets(self, tail: Sequence[str]) -> int:
        action = tail[1]
        key = tail[2] if len(tail) > 2 else None
        if action in ("set", "get", "delete") and key is None:
            raise SmithyError(
                ERRORS.ARGUMENTS.INVALID_ARGUMENT_VALUE,
                {"argument": "key", "value": key, "reason": f"The '{action}' action requires a key."},
            )

        if action not in SECRETS_ACTIONS:
            raise SmithyError(
                ERRORS.ARGUMENTS.INVALID_ARGUMENT_VALUE,
                {
                    "argument": "action",
                    "value": action,
                    "reason": "Valid actions are: set, get, list and delete.",
                },
            )

        manager = self._secrets_factory(self._settings)
        try:
            if action == "list":
                self._list_secrets(manager)
            elif key is not None:
                self._run_keyed_secrets_action(manager, action, key)
        except SecretsStoreError as exc:
            raise SmithyError(
                ERRORS.GENERAL.SECRETS_STORE_UNREADABLE,
                {"store_path": str(manager.path), "reason": str(exc)},
                parent=exc,
            ) from exc
        record_event(self._settings, "secrets", {"action": action})
        return 0

    def _list_secrets(self, manager: SecretsManager) -> None:
        keys = manager.list()
        if not keys:
            print("There are no secrets stored.", file=sys.stderr)
        for name in keys:
            print(name)

    def _run_keyed_secrets_action(self, manager: SecretsManager, action: str, key: str) -> None:
        if action == "set":
            value = self._prompter.ask_secret_value()
            if not value:
                raise SmithyError(
                    ERRORS.ARGUMENTS.INVALID_ARGUMENT_VALUE,
                    {"argument": "secret", "value": "", "reason": "The secret cannot be empty."},
                )
            manager.set(key, value)
            print(f"{emoji('🔑 ', enabled=self._emoji)}Secret stored for key '{key}'.")
        elif action == "get":
            secret = manager.get(key)
            if secret is None:
                print(f"There is no secret stored for key '{key}'.", file=sys.stderr)
            else:
                print(secret)
        elif not manager.delete(key):
            print(f"There is no secret stored for key '{key}'.", file=sys.stderr)

    def _config_path(self, inv: Invocation) -> Path:
        if inv.global_arguments.config is not None:
            return Path(inv.global_arguments.config)
        config_path = find_user_config(self._cwd)
        if config_path is None:
            raise SmithyError(ERRORS.GENERAL.NOT_INSIDE_PROJECT)
        return config_path

    def _project_root(self, inv: Invocation) -> Path:
        return self._config_path(inv).resolve().parent

    def _handle_error(self, error: Exception, inv: Invocation) -> int:
        show_stack_traces = inv.show_stack_traces or is_running_on_ci_server(self._environ)
        if isinstance(error, SmithyError):
            print(f"Error {error}", file=sys.stderr)
            event: Dict[str, Any] = {"code": error.code}
            event_name = "error.smithy"
        elif isinstance(error, SmithyPluginError):
            print(f"Error in plugin {error.plugin_name}: {error}", file=sys.stderr)
            event = {"plugin": error.plugin_name}
            event_name = "error.plugin"
        else:
            print("An unexpected error occurred:", file=sys.stderr)
            event = {"type": type(error).__name__}
            event_name = "error.unexpected"
            show_stack_traces = True
        print(file=sys.stderr)

        try:
            self._reporter.report_error(error)
        except Exception as exc:  # noqa: BLE001
            log.debug("Couldn't report error: %s", exc)
        event["command"] = inv.command_label
        record_event(self._settings, event_name, event, level="error", status="failed")

        if show_stack_traces:
            traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)
        if isinstance(error, SmithyError):
            if not show_stack_traces:
                print(
                    f"For more info go to {ERRORS_DOCS_URL}/{error.code} or run smithy with --show-stack-traces",
                    file=sys.stderr,
                )
        elif isinstance(error, SmithyPluginError):
            if not show_stack_traces:
                print("For more info run smithy with --show-stack-traces", file=sys.stderr)
        else:
            print(f"If you think this is a bug in smithy, please report it here: {REPORT_BUG_URL}", file=sys.stderr)

        self._reporter.close(ERROR_REPORT_FLUSH_TIMEOUT)
        return 1


def main(argv: list[str] | None = None) -> int:
    dispatcher = Dispatcher(SETTINGS)
    return dispatcher.dispatch(sys.argv[1:] if argv is None else argv)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
