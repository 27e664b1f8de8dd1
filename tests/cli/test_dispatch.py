from __future__ import annotations

import logging
import uuid
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence

import pytest

from smithy import __version__
from smithy.adapters.secrets import SecretsManager
from smithy.cli import main as cli_main
from smithy.ports.prompts import Prompter
from smithy.domain.errors import InvariantViolationError
from smithy.settings import RuntimeSettings
from smithy.utils.global_state import has_consented_telemetry, write_telemetry_consent
from smithy.utils.telemetry import iter_events

PLUGIN_SOURCE = '''
from smithy.domain.errors import InvariantViolationError, SmithyPluginError


def _echo(arguments, env):
    print("echo:" + arguments["message"])


def _failing_tests(arguments, env):
    print("1 failing")
    env.exit_code = 3


def _boom(arguments, env):
    raise SmithyPluginError("smithy-demo", "boom")


def _crash(arguments, env):
    raise RuntimeError("kaboom")


def register(dsl, context):
    dsl.task("echo", "Prints its argument", _echo).add_positional_param("message")
    dsl.subtask("prepare", "Internal preparation", lambda arguments, env: None)
    dsl.task("compile", "Compiles the project", lambda arguments, env: None)
    dsl.task("test", "Runs the tests", _failing_tests)
    dsl.task("boom", "Fails inside a plugin", _boom)
    dsl.task("crash", "Fails unexpectedly", _crash)
    dsl.task("noaction", "Declared without an action")
    node = dsl.scope("node", "Local node tasks")
    node.task("run", "Runs a node", lambda arguments, env: print("node running"))
    node.task("test", "Tests against a node", _failing_tests)
'''


class FakePrompter(Prompter):
    def __init__(self, consent: bool | None = None, secret: str = "", template: str | None = "basic") -> None:
        self.consent = consent
        self.secret = secret
        self.template = template
        self.consent_asked = 0

    def confirm_telemetry_consent(self) -> bool | None:
        self.consent_asked += 1
        return self.consent

    def confirm_editor_extension_installation(self) -> bool | None:
        return False

    def ask_secret_value(self) -> str:
        return self.secret

    def choose_project_template(self, templates: Sequence[str]) -> str | None:
        return self.template


class RecordingFuture(Future):
    def __init__(self) -> None:
        super().__init__()
        self.awaited = False
        self.set_result(None)

    def result(self, timeout: float | None = None) -> Any:
        self.awaited = True
        return super().result(timeout)


class FakeAnalytics:
    def __init__(self) -> None:
        self.future = RecordingFuture()
        self.aborted = False
        self.hits = 0

    def send_task_hit(self):
        self.hits += 1

        def _abort() -> None:
            self.aborted = True

        return _abort, self.future


def make_project(tmp_path: Path, extra_yaml: str = "") -> Path:
    root = tmp_path / "project"
    root.mkdir()
    module = f"smithy_tasks_{uuid.uuid4().hex}"
    (root / f"{module}.py").write_text(PLUGIN_SOURCE, encoding="utf-8")
    (root / "smithy.yaml").write_text(f"plugins:\n  - {module}\n{extra_yaml}", encoding="utf-8")
    return root


def make_dispatcher(
    settings: RuntimeSettings,
    cwd: Path,
    *,
    environ: Dict[str, str] | None = None,
    prompter: Prompter | None = None,
    analytics: FakeAnalytics | None = None,
    clock: Iterable[float] | None = None,
    **overrides: Any,
) -> cli_main.Dispatcher:
    fake_analytics = analytics or FakeAnalytics()
    options: Dict[str, Any] = {
        "environ": {} if environ is None else environ,
        "cwd": cwd,
        "prompter": prompter or FakePrompter(),
        "analytics_factory": lambda settings, consent, env: fake_analytics,
        "is_installed_locally": lambda root: True,
        "is_interactive": lambda: False,
        "platform": "linux",
    }
    if clock is not None:
        options["clock"] = iter(clock).__next__
    options.update(overrides)
    return cli_main.Dispatcher(settings, **options)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    return make_project(tmp_path)


def test_version_prints_only_the_version(runtime_settings, project, capsys) -> None:
    class ExplodingLoader:
        def load(self, *args, **kwargs):  # pragma: no cover - must not be reached
            raise AssertionError("config must not be loaded for --version")

    dispatcher = make_dispatcher(runtime_settings, project, config_loader=ExplodingLoader())
    assert dispatcher.dispatch(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_main_uses_module_settings(monkeypatch, runtime_settings, capsys) -> None:
    monkeypatch.setattr(cli_main, "SETTINGS", runtime_settings)
    assert cli_main.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == runtime_settings.cli_version


def test_runs_task_with_positional_argument(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["echo", "hello"]) == 0
    assert "echo:hello" in capsys.readouterr().out
    events = [event["event"] for event in iter_events(runtime_settings)]
    assert "task.run" in events


def test_global_flags_are_accepted_after_the_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["echo", "--emoji", "hello"]) == 0
    assert "echo:hello" in capsys.readouterr().out


def test_runs_scoped_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["node", "run"]) == 0
    assert "node running" in capsys.readouterr().out


def test_unrecognized_task_mentions_the_name(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["foo"]) == 1
    err = capsys.readouterr().err
    assert "Error SM303" in err
    assert "foo" in err
    assert "--show-stack-traces" in err


def test_unrecognized_scoped_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["node", "stop"]) == 1
    err = capsys.readouterr().err
    assert "SM314" in err
    assert "'stop'" in err and "'node'" in err


def test_scope_without_task_fails(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["node"]) == 1
    assert "SM315" in capsys.readouterr().err


def test_subtask_cannot_run_from_cli(runtime_settings, project, capsys) -> None:
    analytics = FakeAnalytics()
    dispatcher = make_dispatcher(runtime_settings, project, analytics=analytics)
    assert dispatcher.dispatch(["prepare"]) == 1
    err = capsys.readouterr().err
    assert "SM312" in err
    assert "prepare" in err


def test_unknown_global_flag_before_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--nope", "echo", "x"]) == 1
    assert "SM304" in capsys.readouterr().err


def test_missing_positional_argument(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["echo"]) == 1
    assert "SM307" in capsys.readouterr().err


def test_help_flag_remaps_to_task_help(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["echo", "--help"]) == 0
    out = capsys.readouterr().out
    assert "Usage: smithy [GLOBAL OPTIONS] echo message" in out


def test_help_flag_with_scope_and_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--help", "node", "run"]) == 0
    assert "Usage: smithy [GLOBAL OPTIONS] node run" in capsys.readouterr().out


def test_help_flag_with_scope_only_prints_scope_help(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["node", "--help"]) == 0
    out = capsys.readouterr().out
    assert "Usage: smithy [GLOBAL OPTIONS] node <TASK>" in out
    assert "run" in out


def test_no_arguments_inside_project_prints_global_help(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch([]) == 0
    out = capsys.readouterr().out
    assert "AVAILABLE TASKS:" in out
    assert "echo" in out
    assert "prepare" not in out
    assert "AVAILABLE TASK SCOPES:" in out


def test_slow_task_awaits_analytics(runtime_settings, project) -> None:
    analytics = FakeAnalytics()
    dispatcher = make_dispatcher(runtime_settings, project, analytics=analytics, clock=[0.0, 0.5])
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert analytics.future.awaited
    assert not analytics.aborted


def test_fast_task_aborts_analytics(runtime_settings, project) -> None:
    analytics = FakeAnalytics()
    dispatcher = make_dispatcher(runtime_settings, project, analytics=analytics, clock=[0.0, 0.1])
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert analytics.aborted
    assert not analytics.future.awaited


def test_slow_compile_never_awaits_analytics(runtime_settings, project) -> None:
    analytics = FakeAnalytics()
    dispatcher = make_dispatcher(runtime_settings, project, analytics=analytics, clock=[0.0, 5.0])
    assert dispatcher.dispatch(["compile"]) == 0
    assert analytics.aborted
    assert not analytics.future.awaited


def test_task_exit_code_is_returned(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["test"]) == 3
    assert "1 failing" in capsys.readouterr().out


def test_failed_tests_warn_about_via_ir(monkeypatch, runtime_settings, tmp_path, capsys) -> None:
    root = make_project(tmp_path, "compilers:\n  - version: \"0.8.24\"\n    settings:\n      via_ir: true\n")
    offered: list[bool] = []
    monkeypatch.setattr(cli_main, "offer_editor_extension", lambda settings, prompter: offered.append(True))
    write_telemetry_consent(runtime_settings, False)
    dispatcher = make_dispatcher(runtime_settings, root, is_interactive=lambda: True)
    assert dispatcher.dispatch(["test"]) == 3
    assert offered == [True]
    assert "via_ir enabled" in capsys.readouterr().err


def test_advisories_follow_a_scoped_test_task(monkeypatch, runtime_settings, project) -> None:
    offered: list[bool] = []
    monkeypatch.setattr(cli_main, "offer_editor_extension", lambda settings, prompter: offered.append(True))
    write_telemetry_consent(runtime_settings, False)
    dispatcher = make_dispatcher(runtime_settings, project, is_interactive=lambda: True)
    assert dispatcher.dispatch(["node", "test"]) == 3
    assert offered == [True]


def test_advisories_skipped_on_ci(monkeypatch, runtime_settings, project) -> None:
    offered: list[bool] = []
    monkeypatch.setattr(cli_main, "offer_editor_extension", lambda settings, prompter: offered.append(True))
    dispatcher = make_dispatcher(runtime_settings, project, environ={"CI": "true"}, is_interactive=lambda: True)
    assert dispatcher.dispatch(["test"]) == 3
    assert offered == []


def test_plugin_error_names_the_plugin(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["boom"]) == 1
    err = capsys.readouterr().err
    assert "Error in plugin smithy-demo: boom" in err
    assert "Traceback" not in err


def test_unexpected_error_always_shows_traceback(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["crash"]) == 1
    err = capsys.readouterr().err
    assert "An unexpected error occurred:" in err
    assert "RuntimeError: kaboom" in err
    assert "report it here" in err
    events = [event["event"] for event in iter_events(runtime_settings)]
    assert "error.unexpected" in events


def test_show_stack_traces_prints_traceback_for_known_errors(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--show-stack-traces", "foo"]) == 1
    err = capsys.readouterr().err
    assert "Traceback" in err
    assert "For more info" not in err


def test_stack_traces_enabled_from_environment(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, environ={"SMITHY_SHOW_STACK_TRACES": "true"})
    assert dispatcher.dispatch(["foo"]) == 1
    assert "Traceback" in capsys.readouterr().err


def test_invalid_environment_value(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, environ={"SMITHY_VERBOSE": "maybe"})
    assert dispatcher.dispatch(["echo", "hi"]) == 1
    assert "SM300" in capsys.readouterr().err


def test_flamegraph_is_written(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--flamegraph", "echo", "hi"]) == 0
    out = capsys.readouterr().out
    assert "Created flamegraph file" in out
    written = list(runtime_settings.flamegraph_dir.glob("flamegraph-echo-*.html"))
    assert len(written) == 1


def test_flamegraph_keeps_the_task_error(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--flamegraph", "noaction"]) == 1
    captured = capsys.readouterr()
    assert "Error SM12" in captured.err
    assert "unexpected" not in captured.err
    assert "Created flamegraph file" in captured.out


# -- project membership and init -------------------------------------------


def test_task_outside_project_fails(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(runtime_settings, empty)
    assert dispatcher.dispatch(["foo"]) == 1
    err = capsys.readouterr().err
    assert "Error SM1:" in err
    assert not (empty / "smithy.yaml").exists()


def test_explicit_config_allows_running_outside_project(runtime_settings, project, tmp_path, capsys) -> None:
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    dispatcher = make_dispatcher(runtime_settings, elsewhere)
    assert dispatcher.dispatch(["--config", str(project / "smithy.yaml"), "echo", "hi"]) == 0
    assert "echo:hi" in capsys.readouterr().out


def test_legacy_implicit_init_creates_project_with_warning(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(
        runtime_settings, empty, environ={"SMITHY_CREATE_PROJECT_WITH_DEFAULTS": "true"}
    )
    assert dispatcher.dispatch([]) == 0
    assert (empty / "smithy.yaml").is_file()
    assert (empty / ".gitignore").is_file()
    assert "DEPRECATION WARNING" in capsys.readouterr().err


def test_explicit_init_has_no_deprecation_warning(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(
        runtime_settings, empty, environ={"SMITHY_CREATE_TYPED_PROJECT_WITH_DEFAULTS": "true"}
    )
    assert dispatcher.dispatch(["init"]) == 0
    assert (empty / "smithy_config.py").is_file()
    assert "DEPRECATION" not in capsys.readouterr().err


def test_interactive_init_uses_prompter(runtime_settings, tmp_path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(
        runtime_settings, empty, prompter=FakePrompter(template=None), is_interactive=lambda: True
    )
    assert dispatcher.dispatch(["init"]) == 0
    assert not (empty / "smithy.yaml").exists()


def test_init_requires_interactive_shell(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(runtime_settings, empty)
    assert dispatcher.dispatch(["init"]) == 1
    assert "SM3:" in capsys.readouterr().err


def test_init_on_windows_without_tty(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(runtime_settings, empty, platform="win32")
    assert dispatcher.dispatch(["init"]) == 1
    assert "SM2:" in capsys.readouterr().err


def test_init_inside_existing_project(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, environ={"SMITHY_CREATE_PROJECT_WITH_DEFAULTS": "true"})
    assert dispatcher.dispatch(["init"]) == 1
    assert "SM5:" in capsys.readouterr().err


# -- guards -----------------------------------------------------------------


def test_non_local_installation_is_rejected(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, is_installed_locally=lambda root: False)
    assert dispatcher.dispatch(["echo", "hi"]) == 1
    assert "SM4:" in capsys.readouterr().err


def test_non_local_installation_can_be_allowed(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(
        runtime_settings,
        project,
        environ={"SMITHY_ALLOW_NON_LOCAL_INSTALLATION": "true"},
        is_installed_locally=lambda root: False,
    )
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert "echo:hi" in capsys.readouterr().out


def test_typecheck_in_plain_project(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["--typecheck", "echo", "hi"]) == 1
    assert "SM313" in capsys.readouterr().err


def test_typed_project_loads_config_module(monkeypatch, runtime_settings, tmp_path, capsys) -> None:
    root = tmp_path / "typed"
    root.mkdir()
    (root / "smithy_config.py").write_text(
        "CONFIG = {'compilers': [{'version': '0.8.20'}]}\n\n"
        "def register(dsl, context):\n"
        "    dsl.task('hello', 'Greets', lambda arguments, env: print('hello from', env.config.compilers[0].version))\n",
        encoding="utf-8",
    )
    calls: list[tuple] = []
    monkeypatch.setattr(
        cli_main, "load_typed_support", lambda path, tc, typecheck=False: calls.append((path.name, typecheck))
    )
    dispatcher = make_dispatcher(runtime_settings, root)
    assert dispatcher.dispatch(["--typecheck", "hello"]) == 0
    assert calls == [("smithy_config.py", True)]
    assert "hello from 0.8.20" in capsys.readouterr().out


# -- telemetry consent ------------------------------------------------------


def test_consent_is_asked_and_persisted(runtime_settings, project) -> None:
    prompter = FakePrompter(consent=True)
    dispatcher = make_dispatcher(runtime_settings, project, prompter=prompter, is_interactive=lambda: True)
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert prompter.consent_asked == 1
    assert has_consented_telemetry(runtime_settings) is True


def test_consent_not_asked_for_help(runtime_settings, project) -> None:
    prompter = FakePrompter(consent=True)
    dispatcher = make_dispatcher(runtime_settings, project, prompter=prompter, is_interactive=lambda: True)
    assert dispatcher.dispatch(["help"]) == 0
    assert prompter.consent_asked == 0
    assert has_consented_telemetry(runtime_settings) is None


def test_consent_prompt_can_be_disabled(runtime_settings, project) -> None:
    prompter = FakePrompter(consent=True)
    dispatcher = make_dispatcher(
        runtime_settings,
        project,
        prompter=prompter,
        environ={"SMITHY_DISABLE_TELEMETRY_PROMPT": "true"},
        is_interactive=lambda: True,
    )
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert prompter.consent_asked == 0


def test_unanswered_consent_is_not_persisted(runtime_settings, project) -> None:
    prompter = FakePrompter(consent=None)
    dispatcher = make_dispatcher(runtime_settings, project, prompter=prompter, is_interactive=lambda: True)
    assert dispatcher.dispatch(["echo", "hi"]) == 0
    assert prompter.consent_asked == 1
    assert has_consented_telemetry(runtime_settings) is None


# -- secrets ----------------------------------------------------------------


def test_secrets_get_missing_key_is_advisory(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["secrets", "get", "missing-key"]) == 0
    captured = capsys.readouterr()
    assert "There is no secret stored for key 'missing-key'" in captured.err
    assert "Error" not in captured.err


def test_secrets_set_without_key_fails_before_writing(runtime_settings, project, capsys) -> None:
    prompter = FakePrompter(secret="value")
    dispatcher = make_dispatcher(runtime_settings, project, prompter=prompter)
    assert dispatcher.dispatch(["secrets", "set"]) == 1
    err = capsys.readouterr().err
    assert "SM316" in err
    assert "'key'" in err
    assert not runtime_settings.secrets_file.exists()


def test_secrets_set_rejects_empty_value(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, prompter=FakePrompter(secret=""))
    assert dispatcher.dispatch(["secrets", "set", "api_key"]) == 1
    assert "'secret'" in capsys.readouterr().err
    assert not runtime_settings.secrets_file.exists()


def test_secrets_set_then_get(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project, prompter=FakePrompter(secret="s3cret"))
    assert dispatcher.dispatch(["secrets", "set", "api_key"]) == 0
    assert dispatcher.dispatch(["secrets", "get", "api_key"]) == 0
    assert "s3cret" in capsys.readouterr().out
    manager = SecretsManager(runtime_settings.secrets_file, runtime_settings.secrets_key_file)
    assert manager.list() == ["api_key"]


def test_secrets_list_and_delete(runtime_settings, project, capsys) -> None:
    manager = SecretsManager(runtime_settings.secrets_file, runtime_settings.secrets_key_file)
    manager.set("one", "1")
    manager.set("two", "2")
    dispatcher = make_dispatcher(runtime_settings, project)

    assert dispatcher.dispatch(["secrets", "list"]) == 0
    assert set(capsys.readouterr().out.split()) == {"one", "two"}

    assert dispatcher.dispatch(["secrets", "delete", "one"]) == 0
    assert dispatcher.dispatch(["secrets", "delete", "one"]) == 0
    assert "There is no secret stored for key 'one'" in capsys.readouterr().err
    assert manager.list() == ["two"]


def test_secrets_list_empty_store(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["secrets", "list"]) == 0
    assert "There are no secrets stored." in capsys.readouterr().err


def test_secrets_unknown_action(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["secrets", "rotate", "k"]) == 1
    err = capsys.readouterr().err
    assert "'action'" in err
    assert "set, get, list and delete" in err


def test_secrets_with_lost_key_is_a_known_error(runtime_settings, project, capsys) -> None:
    manager = SecretsManager(runtime_settings.secrets_file, runtime_settings.secrets_key_file)
    manager.set("k", "v")
    runtime_settings.secrets_key_file.unlink()
    dispatcher = make_dispatcher(runtime_settings, project, prompter=FakePrompter(secret="other-value"))

    assert dispatcher.dispatch(["secrets", "set", "other"]) == 1
    assert not runtime_settings.secrets_key_file.exists()
    assert dispatcher.dispatch(["secrets", "get", "k"]) == 1
    err = capsys.readouterr().err
    assert err.count("Error SM13") == 2
    assert "unexpected" not in err
    assert manager.list() == ["k"]


def test_secrets_outside_project_fails(runtime_settings, tmp_path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    dispatcher = make_dispatcher(runtime_settings, empty)
    assert dispatcher.dispatch(["secrets", "list"]) == 1
    assert "SM1:" in capsys.readouterr().err


def test_lone_secrets_token_is_treated_as_a_task(runtime_settings, project, capsys) -> None:
    dispatcher = make_dispatcher(runtime_settings, project)
    assert dispatcher.dispatch(["secrets"]) == 1
    assert "Unrecognized task 'secrets'" in capsys.readouterr().err


def test_verbose_installs_debug_handler(runtime_settings, project, capsys) -> None:
    logger = logging.getLogger("smithy")
    dispatcher = make_dispatcher(runtime_settings, project)
    try:
        assert dispatcher.dispatch(["--verbose", "echo", "hi"]) == 0
        handlers = [handler for handler in logger.handlers if handler.name == "smithy-verbose"]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
        assert dispatcher.reporter.config.verbose is True
        assert "Finished running task echo" in capsys.readouterr().err
    finally:
        for handler in [h for h in logger.handlers if h.name == "smithy-verbose"]:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)


@pytest.mark.parametrize("attribute", ["registrations", "config", "resolved_task_name"])
def test_unresolved_invocation_state_is_an_invariant_violation(attribute) -> None:
    invocation = cli_main.Invocation(raw_args=[])
    with pytest.raises(InvariantViolationError, match="Internal invariant was violated"):
        getattr(invocation, attribute)
