from __future__ import annotations

import uuid
from pathlib import Path

import pytest

from smithy.app.config_loader import YamlConfigLoader, iter_config_errors, resolve_config
from smithy.app.context import SmithyContext
from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import GlobalArguments
from smithy.plugins import loader as plugin_loader


@pytest.fixture(autouse=True)
def no_entry_point_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(plugin_loader, "iter_entry_points", lambda: [])


def _load(project: Path, settings, **kwargs):
    context = SmithyContext(settings=settings)
    loaded = YamlConfigLoader(cwd=project).load(GlobalArguments(), context, **kwargs)
    return loaded, context


def test_defaults_are_resolved(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy.yaml").write_text("", encoding="utf-8")
    loaded, context = _load(tmp_path, runtime_settings)
    config = loaded.resolved_config
    assert config.paths.root == tmp_path.resolve()
    assert config.paths.sources == tmp_path.resolve() / "contracts"
    assert config.paths.artifacts == tmp_path.resolve() / "artifacts"
    assert [c.version for c in config.compilers] == ["0.8.24"]
    assert loaded.user_config == {}
    assert context.tasks_dsl.get_task_definition(None, "help") is not None


def test_empty_config_warning(tmp_path: Path, runtime_settings, capsys) -> None:
    (tmp_path / "smithy.yaml").write_text("", encoding="utf-8")
    _load(tmp_path, runtime_settings, show_empty_config_warning=True)
    assert "empty config file" in capsys.readouterr().err


def test_config_is_found_from_subdirectory(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy.yml").write_text("paths:\n  sources: src\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    loaded, _ = _load(nested, runtime_settings)
    assert loaded.resolved_config.paths.sources == tmp_path.resolve() / "src"


def test_invalid_config_lists_errors(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy.yaml").write_text("paths:\n  unknown: x\ncompilers:\n  - settings: {}\n", encoding="utf-8")
    with pytest.raises(SmithyError) as excinfo:
        _load(tmp_path, runtime_settings)
    assert excinfo.value.descriptor is ERRORS.GENERAL.INVALID_CONFIG
    message = str(excinfo.value)
    assert "paths" in message
    assert "version" in message


def test_invalid_yaml(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy.yaml").write_text("paths: [unclosed\n", encoding="utf-8")
    with pytest.raises(SmithyError) as excinfo:
        _load(tmp_path, runtime_settings)
    assert excinfo.value.descriptor is ERRORS.GENERAL.INVALID_CONFIG


def test_explicit_config_must_exist(tmp_path: Path, runtime_settings) -> None:
    context = SmithyContext(settings=runtime_settings)
    arguments = GlobalArguments(config=tmp_path / "missing.yaml")
    with pytest.raises(SmithyError) as excinfo:
        YamlConfigLoader(cwd=tmp_path).load(arguments, context)
    assert excinfo.value.descriptor is ERRORS.GENERAL.CONFIG_NOT_FOUND


def test_plugins_from_config_register_tasks(tmp_path: Path, runtime_settings) -> None:
    module = f"smithy_plugin_{uuid.uuid4().hex}"
    (tmp_path / f"{module}.py").write_text(
        "def register(dsl, context):\n"
        "    dsl.task('greet', 'Greets', lambda arguments, env: None)\n"
        "    context.extend_environment(lambda env: setattr(env, 'greeting', 'hi'))\n",
        encoding="utf-8",
    )
    (tmp_path / "smithy.yaml").write_text(f"plugins:\n  - {module}\n", encoding="utf-8")
    loaded, context = _load(tmp_path, runtime_settings)
    assert loaded.resolved_config.plugins == [module]
    assert context.tasks_dsl.get_task_definition(None, "greet") is not None
    assert len(context.environment_extenders) == 1


def test_missing_plugin_module(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy.yaml").write_text("plugins:\n  - smithy_missing_plugin_module\n", encoding="utf-8")
    with pytest.raises(SmithyError) as excinfo:
        _load(tmp_path, runtime_settings)
    assert excinfo.value.descriptor is ERRORS.GENERAL.INVALID_PLUGIN


def test_typed_config_module(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy_config.py").write_text(
        "CONFIG = {'compilers': [{'version': '0.8.19', 'settings': {'via_ir': True}}]}\n\n"
        "def register(dsl, context):\n"
        "    dsl.scope('node', 'Node').task('run', 'Runs', lambda arguments, env: None)\n",
        encoding="utf-8",
    )
    loaded, context = _load(tmp_path, runtime_settings)
    assert loaded.resolved_config.via_ir_enabled is True
    assert context.tasks_dsl.get_task_definition("node", "run") is not None


def test_typed_config_must_be_a_mapping(tmp_path: Path, runtime_settings) -> None:
    (tmp_path / "smithy_config.py").write_text("CONFIG = ['not', 'a', 'mapping']\n", encoding="utf-8")
    with pytest.raises(SmithyError) as excinfo:
        _load(tmp_path, runtime_settings)
    assert excinfo.value.descriptor is ERRORS.GENERAL.INVALID_CONFIG


def test_compiler_warnings(tmp_path: Path, runtime_settings, capsys) -> None:
    (tmp_path / "smithy.yaml").write_text(
        "compilers:\n  - version: '0.8.24'\n    settings:\n      via_ir: true\n", encoding="utf-8"
    )
    _load(tmp_path, runtime_settings, show_compiler_warnings=True)
    assert "via_ir enabled" in capsys.readouterr().err


def test_resolve_config_keeps_unknown_sections(tmp_path: Path) -> None:
    resolved = resolve_config(tmp_path / "smithy.yaml", {"networks": {"dev": {}}, "paths": {"root": "sub"}})
    assert resolved.extra == {"networks": {"dev": {}}}
    assert resolved.paths.root == (tmp_path / "sub").resolve()


def test_iter_config_errors_accepts_valid_config() -> None:
    assert iter_config_errors({"plugins": ["a.b"], "compilers": [{"version": "0.8.0"}]}) == []
    assert iter_config_errors({"plugins": ["not a module"]}) != []
