"""Default configuration loader.

Plain projects are described by ``smithy.yaml`` and validated against the
packaged JSON Schema. Typed projects use ``smithy_config.py``, a module that
may expose a ``CONFIG`` mapping and a ``register(dsl, context)`` hook.
"""

from __future__ import annotations

import importlib.util
import json
import logging
import sys
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Mapping

import yaml
from jsonschema import Draft202012Validator

from smithy.app.context import SmithyContext
from smithy.app.help import register_help_task
from smithy.domain.config import CompilerConfig, ProjectPaths, ResolvedConfig
from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import GlobalArguments
from smithy.domain.project import get_user_config_path, is_typed_config
from smithy.plugins.loader import load_entry_point_plugins, load_module_plugins
from smithy.ports.config_loader import ConfigLoader, LoadedConfig

DEFAULT_COMPILER_VERSION = "0.8.24"
TYPED_CONFIG_MODULE = "smithy_user_config"

log = logging.getLogger("smithy.config")


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    resource = resources.files("smithy.resources") / "config.schema.json"
    with resource.open("r", encoding="utf-8") as handle:
        return Draft202012Validator(json.load(handle))


def iter_config_errors(user_config: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []
    for error in _validator().iter_errors(user_config):
        path = ".".join(str(item) for item in error.absolute_path) or "<root>"
        errors.append(f"  * {path}: {error.message}")
    return errors


def resolve_config(config_path: Path, user_config: Mapping[str, Any]) -> ResolvedConfig:
    raw_paths = user_config.get("paths") or {}
    root = (config_path.parent / raw_paths.get("root", ".")).resolve()

    def _path(key: str, default: str) -> Path:
        return (root / raw_paths.get(key, default)).resolve()

    paths = ProjectPaths(
        root=root,
        config_file=config_path.resolve(),
        sources=_path("sources", "contracts"),
        tests=_path("tests", "test"),
        cache=_path("cache", "cache"),
        artifacts=_path("artifacts", "artifacts"),
    )
    raw_compilers = user_config.get("compilers") or [{"version": DEFAULT_COMPILER_VERSION}]
    compilers = [
        CompilerConfig(version=str(item["version"]), settings=dict(item.get("settings") or {}))
        for item in raw_compilers
    ]
    known = {"paths", "compilers", "plugins"}
    extra = {key: value for key, value in user_config.items() if key not in known}
    return ResolvedConfig(
        paths=paths,
        compilers=compilers,
        plugins=list(user_config.get("plugins") or []),
        extra=extra,
    )


class YamlConfigLoader(ConfigLoader):
    def __init__(self, cwd: Path | None = None) -> None:
        self._cwd = cwd

    def load(
        self,
        global_arguments: GlobalArguments,
        context: SmithyContext,
        *,
        show_empty_config_warning: bool = False,
        show_compiler_warnings: bool = False,
    ) -> LoadedConfig:
        config_path = self._config_path(global_arguments)
        register_help_task(context.tasks_dsl)
        load_entry_point_plugins(context)

        if is_typed_config(config_path):
            user_config = self._load_typed(config_path, context)
        else:
            user_config = self._load_yaml(config_path)
            self._validate(config_path, user_config)

        if show_empty_config_warning and not user_config:
            print(
                f"You are using an empty config file ({config_path}). "
                "Default paths and compilers will be used.",
                file=sys.stderr,
            )

        resolved = resolve_config(config_path, user_config)
        _ensure_importable(resolved.paths.root)
        load_module_plugins(resolved.plugins, context)
        if show_compiler_warnings:
            self._warn_compilers(resolved)
        log.debug("Loaded config %s with %d plugin(s)", config_path, len(resolved.plugins))
        return LoadedConfig(resolved_config=resolved, user_config=dict(user_config))

    def _config_path(self, global_arguments: GlobalArguments) -> Path:
        if global_arguments.config is not None:
            config_path = Path(global_arguments.config).expanduser().resolve()
            if not config_path.is_file():
                raise SmithyError(ERRORS.GENERAL.CONFIG_NOT_FOUND, {"config_path": str(config_path)})
            return config_path
        return get_user_config_path(self._cwd or Path.cwd())

    def _load_yaml(self, config_path: Path) -> Dict[str, Any]:
        try:
            payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise SmithyError(
                ERRORS.GENERAL.INVALID_CONFIG,
                {"config_path": str(config_path), "errors": f"  * invalid YAML: {exc}"},
                parent=exc,
            ) from exc
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise SmithyError(
                ERRORS.GENERAL.INVALID_CONFIG,
                {"config_path": str(config_path), "errors": "  * the document must be a mapping"},
            )
        return payload

    def _load_typed(self, config_path: Path, context: SmithyContext) -> Dict[str, Any]:
        module = _import_config_module(config_path)
        register = getattr(module, "register", None)
        if callable(register):
            register(context.tasks_dsl, context)
        user_config = getattr(module, "CONFIG", None) or {}
        if not isinstance(user_config, Mapping):
            raise SmithyError(
                ERRORS.GENERAL.INVALID_CONFIG,
                {"config_path": str(config_path), "errors": "  * CONFIG must be a mapping"},
            )
        user_config = dict(user_config)
        self._validate(config_path, user_config)
        return user_config

    def _validate(self, config_path: Path, user_config: Mapping[str, Any]) -> None:
        errors = iter_config_errors(user_config)
        if errors:
            raise SmithyError(
                ERRORS.GENERAL.INVALID_CONFIG,
                {"config_path": str(config_path), "errors": "\n".join(errors)},
            )

    def _warn_compilers(self, resolved: ResolvedConfig) -> None:
        for compiler in resolved.compilers:
            if compiler.via_ir:
                print(
                    f"Compiler {compiler.version} is configured with via_ir enabled. "
                    "This pipeline is slower and some tools may not support it yet.",
                    file=sys.stderr,
                )


def _ensure_importable(root: Path) -> None:
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


def _import_config_module(config_path: Path) -> ModuleType:
    spec = importlib.util.spec_from_file_location(TYPED_CONFIG_MODULE, config_path)
    if spec is None or spec.loader is None:
        raise SmithyError(
            ERRORS.GENERAL.INVALID_CONFIG,
            {"config_path": str(config_path), "errors": "  * the module cannot be imported"},
        )
    module = importlib.util.module_from_spec(spec)
    sys.modules[TYPED_CONFIG_MODULE] = module
    spec.loader.exec_module(module)
    return module


__all__ = ["YamlConfigLoader", "iter_config_errors", "resolve_config"]
