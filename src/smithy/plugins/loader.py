"""Runtime plugin loading for smithy."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List

from smithy.app.context import SmithyContext
from smithy.domain.errors import ERRORS, SmithyError
from smithy.plugins import iter_entry_points

log = logging.getLogger("smithy.plugins")


@dataclass
class LoadedPlugin:
    name: str
    source: str


def _register(name: str, plugin: Any, context: SmithyContext) -> None:
    register = getattr(plugin, "register", None)
    if not callable(register):
        raise SmithyError(
            ERRORS.GENERAL.INVALID_PLUGIN,
            {"plugin": name, "reason": "it does not define a callable 'register'"},
        )
    register(context.tasks_dsl, context)


def load_entry_point_plugins(context: SmithyContext) -> List[LoadedPlugin]:
    loaded: List[LoadedPlugin] = []
    for entry_point in iter_entry_points():
        try:
            plugin = entry_point.load()
        except ImportError as exc:
            raise SmithyError(
                ERRORS.GENERAL.INVALID_PLUGIN,
                {"plugin": entry_point.name, "reason": str(exc)},
                parent=exc,
            ) from exc
        _register(entry_point.name, plugin, context)
        log.debug("Loaded plugin %s from entry point %s", entry_point.name, entry_point.value)
        loaded.append(LoadedPlugin(name=entry_point.name, source="entry-point"))
    return loaded


def load_module_plugins(module_names: Iterable[str], context: SmithyContext) -> List[LoadedPlugin]:
    loaded: List[LoadedPlugin] = []
    for module_name in module_names:
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise SmithyError(
                ERRORS.GENERAL.INVALID_PLUGIN,
                {"plugin": module_name, "reason": str(exc)},
                parent=exc,
            ) from exc
        _register(module_name, module, context)
        log.debug("Loaded plugin module %s", module_name)
        loaded.append(LoadedPlugin(name=module_name, source="config"))
    return loaded


__all__ = ["LoadedPlugin", "load_entry_point_plugins", "load_module_plugins"]
