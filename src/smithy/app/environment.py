"""Execution environment handed to task actions."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from smithy.app.context import EnvironmentExtender
from smithy.app.profiling import TaskProfile
from smithy.domain.config import ResolvedConfig
from smithy.domain.errors import ERRORS, SmithyError
from smithy.domain.params import GlobalArguments
from smithy.domain.tasks import TaskArguments, TaskDefinition
from smithy.ports.registry import TaskRegistry

log = logging.getLogger("smithy.core.environment")

TaskIdentifier = Union[str, Tuple[Optional[str], str]]


class Environment:
    """Bundles config, global arguments and registrations behind a single ``run``.

    Task actions receive the environment as their second argument and may call
    :meth:`run` to compose other tasks, including subtasks. Actions signal a
    failed run without raising by setting :attr:`exit_code`.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        global_arguments: GlobalArguments,
        registry: TaskRegistry,
        extenders: Iterable[EnvironmentExtender] = (),
        user_config: Mapping[str, Any] | None = None,
    ) -> None:
        self.config = config
        self.global_arguments = global_arguments
        self.user_config: Dict[str, Any] = dict(user_config or {})
        self.tasks = registry.get_task_definitions()
        self.scopes = registry.get_scopes_definitions()
        self.exit_code = 0
        self.entry_task_profile: TaskProfile | None = None
        self._registry = registry
        self._profile_stack: List[TaskProfile] = []
        for extender in extenders:
            extender(self)

    def run(self, task: TaskIdentifier, task_arguments: Mapping[str, Any] | None = None) -> Any:
        scope_name, task_name = task if isinstance(task, tuple) else (None, task)
        definition = self._registry.get_task_definition(scope_name, task_name)
        if definition is None:
            if scope_name is not None:
                raise SmithyError(
                    ERRORS.ARGUMENTS.UNRECOGNIZED_SCOPED_TASK,
                    {"scope": scope_name, "task": task_name},
                )
            raise SmithyError(ERRORS.ARGUMENTS.UNRECOGNIZED_TASK, {"task": task_name})
        if not self.global_arguments.flamegraph:
            return self._run_definition(definition, task_arguments or {})
        return self._run_profiled(definition, task_arguments or {})

    def _run_definition(self, definition: TaskDefinition, supplied: Mapping[str, Any]) -> Any:
        if definition.action is None:
            raise SmithyError(ERRORS.GENERAL.ACTION_NOT_SET, {"task": definition.qualified_name})
        arguments = self._resolve_arguments(definition, supplied)
        log.debug("Running task %s", definition.qualified_name)
        return definition.action(arguments, self)

    def _run_profiled(self, definition: TaskDefinition, supplied: Mapping[str, Any]) -> Any:
        profile = TaskProfile(name=definition.qualified_name, start=time.perf_counter_ns())
        if self._profile_stack:
            self._profile_stack[-1].children.append(profile)
        else:
            self.entry_task_profile = profile
        self._profile_stack.append(profile)
        try:
            return self._run_definition(definition, supplied)
        finally:
            profile.end = time.perf_counter_ns()
            self._profile_stack.pop()

    def _resolve_arguments(self, definition: TaskDefinition, supplied: Mapping[str, Any]) -> TaskArguments:
        resolved: TaskArguments = {}
        all_params = list(definition.param_definitions.values()) + list(definition.positional_param_definitions)
        for param in all_params:
            value = supplied.get(param.name)
            if value is None:
                if not param.is_optional:
                    raise SmithyError(
                        ERRORS.ARGUMENTS.MISSING_TASK_ARGUMENT,
                        {"param": param.name, "task": definition.qualified_name},
                    )
                value = param.default
            resolved[param.name] = value
        return resolved


__all__ = ["Environment", "TaskIdentifier"]
