"""Task registration API exposed to plugins and typed config modules."""

from __future__ import annotations

from typing import Dict, Optional

from smithy.domain.tasks import (
    ScopeDefinition,
    ScopesDefinitions,
    TaskAction,
    TaskDefinition,
    TaskDefinitions,
    registration_conflict,
)


class ScopeBuilder:
    def __init__(self, definition: ScopeDefinition) -> None:
        self._definition = definition

    @property
    def definition(self) -> ScopeDefinition:
        return self._definition

    def task(self, name: str, description: str = "", action: TaskAction | None = None) -> TaskDefinition:
        return self._add(name, description, action, is_subtask=False)

    def subtask(self, name: str, description: str = "", action: TaskAction | None = None) -> TaskDefinition:
        return self._add(name, description, action, is_subtask=True)

    def _add(self, name: str, description: str, action: TaskAction | None, *, is_subtask: bool) -> TaskDefinition:
        definition = TaskDefinition(
            name=name,
            scope=self._definition.name,
            description=description,
            is_subtask=is_subtask,
            action=action,
        )
        self._definition.tasks[name] = definition
        return definition


class TasksDSL:
    """Mutable registry of tasks and scopes.

    Registering a task under an existing name replaces the previous
    definition, which lets plugins and config modules override built-ins.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskDefinition] = {}
        self._scopes: Dict[str, ScopeDefinition] = {}

    def task(self, name: str, description: str = "", action: TaskAction | None = None) -> TaskDefinition:
        return self._add_task(name, description, action, is_subtask=False)

    def subtask(self, name: str, description: str = "", action: TaskAction | None = None) -> TaskDefinition:
        return self._add_task(name, description, action, is_subtask=True)

    def scope(self, name: str, description: str = "") -> ScopeBuilder:
        if name in self._tasks:
            raise registration_conflict("scope", name, "a task with the same name is already registered")
        definition = self._scopes.get(name)
        if definition is None:
            definition = ScopeDefinition(name=name, description=description)
            self._scopes[name] = definition
        elif description:
            definition.description = description
        return ScopeBuilder(definition)

    def get_task_definition(self, scope_name: Optional[str], task_name: str) -> TaskDefinition | None:
        if scope_name is None:
            return self._tasks.get(task_name)
        scope = self._scopes.get(scope_name)
        if scope is None:
            return None
        return scope.tasks.get(task_name)

    def get_task_definitions(self) -> TaskDefinitions:
        return dict(self._tasks)

    def get_scopes_definitions(self) -> ScopesDefinitions:
        return dict(self._scopes)

    def _add_task(self, name: str, description: str, action: TaskAction | None, *, is_subtask: bool) -> TaskDefinition:
        if name in self._scopes:
            raise registration_conflict("task", name, "a scope with the same name is already registered")
        definition = TaskDefinition(name=name, description=description, is_subtask=is_subtask, action=action)
        self._tasks[name] = definition
        return definition


__all__ = ["ScopeBuilder", "TasksDSL"]
