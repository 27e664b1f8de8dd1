"""Read-only task registry capability set."""

from __future__ import annotations

from typing import Optional, Protocol

from smithy.domain.tasks import ScopesDefinitions, TaskDefinition, TaskDefinitions


class TaskRegistry(Protocol):  # pragma: no cover
    def get_task_definition(self, scope_name: Optional[str], task_name: str) -> TaskDefinition | None:
        ...

    def get_task_definitions(self) -> TaskDefinitions:
        ...

    def get_scopes_definitions(self) -> ScopesDefinitions:
        ...
