"""Per-invocation registration context shared by the config loader and plugins."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List

from smithy.app.dsl import TasksDSL
from smithy.settings import RuntimeSettings

if TYPE_CHECKING:  # pragma: no cover
    from smithy.app.environment import Environment

EnvironmentExtender = Callable[["Environment"], None]


@dataclass
class SmithyContext:
    settings: RuntimeSettings
    tasks_dsl: TasksDSL = field(default_factory=TasksDSL)
    environment_extenders: List[EnvironmentExtender] = field(default_factory=list)

    def extend_environment(self, extender: EnvironmentExtender) -> None:
        self.environment_extenders.append(extender)


__all__ = ["EnvironmentExtender", "SmithyContext"]
