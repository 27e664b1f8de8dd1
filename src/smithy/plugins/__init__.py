"""Plugin contracts for smithy."""

from __future__ import annotations

from importlib import metadata
from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from smithy.app.context import SmithyContext
    from smithy.app.dsl import TasksDSL

ENTRY_POINT_GROUP = "smithy.plugins"


class SmithyPlugin(Protocol):  # pragma: no cover
    def register(self, dsl: "TasksDSL", context: "SmithyContext") -> None:
        ...


def iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)


__all__ = ["ENTRY_POINT_GROUP", "SmithyPlugin", "iter_entry_points"]
