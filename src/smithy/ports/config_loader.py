"""Port for loading project configuration and collecting registrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict

from smithy.domain.config import ResolvedConfig
from smithy.domain.params import GlobalArguments

if TYPE_CHECKING:  # pragma: no cover
    from smithy.app.context import SmithyContext


@dataclass(frozen=True)
class LoadedConfig:
    resolved_config: ResolvedConfig
    user_config: Dict[str, Any]


class ConfigLoader(ABC):
    @abstractmethod
    def load(
        self,
        global_arguments: GlobalArguments,
        context: "SmithyContext",
        *,
        show_empty_config_warning: bool = False,
        show_compiler_warnings: bool = False,
    ) -> LoadedConfig:
        """Resolve the project config and register tasks, scopes and extenders into ``context``."""
