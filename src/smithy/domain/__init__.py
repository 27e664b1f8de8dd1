"""Domain layer: errors, parameter types, task definitions and project discovery."""

from smithy.domain.errors import ERRORS, SmithyError, SmithyPluginError
from smithy.domain.params import GlobalArguments
from smithy.domain.tasks import ScopeDefinition, TaskDefinition

__all__ = [
    "ERRORS",
    "GlobalArguments",
    "ScopeDefinition",
    "SmithyError",
    "SmithyPluginError",
    "TaskDefinition",
]
