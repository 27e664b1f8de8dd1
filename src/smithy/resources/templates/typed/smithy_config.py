"""smithy project configuration."""

from __future__ import annotations

from typing import Any, Dict

from smithy.app.context import SmithyContext
from smithy.app.dsl import TasksDSL
from smithy.app.environment import Environment
from smithy.domain.tasks import TaskArguments

CONFIG: Dict[str, Any] = {
    "paths": {"sources": "contracts", "tests": "test"},
    "compilers": [{"version": "0.8.24"}],
}


def _hello(arguments: TaskArguments, env: Environment) -> None:
    print(f"Hello, {arguments['name']}!")


def register(dsl: TasksDSL, context: SmithyContext) -> None:
    dsl.task("hello", "Prints a greeting", _hello).add_optional_param("name", "Who to greet", "world")
