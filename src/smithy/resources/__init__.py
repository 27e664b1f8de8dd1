"""Packaged resources for smithy."""

from __future__ import annotations

from importlib import resources
from importlib.resources.abc import Traversable
from typing import Iterator, Tuple

__all__ = ["TEMPLATE_NAMES", "iter_template_files"]

TEMPLATE_NAMES = ("basic", "typed")


def _walk(node: Traversable, prefix: str) -> Iterator[Tuple[str, Traversable]]:
    for entry in sorted(node.iterdir(), key=lambda item: item.name):
        if entry.name == "__pycache__":
            continue
        relative = f"{prefix}{entry.name}"
        if entry.is_dir():
            yield from _walk(entry, f"{relative}/")
        else:
            yield relative, entry


def iter_template_files(template: str) -> Iterator[Tuple[str, Traversable]]:
    """Yield (relative path, resource) pairs of a packaged project template."""

    if template not in TEMPLATE_NAMES:
        raise KeyError(f"Unknown project template '{template}'")
    root = resources.files(__name__) / "templates" / template
    yield from _walk(root, "")
