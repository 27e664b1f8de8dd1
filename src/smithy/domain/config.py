"""Resolved project configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    config_file: Path
    sources: Path
    tests: Path
    cache: Path
    artifacts: Path


@dataclass(frozen=True)
class CompilerConfig:
    version: str
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def via_ir(self) -> bool:
        return self.settings.get("via_ir") is True


@dataclass(frozen=True)
class ResolvedConfig:
    paths: ProjectPaths
    compilers: List[CompilerConfig] = field(default_factory=list)
    plugins: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def via_ir_enabled(self) -> bool:
        return any(compiler.via_ir for compiler in self.compilers)


__all__ = ["CompilerConfig", "ProjectPaths", "ResolvedConfig"]
