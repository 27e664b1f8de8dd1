"""Runtime settings for the smithy CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from smithy import __version__


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    cli_version: str = __version__

    @property
    def secrets_file(self) -> Path:
        return self.state_dir / "secrets.json"

    @property
    def secrets_key_file(self) -> Path:
        return self.state_dir / "secrets.key"

    @property
    def telemetry_consent_file(self) -> Path:
        return self.state_dir / "telemetry-consent.json"

    @property
    def editor_prompt_file(self) -> Path:
        return self.state_dir / "prompted-editor-extension.json"

    @property
    def analytics_file(self) -> Path:
        return self.state_dir / "analytics.json"

    @property
    def flamegraph_dir(self) -> Path:
        return self.home_dir / "flamegraphs"


def _default_home_dir() -> Path:
    override = os.environ.get("SMITHY_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".smithy"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    return RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
    )


SETTINGS = load_settings()
