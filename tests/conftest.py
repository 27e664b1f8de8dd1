from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("SMITHY_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from smithy import __version__  # noqa: E402
from smithy.settings import RuntimeSettings  # noqa: E402


@pytest.fixture()
def runtime_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RuntimeSettings:
    base = tmp_path / "runtime"
    home = base / "home"
    state_dir = base / "state"
    log_dir = base / "logs"
    for directory in (home, state_dir, log_dir):
        directory.mkdir(parents=True, exist_ok=True)
    monkeypatch.delenv("SMITHY_TELEMETRY", raising=False)
    return RuntimeSettings(
        home_dir=home,
        state_dir=state_dir,
        log_dir=log_dir,
        cli_version=__version__,
    )
