"""Small per-installation records kept under the state directory."""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from smithy.settings import RuntimeSettings

log = logging.getLogger("smithy.global_state")


def _read_json(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        log.debug("Ignoring unreadable state file %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def has_consented_telemetry(settings: RuntimeSettings) -> bool | None:
    data = _read_json(settings.telemetry_consent_file)
    if data is None:
        return None
    consent = data.get("consent")
    return consent if isinstance(consent, bool) else None


def write_telemetry_consent(settings: RuntimeSettings, consent: bool) -> None:
    _write_json(settings.telemetry_consent_file, {"consent": consent})


def has_prompted_for_editor_extension(settings: RuntimeSettings) -> bool:
    return settings.editor_prompt_file.exists()


def write_prompted_for_editor_extension(settings: RuntimeSettings) -> None:
    _write_json(settings.editor_prompt_file, {"prompted": True})


def get_analytics_client_id(settings: RuntimeSettings) -> str:
    data = _read_json(settings.analytics_file) or {}
    client_id = data.get("client_id")
    if isinstance(client_id, str) and client_id:
        return client_id
    client_id = str(uuid.uuid4())
    _write_json(settings.analytics_file, {"client_id": client_id})
    return client_id


__all__ = [
    "get_analytics_client_id",
    "has_consented_telemetry",
    "has_prompted_for_editor_extension",
    "write_prompted_for_editor_extension",
    "write_telemetry_consent",
]
