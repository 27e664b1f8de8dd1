"""One-time offer to install the editor extension after a test run."""

from __future__ import annotations

import logging
import subprocess
from enum import Enum

from smithy.ports.prompts import Prompter
from smithy.settings import RuntimeSettings
from smithy.utils.global_state import has_prompted_for_editor_extension, write_prompted_for_editor_extension

EXTENSION_ID = "smithy.smithy-tools"
EDITOR_COMMAND = "code"

log = logging.getLogger("smithy.editor_extension")


class InstallationState(str, Enum):
    INSTALLED = "installed"
    NOT_INSTALLED = "not-installed"
    EDITOR_NOT_INSTALLED = "editor-not-installed"


def get_installation_state() -> InstallationState:
    try:
        result = subprocess.run(
            [EDITOR_COMMAND, "--list-extensions"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        log.debug("Editor unavailable: %s", exc)
        return InstallationState.EDITOR_NOT_INSTALLED
    if result.returncode != 0:
        return InstallationState.EDITOR_NOT_INSTALLED
    installed = {line.strip().lower() for line in result.stdout.splitlines()}
    if EXTENSION_ID in installed:
        return InstallationState.INSTALLED
    return InstallationState.NOT_INSTALLED


def install_extension() -> bool:
    try:
        result = subprocess.run([EDITOR_COMMAND, "--install-extension", EXTENSION_ID])
    except OSError as exc:
        log.debug("Extension installation failed: %s", exc)
        return False
    return result.returncode == 0


def offer_editor_extension(settings: RuntimeSettings, prompter: Prompter) -> bool:
    """Ask once per installation; True when the extension got installed."""

    if has_prompted_for_editor_extension(settings):
        return False
    write_prompted_for_editor_extension(settings)
    if get_installation_state() != InstallationState.NOT_INSTALLED:
        return False

    if not prompter.confirm_editor_extension_installation():
        return False
    if install_extension():
        print("Editor extension installed.")
        return True
    print(f"Could not install the extension. Run `{EDITOR_COMMAND} --install-extension {EXTENSION_ID}` manually.")
    return False


__all__ = ["InstallationState", "get_installation_state", "offer_editor_extension"]
