"""Optional emoji decoration for terminal output."""

from __future__ import annotations

import sys


def emoji(with_emoji: str, without_emoji: str = "", enabled: bool = False) -> str:
    if enabled and sys.platform != "win32":
        return with_emoji
    return without_emoji


__all__ = ["emoji"]
