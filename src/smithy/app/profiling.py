"""Task execution profiles and their flame chart rendering."""

from __future__ import annotations

import html
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>smithy flamegraph: {title}</title>
<style>
body {{ font-family: monospace; font-size: 12px; margin: 16px; }}
.frame {{ box-sizing: border-box; border: 1px solid #fff; background: #f4a340;
          overflow: hidden; white-space: nowrap; padding: 2px 4px; }}
.row {{ display: flex; }}
</style>
</head>
<body>
<h1>{title}</h1>
{frames}
<script type="application/json" id="profile">{payload}</script>
</body>
</html>
"""


@dataclass
class TaskProfile:
    name: str
    start: int
    end: int | None = None
    children: List["TaskProfile"] = field(default_factory=list)

    @property
    def duration_ns(self) -> int:
        if self.end is None:
            return 0
        return max(self.end - self.start, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "start": self.start,
            "end": self.end,
            "durationNs": self.duration_ns,
            "children": [child.to_dict() for child in self.children],
        }


def _render(profile: TaskProfile, total_ns: int) -> str:
    share = 100.0 if total_ns <= 0 else profile.duration_ns * 100.0 / total_ns
    millis = profile.duration_ns / 1_000_000
    label = html.escape(f"{profile.name} ({millis:.1f} ms)")
    children = "".join(_render(child, total_ns) for child in profile.children)
    nested = f'<div class="row">{children}</div>' if children else ""
    return (
        f'<div style="width:{share:.3f}%">'
        f'<div class="frame" title="{label}">{label}</div>{nested}</div>'
    )


def render_flamegraph(profile: TaskProfile) -> str:
    return _PAGE.format(
        title=html.escape(profile.name),
        frames=_render(profile, profile.duration_ns),
        payload=json.dumps(profile.to_dict()).replace("</", "<\\/"),
    )


def save_flamegraph(profile: TaskProfile, directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
    safe_name = profile.name.replace(" ", "-").replace("/", "-")
    path = directory / f"flamegraph-{safe_name}-{stamp}.html"
    path.write_text(render_flamegraph(profile), encoding="utf-8")
    return path


__all__ = ["TaskProfile", "render_flamegraph", "save_flamegraph"]
