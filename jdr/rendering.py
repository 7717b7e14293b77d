"""Shared Jinja2 templates instance for all page routers."""

from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

from jdr.dice import DICE_SIDES

QUALITY_LABELS: dict[str, str] = {
    "critical_success": "🎯 Critical success",
    "excellent": "⭐ Excellent",
    "good": "👍 Good",
    "poor": "👎 Poor",
    "terrible": "💀 Terrible",
    "critical_failure": "💥 Critical failure",
}


def quality_label(quality: str | None) -> str:
    """Human label for a quality tier; plain die for rolls without one."""
    if quality is None:
        return "🎲"
    return QUALITY_LABELS.get(quality, quality)


_env = Environment(
    loader=FileSystemLoader(Path(__file__).parent / "templates"),
    autoescape=select_autoescape(["html", "xml"]),
)
_env.filters["quality_label"] = quality_label
_env.globals["dice_types"] = DICE_SIDES

templates = Jinja2Templates(env=_env)
