"""Deterministic pastel colors for subject-matter labels."""

from __future__ import annotations

import math
from typing import Optional

PALETTE = (
    "#f8e8e8",
    "#fde4ec",
    "#ffe8e0",
    "#fff4da",
    "#f5f2d8",
    "#eaf7d5",
    "#dbf1e4",
    "#e5f6f9",
    "#e6f0ff",
    "#ece5ff",
    "#efe6f5",
    "#f7e8ef",
    "#f0f7ff",
    "#e8fff4",
    "#fff0f0",
    "#f4f9e8",
)
NEUTRAL_COLOR = "#f0f0f0"
BORDER_DARKEN_FACTOR = 0.82


def string_hash(text: str) -> int:
    """31-multiplier string hash wrapped to a signed 32-bit integer."""
    h = 0
    for char in text:
        h = (31 * h + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def color_for_subject(subject: Optional[str]) -> str:
    if not subject:
        return NEUTRAL_COLOR
    return PALETTE[abs(string_hash(subject)) % len(PALETTE)]


def border_for(fill: str, factor: float = BORDER_DARKEN_FACTOR) -> str:
    """Darken each RGB channel of a `#rrggbb` color by `factor`."""
    channels = (int(fill[i : i + 2], 16) for i in (1, 3, 5))
    return "#" + "".join(f"{math.floor(value * factor):02x}" for value in channels)
