# File: backend/app/core/annotation/palette.py
# Version: v0.1.0
"""
Fallback colors for feature types, plot tracks and link tracks.

The palette is a value handed to whoever needs a default color (pipeline,
sanitizers), not a module-level lookup.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

DEFAULT_FEATURE_COLORS: Tuple[str, ...] = (
    "#38bdf8",
    "#a855f7",
    "#f97316",
    "#22c55e",
    "#f43f5e",
    "#94a3b8",
    "#10b981",
    "#facc15",
)

DEFAULT_LINK_COLOR = "#f97316"


@dataclass(frozen=True)
class ColorPalette:
    colors: Tuple[str, ...] = DEFAULT_FEATURE_COLORS
    link_color: str = DEFAULT_LINK_COLOR

    def color_for(self, index: int) -> str:
        """Round-robin color; negative or non-finite indices map to the first color."""
        if not self.colors:
            return DEFAULT_FEATURE_COLORS[0]
        if isinstance(index, float) and not math.isfinite(index):
            return self.colors[0]
        if index < 0:
            return self.colors[0]
        return self.colors[int(index) % len(self.colors)]


DEFAULT_PALETTE = ColorPalette()
