# File: backend/app/core/annotation/normalizers.py
# Version: v0.2.0
"""
Sanitizers for viewer-facing dataset attachments: plot tracks, link tracks
and the per-type feature state map.

Every sanitizer accepts raw JSON values (dicts/lists) or the model instances
they produce, and returns model instances. Running a sanitizer on its own
output gives the same output back.

v0.2.0
- Link track and feature state colors must be #rrggbb; anything else falls
  back to the palette.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from backend.app.core.annotation.coordinates import first_number, to_number
from backend.app.core.annotation.models import (
    LINK_TRACK_KINDS,
    PLOT_TRACK_KINDS,
    FeatureState,
    LinkConnection,
    LinkTrack,
    PlotPoint,
    PlotTrack,
)
from backend.app.core.annotation.palette import DEFAULT_PALETTE, ColorPalette

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

POSITION_KEYS = ("position", "bp", "pos")
VALUE_KEYS = ("value", "score")


def is_valid_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR.match(value.strip()))


def _as_record(value: Any) -> Optional[Mapping[str, Any]]:
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return value if isinstance(value, Mapping) else None


def _text_or(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _bool_or(value: Any, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def _kind(value: Any, allowed) -> str:
    if isinstance(value, str) and value.strip() in allowed:
        return value.strip()
    return "custom"


def _hex_or(value: Any, fallback: str) -> str:
    return value.strip() if is_valid_hex_color(value) else fallback


# ---------- Plot tracks ----------

def _sanitize_point(raw: Any) -> Optional[PlotPoint]:
    record = _as_record(raw)
    if record is None:
        return None
    position = first_number(record, POSITION_KEYS)
    value = first_number(record, VALUE_KEYS)
    if position is None or value is None:
        return None
    return PlotPoint(position=position, value=value)


def sanitize_plot_tracks(raw: Any, palette: ColorPalette = DEFAULT_PALETTE) -> List[PlotTrack]:
    if not isinstance(raw, (list, tuple)):
        return []

    tracks: List[PlotTrack] = []
    for index, entry in enumerate(raw):
        record = _as_record(entry)
        if record is None:
            continue

        track_id = _text_or(record.get("id"), f"plot-{index + 1}")
        raw_points = record.get("points")
        points = [p for p in map(_sanitize_point, raw_points if isinstance(raw_points, (list, tuple)) else []) if p]

        tracks.append(PlotTrack(
            id=track_id,
            name=_text_or(record.get("name"), track_id),
            kind=_kind(record.get("kind"), PLOT_TRACK_KINDS),
            color=_hex_or(record.get("color"), palette.color_for(index)),
            points=points,
            visible=_bool_or(record.get("visible"), True),
            baseline=to_number(record.get("baseline")),
            axis_min=to_number(record.get("axisMin")),
            axis_max=to_number(record.get("axisMax")),
            source=_text_or(record.get("source"), track_id),
            thickness_ratio=to_number(record.get("thicknessRatio")),
        ))
    return tracks


# ---------- Link tracks ----------

def _sanitize_connection(raw: Any) -> Optional[LinkConnection]:
    record = _as_record(raw)
    if record is None:
        return None
    coords = [to_number(record.get(k)) for k in ("sourceStart", "sourceEnd", "targetStart", "targetEnd")]
    if any(c is None for c in coords):
        return None
    color = record.get("color")
    return LinkConnection(
        source_start=coords[0],
        source_end=coords[1],
        target_start=coords[2],
        target_end=coords[3],
        value=to_number(record.get("value")),
        color=color.strip() if isinstance(color, str) and color.strip() else None,
    )


def sanitize_link_tracks(raw: Any, palette: ColorPalette = DEFAULT_PALETTE) -> List[LinkTrack]:
    if not isinstance(raw, (list, tuple)):
        return []

    tracks: List[LinkTrack] = []
    for index, entry in enumerate(raw):
        record = _as_record(entry)
        if record is None:
            continue

        track_id = _text_or(record.get("id"), f"link-{index + 1}")
        raw_connections = record.get("connections")
        if not isinstance(raw_connections, (list, tuple)):
            raw_connections = []

        tracks.append(LinkTrack(
            id=track_id,
            name=_text_or(record.get("name"), track_id),
            kind=_kind(record.get("kind"), LINK_TRACK_KINDS),
            color=_hex_or(record.get("color"), palette.link_color),
            connections=[c for c in map(_sanitize_connection, raw_connections) if c],
            visible=_bool_or(record.get("visible"), True),
            thickness_ratio=to_number(record.get("thicknessRatio")),
        ))
    return tracks


# ---------- Feature states ----------

def sanitize_feature_states(raw: Any, palette: ColorPalette = DEFAULT_PALETTE) -> Dict[str, FeatureState]:
    if not isinstance(raw, Mapping):
        return {}

    states: Dict[str, FeatureState] = {}
    for raw_key, value in raw.items():
        key = raw_key.strip() if isinstance(raw_key, str) else ""
        if not key:
            continue
        record = _as_record(value) or {}
        states[key] = FeatureState(
            visible=_bool_or(record.get("visible"), True),
            color=_hex_or(record.get("color"), palette.color_for(0)),
        )
    return states
