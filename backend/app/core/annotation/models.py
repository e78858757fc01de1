# File: backend/app/core/annotation/models.py
# Version: v0.2.0
"""
Canonical annotation data model.

Everything here is JSON-serializable through `to_dict()`; keys are camelCase so
that persisted payloads and HTTP responses share one shape. Optional fields
that are unset are omitted from the serialized form rather than written as
null.

v0.2.0
- Features travel as plain dicts on ParsedDataset: JSON sources may carry
  arbitrary feature objects, and downstream stages (statistics, plot
  synthesis, persistence) read them through ordered key lookups.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

SupportedFormat = Literal["genbank", "gff3", "json", "csv"]
SUPPORTED_FORMATS = ("genbank", "gff3", "json", "csv")

PlotTrackKind = Literal["gc-content", "gc-skew", "coverage", "custom"]
PLOT_TRACK_KINDS = ("gc-content", "gc-skew", "coverage", "custom")

LinkTrackKind = Literal["alignment", "synteny", "custom"]
LINK_TRACK_KINDS = ("alignment", "synteny", "custom")


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def dump_value(value: Any) -> Any:
    """Recursively convert model instances to plain JSON-compatible values."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: dump_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [dump_value(v) for v in value]
    return value


@dataclass
class Segment:
    start: int
    end: int

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass
class Feature:
    """
    One annotated genomic element as produced by a parser.

    `start <= stop`, both non-negative; `strand` is +1 or -1. Parsers build a
    Feature and hand its dict form to the dataset.
    """
    id: str
    type: str
    name: str
    start: int
    stop: int
    strand: int = 1
    color: Optional[str] = None
    score: Optional[float] = None
    phase: Optional[int] = None
    qualifiers: Optional[Dict[str, Any]] = None
    # GenBank extras
    location: Optional[str] = None
    segments: Optional[List[Segment]] = None
    # GFF3 extras
    seq_id: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "start": self.start,
            "stop": self.stop,
            "strand": self.strand,
            "color": self.color,
            "score": self.score,
            "phase": self.phase,
            "seqId": self.seq_id,
            "source": self.source,
            "location": self.location,
            "segments": [s.to_dict() for s in self.segments] if self.segments is not None else None,
            "qualifiers": dict(self.qualifiers) if self.qualifiers is not None else None,
        })


@dataclass
class ParsedDatasetMeta:
    record_count: int = 0
    total_length: Optional[float] = None
    organism: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "recordCount": self.record_count,
            "totalLength": self.total_length,
            "organism": self.organism,
        })


@dataclass
class FeatureState:
    visible: bool = True
    color: str = "#38bdf8"

    def to_dict(self) -> Dict[str, Any]:
        return {"visible": self.visible, "color": self.color}


@dataclass
class PlotPoint:
    position: float
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position, "value": self.value}


@dataclass
class PlotTrack:
    id: str
    name: str
    kind: str
    color: str
    points: List[PlotPoint] = field(default_factory=list)
    visible: bool = True
    baseline: Optional[float] = None
    axis_min: Optional[float] = None
    axis_max: Optional[float] = None
    source: Optional[str] = None
    thickness_ratio: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "color": self.color,
            "points": [p.to_dict() for p in self.points],
            "visible": self.visible,
            "baseline": self.baseline,
            "axisMin": self.axis_min,
            "axisMax": self.axis_max,
            "source": self.source,
            "thicknessRatio": self.thickness_ratio,
        })


@dataclass
class LinkConnection:
    source_start: float
    source_end: float
    target_start: float
    target_end: float
    value: Optional[float] = None
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "sourceStart": self.source_start,
            "sourceEnd": self.source_end,
            "targetStart": self.target_start,
            "targetEnd": self.target_end,
            "value": self.value,
            "color": self.color,
        })


@dataclass
class LinkTrack:
    id: str
    name: str
    kind: str
    color: str
    connections: List[LinkConnection] = field(default_factory=list)
    visible: bool = True
    thickness_ratio: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "color": self.color,
            "connections": [c.to_dict() for c in self.connections],
            "visible": self.visible,
            "thicknessRatio": self.thickness_ratio,
        })


@dataclass
class FeatureTypeStatistic:
    key: str
    label: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "label": self.label, "count": self.count}


@dataclass
class DatasetStatistics:
    total_features: int
    feature_types: List[FeatureTypeStatistic] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFeatures": self.total_features,
            "featureTypes": [t.to_dict() for t in self.feature_types],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatasetStatistics":
        return cls(
            total_features=int(data.get("totalFeatures", 0)),
            feature_types=[
                FeatureTypeStatistic(key=str(t["key"]), label=str(t["label"]), count=int(t["count"]))
                for t in data.get("featureTypes", [])
            ],
        )


@dataclass
class ParsedDataset:
    """
    A dataset produced by one import operation.

    `feature_states`, `plot_tracks` and `link_tracks` may hold raw
    (unsanitized) values straight out of a parser; after normalization they
    hold model instances.
    """
    id: str
    project_id: str
    format: str
    source_path: str
    meta: ParsedDatasetMeta
    features: List[Any] = field(default_factory=list)
    display_name: Optional[str] = None
    feature_states: Optional[Any] = None
    plot_tracks: Optional[Any] = None
    link_tracks: Optional[Any] = None
    statistics: Optional[DatasetStatistics] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "projectId": self.project_id,
            "format": self.format,
            "sourcePath": self.source_path,
            "displayName": self.display_name,
            "meta": self.meta.to_dict(),
            "features": dump_value(self.features),
            "featureStates": dump_value(self.feature_states),
            "plotTracks": dump_value(self.plot_tracks),
            "linkTracks": dump_value(self.link_tracks),
            "statistics": self.statistics.to_dict() if self.statistics else None,
        })


@dataclass
class FileParseRequest:
    file_path: str
    project_id: str
    format_hint: Optional[str] = None


@dataclass
class FileParseResult:
    dataset: ParsedDataset
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParserSummary:
    format: str
    display_name: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "displayName": self.display_name, "description": self.description}
