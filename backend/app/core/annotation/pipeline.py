# File: backend/app/core/annotation/pipeline.py
# Version: v0.2.0
"""
Post-parse normalization.

Every parsed dataset goes through the same steps, in order:

1) truncate to `max_features` (warning when it happens); recordCount is
   re-synced to the kept feature count,
2) backfill `totalLength` from the largest feature stop when missing or < 1,
3) synthesize a coverage-style plot track when the source brought none,
4) sanitize feature states, plot tracks and link tracks,
5) compute feature-type statistics.

The pipeline never raises; it only appends warnings. It returns a new
FileParseResult and leaves the parser's dataset untouched.

v0.2.0
- `NormalizationPipeline` takes the cap and the palette explicitly instead of
  reading module constants.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, List, Optional, Sequence

from backend.app.core.annotation.coordinates import feature_span, max_feature_stop
from backend.app.core.annotation.models import (
    FileParseRequest,
    FileParseResult,
    ParsedDataset,
    PlotPoint,
    PlotTrack,
)
from backend.app.core.annotation.normalizers import (
    sanitize_feature_states,
    sanitize_link_tracks,
    sanitize_plot_tracks,
)
from backend.app.core.annotation.palette import DEFAULT_PALETTE, ColorPalette
from backend.app.core.annotation.registry import ParserRegistry, create_default_parser_registry
from backend.app.core.annotation.statistics import compute_dataset_statistics
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

NO_PLOT_WARNING = "No plot tracks available after normalization; viewer will render features only."

MIN_COVERAGE_BUCKETS = 20
MAX_COVERAGE_BUCKETS = 200
BASES_PER_BUCKET = 2000


def infer_sequence_length(dataset: ParsedDataset) -> float:
    """max(meta.totalLength, largest start/stop across features, 0)."""
    meta_length = dataset.meta.total_length or 0
    best = 0
    for feature in dataset.features:
        span = feature_span(feature)
        if span is None:
            continue
        best = max(best, span[0], span[1])
    return max(meta_length, best, 0)


def generate_coverage_plot(dataset: ParsedDataset, palette: ColorPalette = DEFAULT_PALETTE) -> Optional[PlotTrack]:
    """
    Build the default `gc-content` track from feature coverage.

    The sequence is cut into clamp(20, 200, ceil(L / 2000)) equal buckets.
    Each feature adds its exact overlap to every bucket it touches; a point
    sits at each bucket center with value min(1, overlap / bucket width).
    """
    length = infer_sequence_length(dataset)
    if length <= 0:
        return None

    bucket_count = max(MIN_COVERAGE_BUCKETS, min(MAX_COVERAGE_BUCKETS, math.ceil(length / BASES_PER_BUCKET)))
    bucket_size = length / bucket_count
    buckets = [0.0] * bucket_count

    for feature in dataset.features:
        span = feature_span(feature)
        if span is None:
            continue
        lo = max(0, min(span))
        hi = max(lo, max(span))
        if hi - lo <= 0:
            continue

        first = max(0, math.floor(lo / bucket_size))
        last = min(bucket_count - 1, math.floor((hi - 1) / bucket_size))
        for i in range(first, last + 1):
            bucket_start = i * bucket_size
            overlap = min(hi, bucket_start + bucket_size) - max(lo, bucket_start)
            if overlap > 0:
                buckets[i] += overlap

    points = [
        PlotPoint(position=i * bucket_size + bucket_size / 2, value=min(1.0, covered / bucket_size))
        for i, covered in enumerate(buckets)
    ]
    return PlotTrack(
        id="gc-content",
        name="GC Content",
        kind="gc-content",
        color=palette.color_for(0),
        points=points,
        visible=True,
        baseline=0.5,
        axis_min=0,
        axis_max=1,
        source="gc-content",
        thickness_ratio=0.6,
    )


def _has_plot_tracks(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


class NormalizationPipeline:
    def __init__(self, max_features: Optional[int] = None, palette: ColorPalette = DEFAULT_PALETTE):
        self.max_features = max_features if max_features is not None else settings.MAX_FEATURES
        self.palette = palette

    def run(self, result: FileParseResult) -> FileParseResult:
        warnings: List[str] = list(result.warnings or [])
        source = result.dataset
        features: Sequence[Any] = list(source.features)

        if len(features) > self.max_features:
            warnings.append(f"Feature count exceeds {self.max_features}; truncated for performance.")
            logger.info("Truncated %s from %d to %d features", source.source_path, len(features), self.max_features)
            features = features[: self.max_features]

        meta = replace(source.meta, record_count=len(features))
        if not meta.total_length or meta.total_length < 1:
            max_stop = max_feature_stop(features)
            if max_stop > 0:
                meta.total_length = max_stop

        dataset = replace(source, features=list(features), meta=meta)

        plot_tracks = dataset.plot_tracks
        if not _has_plot_tracks(plot_tracks):
            coverage = generate_coverage_plot(dataset, self.palette)
            plot_tracks = [coverage] if coverage else []

        dataset = replace(
            dataset,
            feature_states=sanitize_feature_states(dataset.feature_states or {}, self.palette),
            plot_tracks=sanitize_plot_tracks(plot_tracks, self.palette),
            link_tracks=sanitize_link_tracks(dataset.link_tracks or [], self.palette),
            statistics=compute_dataset_statistics(dataset.features),
        )

        if not dataset.plot_tracks:
            warnings.append(NO_PLOT_WARNING)

        return FileParseResult(dataset=dataset, warnings=warnings)


_default_registry: Optional[ParserRegistry] = None


def get_default_registry() -> ParserRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_parser_registry()
    return _default_registry


def parse_file(
    request: FileParseRequest,
    *,
    registry: Optional[ParserRegistry] = None,
    pipeline: Optional[NormalizationPipeline] = None,
) -> FileParseResult:
    """Parse `request` with the registry and run the normalization pipeline over the result."""
    registry = registry or get_default_registry()
    pipeline = pipeline or NormalizationPipeline()
    result = registry.parse(request)
    return pipeline.run(result)


def list_parsers(registry: Optional[ParserRegistry] = None):
    return (registry or get_default_registry()).summaries()
