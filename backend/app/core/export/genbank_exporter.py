# File: backend/app/core/export/genbank_exporter.py
# Version: v0.5.0
"""
GenBank exporter for parsed annotation datasets.

Updates
-------
v0.5.0
- Export ParsedDataset features with an N-filled backbone of the dataset length.
- Multi-segment features are written as compound locations (join).
- Boolean qualifiers are written as bare flags (e.g. /pseudo).

v0.4.1
- Add required GenBank annotations (molecule_type='DNA', topology='linear')
  to avoid "missing molecule_type in annotations" error from Biopython.

Notes
-----
- Feature coordinates are kept as imported (1-based, closed) and converted
  to Biopython's 0-based, end-exclusive form on the way out, so a GenBank
  file re-imported after export yields the same numbers.
- The record sequence is unknown at this level; it is filled with N up to
  the dataset's total length.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqFeature import CompoundLocation, FeatureLocation, SeqFeature
from Bio.SeqRecord import SeqRecord

from backend.app.core.annotation.coordinates import feature_span, max_feature_stop, normalize_strand, to_number
from backend.app.core.annotation.models import ParsedDataset

_LOCUS_SAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def _locus_name(value: str) -> str:
    cleaned = _LOCUS_SAFE.sub("_", value or "").strip("_")
    return (cleaned or "AnnoTrack")[:16]


def _qualifier_values(value: Any) -> List[Any]:
    # Bio writes a None entry as a value-less flag qualifier.
    if value is True:
        return [None]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _location(feature: Dict[str, Any], start: int, stop: int, strand: int):
    segments = feature.get("segments")
    parts = []
    if isinstance(segments, list) and len(segments) > 1:
        for seg in segments:
            if not isinstance(seg, dict):
                continue
            s = to_number(seg.get("start"))
            e = to_number(seg.get("end"))
            if s is None or e is None:
                continue
            lo, hi = int(min(s, e)), int(max(s, e))
            parts.append(FeatureLocation(max(0, lo - 1), hi, strand=strand))
    if len(parts) > 1:
        return CompoundLocation(parts)
    return FeatureLocation(max(0, start - 1), stop, strand=strand)


def _mk_feature(feature: Any) -> Optional[SeqFeature]:
    if not isinstance(feature, dict):
        return None
    span = feature_span(feature)
    if span is None:
        return None
    start, stop = int(min(span)), int(max(span))
    strand = normalize_strand(feature.get("strand", 1))

    qualifiers: Dict[str, List[Any]] = {}
    raw_qualifiers = feature.get("qualifiers")
    if isinstance(raw_qualifiers, dict):
        for key, value in raw_qualifiers.items():
            if value is False or value is None:
                continue
            qualifiers[str(key)] = _qualifier_values(value)
    if not qualifiers and feature.get("name"):
        qualifiers["label"] = [str(feature["name"])]

    ftype = str(feature.get("type") or "misc_feature")
    return SeqFeature(location=_location(feature, start, stop, strand), type=ftype, qualifiers=qualifiers)


def build_record(dataset: ParsedDataset, *, record_id: Optional[str] = None) -> SeqRecord:
    """Build a single GenBank SeqRecord carrying every locatable feature of `dataset`."""
    length = int(max(dataset.meta.total_length or 0, max_feature_stop(dataset.features), 0))
    name = record_id or dataset.display_name or dataset.id

    rec = SeqRecord(
        Seq("N" * length),
        id=_locus_name(name),
        name=_locus_name(name),
        description=dataset.display_name or dataset.source_path or ".",
    )
    rec.annotations["molecule_type"] = "DNA"
    rec.annotations["topology"] = "linear"
    rec.annotations.setdefault("data_file_division", "UNC")
    if dataset.meta.organism:
        rec.annotations["organism"] = dataset.meta.organism
        rec.annotations["source"] = dataset.meta.organism

    for feature in dataset.features:
        feat = _mk_feature(feature)
        if feat is not None:
            rec.features.append(feat)
    return rec


def export_dataset_to_genbank(dataset: ParsedDataset, out_path, *, record_id: Optional[str] = None) -> int:
    """Write `dataset` as a GenBank file; returns the number of features written."""
    rec = build_record(dataset, record_id=record_id)
    if hasattr(out_path, "write"):
        SeqIO.write(rec, out_path, "genbank")
    else:
        SeqIO.write(rec, str(out_path), "genbank")
    return len(rec.features)
