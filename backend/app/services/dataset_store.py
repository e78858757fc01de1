# File: backend/app/services/dataset_store.py
# Version: v0.2.0
"""Service-layer helpers for dataset persistence.

Datasets are stored as one `datasets` row (header + `metadata_json`) and one
`dataset_features` row per feature. Everything viewer-facing that goes in or
comes out (feature states, plot tracks, link tracks) passes through the
sanitizers, so a stored dataset can never hold malformed tracks.

metadata_json layout:
    {
      "meta": {"recordCount", "totalLength", "organism"},
      "featureStates": {...},
      "plotTracks": [...],
      "linkTracks": [...],
      "statistics": {"totalFeatures", "featureTypes"}
    }

v0.2.0
- Track updates raise DatasetNotFoundError for unknown ids instead of
  returning False.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.annotation.models import (
    DatasetStatistics,
    FeatureState,
    LinkTrack,
    ParsedDataset,
    PlotTrack,
    dump_value,
)
from backend.app.core.annotation.normalizers import (
    sanitize_feature_states,
    sanitize_link_tracks,
    sanitize_plot_tracks,
)
from backend.app.core.annotation.statistics import compute_dataset_statistics
from backend.app.db.models import Dataset, DatasetFeature, DatasetStatus

logger = logging.getLogger(__name__)


class DatasetNotFoundError(RuntimeError):
    pass


@dataclass
class DatasetSummary:
    id: str
    project_id: str
    format: str
    source_path: str
    display_name: str
    created_at: str
    record_count: int = 0
    total_length: Optional[float] = None
    organism: Optional[str] = None
    feature_states: Dict[str, FeatureState] = field(default_factory=dict)
    plot_tracks: List[PlotTrack] = field(default_factory=list)
    link_tracks: List[LinkTrack] = field(default_factory=list)
    statistics: Optional[DatasetStatistics] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "projectId": self.project_id,
            "format": self.format,
            "sourcePath": self.source_path,
            "displayName": self.display_name,
            "createdAt": self.created_at,
            "recordCount": self.record_count,
            "totalLength": self.total_length,
            "organism": self.organism,
            "featureStates": dump_value(self.feature_states),
            "plotTracks": dump_value(self.plot_tracks),
            "linkTracks": dump_value(self.link_tracks),
            "statistics": self.statistics.to_dict() if self.statistics else None,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class DatasetDetail(DatasetSummary):
    features: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["features"] = self.features
        return data


def _require_id(dataset_id: str) -> str:
    value = (dataset_id or "").strip()
    if not value:
        raise ValueError("datasetId is required")
    return value


def _load_metadata(row: Dataset) -> Dict[str, Any]:
    if not row.metadata_json:
        return {}
    try:
        metadata = json.loads(row.metadata_json)
    except json.JSONDecodeError:
        logger.warning("Dataset %s has unreadable metadata_json; treating as empty", row.id)
        return {}
    return metadata if isinstance(metadata, dict) else {}


def _load_statistics(raw: Any) -> Optional[DatasetStatistics]:
    if not isinstance(raw, dict):
        return None
    try:
        return DatasetStatistics.from_dict(raw)
    except (KeyError, TypeError, ValueError):
        logger.warning("Ignoring malformed stored statistics")
        return None


def _summary_from_row(row: Dataset) -> DatasetSummary:
    metadata = _load_metadata(row)
    meta = metadata.get("meta") if isinstance(metadata.get("meta"), dict) else {}
    display_name = (row.display_name or "").strip() or os.path.basename(row.file_name)

    return DatasetSummary(
        id=row.id,
        project_id=row.project_id,
        format=row.file_type,
        source_path=row.source_path,
        display_name=display_name,
        created_at=row.imported_at.isoformat(),
        record_count=int(meta.get("recordCount") or 0),
        total_length=meta.get("totalLength") or None,
        organism=meta.get("organism"),
        feature_states=sanitize_feature_states(metadata.get("featureStates") or {}),
        plot_tracks=sanitize_plot_tracks(metadata.get("plotTracks")),
        link_tracks=sanitize_link_tracks(metadata.get("linkTracks")),
        statistics=_load_statistics(metadata.get("statistics")),
    )


def _get_row(db: Session, dataset_id: str) -> Dataset:
    row = db.get(Dataset, _require_id(dataset_id))
    if row is None:
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found.")
    return row


def save_dataset(db: Session, dataset: ParsedDataset, *, imported_at: Optional[datetime] = None) -> DatasetSummary:
    """Persist a normalized dataset and its features in a single transaction."""
    display_name = (dataset.display_name or "").strip() or os.path.basename(dataset.source_path)
    statistics = dataset.statistics or compute_dataset_statistics(dataset.features)

    metadata = {
        "meta": dataset.meta.to_dict(),
        "featureStates": dump_value(sanitize_feature_states(dataset.feature_states or {})),
        "plotTracks": dump_value(sanitize_plot_tracks(dataset.plot_tracks or [])),
        "linkTracks": dump_value(sanitize_link_tracks(dataset.link_tracks or [])),
        "statistics": statistics.to_dict(),
    }

    row = Dataset(
        id=dataset.id,
        project_id=dataset.project_id,
        file_name=os.path.basename(dataset.source_path),
        file_type=dataset.format,
        source_path=dataset.source_path,
        display_name=display_name,
        status=DatasetStatus.PARSED,
        metadata_json=json.dumps(metadata),
        imported_at=imported_at or datetime.utcnow(),
    )
    row.features = [
        DatasetFeature(feature_index=index, payload_json=json.dumps(dump_value(feature)))
        for index, feature in enumerate(dataset.features)
    ]

    try:
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info("Saved dataset %s (%d features) for project %s", row.id, len(dataset.features), row.project_id)
    return _summary_from_row(row)


def list_datasets(db: Session, *, project_id: str) -> List[DatasetSummary]:
    """Datasets of a project, most recently imported first."""
    rows = db.execute(
        select(Dataset).where(Dataset.project_id == project_id).order_by(Dataset.imported_at.desc())
    ).scalars().all()
    return [_summary_from_row(r) for r in rows]


def get_dataset_detail(db: Session, *, dataset_id: str) -> Optional[DatasetDetail]:
    row = db.get(Dataset, _require_id(dataset_id))
    if row is None:
        return None

    features: List[Dict[str, Any]] = []
    for item in row.features:
        try:
            payload = json.loads(item.payload_json)
        except json.JSONDecodeError:
            logger.error("Dataset %s: unreadable feature payload at index %d", row.id, item.feature_index)
            continue
        if isinstance(payload, dict):
            features.append(payload)

    summary = _summary_from_row(row)
    return DatasetDetail(**summary.__dict__, features=features)


def rename_dataset(db: Session, *, dataset_id: str, display_name: str) -> DatasetSummary:
    """Set the display name; a blank name resets it to the file name."""
    row = _get_row(db, dataset_id)
    row.display_name = (display_name or "").strip() or None
    db.add(row)
    db.commit()
    return _summary_from_row(row)


def _update_metadata(db: Session, dataset_id: str, key: str, value: Any) -> DatasetSummary:
    row = _get_row(db, dataset_id)
    metadata = _load_metadata(row)
    metadata[key] = dump_value(value)
    # Re-sanitize siblings so legacy rows get cleaned on any write.
    metadata["featureStates"] = dump_value(sanitize_feature_states(metadata.get("featureStates") or {}))
    metadata["plotTracks"] = dump_value(sanitize_plot_tracks(metadata.get("plotTracks")))
    metadata["linkTracks"] = dump_value(sanitize_link_tracks(metadata.get("linkTracks")))
    row.metadata_json = json.dumps(metadata)
    try:
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return _summary_from_row(row)


def update_feature_states(db: Session, *, dataset_id: str, feature_states: Any) -> DatasetSummary:
    return _update_metadata(db, dataset_id, "featureStates", sanitize_feature_states(feature_states or {}))


def update_plot_tracks(db: Session, *, dataset_id: str, plot_tracks: Any) -> DatasetSummary:
    return _update_metadata(db, dataset_id, "plotTracks", sanitize_plot_tracks(plot_tracks or []))


def update_link_tracks(db: Session, *, dataset_id: str, link_tracks: Any) -> DatasetSummary:
    return _update_metadata(db, dataset_id, "linkTracks", sanitize_link_tracks(link_tracks or []))


def delete_dataset(db: Session, *, dataset_id: str) -> bool:
    """Delete a dataset and its features. Returns False when it did not exist."""
    row = db.get(Dataset, _require_id(dataset_id))
    if row is None:
        return False
    db.delete(row)
    db.commit()
    logger.info("Deleted dataset %s", dataset_id)
    return True
