# File: backend/app/db/models.py
# Version: v0.4.0
"""
ORM models for AnnoTrack.

Tables:
- Dataset: one imported annotation file. Metadata, viewer state (feature
           states, plot/link tracks) and statistics live in `metadata_json`.
- DatasetFeature: the dataset's features, one JSON payload per row, ordered
                  by `feature_index`. Deleted with their dataset.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

Base = declarative_base()


class DatasetStatus(str, PyEnum):
    PARSED = "parsed"


class Dataset(Base):
    """A persisted, normalized annotation dataset."""
    __tablename__ = "datasets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(16), nullable=False)
    source_path: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[DatasetStatus] = mapped_column(Enum(DatasetStatus), default=DatasetStatus.PARSED, nullable=False)
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # meta + tracks + statistics
    imported_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    features: Mapped[List["DatasetFeature"]] = relationship(
        back_populates="dataset",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DatasetFeature.feature_index",
    )


class DatasetFeature(Base):
    __tablename__ = "dataset_features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_id: Mapped[str] = mapped_column(ForeignKey("datasets.id", ondelete="CASCADE"), nullable=False)
    feature_index: Mapped[int] = mapped_column(Integer, nullable=False)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)

    dataset: Mapped[Dataset] = relationship(back_populates="features")

    __table_args__ = (Index("ix_dataset_features_dataset", "dataset_id", "feature_index"),)
