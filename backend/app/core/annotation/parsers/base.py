# File: backend/app/core/annotation/parsers/base.py
# Version: v0.2.0
"""
Parser contract shared by all annotation formats.

A parser reads the whole source file (no streaming), returns a best-effort
dataset plus the row/feature-level warnings it collected, and raises
`AnnotationParseError` only when the result would be structurally
meaningless (unreadable file, no way to interpret coordinates).
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from backend.app.core.annotation.models import (
    FileParseRequest,
    FileParseResult,
    ParsedDataset,
    ParsedDatasetMeta,
    ParserSummary,
)


class AnnotationParseError(RuntimeError):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def read_source(path: str) -> str:
    """Read a source file as UTF-8 text (a leading BOM is dropped); any I/O or decode failure is fatal."""
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise AnnotationParseError(f"Cannot read {path}: {exc}") from exc


class AnnotationParser(ABC):
    format: str = ""

    @abstractmethod
    def summary(self) -> ParserSummary:
        ...

    def can_parse(self, fmt: str) -> bool:
        return fmt == self.format

    @abstractmethod
    def parse(self, request: FileParseRequest) -> FileParseResult:
        ...

    def _dataset(self, request: FileParseRequest, meta: ParsedDatasetMeta, features: list) -> ParsedDataset:
        return ParsedDataset(
            id=new_id(),
            project_id=request.project_id,
            format=self.format,
            source_path=request.file_path,
            meta=meta,
            features=features,
        )
