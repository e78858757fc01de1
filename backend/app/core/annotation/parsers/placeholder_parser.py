# File: backend/app/core/annotation/parsers/placeholder_parser.py
# Version: v0.1.1
"""
Fallback parser used by the registry when no parser is registered for the
resolved format. Returns one sample feature and a warning so the rest of the
import flow still runs end to end.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from backend.app.core.annotation.models import (
    Feature,
    FileParseRequest,
    FileParseResult,
    ParsedDataset,
    ParsedDatasetMeta,
    ParserSummary,
)
from backend.app.core.annotation.parsers.base import AnnotationParser, new_id

logger = logging.getLogger(__name__)

PLACEHOLDER_WARNING = "No parser registered for this format; returned placeholder data."


class PlaceholderParser(AnnotationParser):
    format = "genbank"

    def summary(self) -> ParserSummary:
        return ParserSummary(
            format="genbank",
            display_name="Placeholder parser",
            description="Returns sample data when no parser matches the requested format.",
        )

    def parse(self, request: FileParseRequest, resolved_format: Optional[str] = None) -> FileParseResult:
        fmt = resolved_format or request.format_hint or self.format
        logger.warning("No parser for format %r; using placeholder for %s", fmt, request.file_path)

        feature = Feature(
            id=new_id(),
            type="gene",
            name="placeholderA",
            start=100,
            stop=1200,
            strand=1,
        )
        dataset = ParsedDataset(
            id=new_id(),
            project_id=request.project_id,
            format=fmt,
            source_path=request.file_path,
            meta=ParsedDatasetMeta(
                record_count=1,
                total_length=10000,
                organism=Path(request.file_path).name or "Placeholder organism",
            ),
            features=[feature.to_dict()],
        )
        return FileParseResult(dataset=dataset, warnings=[PLACEHOLDER_WARNING])
