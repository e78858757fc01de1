# File: backend/app/core/annotation/registry.py
# Version: v0.1.1
"""
Format registry: picks a parser for a FileParseRequest.

Resolution order: explicit format hint, then file extension
(case-insensitive), then `json`. A format with no registered parser goes to
the placeholder parser, so parsing never fails just because the format is
unknown.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional

from backend.app.core.annotation.models import FileParseRequest, FileParseResult, ParserSummary
from backend.app.core.annotation.parsers.base import AnnotationParser
from backend.app.core.annotation.parsers.csv_parser import CsvAnnotationParser
from backend.app.core.annotation.parsers.genbank_parser import GenBankAnnotationParser
from backend.app.core.annotation.parsers.gff3_parser import Gff3AnnotationParser
from backend.app.core.annotation.parsers.json_parser import JsonAnnotationParser
from backend.app.core.annotation.parsers.placeholder_parser import PlaceholderParser

logger = logging.getLogger(__name__)

EXTENSION_MAP: Dict[str, str] = {
    ".gb": "genbank",
    ".gbk": "genbank",
    ".gff": "gff3",
    ".gff3": "gff3",
    ".json": "json",
    ".csv": "csv",
}
DEFAULT_FORMAT = "json"


def infer_format(request: FileParseRequest) -> str:
    if request.format_hint:
        return request.format_hint
    extension = os.path.splitext(request.file_path)[1].lower()
    return EXTENSION_MAP.get(extension, DEFAULT_FORMAT)


class ParserRegistry:
    def __init__(self, parsers: Iterable[AnnotationParser], fallback: Optional[PlaceholderParser] = None):
        self._parsers: Dict[str, AnnotationParser] = {}
        for parser in parsers:
            self._parsers[parser.summary().format] = parser
        self._fallback = fallback or PlaceholderParser()

    def summaries(self) -> List[ParserSummary]:
        return [parser.summary() for parser in self._parsers.values()]

    def resolve(self, fmt: str) -> Optional[AnnotationParser]:
        """First registered parser that accepts `fmt`, or None."""
        return next((p for p in self._parsers.values() if p.can_parse(fmt)), None)

    def parse(self, request: FileParseRequest) -> FileParseResult:
        fmt = infer_format(request)
        parser = self.resolve(fmt)
        if parser is None:
            return self._fallback.parse(request, resolved_format=fmt)
        logger.debug("Parsing %s as %s", request.file_path, fmt)
        return parser.parse(request)


def create_default_parser_registry() -> ParserRegistry:
    return ParserRegistry(
        [
            GenBankAnnotationParser(),
            Gff3AnnotationParser(),
            JsonAnnotationParser(),
            CsvAnnotationParser(),
        ],
        PlaceholderParser(),
    )
