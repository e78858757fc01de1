# File: backend/app/core/annotation/parsers/genbank_parser.py
# Version: v0.3.0
"""
GenBank flat-file parser.

Two passes over the file lines:

1) Metadata scan: total length from the first LOCUS line, organism from the
   first indented ORGANISM line. Stops as soon as both are known.
2) Feature scan: the FEATURES table (up to ORIGIN or end of file) is turned
   into a token stream (header / text / qualifier) and folded through an
   explicit parser state, `Scanning` or `InFeature(partial)`. A partial
   feature is finalized when the next header arrives or the table ends.

Locations use a deliberately loose heuristic (`parse_location`): every
integer in the expression is collected and start/stop are their min/max, so
`join(...)`, `complement(...)` and `<`/`>` partial markers are tolerated as
noise. `order(...)` and locations that reference other accessions are not
special-cased; they go through the same heuristic.

v0.3.0
- Location expressions wrapped onto continuation lines are joined before
  parsing.
- A multi-line quoted qualifier also stops consuming at a feature header or
  ORIGIN line, not only at the next qualifier.

v0.2.0
- Replace the "current feature" variable with an explicit state fold.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from backend.app.core.annotation.models import (
    Feature,
    FileParseRequest,
    FileParseResult,
    ParsedDatasetMeta,
    ParserSummary,
    Segment,
)
from backend.app.core.annotation.parsers.base import AnnotationParser, new_id, read_source

logger = logging.getLogger(__name__)

FEATURE_LINE = re.compile(r"^\s{5}([A-Za-z0-9_.'-]+)\s+(.+)$")
LOCUS_LINE = re.compile(r"^LOCUS\s+\S+\s+(\d+)", re.IGNORECASE)
ORGANISM_LINE = re.compile(r"^\s+ORGANISM\s+(.+)")
_INTEGER = re.compile(r"\d+")
_RANGE = re.compile(r"(\d+)\.\.(\d+)")

NAME_QUALIFIERS = ("gene", "locus_tag", "product", "note")


# ---------- Location ----------

@dataclass(frozen=True)
class ParsedLocation:
    start: int
    stop: int
    strand: int
    segments: Tuple[Segment, ...]


def parse_location(raw: str) -> Optional[ParsedLocation]:
    """
    Resolve a GenBank location expression to (start, stop, strand, segments).

    Returns None when the expression holds no integer at all.
    """
    cleaned = re.sub(r"\s+", "", raw or "")
    numbers = [int(m) for m in _INTEGER.findall(cleaned)]
    if not numbers:
        return None

    start = min(numbers)
    stop = max(numbers)
    strand = -1 if "complement" in cleaned else 1

    segments = [
        Segment(start=min(int(a), int(b)), end=max(int(a), int(b)))
        for a, b in _RANGE.findall(cleaned)
    ]
    if not segments:
        segments = [Segment(start=start, end=stop)]

    return ParsedLocation(start=start, stop=stop, strand=strand, segments=tuple(segments))


# ---------- Tokens ----------

@dataclass(frozen=True)
class _Header:
    type: str
    location: str


@dataclass(frozen=True)
class _Text:
    text: str


@dataclass(frozen=True)
class _Qualifier:
    key: str
    value: Union[str, bool]


_Token = Union[_Header, _Text, _Qualifier]


def _ends_qualifier(line: str) -> bool:
    trimmed = line.strip()
    return trimmed.startswith("/") or trimmed.startswith("ORIGIN") or bool(FEATURE_LINE.match(line))


def _unquote(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.replace('""', '"')


def _read_qualifier(lines: Sequence[str], index: int) -> Tuple[str, Union[str, bool], int]:
    """
    Parse the qualifier starting at `lines[index]`.

    Returns (key, value, last_index_consumed). A quoted value with an odd
    number of quote characters keeps absorbing the following lines until the
    quotes balance.
    """
    body = lines[index].strip()[1:]
    key, sep, raw = body.partition("=")
    key = key.strip()
    if not sep:
        return key, True, index

    value = raw.strip()
    if not value.startswith('"'):
        return key, value, index

    balance = value.count('"')
    while balance % 2 != 0 and index + 1 < len(lines):
        candidate = lines[index + 1]
        if _ends_qualifier(candidate):
            break
        index += 1
        text = candidate.strip()
        if text:
            value = f"{value} {text}"
            balance += text.count('"')
    return key, _unquote(value), index


def _tokenize_feature_table(lines: Sequence[str]) -> Iterator[_Token]:
    """Yield tokens for the lines between FEATURES and ORIGIN (or EOF)."""
    index = 0
    while index < len(lines) and not lines[index].startswith("FEATURES"):
        index += 1
    index += 1

    while index < len(lines):
        line = lines[index]
        if line.startswith("ORIGIN"):
            return

        header = FEATURE_LINE.match(line)
        if header:
            yield _Header(type=header.group(1), location=header.group(2).strip())
        else:
            trimmed = line.strip()
            if trimmed.startswith("/"):
                key, value, index = _read_qualifier(lines, index)
                if key:
                    yield _Qualifier(key=key, value=value)
            elif trimmed:
                yield _Text(text=trimmed)
        index += 1


# ---------- State ----------

@dataclass(frozen=True)
class _PartialFeature:
    type: str
    location: str
    qualifiers: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    in_qualifiers: bool = False


@dataclass(frozen=True)
class Scanning:
    pass


@dataclass(frozen=True)
class InFeature:
    partial: _PartialFeature


_State = Union[Scanning, InFeature]


@dataclass
class _Collected:
    features: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _finalize(state: _State, out: _Collected) -> None:
    if not isinstance(state, InFeature):
        return
    partial = state.partial
    location = parse_location(partial.location)
    if location is None:
        out.warnings.append(f'Feature "{partial.type}" skipped: invalid location.')
        logger.debug("GenBank feature %s dropped (location %r)", partial.type, partial.location)
        return

    feature = Feature(
        id=new_id(),
        type=partial.type,
        name=partial.name or f"{partial.type} {len(out.features) + 1}",
        start=location.start,
        stop=location.stop,
        strand=location.strand,
        location=partial.location,
        segments=list(location.segments),
        qualifiers=dict(partial.qualifiers),
    )
    out.features.append(feature.to_dict())


def _step(state: _State, token: _Token, out: _Collected) -> _State:
    if isinstance(token, _Header):
        _finalize(state, out)
        return InFeature(_PartialFeature(type=token.type, location=token.location))

    if not isinstance(state, InFeature):
        return state

    partial = state.partial
    if isinstance(token, _Text):
        if partial.in_qualifiers:
            return state
        return InFeature(replace(partial, location=partial.location + token.text))

    name = partial.name
    if (
        name is None
        and token.key in NAME_QUALIFIERS
        and isinstance(token.value, str)
        and token.value.strip()
    ):
        name = token.value
    return InFeature(replace(
        partial,
        qualifiers={**partial.qualifiers, token.key: token.value},
        name=name,
        in_qualifiers=True,
    ))


def parse_features(lines: Sequence[str]) -> Tuple[List[Dict[str, Any]], List[str]]:
    """Fold the FEATURES table into feature dicts plus skip warnings."""
    out = _Collected()
    state: _State = Scanning()
    for token in _tokenize_feature_table(lines):
        state = _step(state, token, out)
    _finalize(state, out)
    return out.features, out.warnings


def parse_meta(lines: Sequence[str]) -> ParsedDatasetMeta:
    meta = ParsedDatasetMeta(record_count=0)
    for line in lines:
        if meta.total_length is None and line.startswith("LOCUS"):
            m = LOCUS_LINE.match(line)
            if m:
                length = int(m.group(1))
                if length > 0:
                    meta.total_length = length

        if meta.organism is None:
            m = ORGANISM_LINE.match(line)
            if m:
                meta.organism = m.group(1).strip()

        if meta.total_length is not None and meta.organism is not None:
            break
    return meta


class GenBankAnnotationParser(AnnotationParser):
    format = "genbank"

    def summary(self) -> ParserSummary:
        return ParserSummary(
            format="genbank",
            display_name="GenBank parser",
            description="Reads .gb/.gbk files and extracts features, qualifiers and record metadata.",
        )

    def parse(self, request: FileParseRequest) -> FileParseResult:
        content = read_source(request.file_path)
        lines = content.splitlines()

        meta = parse_meta(lines)
        features, warnings = parse_features(lines)
        meta.record_count = len(features)

        logger.info(
            "GenBank %s: %d features, %d skipped", request.file_path, len(features), len(warnings)
        )
        return FileParseResult(dataset=self._dataset(request, meta, features), warnings=warnings)
