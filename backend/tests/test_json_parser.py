# File: backend/tests/test_json_parser.py
# Version: v0.1.1
"""JSON parser: meta coercion, length inference, carried attachments."""
import json

import pytest

from backend.app.core.annotation.models import FileParseRequest
from backend.app.core.annotation.parsers.base import AnnotationParseError
from backend.app.core.annotation.parsers.json_parser import JsonAnnotationParser


def _parse(path):
    return JsonAnnotationParser().parse(FileParseRequest(file_path=str(path), project_id="p1"))


def _write(tmp_path, data):
    p = tmp_path / "d.json"
    p.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return p


def test_fixture_meta_and_passthrough(fixtures_dir):
    ds = _parse(fixtures_dir / "sample.json").dataset
    assert ds.meta.record_count == 3
    assert ds.meta.total_length == 12000
    assert ds.meta.organism == "Synthetic"
    assert ds.display_name == "Synthetic set"
    assert ds.features[1] == {"id": "f2", "kind": "Repeat", "name": "b", "begin": 700, "end": 900}
    # carried raw, sanitized later
    assert isinstance(ds.plot_tracks, list) and ds.plot_tracks[1] == "junk"
    assert " gene " in ds.feature_states


def test_length_from_feature_stops(tmp_path):
    p = _write(tmp_path, {"features": [{"start": 1, "stop": 40}, {"begin": 3, "end": "77"}, {"mapStop": 12}]})
    ds = _parse(p).dataset
    assert ds.meta.total_length == 77
    assert ds.meta.record_count == 3


def test_meta_total_length_wins(tmp_path):
    p = _write(tmp_path, {"meta": {"totalLength": 5, "recordCount": 0}, "length": 99, "features": [{"stop": 300}]})
    ds = _parse(p).dataset
    assert ds.meta.total_length == 5
    assert ds.meta.record_count == 1


def test_non_list_features_become_empty(tmp_path):
    ds = _parse(_write(tmp_path, {"features": {"a": 1}})).dataset
    assert ds.features == []
    assert ds.meta.total_length is None


def test_malformed_json_is_fatal(tmp_path):
    with pytest.raises(AnnotationParseError):
        _parse(_write(tmp_path, "{not json"))


def test_length_from_raw_sequence_string(tmp_path):
    ds = _parse(_write(tmp_path, {"sequence": "ACGT" * 500, "features": [{"start": 1, "stop": 10}]})).dataset
    assert ds.meta.total_length == 2000
