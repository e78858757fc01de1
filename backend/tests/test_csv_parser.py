# File: backend/tests/test_csv_parser.py
# Version: v0.1.1
"""CSV parser: aliases, inference, fatal header problems."""
import pytest

from backend.app.core.annotation.models import FileParseRequest
from backend.app.core.annotation.parsers.base import AnnotationParseError
from backend.app.core.annotation.parsers.csv_parser import CsvAnnotationParser


def _parse(path):
    return CsvAnnotationParser().parse(FileParseRequest(file_path=str(path), project_id="p1"))


def _write(tmp_path, text, name="t.csv"):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_total_length_inferred_from_max_stop(tmp_path):
    p = _write(tmp_path, "name,start,stop\ng1,100,200\ng2,500,800\n")
    ds = _parse(p).dataset
    assert ds.meta.total_length == 800
    assert [f["name"] for f in ds.features] == ["g1", "g2"]
    assert "qualifiers" not in ds.features[0]


def test_fixture_rows(fixtures_dir):
    result = _parse(fixtures_dir / "sample.csv")
    ds = result.dataset
    assert ds.meta.organism == "Test organism"
    assert ds.meta.record_count == 2
    assert result.warnings == ["Row 4 skipped: missing start/stop."]

    g1, g2 = ds.features
    assert g1["color"] == "#22c55e"
    assert g1["strand"] == 1
    assert g1["type"] == "gene"
    assert g1["qualifiers"] == {"organism": "Test organism", "note": "first"}

    assert (g2["start"], g2["stop"], g2["strand"]) == (500, 800, -1)
    assert "color" not in g2


def test_aliases_and_length_column(tmp_path):
    p = _write(tmp_path, "label,begin,map_stop,category,direction,sequence_length\nx,10,20,repeat,rev,999\n")
    ds = _parse(p).dataset
    (f,) = ds.features
    assert (f["name"], f["start"], f["stop"], f["type"], f["strand"]) == ("x", 10, 20, "repeat", -1)
    assert ds.meta.total_length == 999


def test_one_sided_row_is_anchored(tmp_path):
    p = _write(tmp_path, "start,end\n50,\n")
    (f,) = _parse(p).dataset.features
    assert (f["start"], f["stop"]) == (50, 50)
    assert f["name"] == "feature 1"


def test_missing_required_column_is_fatal(tmp_path):
    p = _write(tmp_path, "name,start\ng1,1\n")
    with pytest.raises(AnnotationParseError, match='Missing required column "stop"'):
        _parse(p)


def test_ragged_row_is_fatal(tmp_path):
    p = _write(tmp_path, "name,start,stop\ng1,1,2,extra\n")
    with pytest.raises(AnnotationParseError):
        _parse(p)


@pytest.mark.parametrize("text", ["", "name,start,stop\n"])
def test_empty_file_gives_empty_dataset(tmp_path, text):
    result = _parse(_write(tmp_path, text))
    assert result.dataset.features == []
    assert result.warnings == ["File empty: no features parsed."]


def test_unreadable_file_is_fatal(tmp_path):
    with pytest.raises(AnnotationParseError):
        _parse(tmp_path / "missing.csv")


def test_byte_order_mark_is_ignored(tmp_path):
    p = tmp_path / "excel.csv"
    p.write_bytes(b"\xef\xbb\xbfstart,stop,name\n100,200,g1\n")
    result = _parse(p)
    assert result.warnings == []
    (f,) = result.dataset.features
    assert (f["name"], f["start"], f["stop"]) == ("g1", 100, 200)
