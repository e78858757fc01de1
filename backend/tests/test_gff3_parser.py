# File: backend/tests/test_gff3_parser.py
# Version: v0.1.0
"""GFF3 parser: directives, columns, attributes and skipped lines."""
from backend.app.core.annotation.models import FileParseRequest
from backend.app.core.annotation.parsers.gff3_parser import Gff3AnnotationParser, parse_attributes


def _parse(path):
    return Gff3AnnotationParser().parse(FileParseRequest(file_path=str(path), project_id="p1"))


def test_reverse_strand_gene_line(tmp_path):
    p = tmp_path / "one.gff3"
    p.write_text("chr1\t.\tgene\t100\t200\t.\t-\t.\tID=g1\n", encoding="utf-8")
    result = _parse(p)
    (f,) = result.dataset.features
    assert (f["start"], f["stop"], f["strand"], f["name"]) == (100, 200, -1, "g1")
    assert f["id"] == "g1"
    assert f["seqId"] == "chr1"
    # no directive: inferred from the largest end
    assert result.dataset.meta.total_length == 200


def test_directives_and_optional_columns(fixtures_dir):
    result = _parse(fixtures_dir / "sample.gff3")
    ds = result.dataset
    assert ds.meta.total_length == 5000
    assert ds.meta.organism == "https://www.ncbi.nlm.nih.gov/Taxonomy/Browser/wwwtax.cgi?id=9606"
    assert ds.meta.record_count == 2

    mrna = ds.features[1]
    assert mrna["name"] == "transcript one"
    assert mrna["score"] == 0.5
    assert mrna["phase"] == 0
    assert mrna["source"] == "havana"
    assert mrna["qualifiers"]["Parent"] == "g1"
    assert "score" not in ds.features[0]
    assert "phase" not in ds.features[0]


def test_bad_lines_are_reported_by_number(fixtures_dir):
    result = _parse(fixtures_dir / "sample.gff3")
    assert result.warnings == [
        "Line 6 skipped: expected 8+ columns, got 3.",
        "Line 7 skipped: invalid start/end.",
    ]


def test_reversed_coordinates_are_ordered(tmp_path):
    p = tmp_path / "rev.gff"
    p.write_text("c\t.\tCDS\t900\t300\t.\t+\t.\tproduct=thing\n", encoding="utf-8")
    (f,) = _parse(p).dataset.features
    assert (f["start"], f["stop"]) == (300, 900)
    assert f["name"] == "thing"


def test_unnamed_feature_gets_ordinal_name(tmp_path):
    p = tmp_path / "anon.gff3"
    p.write_text(
        "c\t.\tgene\t1\t10\t.\t+\t.\t\n"
        "c\t.\tgene\t20\t30\t.\t.\t.\tNote=x\n",
        encoding="utf-8",
    )
    features = _parse(p).dataset.features
    assert [f["name"] for f in features] == ["gene 1", "gene 2"]
    assert features[1]["strand"] == 1


def test_parse_attributes_decodes_and_tolerates_flags():
    attrs = parse_attributes("ID=a%3Bb;Name=x y; flag ;=novalue;")
    assert attrs == {"ID": "a;b", "Name": "x y", "flag": ""}
