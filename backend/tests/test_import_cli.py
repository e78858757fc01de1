# File: backend/tests/test_import_cli.py
# Version: v0.1.0
"""Import CLI end to end (no database unless --save)."""
import json

from backend.app.cli.import_cli import main


def test_import_with_exports(fixtures_dir, tmp_path, capsys):
    out_json = tmp_path / "d.json"
    out_csv = tmp_path / "d.csv"
    out_gb = tmp_path / "d.gb"
    rc = main([
        "--file", str(fixtures_dir / "sample.csv"),
        "--export-json", str(out_json),
        "--export-csv", str(out_csv),
        "--export-genbank", str(out_gb),
    ])
    assert rc == 0

    printed = capsys.readouterr().out
    assert "features:     2" in printed
    assert "WARNING: Row 4 skipped: missing start/stop." in printed

    assert json.loads(out_json.read_text(encoding="utf-8"))["meta"]["recordCount"] == 2
    assert out_csv.read_text(encoding="utf-8").startswith("id,name,type,start,stop,strand,color")
    assert out_gb.read_text(encoding="utf-8").startswith("LOCUS")


def test_max_features_option(fixtures_dir, capsys):
    assert main(["--file", str(fixtures_dir / "sample.gff3"), "--max-features", "1"]) == 0
    assert "truncated for performance" in capsys.readouterr().out


def test_save_stores_dataset(fixtures_dir):
    assert main(["--file", str(fixtures_dir / "sample.gb"), "--project-id", "cli-save", "--save"]) == 0


def test_parse_error_returns_1(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("name,start\na,1\n", encoding="utf-8")
    assert main(["--file", str(bad)]) == 1
