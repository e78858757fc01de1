# File: backend/app/cli/import_cli.py
# Version: v0.2.0

"""
Command-line interface for annotation import.

Parses one file (GenBank / GFF3 / CSV / JSON), runs the normalization
pipeline, prints a short summary with all warnings and optionally exports
or stores the result.

Example:
    python -m backend.app.cli.import_cli --file sample.gb --export-json out.json --save

v0.2.0:
- --save stores the dataset in the configured database (creates tables if missing).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from backend.app.core.annotation.models import SUPPORTED_FORMATS, FileParseRequest
from backend.app.core.annotation.parsers.base import AnnotationParseError
from backend.app.core.annotation.pipeline import NormalizationPipeline, parse_file
from backend.app.core.config import settings
from backend.app.core.export.csv_exporter import export_features_to_csv
from backend.app.core.export.genbank_exporter import export_dataset_to_genbank
from backend.app.core.export.json_exporter import export_dataset_to_json


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Annotation import CLI")
    p.add_argument("--file", required=True, type=Path, help="Annotation file to import")
    p.add_argument("--project-id", dest="project_id", default="cli", help="Project id stored with the dataset")
    p.add_argument("--format", dest="format_hint", choices=list(SUPPORTED_FORMATS),
                   help="Force a format instead of guessing from the extension")
    p.add_argument("--max-features", dest="max_features", type=int, default=settings.MAX_FEATURES,
                   help=f"Truncation cap (default: {settings.MAX_FEATURES})")
    p.add_argument("--export-json", dest="export_json", type=Path, help="Write normalized dataset JSON here")
    p.add_argument("--export-csv", dest="export_csv", type=Path, help="Write a feature CSV here")
    p.add_argument("--export-genbank", dest="export_genbank", type=Path, help="Write a GenBank file here")
    p.add_argument("--save", action="store_true", help="Store the dataset in the database")
    p.add_argument("--log-level", dest="log_level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level (default: INFO)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))
    log = logging.getLogger("import_cli")
    log.info("FILE=%s | FORMAT=%s | PROJECT=%s", str(args.file), args.format_hint or "auto", args.project_id)

    request = FileParseRequest(
        file_path=str(args.file),
        project_id=args.project_id,
        format_hint=args.format_hint,
    )
    try:
        result = parse_file(request, pipeline=NormalizationPipeline(max_features=args.max_features))
    except AnnotationParseError as e:
        log.error("Import failed: %s", e)
        return 1

    dataset = result.dataset
    stats = dataset.statistics
    print(f"Dataset {dataset.id} ({dataset.format})")
    print(f"  features:     {dataset.meta.record_count}")
    print(f"  total length: {dataset.meta.total_length if dataset.meta.total_length is not None else '-'}")
    print(f"  organism:     {dataset.meta.organism or '-'}")
    if stats is not None:
        for entry in stats.feature_types:
            print(f"  {entry.label:<20} {entry.count}")
    for w in result.warnings:
        print(f"WARNING: {w}")

    if args.export_json:
        export_dataset_to_json(dataset, args.export_json, result.warnings)
        log.info("Wrote %s", args.export_json)
    if args.export_csv:
        n = export_features_to_csv(dataset, args.export_csv)
        log.info("Wrote %s (%d rows)", args.export_csv, n)
    if args.export_genbank:
        n = export_dataset_to_genbank(dataset, args.export_genbank)
        log.info("Wrote %s (%d features)", args.export_genbank, n)

    if args.save:
        # Imported lazily so exports work without touching the database.
        from backend.app.db.maintenance import ensure_schema_sqlite
        from backend.app.db.session import SessionLocal, engine
        from backend.app.services.dataset_store import save_dataset

        ensure_schema_sqlite(engine)
        with SessionLocal() as db:
            summary = save_dataset(db, dataset)
        log.info("Saved dataset %s as %r", summary.id, summary.display_name)

    return 0


if __name__ == "__main__":
    sys.exit(main())
