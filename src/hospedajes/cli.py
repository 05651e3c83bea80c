"""Command-line interface.

``hospedajes extract`` reconstructs records from a PDF (or a text dump)
and writes CSV/JSON exports plus a run summary.  ``hospedajes rows``
prints the grouped rows with the role of every fragment, for checking
how a new report layout is being read.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ReconstructionConfig
from .debug import describe_rows, format_rows
from .export import export_result
from .grouping import RowStream, rows_from_text
from .ingest import IngestError, ingest_pdf
from .pipeline import (
    ExtractionStatus,
    extract_records_from_text,
    run_document,
)
from .profile import LayoutProfile, load_profile
from .stitch import ContinuationRules
from .tokens import extract_document_tokens

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_profile(path: Optional[Path]) -> LayoutProfile:
    return load_profile(path) if path else LayoutProfile()


def _add_input_args(p: argparse.ArgumentParser) -> None:
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--pdf", type=Path, help="Path to the report PDF")
    src.add_argument(
        "--text", type=Path, help="Path to a text dump (one line per row)"
    )
    p.add_argument(
        "--profile", type=Path, default=None, help="Layout profile override (JSON)"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hospedajes",
        description="Reconstruct lodging records from the published report",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_ext = sub.add_parser("extract", help="Extract records and export them")
    _add_input_args(p_ext)
    p_ext.add_argument(
        "--out-dir", type=Path, default=Path("exports"), help="Output directory"
    )
    p_ext.add_argument(
        "--no-csv", action="store_true", default=False, help="Skip the records CSV"
    )
    p_ext.add_argument(
        "--no-json", action="store_true", default=False, help="Skip the records JSON"
    )
    p_ext.add_argument(
        "--adopt-orphan-category",
        action="store_true",
        default=False,
        help="Merge a category into an open record that has none",
    )
    p_ext.add_argument(
        "--no-column-fallback",
        action="store_true",
        default=False,
        help="Never rebuild sections from column streams",
    )

    p_rows = sub.add_parser("rows", help="Dump grouped rows with fragment roles")
    _add_input_args(p_rows)
    p_rows.add_argument(
        "--json", action="store_true", default=False, help="Emit JSON instead of text"
    )
    return parser


def _cmd_extract(args: argparse.Namespace) -> int:
    cfg = ReconstructionConfig(enable_column_fallback=not args.no_column_fallback)
    profile = _load_profile(args.profile)
    rules = ContinuationRules(adopt_orphan_category=args.adopt_orphan_category)

    if args.pdf:
        result = run_document(args.pdf, cfg, profile, rules)
        stem = args.pdf.stem
    else:
        text = args.text.read_text(encoding="utf-8")
        result = extract_records_from_text(
            text, cfg, profile, rules, source=str(args.text)
        )
        stem = args.text.stem

    paths = export_result(
        result,
        args.out_dir,
        stem,
        csv_records=not args.no_csv,
        json_records=not args.no_json,
    )
    for name, path in paths.items():
        log.info("wrote %s: %s", name, path)
    print(result.status_message)

    if result.status is ExtractionStatus.NO_INPUT:
        return 2
    if result.status is ExtractionStatus.NO_RECORDS:
        return 1
    return 0


def _cmd_rows(args: argparse.Namespace) -> int:
    cfg = ReconstructionConfig()
    profile = _load_profile(args.profile)

    if args.pdf:
        try:
            ingest_pdf(args.pdf)
        except IngestError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        pages = extract_document_tokens(args.pdf, cfg)
        rows = list(RowStream([p.tokens for p in pages], cfg))
    else:
        rows = rows_from_text(args.text.read_text(encoding="utf-8"), profile, cfg)

    described = describe_rows(rows, profile, cfg)
    if args.json:
        print(json.dumps(described, ensure_ascii=False, indent=2))
    else:
        print(format_rows(described))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "extract":
        return _cmd_extract(args)
    return _cmd_rows(args)


if __name__ == "__main__":
    sys.exit(main())
