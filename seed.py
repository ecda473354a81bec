#!/usr/bin/env python3
"""CLI: read per-term JSON files -> dedupe -> insert terms, definitions, references."""

import argparse
import sys

import slangdict.config as config
from slangdict.db import init_db
from slangdict.errors import IngestConfigError
from slangdict.ingest.pipeline import run_ingest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the slang dictionary from scraped JSON files")
    parser.add_argument("--source", required=True, help="Directory holding one JSON file per term")
    parser.add_argument("--batch-size", type=int, default=None,
                        help="Terms per insert batch (overrides SEED_BATCH_SIZE)")
    parser.add_argument("--reference-batch-size", type=int, default=None,
                        help="References per insert batch (overrides SEED_REFERENCE_BATCH_SIZE)")
    parser.add_argument("--exclude-self-references", action="store_true",
                        help="Do not link definitions to the term they define")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        init_db()
        report = run_ingest(
            args.source,
            batch_size=args.batch_size,
            reference_batch_size=args.reference_batch_size,
            exclude_self_references=True if args.exclude_self_references else None,
        )
    except (IngestConfigError, RuntimeError) as exc:
        config.logger.error(f"Seeding aborted: {exc}")
        return 1

    print(
        f"Done. {report.terms_inserted} terms, {report.definitions_inserted} definitions, "
        f"{report.references_inserted} references ({report.error_count} errors)."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
