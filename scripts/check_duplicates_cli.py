#!/usr/bin/env python3
# scripts/check_duplicates_cli.py
"""
Check one incoming record against the catalog.

Usage:
    python -m scripts.check_duplicates_cli --record record.json --candidates rows.json
    python -m scripts.check_duplicates_cli --record record.json            # Supabase
    python -m scripts.check_duplicates_cli --record record.json --merge-tags --write

Exit codes: 0 no duplicate, 1 duplicate found, 2 error.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

EXIT_NO_DUPLICATE = 0
EXIT_DUPLICATE = 1
EXIT_ERROR = 2


def _load_json(path: str) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def build_retriever(candidates_path: Optional[str]) -> Any:
    """In-memory retriever over a JSON export, or the live Supabase catalog."""
    if candidates_path:
        from catalog_dedupe.db.retriever import InMemoryCandidateRetriever
        from catalog_dedupe.models import CandidateRecord

        rows = _load_json(candidates_path)
        if not isinstance(rows, list):
            raise ValueError(f"{candidates_path}: expected a JSON list of candidate records")
        return InMemoryCandidateRetriever(CandidateRecord.model_validate(r) for r in rows)

    from catalog_dedupe.db.candidates import SupabaseCandidateRetriever
    from catalog_dedupe.db.supabase_client import get_supabase_client

    return SupabaseCandidateRetriever(get_supabase_client())


def run(args: argparse.Namespace) -> tuple[dict[str, Any], int]:
    # Import here so --help works without the engine deps
    from catalog_dedupe.config import load_similarity_config
    from catalog_dedupe.matching.detector import DuplicateDetector, validate_threshold
    from catalog_dedupe.matching.weights import resolve_weights
    from catalog_dedupe.models import IncomingRecord

    config = load_similarity_config()
    record = IncomingRecord.model_validate(_load_json(args.record))
    weights = json.loads(args.weights) if args.weights else None
    threshold = args.threshold if args.threshold is not None else config.duplicate_threshold

    # Bad threshold / weights fail before the catalog is queried
    validate_threshold(threshold)
    resolve_weights(record.entity_kind, weights)

    detector = DuplicateDetector(
        build_retriever(args.candidates), config=config, max_workers=args.workers
    )
    candidates = detector.retrieve_candidates(record)
    decision = detector.check_duplicates(record, threshold, weights, candidates=candidates)
    output: dict[str, Any] = {"decision": decision.as_dict()}

    if args.report:
        report = detector.assess_similarity(record, weights, candidates=candidates)
        output["report"] = report.as_dict()

    if args.merge_tags and decision.is_duplicate and decision.best_candidate_id:
        if args.candidates:
            raise ValueError("--merge-tags needs the Supabase catalog (drop --candidates)")
        from catalog_dedupe.db.supabase_client import get_supabase_client
        from catalog_dedupe.db.tag_writer import merge_tags_into_existing

        merge = merge_tags_into_existing(
            get_supabase_client(),
            record.entity_kind,
            decision.best_candidate_id,
            record.tags,
            dry_run=not args.write,
        )
        output["tagMerge"] = {**merge.as_dict(), "dryRun": not args.write}

    return output, EXIT_DUPLICATE if decision.is_duplicate else EXIT_NO_DUPLICATE


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Catalog duplicate check for one incoming record.")
    parser.add_argument("--record", required=True, help="Path to the incoming record JSON.")
    parser.add_argument(
        "--candidates",
        default=None,
        help="Path to a JSON list of candidate records (default: query Supabase).",
    )
    parser.add_argument("--threshold", type=float, default=None, help="Duplicate threshold 0..1.")
    parser.add_argument(
        "--weights",
        default=None,
        help='Partial weight overrides as JSON, e.g. \'{"gps": 0.5, "tagSimilarity": 0.1}\'.',
    )
    parser.add_argument("--report", action="store_true", help="Also print the tiered similarity report.")
    parser.add_argument("--workers", type=int, default=1, help="Scoring threads (default 1).")
    parser.add_argument(
        "--merge-tags",
        action="store_true",
        help="On a confirmed duplicate, merge the record's tags into the match.",
    )
    # Default: dry-run (safe). Use --write to allow DB writes.
    parser.add_argument(
        "--write",
        action="store_true",
        help="Write merged tags to DB (dangerous). Default is dry-run.",
    )

    args = parser.parse_args(argv)

    from catalog_dedupe.config import LOG_LEVEL
    from catalog_dedupe.errors import error_code

    logging.basicConfig(level=LOG_LEVEL, format="[%(name)s] %(levelname)s %(message)s")

    try:
        output, code = run(args)
    except Exception as e:
        to_dict = getattr(e, "to_dict", None)
        detail = to_dict() if callable(to_dict) else {
            "name": type(e).__name__,
            "code": error_code(e),
            "message": str(e),
        }
        print(f"[check_duplicates] ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        print(json.dumps({"error": detail}, indent=2, default=str))
        return EXIT_ERROR

    print(json.dumps(output, indent=2, default=str))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
