"""
audit.py
=========
Rule-coverage audit: for every country in the risk table, which disease
entries survive filtering, which exposure questions they trigger, and
which surviving entries match no hazard pattern at all.

Run as `vhf-audit` (or `python -m vhf_assessment.audit`).
"""

import argparse
import json
import logging
from dataclasses import dataclass

from .classifier import HAZARD_LABELS, Hazard, classify
from .logging_utils import configure_logging
from .risk_table import load_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRow:
    country: str
    diseases: tuple
    exposure_questions: tuple
    unmatched: tuple

    def as_dict(self) -> dict:
        return {
            "country": self.country,
            "diseases": list(self.diseases),
            "exposure_questions": list(self.exposure_questions),
            "unmatched": list(self.unmatched),
        }


def audit_rows(risk_table, query=""):
    """One row per country, sorted by name, filtered by `query` if given."""
    rows = []
    for key in risk_table.keys():
        result = classify(risk_table.lookup(key))
        rows.append(AuditRow(
            country=risk_table.display_name(key),
            diseases=tuple(r.disease for r in result.filtered if r.disease),
            exposure_questions=tuple(
                HAZARD_LABELS[h] for h in Hazard if result.has(h)
            ),
            unmatched=result.unmatched,
        ))

    needle = (query or "").strip().lower()
    if needle:
        rows = [
            r for r in rows
            if needle in r.country.lower()
            or needle in "; ".join(r.diseases).lower()
            or needle in ", ".join(r.exposure_questions).lower()
        ]
    return sorted(rows, key=lambda r: r.country.lower())


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Audit HCID risk entries against the exposure question rules."
    )
    parser.add_argument("--snapshot", help="Path to an HCID snapshot JSON file")
    parser.add_argument("--query", default="", help="Filter rows by text")
    parser.add_argument(
        "--unmatched-only",
        action="store_true",
        help="Only show countries with entries that match no hazard pattern",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON")
    args = parser.parse_args(argv)

    configure_logging(level=logging.WARNING)
    table = load_snapshot(args.snapshot)
    rows = audit_rows(table, args.query)
    if args.unmatched_only:
        rows = [r for r in rows if r.unmatched]

    if args.json:
        print(json.dumps([r.as_dict() for r in rows], indent=2))
        return 0

    for row in rows:
        print(row.country)
        print(f"  diseases:  {'; '.join(row.diseases) or '-'}")
        print(f"  questions: {', '.join(row.exposure_questions) or '-'}")
        if row.unmatched:
            print(f"  unmatched: {'; '.join(row.unmatched)}")
    logger.info("Audited %d countries", len(rows))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
