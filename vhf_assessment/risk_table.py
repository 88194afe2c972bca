"""
risk_table.py
==============
Country -> HCID evidence lookup used by the assessment engine.

The table itself comes from outside: either a live loader supplied by
the caller or the frozen GOV.UK snapshot shipped in config/. The engine
behaves identically with either; only the provenance label differs.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from .classifier import DiseaseEvidenceRecord
from .errors import RiskTableError
from .names import canonical_key

logger = logging.getLogger(__name__)

CFG_DIR = Path(__file__).resolve().parent / "config"
DEFAULT_SNAPSHOT_PATH = CFG_DIR / "hcid_snapshot.json"

SOURCE_LIVE = "live"
SOURCE_FALLBACK = "fallback"
SOURCE_FALLBACK_ERROR = "fallback-error"

_snapshots = {}


@dataclass(frozen=True)
class Provenance:
    source: str = SOURCE_FALLBACK
    captured_at: Optional[str] = None

    def as_dict(self) -> dict:
        return {"source": self.source, "captured_at": self.captured_at}


class RiskTable:
    """Read-only mapping of canonical country key -> evidence records."""

    def __init__(self, entries=None, provenance=None, names=None):
        self._entries = dict(entries or {})
        self._names = dict(names or {})
        self.provenance = provenance or Provenance()

    @classmethod
    def from_mapping(cls, raw, provenance=None) -> "RiskTable":
        """Build from a raw {country name: [entry, ...]} mapping.

        Names that normalise to the same key are merged in input order.
        """
        merged = {}
        names = {}
        for raw_name, entries in (raw or {}).items():
            key = canonical_key(raw_name)
            if not key:
                continue
            records = entries if isinstance(entries, list) else []
            merged.setdefault(key, []).extend(
                DiseaseEvidenceRecord.from_value(e) for e in records
            )
            names.setdefault(key, raw_name)
        return cls(
            {k: tuple(v) for k, v in merged.items()},
            provenance=provenance,
            names=names,
        )

    def lookup(self, country_name):
        """Evidence records for a country; unknown countries give ()."""
        return self._entries.get(canonical_key(country_name), ())

    def display_name(self, key):
        return self._names.get(key, key)

    def keys(self):
        return sorted(self._entries)

    def __contains__(self, country_name):
        return canonical_key(country_name) in self._entries

    def __len__(self):
        return len(self._entries)


def _read_snapshot(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise RiskTableError(f"cannot read HCID snapshot {path}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("map"), dict):
        raise RiskTableError(f"HCID snapshot {path} has no 'map' object")
    return data


def load_snapshot(path=None, source=SOURCE_FALLBACK) -> RiskTable:
    """Load the frozen snapshot (cached per path)."""
    path = Path(path) if path else DEFAULT_SNAPSHOT_PATH
    data = _snapshots.get(path)
    if data is None:
        data = _read_snapshot(path)
        _snapshots[path] = data
    table = RiskTable.from_mapping(
        data["map"],
        provenance=Provenance(source=source, captured_at=data.get("snapshot_date")),
    )
    logger.info(
        "Loaded HCID risk table: source=%s countries=%d captured_at=%s",
        source, len(table), data.get("snapshot_date"),
    )
    return table


def load_risk_table(live_loader=None, snapshot_path=None) -> RiskTable:
    """Prefer the live loader; fall back to the snapshot on any failure.

    `live_loader` is a zero-argument callable returning the raw mapping,
    or a dict with "map" and optional "captured_at".
    """
    if live_loader is None:
        return load_snapshot(snapshot_path)

    try:
        payload = live_loader()
        if isinstance(payload, dict) and isinstance(payload.get("map"), dict):
            raw, captured_at = payload["map"], payload.get("captured_at")
        elif isinstance(payload, dict):
            raw, captured_at = payload, None
        else:
            raise RiskTableError("live loader returned no mapping")
    except Exception:
        logger.warning(
            "Live HCID source failed; using local snapshot", exc_info=True
        )
        return load_snapshot(snapshot_path, source=SOURCE_FALLBACK_ERROR)

    table = RiskTable.from_mapping(
        raw, provenance=Provenance(source=SOURCE_LIVE, captured_at=captured_at)
    )
    logger.info("Loaded HCID risk table: source=live countries=%d", len(table))
    return table
