"""
classifier.py
==============
Filters a country's HCID risk entries and buckets the survivors into the
three hazard categories that drive the country-specific exposure
questions (Lassa, Ebola/Marburg, CCHF).

This is the only place the text-matching rules live. Review, exposure
accounting, outcome resolution and the audit tool all call into it.
"""

import re
from dataclasses import dataclass
from enum import Enum


class Hazard(str, Enum):
    LASSA = "lassa"
    EBOLA_MARBURG = "ebola_marburg"
    CCHF = "cchf"


HAZARD_LABELS = {
    Hazard.LASSA: "Lassa",
    Hazard.EBOLA_MARBURG: "Ebola/Marburg",
    Hazard.CCHF: "CCHF",
}

HAZARD_PATTERNS = {
    Hazard.LASSA: re.compile(r"lassa", re.IGNORECASE),
    Hazard.EBOLA_MARBURG: re.compile(
        r"ebola|ebolavirus|ebola\s*virus|\be\.?v\.?d\b|marburg", re.IGNORECASE
    ),
    Hazard.CCHF: re.compile(
        r"cchf|crimean[-\s]?congo|crimea[-\s]?congo", re.IGNORECASE
    ),
}

IMPORT_LINKED_PATTERN = re.compile(
    r"imported cases only|associated with a case import|import[-\s]?related",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DiseaseEvidenceRecord:
    disease: str = ""
    evidence: str = ""
    year: str = ""

    @classmethod
    def from_value(cls, value) -> "DiseaseEvidenceRecord":
        """Build a record from a mapping or record; bad fields become ""."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, dict):
            return cls()
        return cls(
            disease=_text(value.get("disease")),
            evidence=_text(value.get("evidence")),
            year=_text(value.get("year")),
        )

    def as_dict(self) -> dict:
        return {"disease": self.disease, "evidence": self.evidence, "year": self.year}


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) else ""


# ── Filter predicate ─────────────────────────────────────────────────
def is_no_known_hcid(disease) -> bool:
    return "no known hcid" in _text(disease).lower()


def is_travel_associated(disease) -> bool:
    return "travel associated" in _text(disease).lower()


def is_import_linked(evidence) -> bool:
    return IMPORT_LINKED_PATTERN.search(_text(evidence)) is not None


def is_excluded(record) -> bool:
    """True when an entry does not indicate local transmission risk."""
    record = DiseaseEvidenceRecord.from_value(record)
    return (
        is_no_known_hcid(record.disease)
        or is_travel_associated(record.disease)
        or is_import_linked(record.evidence)
    )


def filter_entries(entries):
    """Return the records that survive the exclusion predicate, in order."""
    records = [DiseaseEvidenceRecord.from_value(e) for e in (entries or [])]
    return tuple(r for r in records if not is_excluded(r))


# ── Hazard buckets ───────────────────────────────────────────────────
def hazards_for(disease) -> frozenset:
    """Hazard buckets matched by a single disease label."""
    text = _text(disease)
    return frozenset(
        hazard for hazard, pattern in HAZARD_PATTERNS.items()
        if pattern.search(text)
    )


@dataclass(frozen=True)
class Classification:
    filtered: tuple
    hazards: frozenset
    unmatched: tuple
    travel_associated_noted: bool = False

    def has(self, hazard: Hazard) -> bool:
        return hazard in self.hazards

    def as_dict(self) -> dict:
        return {
            "filtered": [r.as_dict() for r in self.filtered],
            "hazards": {h.value: h in self.hazards for h in Hazard},
            "unmatched": list(self.unmatched),
            "travel_associated_noted": self.travel_associated_noted,
        }


def classify(entries) -> Classification:
    """Filter a country's entries and bucket the survivors.

    `unmatched` lists labels of surviving records that hit no bucket; it
    exists for rule-coverage auditing only.
    """
    records = [DiseaseEvidenceRecord.from_value(e) for e in (entries or [])]
    filtered = tuple(r for r in records if not is_excluded(r))

    hazards = set()
    unmatched = []
    for record in filtered:
        matched = hazards_for(record.disease)
        if matched:
            hazards.update(matched)
        else:
            unmatched.append(record.disease)

    return Classification(
        filtered=filtered,
        hazards=frozenset(hazards),
        unmatched=tuple(unmatched),
        travel_associated_noted=any(
            is_travel_associated(r.disease) for r in records
        ),
    )
