import pytest

from vhf_assessment.assessment_state import Stage
from vhf_assessment.risk_table import Provenance, RiskTable
from vhf_assessment.state_machine import (
    AddSegment,
    AnswerScreening,
    GoTo,
    SetOnsetDate,
    apply_events,
)

ONSET = "2026-09-30"

RAW_TABLE = {
    "Nigeria": [
        {"disease": "Lassa fever", "evidence": "Seasonal outbreaks", "year": "2025"},
    ],
    "Guinea": [
        {"disease": "Lassa fever", "evidence": "Sporadic cases", "year": "2024"},
        {"disease": "Ebola virus disease", "evidence": "Outbreak", "year": "2021"},
    ],
    "Congo (Democratic Republic)": [
        {"disease": "Ebola virus disease", "evidence": "Outbreaks", "year": "2025"},
        {"disease": "Mpox (clade I)", "evidence": "Ongoing transmission", "year": "2025"},
    ],
    "Turkey": [
        {"disease": "Crimean-Congo haemorrhagic fever (CCHF)", "evidence": "Seasonal cases", "year": "2024"},
    ],
    "France": [
        {"disease": "No known HCIDs", "evidence": "", "year": ""},
    ],
    "Germany": [
        {"disease": "No known HCIDs; travel associated cases as below", "evidence": "", "year": ""},
        {"disease": "Lassa fever", "evidence": "Imported cases only", "year": "2016"},
    ],
    "Saudi Arabia": [
        {"disease": "Middle East respiratory syndrome (MERS)", "evidence": "Sporadic cases", "year": "2025"},
    ],
    "Oman": [
        {"disease": "No known HCIDs", "evidence": "", "year": ""},
    ],
}


@pytest.fixture
def risk_table():
    return RiskTable.from_mapping(
        RAW_TABLE, provenance=Provenance(source="fallback", captured_at="2025-09-01")
    )


@pytest.fixture
def travel_state(risk_table):
    """Fever, no contact, then one segment per (country, departure) at Select."""

    def build(*trips, onset=ONSET, stage=Stage.SELECT):
        events = [
            AnswerScreening("fever", "yes"),
            AnswerScreening("high_risk_contact", "no"),
            GoTo(Stage.SELECT),
        ]
        for index, (country, departure) in enumerate(trips):
            events.append(AddSegment(
                country_name=country,
                arrival_date="2026-08-01",
                departure_date=departure,
                segment_id=f"s{index}",
            ))
        events.append(SetOnsetDate(onset))
        for target in (Stage.REVIEW, Stage.EXPOSURES, Stage.SUMMARY):
            if stage.order < target.order:
                break
            events.append(GoTo(target))
        return apply_events(events, risk_table)

    return build
