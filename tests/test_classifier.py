import pytest

from vhf_assessment.classifier import (
    DiseaseEvidenceRecord,
    Hazard,
    classify,
    filter_entries,
    hazards_for,
    is_excluded,
)


def record(disease, evidence="Sporadic cases", year="2024"):
    return {"disease": disease, "evidence": evidence, "year": year}


@pytest.mark.parametrize(
    "entry",
    [
        record("No known HCIDs", ""),
        record("No known HCID", ""),
        record("Travel associated cases", ""),
        record("Lassa fever", "Imported cases only"),
        record("Ebola virus disease", "Associated with a case import from Guinea"),
        record("Ebola virus disease", "Import-related risk assessment only"),
        record("Ebola virus disease", "import related"),
    ],
)
def test_excluded_entries(entry):
    assert is_excluded(entry)


def test_local_transmission_is_kept():
    assert not is_excluded(record("Lassa fever", "Seasonal outbreaks"))


@pytest.mark.parametrize(
    "disease, expected",
    [
        ("Lassa fever", {Hazard.LASSA}),
        ("Ebola virus disease", {Hazard.EBOLA_MARBURG}),
        ("Ebolavirus", {Hazard.EBOLA_MARBURG}),
        ("E.V.D.", {Hazard.EBOLA_MARBURG}),
        ("EVD", {Hazard.EBOLA_MARBURG}),
        ("Marburg virus disease", {Hazard.EBOLA_MARBURG}),
        ("Crimean-Congo haemorrhagic fever (CCHF)", {Hazard.CCHF}),
        ("Crimea Congo haemorrhagic fever", {Hazard.CCHF}),
        ("crimeancongo fever", {Hazard.CCHF}),
        ("Lassa and Ebola co-circulation", {Hazard.LASSA, Hazard.EBOLA_MARBURG}),
        ("Mpox (clade I)", set()),
        ("Middle East respiratory syndrome (MERS)", set()),
    ],
)
def test_hazard_buckets(disease, expected):
    assert hazards_for(disease) == frozenset(expected)


def test_classify_buckets_and_unmatched():
    result = classify([
        record("Lassa fever"),
        record("Mpox (clade I)"),
        record("Ebola virus disease", "Imported cases only"),
        record("Mpox (clade I)", "Outbreak"),
    ])
    assert [r.disease for r in result.filtered] == [
        "Lassa fever", "Mpox (clade I)", "Mpox (clade I)",
    ]
    assert result.has(Hazard.LASSA)
    assert not result.has(Hazard.EBOLA_MARBURG)
    assert not result.has(Hazard.CCHF)
    assert result.unmatched == ("Mpox (clade I)", "Mpox (clade I)")


def test_classify_is_idempotent_on_its_own_output():
    entries = [
        record("No known HCIDs; travel associated cases as below", ""),
        record("Lassa fever", "Imported cases only"),
        record("Crimean-Congo haemorrhagic fever (CCHF)"),
        record("Avian influenza A(H5N1)"),
    ]
    first = classify(entries)
    second = classify(first.filtered)
    assert second.filtered == first.filtered
    assert second.hazards == first.hazards
    assert filter_entries(first.filtered) == first.filtered


def test_travel_associated_mentions_are_noted():
    result = classify([
        record("No known HCIDs; travel associated cases as below", ""),
        record("Lassa fever", "Imported cases only"),
    ])
    assert result.filtered == ()
    assert result.travel_associated_noted


def test_classify_tolerates_malformed_entries():
    result = classify([None, "Lassa", {"disease": None, "evidence": 7}])
    assert result.hazards == frozenset()
    assert all(isinstance(r, DiseaseEvidenceRecord) for r in result.filtered)


def test_empty_input():
    result = classify(None)
    assert result.filtered == ()
    assert result.hazards == frozenset()
    assert result.unmatched == ()


def test_record_from_value_stringifies_years():
    assert DiseaseEvidenceRecord.from_value(
        {"disease": "Lassa fever", "evidence": "Outbreak", "year": 2024}
    ).year == "2024"
