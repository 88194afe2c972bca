"""
questions.py
=============
Wording of every question asked during the assessment, keyed by the
answer field it fills. Based on the UKHSA VHF risk assessment algorithm.
"""

from .classifier import Hazard

SCREENING_QUESTIONS = {
    "fever": (
        "Does the patient have an illness with a history of feverishness?"
    ),
    "high_risk_contact": (
        "Has the patient cared for, come into contact with body fluids of, "
        "or handled clinical specimens from an individual or laboratory "
        "animal known or strongly suspected to have VHF within the past "
        "21 days?"
    ),
}

GLOBAL_EXPOSURE_QUESTIONS = {
    "outbreak_exposure": (
        "Has the patient travelled to any area where there is a current VHF "
        "outbreak? (Check WHO Disease Outbreak News / UKHSA monthly "
        "summaries.)"
    ),
    "bleeding_symptom": (
        "Does the patient have extensive bruising or active bleeding?"
    ),
}

HAZARD_QUESTIONS = {
    Hazard.LASSA: (
        "In this country, has the patient lived or worked in basic rural "
        "conditions in an area where human cases of Lassa fever occur?"
    ),
    Hazard.EBOLA_MARBURG: (
        "In this country, did the patient visit caves/mines, or have "
        "contact with primates, antelopes or bats (or eat their "
        "raw/undercooked meat)?"
    ),
    Hazard.CCHF: (
        "In this country, did the patient sustain a tick bite or crush a "
        "tick with bare hands, OR have close involvement with animal "
        "slaughter?"
    ),
}

FOLLOW_UP_QUESTIONS = {
    "malaria_positive": "Is the malaria test result positive?",
    "outbreak_return": "Has the patient returned from a VHF outbreak area?",
    "alternative_diagnosis": "Has an alternative diagnosis been established?",
    "concern_72h": "Clinical concern OR no improvement after 72 hours?",
    "severe_features": (
        "Does the patient have extensive bruising or active bleeding or "
        "uncontrolled diarrhoea or uncontrolled vomiting?"
    ),
    "fit_for_outpatient": "Is the patient fit for outpatient management?",
    "vhf_test_positive": "Is the VHF test result positive?",
}
