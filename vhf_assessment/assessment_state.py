"""
assessment_state.py
====================
The single state object for one VHF risk assessment session, and its
lossless dict round-trip for storage in the Flask session.

States are frozen; the state machine builds a new one for every event.
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum

from .classifier import Hazard

STATE_FORMAT_VERSION = 1

YES = "yes"
NO = "no"
UNANSWERED = ""
ANSWER_VALUES = (YES, NO)


def coerce_answer(value) -> str:
    """Stored answer value: "yes", "no" or "" for anything else."""
    if isinstance(value, str) and value.strip().lower() in ANSWER_VALUES:
        return value.strip().lower()
    return UNANSWERED


def is_answered(value) -> bool:
    return value in ANSWER_VALUES


class Stage(str, Enum):
    SCREENING = "screen"
    SELECT = "select"
    REVIEW = "review"
    EXPOSURES = "exposures"
    SUMMARY = "summary"

    @property
    def order(self) -> int:
        return list(Stage).index(self)


def new_segment_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class TravelSegment:
    id: str
    country_name: str = ""
    arrival_date: str = ""
    departure_date: str = ""

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "country_name": self.country_name,
            "arrival_date": self.arrival_date,
            "departure_date": self.departure_date,
        }

    @classmethod
    def from_dict(cls, data) -> "TravelSegment":
        return cls(
            id=str(data.get("id") or new_segment_id()),
            country_name=str(data.get("country_name") or ""),
            arrival_date=str(data.get("arrival_date") or ""),
            departure_date=str(data.get("departure_date") or ""),
        )


@dataclass(frozen=True)
class HazardAnswers:
    lassa: str = UNANSWERED
    ebola_marburg: str = UNANSWERED
    cchf: str = UNANSWERED

    def get(self, hazard) -> str:
        return getattr(self, Hazard(hazard).value)

    def with_answer(self, hazard, value) -> "HazardAnswers":
        return replace(self, **{Hazard(hazard).value: coerce_answer(value)})

    def as_dict(self) -> dict:
        return {h.value: self.get(h) for h in Hazard}

    @classmethod
    def from_dict(cls, data) -> "HazardAnswers":
        return cls(**{h.value: coerce_answer(data.get(h.value)) for h in Hazard})


GLOBAL_QUESTIONS = ("outbreak_exposure", "bleeding_symptom")


@dataclass(frozen=True)
class GlobalExposureAnswers:
    outbreak_exposure: str = UNANSWERED
    bleeding_symptom: str = UNANSWERED

    def as_dict(self) -> dict:
        return {q: getattr(self, q) for q in GLOBAL_QUESTIONS}

    @classmethod
    def from_dict(cls, data) -> "GlobalExposureAnswers":
        return cls(**{q: coerce_answer(data.get(q)) for q in GLOBAL_QUESTIONS})


# Order matters: answering one question clears everything after it.
FOLLOW_UP_ORDER = (
    "malaria_positive",
    "outbreak_return",
    "alternative_diagnosis",
    "concern_72h",
    "severe_features",
    "fit_for_outpatient",
    "vhf_test_positive",
)


@dataclass(frozen=True)
class FollowUpAnswers:
    malaria_positive: str = UNANSWERED
    outbreak_return: str = UNANSWERED
    alternative_diagnosis: str = UNANSWERED
    concern_72h: str = UNANSWERED
    severe_features: str = UNANSWERED
    fit_for_outpatient: str = UNANSWERED
    vhf_test_positive: str = UNANSWERED

    def get(self, question) -> str:
        return getattr(self, question)

    def answer(self, question, value) -> "FollowUpAnswers":
        """Record an answer and clear every answer downstream of it."""
        position = FOLLOW_UP_ORDER.index(question)
        changes = {q: UNANSWERED for q in FOLLOW_UP_ORDER[position + 1:]}
        changes[question] = coerce_answer(value)
        return replace(self, **changes)

    def as_dict(self) -> dict:
        return {q: getattr(self, q) for q in FOLLOW_UP_ORDER}

    @classmethod
    def from_dict(cls, data) -> "FollowUpAnswers":
        return cls(**{q: coerce_answer(data.get(q)) for q in FOLLOW_UP_ORDER})


# Restored parts of the wrong shape are treated as missing.
def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value) -> list:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class AssessmentState:
    stage: Stage = Stage.SCREENING
    fever: str = UNANSWERED
    high_risk_contact: str = UNANSWERED
    segments: tuple = ()
    onset_date: str = ""
    # segment id -> HazardAnswers; replaced, never mutated
    hazard_answers: dict = field(default_factory=dict)
    global_answers: GlobalExposureAnswers = GlobalExposureAnswers()
    follow_up: FollowUpAnswers = FollowUpAnswers()

    def segment(self, segment_id):
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def hazard_answers_for(self, segment_id) -> HazardAnswers:
        return self.hazard_answers.get(segment_id, HazardAnswers())

    # ── Serialisation ────────────────────────────────────────────────
    def to_dict(self) -> dict:
        return {
            "version": STATE_FORMAT_VERSION,
            "stage": self.stage.value,
            "fever": self.fever,
            "high_risk_contact": self.high_risk_contact,
            "segments": [s.as_dict() for s in self.segments],
            "onset_date": self.onset_date,
            "hazard_answers": {
                sid: answers.as_dict()
                for sid, answers in self.hazard_answers.items()
            },
            "global_answers": self.global_answers.as_dict(),
            "follow_up": self.follow_up.as_dict(),
        }

    @classmethod
    def from_dict(cls, data) -> "AssessmentState":
        """Restore a state; missing or unreadable parts fall back to defaults."""
        if not isinstance(data, dict):
            return cls()
        try:
            stage = Stage(data.get("stage", Stage.SCREENING.value))
        except (TypeError, ValueError):
            stage = Stage.SCREENING

        segments = tuple(
            TravelSegment.from_dict(s)
            for s in _list(data.get("segments"))
            if isinstance(s, dict)
        )
        known_ids = {s.id for s in segments}
        raw_hazards = _dict(data.get("hazard_answers"))
        hazard_answers = {
            sid: HazardAnswers.from_dict(answers)
            for sid, answers in raw_hazards.items()
            if sid in known_ids and isinstance(answers, dict)
        }

        return cls(
            stage=stage,
            fever=coerce_answer(data.get("fever")),
            high_risk_contact=coerce_answer(data.get("high_risk_contact")),
            segments=segments,
            onset_date=str(data.get("onset_date") or ""),
            hazard_answers=hazard_answers,
            global_answers=GlobalExposureAnswers.from_dict(
                _dict(data.get("global_answers"))
            ),
            follow_up=FollowUpAnswers.from_dict(_dict(data.get("follow_up"))),
        )
