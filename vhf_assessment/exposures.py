"""
exposures.py
=============
Which exposure questions apply, and how many of them are answered.

A segment contributes a hazard question only when it is inside the
incubation window and its filtered entries match that hazard. The two
global questions are always required.
"""

from dataclasses import dataclass
from typing import Optional

from .assessment_state import GLOBAL_QUESTIONS, YES, is_answered
from .classifier import HAZARD_LABELS, Hazard
from .questions import GLOBAL_EXPOSURE_QUESTIONS, HAZARD_QUESTIONS
from .review import review_segments


def required_hazards(review) -> tuple:
    """Hazards a reviewed segment must be asked about, in fixed order."""
    if not review.within_window or review.classification is None:
        return ()
    return tuple(h for h in Hazard if review.classification.has(h))


@dataclass(frozen=True)
class ExposureQuestion:
    key: str
    text: str
    answer: str
    segment_id: Optional[str] = None
    country_name: Optional[str] = None
    hazard: Optional[Hazard] = None

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "text": self.text,
            "answer": self.answer,
            "segment_id": self.segment_id,
            "country_name": self.country_name,
            "hazard": self.hazard.value if self.hazard else None,
            "hazard_label": HAZARD_LABELS[self.hazard] if self.hazard else None,
        }


def exposure_questions(state, risk_table, reviews=None):
    """Every required exposure question with its current answer."""
    if reviews is None:
        reviews = review_segments(state, risk_table)
    questions = [
        ExposureQuestion(
            key=key,
            text=GLOBAL_EXPOSURE_QUESTIONS[key],
            answer=getattr(state.global_answers, key),
        )
        for key in GLOBAL_QUESTIONS
    ]
    for review in reviews:
        answers = state.hazard_answers_for(review.segment_id)
        for hazard in required_hazards(review):
            questions.append(ExposureQuestion(
                key=f"{review.segment_id}:{hazard.value}",
                text=HAZARD_QUESTIONS[hazard],
                answer=answers.get(hazard),
                segment_id=review.segment_id,
                country_name=review.country_name,
                hazard=hazard,
            ))
    return questions


@dataclass(frozen=True)
class ExposureProgress:
    required: int
    answered: int
    any_yes: bool

    @property
    def all_answered(self) -> bool:
        return self.answered == self.required

    def as_dict(self) -> dict:
        return {
            "required": self.required,
            "answered": self.answered,
            "any_yes": self.any_yes,
            "all_answered": self.all_answered,
        }


def exposure_progress(state, risk_table, reviews=None) -> ExposureProgress:
    questions = exposure_questions(state, risk_table, reviews)
    return ExposureProgress(
        required=len(questions),
        answered=sum(1 for q in questions if is_answered(q.answer)),
        any_yes=any(q.answer == YES for q in questions),
    )
