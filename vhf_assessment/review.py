"""
review.py
==========
Review stage: one decision card per travel segment, plus the aggregate
verdict that decides whether the exposure questions are needed.

Order of rules per segment:
  1. More than 21 days from leaving to onset -> green, outside window.
  2. No entries left after filtering        -> green, no known HCIDs.
  3. Otherwise                              -> red, list the entries.
The MERS notice is attached independently of the tone.
"""

from dataclasses import dataclass
from typing import Optional

from .classifier import Classification, classify
from .incubation import (
    GENERAL_WINDOW_DAYS,
    MERS_WINDOW_DAYS,
    days_elapsed,
    is_outside_window,
    needs_mers_notice,
)

GREEN = "green"
AMBER = "amber"
RED = "red"

HEADING_OUTSIDE_WINDOW = "Outside incubation window"
HEADING_NO_KNOWN_HCIDS = "No known HCIDs"
HEADING_CONSIDER = "Consider the following"

TITLE_VHF_UNLIKELY = "VHF unlikely; manage locally"
TITLE_FURTHER_ASSESSMENT = "Further assessment needed"

MERS_NOTICE = (
    f"Symptom onset within {MERS_WINDOW_DAYS} days of leaving a country with "
    "MERS risk: complete a separate MERS risk assessment."
)


@dataclass(frozen=True)
class SegmentReview:
    segment_id: str
    country_name: str
    tone: str
    heading: str
    detail: str
    body_records: tuple = ()
    days_elapsed: Optional[int] = None
    special_notice: bool = False
    classification: Optional[Classification] = None

    @property
    def within_window(self) -> bool:
        return not is_outside_window(self.days_elapsed)

    def as_dict(self) -> dict:
        return {
            "segment_id": self.segment_id,
            "country_name": self.country_name,
            "tone": self.tone,
            "heading": self.heading,
            "detail": self.detail,
            "body_records": [r.as_dict() for r in self.body_records],
            "days_elapsed": self.days_elapsed,
            "special_notice": self.special_notice,
            "special_notice_text": MERS_NOTICE if self.special_notice else None,
        }


def _plural_days(days) -> str:
    return f"{days} day{'' if abs(days) == 1 else 's'}"


def review_segment(segment, onset_date, risk_table) -> SegmentReview:
    days = days_elapsed(segment.departure_date, onset_date)
    notice = needs_mers_notice(segment.country_name, days)
    name = segment.country_name

    if is_outside_window(days):
        return SegmentReview(
            segment_id=segment.id,
            country_name=name,
            tone=GREEN,
            heading=HEADING_OUTSIDE_WINDOW,
            detail=(
                f"Symptom onset is {_plural_days(days)} after leaving {name}, "
                f"beyond the {GENERAL_WINDOW_DAYS}-day incubation period used "
                "in the UKHSA VHF assessment."
            ),
            days_elapsed=days,
            special_notice=notice,
        )

    result = classify(risk_table.lookup(name))
    prefix = ""
    if days is None:
        prefix = "Dates could not be compared. "
    elif days < 0:
        prefix = "Symptom onset precedes departure; check the dates. "

    if not result.filtered:
        if result.travel_associated_noted:
            detail = (
                "No known HCIDs in this country; travel-associated cases "
                "have been reported."
            )
        else:
            detail = "No HCIDs listed for this country."
        return SegmentReview(
            segment_id=segment.id,
            country_name=name,
            tone=GREEN,
            heading=HEADING_NO_KNOWN_HCIDS,
            detail=prefix + detail,
            days_elapsed=days,
            special_notice=notice,
            classification=result,
        )

    listed = "; ".join(
        f"{r.disease}: {r.evidence}" + (f" ({r.year})" if r.year else "")
        for r in result.filtered
    )
    return SegmentReview(
        segment_id=segment.id,
        country_name=name,
        tone=RED,
        heading=HEADING_CONSIDER,
        detail=prefix + listed,
        body_records=result.filtered,
        days_elapsed=days,
        special_notice=notice,
        classification=result,
    )


def review_segments(state, risk_table):
    """Review every segment with a country name, in entry order."""
    return [
        review_segment(segment, state.onset_date, risk_table)
        for segment in state.segments
        if segment.country_name.strip()
    ]


@dataclass(frozen=True)
class ReviewOutcome:
    tone: str
    title: str
    actions: tuple = ()
    needs_exposures: bool = False

    def as_dict(self) -> dict:
        return {
            "tone": self.tone,
            "title": self.title,
            "actions": list(self.actions),
            "needs_exposures": self.needs_exposures,
        }


def aggregate_review(reviews) -> ReviewOutcome:
    if any(r.tone != GREEN for r in reviews):
        return ReviewOutcome(
            tone=AMBER,
            title=TITLE_FURTHER_ASSESSMENT,
            actions=("Continue to the exposure questions",),
            needs_exposures=True,
        )
    return ReviewOutcome(
        tone=GREEN,
        title=TITLE_VHF_UNLIKELY,
        actions=("Continue standard local management pathways",),
    )
