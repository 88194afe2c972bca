"""
state_machine.py
=================
Stage transitions for the VHF risk assessment:

    screen -> select -> review -> exposures -> summary

`transition(state, event, risk_table)` is pure: it validates the event
against the current state and returns a new AssessmentState, or raises
TransitionError. Any answer that changes the pathway clears the
follow-up answers that depended on it.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .assessment_state import (
    ANSWER_VALUES,
    GLOBAL_QUESTIONS,
    FOLLOW_UP_ORDER,
    NO,
    UNANSWERED,
    YES,
    AssessmentState,
    FollowUpAnswers,
    HazardAnswers,
    Stage,
    TravelSegment,
    coerce_answer,
    new_segment_id,
)
from .classifier import Hazard
from .errors import InvalidEventError, TransitionError
from .exposures import required_hazards
from .incubation import parse_date
from .outcome import resolve
from .review import aggregate_review, review_segments
from .travel_dates import sort_segments

logger = logging.getLogger(__name__)

SCREENING_FIELDS = ("fever", "high_risk_contact")


# ── Events ───────────────────────────────────────────────────────────
@dataclass(frozen=True)
class AnswerScreening:
    question: str
    value: str


@dataclass(frozen=True)
class AddSegment:
    country_name: str
    arrival_date: str = ""
    departure_date: str = ""
    segment_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateSegment:
    segment_id: str
    country_name: Optional[str] = None
    arrival_date: Optional[str] = None
    departure_date: Optional[str] = None


@dataclass(frozen=True)
class RemoveSegment:
    segment_id: str


@dataclass(frozen=True)
class SetOnsetDate:
    onset_date: str


@dataclass(frozen=True)
class AnswerHazard:
    segment_id: str
    hazard: Hazard
    value: str


@dataclass(frozen=True)
class AnswerExposure:
    question: str
    value: str


@dataclass(frozen=True)
class AnswerFollowUp:
    question: str
    value: str


@dataclass(frozen=True)
class GoTo:
    stage: Stage


@dataclass(frozen=True)
class Reset:
    pass


# ── Helpers ──────────────────────────────────────────────────────────
def _require_stage(state, *stages):
    if state.stage not in stages:
        allowed = ", ".join(s.value for s in stages)
        raise TransitionError(
            f"not allowed at stage '{state.stage.value}' (needs {allowed})"
        )


def _require_segment(state, segment_id) -> TravelSegment:
    segment = state.segment(segment_id)
    if segment is None:
        raise TransitionError(f"unknown segment '{segment_id}'")
    return segment


def _checked_answer(value) -> str:
    answer = coerce_answer(value)
    if answer == UNANSWERED:
        raise InvalidEventError(f"answer must be 'yes' or 'no', got {value!r}")
    return answer


def _clear_follow_up(state) -> AssessmentState:
    if state.follow_up == FollowUpAnswers():
        return state
    return replace(state, follow_up=FollowUpAnswers())


def _screening_red(state) -> bool:
    return state.fever == YES and state.high_risk_contact == YES


# ── Handlers ─────────────────────────────────────────────────────────
def _answer_screening(state, event, risk_table):
    _require_stage(state, Stage.SCREENING)
    value = _checked_answer(event.value)
    if event.question == "fever":
        changes = {"fever": value}
        if value == NO:
            changes["high_risk_contact"] = UNANSWERED
    elif event.question == "high_risk_contact":
        if state.fever != YES:
            raise TransitionError("contact question needs fever answered 'yes'")
        changes = {"high_risk_contact": value}
    else:
        raise TransitionError(f"unknown screening question '{event.question}'")

    new_state = replace(state, **changes)
    if (new_state.fever, new_state.high_risk_contact) != (
        state.fever, state.high_risk_contact
    ):
        new_state = _clear_follow_up(new_state)
    return new_state


def _add_segment(state, event, risk_table):
    _require_stage(state, Stage.SELECT)
    segment_id = event.segment_id or new_segment_id()
    if state.segment(segment_id) is not None:
        raise TransitionError(f"segment '{segment_id}' already exists")
    segment = TravelSegment(
        id=segment_id,
        country_name=event.country_name.strip(),
        arrival_date=event.arrival_date,
        departure_date=_clamp_departure(event.arrival_date, event.departure_date),
    )
    segments = tuple(sort_segments(state.segments + (segment,)))
    return _clear_follow_up(replace(state, segments=segments))


def _clamp_departure(arrival, departure):
    start, end = parse_date(arrival), parse_date(departure)
    if start and end and end < start:
        return arrival
    return departure


def _update_segment(state, event, risk_table):
    _require_stage(state, Stage.SELECT)
    segment = _require_segment(state, event.segment_id)
    updated = segment

    if event.country_name is not None:
        updated = replace(updated, country_name=event.country_name.strip())
    if event.arrival_date is not None:
        start, end = parse_date(event.arrival_date), parse_date(updated.departure_date)
        departure = "" if start and end and start > end else updated.departure_date
        updated = replace(
            updated, arrival_date=event.arrival_date, departure_date=departure
        )
    if event.departure_date is not None:
        updated = replace(
            updated,
            departure_date=_clamp_departure(updated.arrival_date, event.departure_date),
        )

    if updated == segment:
        return state

    segments = tuple(sort_segments(
        updated if s.id == segment.id else s for s in state.segments
    ))
    hazard_answers = dict(state.hazard_answers)
    if updated.country_name != segment.country_name:
        hazard_answers.pop(segment.id, None)
    return _clear_follow_up(
        replace(state, segments=segments, hazard_answers=hazard_answers)
    )


def _remove_segment(state, event, risk_table):
    _require_stage(state, Stage.SELECT)
    _require_segment(state, event.segment_id)
    hazard_answers = dict(state.hazard_answers)
    hazard_answers.pop(event.segment_id, None)
    return _clear_follow_up(replace(
        state,
        segments=tuple(s for s in state.segments if s.id != event.segment_id),
        hazard_answers=hazard_answers,
    ))


def _set_onset_date(state, event, risk_table):
    _require_stage(state, Stage.SELECT)
    if event.onset_date == state.onset_date:
        return state
    return _clear_follow_up(replace(state, onset_date=event.onset_date))


def _answer_hazard(state, event, risk_table):
    _require_stage(state, Stage.EXPOSURES)
    value = _checked_answer(event.value)
    _require_segment(state, event.segment_id)
    reviews = {
        r.segment_id: r for r in review_segments(state, risk_table)
    }
    review = reviews.get(event.segment_id)
    if review is None or event.hazard not in required_hazards(review):
        raise TransitionError(
            f"'{event.hazard.value}' is not asked for segment '{event.segment_id}'"
        )

    current = state.hazard_answers_for(event.segment_id)
    if current.get(event.hazard) == value:
        return state
    hazard_answers = dict(state.hazard_answers)
    hazard_answers[event.segment_id] = current.with_answer(event.hazard, value)
    return _clear_follow_up(replace(state, hazard_answers=hazard_answers))


def _answer_exposure(state, event, risk_table):
    _require_stage(state, Stage.EXPOSURES)
    value = _checked_answer(event.value)
    if event.question not in GLOBAL_QUESTIONS:
        raise TransitionError(f"unknown exposure question '{event.question}'")
    if getattr(state.global_answers, event.question) == value:
        return state
    global_answers = replace(state.global_answers, **{event.question: value})
    return _clear_follow_up(replace(state, global_answers=global_answers))


def _answer_follow_up(state, event, risk_table):
    value = _checked_answer(event.value)
    outcome = resolve(state, risk_table)
    if event.question not in outcome.asked:
        raise TransitionError(
            f"follow-up question '{event.question}' is not reachable yet"
        )
    return replace(
        state, follow_up=state.follow_up.answer(event.question, value)
    )


def _can_enter(state, target, risk_table) -> bool:
    if target == Stage.SELECT:
        return state.fever == YES and state.high_risk_contact == NO
    if target == Stage.REVIEW:
        return bool(state.onset_date.strip()) and any(
            s.country_name.strip() for s in state.segments
        )
    if target == Stage.EXPOSURES:
        return aggregate_review(review_segments(state, risk_table)).needs_exposures
    return target == Stage.SUMMARY


def _may_skip_to_summary(state, risk_table) -> bool:
    """Red screening, or a review where every card is green."""
    if state.stage == Stage.SCREENING:
        return _screening_red(state)
    if state.stage == Stage.REVIEW:
        return not aggregate_review(review_segments(state, risk_table)).needs_exposures
    return False


def _go_to(state, event, risk_table):
    target = event.stage
    if target == state.stage:
        return state
    if target.order < state.stage.order:
        logger.info("Stage %s -> %s (back)", state.stage.value, target.value)
        return replace(state, stage=target)

    if not (target == Stage.SUMMARY and _may_skip_to_summary(state, risk_table)):
        if target.order != state.stage.order + 1:
            raise TransitionError(
                f"cannot skip from '{state.stage.value}' to '{target.value}'"
            )
        if not _can_enter(state, target, risk_table):
            raise TransitionError(
                f"requirements for '{target.value}' are not met"
            )

    new_state = replace(state, stage=target)
    if target == Stage.EXPOSURES:
        hazard_answers = dict(state.hazard_answers)
        for segment in state.segments:
            hazard_answers.setdefault(segment.id, HazardAnswers())
        new_state = replace(new_state, hazard_answers=hazard_answers)
    logger.info("Stage %s -> %s", state.stage.value, target.value)
    return new_state


def _reset(state, event, risk_table):
    logger.info("Assessment reset from stage %s", state.stage.value)
    return AssessmentState()


_HANDLERS = {
    AnswerScreening: _answer_screening,
    AddSegment: _add_segment,
    UpdateSegment: _update_segment,
    RemoveSegment: _remove_segment,
    SetOnsetDate: _set_onset_date,
    AnswerHazard: _answer_hazard,
    AnswerExposure: _answer_exposure,
    AnswerFollowUp: _answer_follow_up,
    GoTo: _go_to,
    Reset: _reset,
}


def transition(state, event, risk_table) -> AssessmentState:
    """Apply one event and return the next state."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise InvalidEventError(f"unsupported event {type(event).__name__}")
    try:
        new_state = handler(state, event, risk_table)
    except TransitionError as exc:
        logger.warning(
            "Rejected %s at stage %s: %s",
            type(event).__name__, state.stage.value, exc,
        )
        raise
    logger.debug("Applied %s at stage %s", type(event).__name__, state.stage.value)
    return new_state


def apply_events(events, risk_table, state=None) -> AssessmentState:
    """Fold a sequence of events over a (fresh) state."""
    state = state or AssessmentState()
    for event in events:
        state = transition(state, event, risk_table)
    return state


# ── Payload parsing ──────────────────────────────────────────────────
def _answer(payload) -> str:
    value = payload.get("value")
    if not isinstance(value, str) or value.strip().lower() not in ANSWER_VALUES:
        raise InvalidEventError("'value' must be 'yes' or 'no'")
    return value.strip().lower()


def _string(payload, key, required=True):
    value = payload.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, str) or (required and not value.strip()):
        raise InvalidEventError(f"'{key}' must be a non-empty string")
    return value


def _date_string(payload, key):
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidEventError(f"'{key}' must be an ISO date string")
    return value.strip()


def event_from_payload(payload):
    """Parse a JSON request body such as {"type": "go_to", "stage": "select"}."""
    if not isinstance(payload, dict):
        raise InvalidEventError("event payload must be a JSON object")
    kind = payload.get("type")

    if kind == "answer_screening":
        question = _string(payload, "question")
        if question not in SCREENING_FIELDS:
            raise InvalidEventError(f"unknown screening question '{question}'")
        return AnswerScreening(question, _answer(payload))
    if kind == "add_segment":
        return AddSegment(
            country_name=_string(payload, "country_name"),
            arrival_date=_date_string(payload, "arrival_date") or "",
            departure_date=_date_string(payload, "departure_date") or "",
            segment_id=_string(payload, "segment_id", required=False),
        )
    if kind == "update_segment":
        return UpdateSegment(
            segment_id=_string(payload, "segment_id"),
            country_name=_string(payload, "country_name", required=False),
            arrival_date=_date_string(payload, "arrival_date"),
            departure_date=_date_string(payload, "departure_date"),
        )
    if kind == "remove_segment":
        return RemoveSegment(_string(payload, "segment_id"))
    if kind == "set_onset_date":
        return SetOnsetDate(_date_string(payload, "onset_date") or "")
    if kind == "answer_hazard":
        try:
            hazard = Hazard(payload.get("hazard"))
        except ValueError:
            raise InvalidEventError(f"unknown hazard {payload.get('hazard')!r}") from None
        return AnswerHazard(_string(payload, "segment_id"), hazard, _answer(payload))
    if kind == "answer_exposure":
        question = _string(payload, "question")
        if question not in GLOBAL_QUESTIONS:
            raise InvalidEventError(f"unknown exposure question '{question}'")
        return AnswerExposure(question, _answer(payload))
    if kind == "answer_follow_up":
        question = _string(payload, "question")
        if question not in FOLLOW_UP_ORDER:
            raise InvalidEventError(f"unknown follow-up question '{question}'")
        return AnswerFollowUp(question, _answer(payload))
    if kind == "go_to":
        try:
            return GoTo(Stage(payload.get("stage")))
        except ValueError:
            raise InvalidEventError(f"unknown stage {payload.get('stage')!r}") from None
    if kind == "reset":
        return Reset()
    raise InvalidEventError(f"unknown event type {kind!r}")
