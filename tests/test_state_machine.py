import pytest

from vhf_assessment.assessment_state import (
    NO,
    UNANSWERED,
    YES,
    AssessmentState,
    FollowUpAnswers,
    Stage,
)
from vhf_assessment.classifier import Hazard
from vhf_assessment.errors import InvalidEventError, TransitionError
from vhf_assessment.state_machine import (
    AddSegment,
    AnswerExposure,
    AnswerFollowUp,
    AnswerHazard,
    AnswerScreening,
    GoTo,
    RemoveSegment,
    Reset,
    SetOnsetDate,
    UpdateSegment,
    apply_events,
    event_from_payload,
    transition,
)


@pytest.fixture
def amber_state(travel_state, risk_table):
    """Nigeria within window, every exposure answered "no"."""
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.EXPOSURES)
    return apply_events(
        [
            AnswerExposure("outbreak_exposure", NO),
            AnswerExposure("bleeding_symptom", NO),
            AnswerHazard("s0", Hazard.LASSA, NO),
        ],
        risk_table,
        state,
    )


# ── Screening ────────────────────────────────────────────────────────
def test_select_needs_fever_and_no_contact(risk_table):
    with pytest.raises(TransitionError):
        transition(AssessmentState(), GoTo(Stage.SELECT), risk_table)

    no_fever = apply_events([AnswerScreening("fever", NO)], risk_table)
    for target in (Stage.SELECT, Stage.SUMMARY):
        with pytest.raises(TransitionError):
            transition(no_fever, GoTo(target), risk_table)


def test_contact_question_needs_fever(risk_table):
    with pytest.raises(TransitionError):
        transition(
            AssessmentState(), AnswerScreening("high_risk_contact", NO), risk_table
        )


def test_fever_no_clears_contact(risk_table):
    state = apply_events(
        [
            AnswerScreening("fever", YES),
            AnswerScreening("high_risk_contact", YES),
            AnswerScreening("fever", NO),
        ],
        risk_table,
    )
    assert state.high_risk_contact == UNANSWERED


def test_red_screening_may_jump_to_summary(risk_table):
    state = apply_events(
        [
            AnswerScreening("fever", YES),
            AnswerScreening("high_risk_contact", YES),
            GoTo(Stage.SUMMARY),
        ],
        risk_table,
    )
    assert state.stage == Stage.SUMMARY


# ── Select / Review ──────────────────────────────────────────────────
def test_review_needs_country_and_onset(risk_table):
    state = apply_events(
        [
            AnswerScreening("fever", YES),
            AnswerScreening("high_risk_contact", NO),
            GoTo(Stage.SELECT),
            AddSegment("Nigeria", "2026-09-01", "2026-09-20", segment_id="a"),
        ],
        risk_table,
    )
    with pytest.raises(TransitionError):
        transition(state, GoTo(Stage.REVIEW), risk_table)

    state = transition(state, SetOnsetDate("2026-09-30"), risk_table)
    assert transition(state, GoTo(Stage.REVIEW), risk_table).stage == Stage.REVIEW


def test_stages_cannot_be_skipped(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"))
    with pytest.raises(TransitionError):
        transition(state, GoTo(Stage.EXPOSURES), risk_table)


def test_exposures_need_a_red_segment(travel_state, risk_table):
    state = travel_state(("France", "2026-09-20"), stage=Stage.REVIEW)
    with pytest.raises(TransitionError):
        transition(state, GoTo(Stage.EXPOSURES), risk_table)


def test_all_green_review_may_move_on_to_summary(travel_state, risk_table):
    state = travel_state(("France", "2026-09-20"), stage=Stage.REVIEW)
    assert transition(state, GoTo(Stage.SUMMARY), risk_table).stage == Stage.SUMMARY


def test_red_review_cannot_skip_exposures(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.REVIEW)
    with pytest.raises(TransitionError):
        transition(state, GoTo(Stage.SUMMARY), risk_table)


def test_summary_is_unguarded(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.EXPOSURES)
    assert transition(state, GoTo(Stage.SUMMARY), risk_table).stage == Stage.SUMMARY


def test_back_transitions_keep_answers(amber_state, risk_table):
    state = transition(amber_state, GoTo(Stage.SCREENING), risk_table)
    assert state.stage == Stage.SCREENING
    assert state.segments == amber_state.segments
    assert state.global_answers == amber_state.global_answers


def test_segments_are_only_edited_at_select(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.REVIEW)
    with pytest.raises(TransitionError):
        transition(state, AddSegment("Guinea"), risk_table)
    with pytest.raises(TransitionError):
        transition(state, SetOnsetDate("2026-09-29"), risk_table)


def test_departure_before_arrival_is_clamped(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"))
    state = transition(
        state, UpdateSegment("s0", departure_date="2026-07-01"), risk_table
    )
    assert state.segment("s0").departure_date == "2026-08-01"


def test_arrival_after_departure_clears_departure(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"))
    state = transition(
        state, UpdateSegment("s0", arrival_date="2026-09-25"), risk_table
    )
    assert state.segment("s0").arrival_date == "2026-09-25"
    assert state.segment("s0").departure_date == ""


def test_duplicate_and_unknown_segments(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"))
    with pytest.raises(TransitionError):
        transition(state, AddSegment("Guinea", segment_id="s0"), risk_table)
    with pytest.raises(TransitionError):
        transition(state, RemoveSegment("nope"), risk_table)


def test_remove_segment(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), ("France", "2026-09-25"))
    state = transition(state, RemoveSegment("s0"), risk_table)
    assert [s.id for s in state.segments] == ["s1"]


def test_country_change_drops_hazard_answers(amber_state, risk_table):
    state = apply_events(
        [GoTo(Stage.SELECT), UpdateSegment("s0", country_name="Turkey")],
        risk_table,
        amber_state,
    )
    assert "s0" not in state.hazard_answers


# ── Exposures ────────────────────────────────────────────────────────
def test_hazard_must_be_asked_for_the_segment(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.EXPOSURES)
    with pytest.raises(TransitionError):
        transition(state, AnswerHazard("s0", Hazard.CCHF, NO), risk_table)


def test_exposure_answers_need_the_exposures_stage(travel_state, risk_table):
    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.REVIEW)
    with pytest.raises(TransitionError):
        transition(state, AnswerExposure("bleeding_symptom", NO), risk_table)


def test_answer_values_are_normalised(travel_state, risk_table):
    state = transition(AssessmentState(), AnswerScreening("fever", "Yes"), risk_table)
    assert state.fever == YES

    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.EXPOSURES)
    state = apply_events(
        [
            AnswerExposure("bleeding_symptom", " NO "),
            AnswerHazard("s0", Hazard.LASSA, "Yes"),
        ],
        risk_table,
        state,
    )
    assert state.global_answers.bleeding_symptom == NO
    assert state.hazard_answers_for("s0").lassa == YES


def test_answer_values_other_than_yes_or_no_are_rejected(
    travel_state, amber_state, risk_table
):
    with pytest.raises(InvalidEventError):
        transition(AssessmentState(), AnswerScreening("fever", "maybe"), risk_table)

    state = travel_state(("Nigeria", "2026-09-20"), stage=Stage.EXPOSURES)
    for event in (
        AnswerExposure("bleeding_symptom", ""),
        AnswerHazard("s0", Hazard.LASSA, None),
    ):
        with pytest.raises(InvalidEventError):
            transition(state, event, risk_table)

    with pytest.raises(InvalidEventError):
        transition(amber_state, AnswerFollowUp("malaria_positive", "unsure"), risk_table)


# ── Follow-up reset chain ────────────────────────────────────────────
def test_follow_up_must_be_reachable(amber_state, risk_table):
    with pytest.raises(TransitionError):
        transition(amber_state, AnswerFollowUp("concern_72h", YES), risk_table)
    with pytest.raises(TransitionError):
        transition(amber_state, AnswerFollowUp("outbreak_return", YES), risk_table)


def test_upstream_answer_resets_downstream(amber_state, risk_table):
    state = apply_events(
        [
            AnswerFollowUp("malaria_positive", NO),
            AnswerFollowUp("alternative_diagnosis", NO),
            AnswerFollowUp("concern_72h", YES),
            AnswerFollowUp("severe_features", YES),
            AnswerFollowUp("vhf_test_positive", NO),
        ],
        risk_table,
        amber_state,
    )
    assert state.follow_up.vhf_test_positive == NO

    state = transition(state, AnswerFollowUp("malaria_positive", YES), risk_table)
    assert state.follow_up == FollowUpAnswers(malaria_positive=YES)


def test_exposure_change_clears_follow_up(amber_state, risk_table):
    state = transition(amber_state, AnswerFollowUp("malaria_positive", YES), risk_table)
    state = transition(state, AnswerHazard("s0", Hazard.LASSA, YES), risk_table)
    assert state.follow_up == FollowUpAnswers()


def test_reset_from_anywhere(amber_state, risk_table):
    assert transition(amber_state, Reset(), risk_table) == AssessmentState()


def test_transition_does_not_touch_the_input(amber_state, risk_table):
    before = amber_state.to_dict()
    transition(amber_state, AnswerFollowUp("malaria_positive", YES), risk_table)
    assert amber_state.to_dict() == before


def test_unknown_event_type(risk_table):
    with pytest.raises(InvalidEventError):
        transition(AssessmentState(), object(), risk_table)


# ── Payload parsing ──────────────────────────────────────────────────
def test_event_from_payload():
    assert event_from_payload(
        {"type": "answer_screening", "question": "fever", "value": "Yes"}
    ) == AnswerScreening("fever", YES)
    assert event_from_payload(
        {"type": "answer_hazard", "segment_id": "s0", "hazard": "cchf", "value": "no"}
    ) == AnswerHazard("s0", Hazard.CCHF, NO)
    assert event_from_payload({"type": "go_to", "stage": "review"}) == GoTo(Stage.REVIEW)
    assert event_from_payload({"type": "reset"}) == Reset()
    assert event_from_payload(
        {"type": "update_segment", "segment_id": "s0", "departure_date": "2026-09-01"}
    ) == UpdateSegment("s0", departure_date="2026-09-01")


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        {"type": "teleport"},
        {"type": "answer_screening", "question": "fever", "value": "maybe"},
        {"type": "answer_screening", "question": "age", "value": "yes"},
        {"type": "answer_hazard", "segment_id": "s0", "hazard": "mers", "value": "no"},
        {"type": "answer_follow_up", "question": "mood", "value": "no"},
        {"type": "add_segment", "country_name": "  "},
        {"type": "add_segment", "country_name": "Nigeria", "arrival_date": 20260901},
        {"type": "go_to", "stage": "done"},
    ],
)
def test_bad_payloads(payload):
    with pytest.raises(InvalidEventError):
        event_from_payload(payload)
