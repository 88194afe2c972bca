"""
outcome.py
===========
Derives the decision shown to the clinician from an AssessmentState.

`resolve` is a pure function of (state, risk table): it walks the
guideline pathway answer by answer, collecting decision cards, and stops
at the first follow-up question that has not been answered yet. The
headline tone/title/actions are those of the last card reached.
"""

from dataclasses import dataclass
from typing import Optional

from .assessment_state import NO, UNANSWERED, YES, Stage
from .exposures import exposure_progress
from .questions import FOLLOW_UP_QUESTIONS
from .review import (
    AMBER,
    GREEN,
    RED,
    TITLE_VHF_UNLIKELY,
    aggregate_review,
    review_segments,
)

# ── Fixed action lists ───────────────────────────────────────────────
TITLE_AT_RISK = "AT RISK OF VHF"
TITLE_MINIMAL_RISK = "Minimal risk of VHF"
TITLE_MANAGE_AS_MALARIA = "Manage as malaria; VHF unlikely"
TITLE_DUAL_INFECTION = (
    "Manage as malaria, but consider possibility of dual infection with VHF"
)
TITLE_IMMEDIATE_ACTIONS = "Immediate actions"
TITLE_ADMIT = "Admit"
TITLE_OUTPATIENT = "Outpatient management"
TITLE_CONFIRMED = "CONFIRMED VHF"

AT_RISK_ACTIONS = (
    "ISOLATE PATIENT IN SIDE ROOM",
    "Discuss with Infection Consultant (Infectious Disease/Microbiology/Virology)",
    "Urgent malaria investigation",
    "Full blood count, U&Es, LFTs, clotting screen, CRP, glucose, blood cultures",
    "Inform laboratory of possible VHF case (for specimen waste disposal "
    "purposes if confirmed)",
)

MINIMAL_RISK_ACTIONS = (
    "Urgent malaria investigation",
    "Urgent local investigations as normally appropriate, including blood cultures",
)

IMMEDIATE_ACTIONS = (
    "Discuss with Infection Consultant (Infectious Disease/Microbiology/Virology)",
    "Infection Consultant to discuss VHF test with Imported Fever Service "
    "(0844 7788990)",
    "If VHF testing agreed with IFS, notify local Health Protection Team",
    "Consider empiric antimicrobials",
)

OUTPATIENT_ACTIONS = (
    "Inform local Health Protection Team",
    "Ensure patient contact details recorded",
    "Patient self-isolation and self-transportation",
    "Follow up VHF test result",
    "Review daily",
)

CONFIRMED_ACTIONS = (
    "Contact NHSE EPRR (020 8168 0053) to arrange transfer to HLIU",
    "Launch full public health actions including categorisation and "
    "management of contacts",
)

LOCAL_MANAGEMENT_ACTIONS = ("Continue local management as appropriate",)

PENDING_SCREENING = "Answer the screening questions"
PENDING_TRAVEL = "Enter countries of travel and the date of symptom onset"
PENDING_EXPOSURES = "Answer all exposure questions"


@dataclass(frozen=True)
class DecisionCard:
    tone: str
    title: str
    actions: tuple = ()

    def as_dict(self) -> dict:
        return {"tone": self.tone, "title": self.title, "actions": list(self.actions)}


@dataclass(frozen=True)
class Outcome:
    tone: Optional[str]
    title: str
    actions: tuple = ()
    cards: tuple = ()
    pathway: Optional[str] = None
    asked: tuple = ()
    next_question: Optional[str] = None
    pending: bool = False
    terminal: bool = False

    def as_dict(self) -> dict:
        return {
            "tone": self.tone,
            "title": self.title,
            "actions": list(self.actions),
            "cards": [c.as_dict() for c in self.cards],
            "pathway": self.pathway,
            "asked": list(self.asked),
            "next_question": self.next_question,
            "next_question_text": FOLLOW_UP_QUESTIONS.get(self.next_question),
            "pending": self.pending,
            "terminal": self.terminal,
        }


def _pending(title) -> Outcome:
    return Outcome(tone=None, title=title, pending=True)


class _Walk:
    """Collects cards and asked questions while following the answers."""

    def __init__(self, answers):
        self.answers = answers
        self.cards = []
        self.asked = []
        self.next_question = None

    def card(self, tone, title, actions=()):
        self.cards.append(DecisionCard(tone, title, tuple(actions)))

    def ask(self, question) -> str:
        self.asked.append(question)
        value = self.answers.get(question)
        if value == UNANSWERED and self.next_question is None:
            self.next_question = question
        return value

    def outcome(self, pathway) -> Outcome:
        last = self.cards[-1]
        return Outcome(
            tone=last.tone,
            title=last.title,
            actions=last.actions,
            cards=tuple(self.cards),
            pathway=pathway,
            asked=tuple(self.asked),
            next_question=self.next_question,
            terminal=self.next_question is None,
        )


# ── Shared tail of both pathways ─────────────────────────────────────
def _vhf_test(walk):
    answer = walk.ask("vhf_test_positive")
    if answer == YES:
        walk.card(RED, TITLE_CONFIRMED, CONFIRMED_ACTIONS)
    elif answer == NO:
        walk.card(GREEN, TITLE_VHF_UNLIKELY, LOCAL_MANAGEMENT_ACTIONS)


def _admit(walk):
    walk.card(RED, TITLE_ADMIT, ("Admit the patient for further management",))
    _vhf_test(walk)


def _severity_chain(walk):
    severe = walk.ask("severe_features")
    if severe == YES:
        _admit(walk)
    elif severe == NO:
        fit = walk.ask("fit_for_outpatient")
        if fit == NO:
            _admit(walk)
        elif fit == YES:
            walk.card(RED, TITLE_OUTPATIENT, OUTPATIENT_ACTIONS)
            _vhf_test(walk)


def _escalate(walk):
    walk.card(RED, TITLE_AT_RISK, AT_RISK_ACTIONS)
    _severity_chain(walk)


def _concern_72h(walk):
    concern = walk.ask("concern_72h")
    if concern == YES:
        _escalate(walk)
    elif concern == NO:
        walk.card(GREEN, TITLE_VHF_UNLIKELY, LOCAL_MANAGEMENT_ACTIONS)


# ── Pathways ─────────────────────────────────────────────────────────
def amber_pathway(answers) -> Outcome:
    """All exposure answers "no": minimal risk, then malaria work-up."""
    walk = _Walk(answers)
    walk.card(AMBER, TITLE_MINIMAL_RISK, MINIMAL_RISK_ACTIONS)

    malaria = walk.ask("malaria_positive")
    if malaria == YES:
        walk.card(GREEN, TITLE_MANAGE_AS_MALARIA)
        _concern_72h(walk)
    elif malaria == NO:
        alternative = walk.ask("alternative_diagnosis")
        if alternative == YES:
            walk.card(GREEN, TITLE_VHF_UNLIKELY, LOCAL_MANAGEMENT_ACTIONS)
        elif alternative == NO:
            _concern_72h(walk)
    return walk.outcome("amber")


def red_pathway(answers) -> Outcome:
    """High-risk contact or any exposure "yes": isolate, then malaria work-up."""
    walk = _Walk(answers)
    walk.card(RED, TITLE_AT_RISK, AT_RISK_ACTIONS)

    malaria = walk.ask("malaria_positive")
    if malaria == YES:
        outbreak = walk.ask("outbreak_return")
        if outbreak == NO:
            walk.card(GREEN, TITLE_MANAGE_AS_MALARIA)
            _concern_72h(walk)
        elif outbreak == YES:
            walk.card(AMBER, TITLE_DUAL_INFECTION)
            walk.card(RED, TITLE_IMMEDIATE_ACTIONS, IMMEDIATE_ACTIONS)
            _severity_chain(walk)
    elif malaria == NO:
        walk.card(RED, TITLE_IMMEDIATE_ACTIONS, IMMEDIATE_ACTIONS)
        _severity_chain(walk)
    return walk.outcome("red")


def resolve(state, risk_table) -> Outcome:
    """Current decision for a state. Never raises, never mutates."""
    if state.fever == NO:
        return Outcome(
            tone=GREEN,
            title=TITLE_VHF_UNLIKELY,
            actions=("Continue standard local management pathways",),
            cards=(DecisionCard(GREEN, TITLE_VHF_UNLIKELY),),
            terminal=True,
        )
    if state.fever == YES and state.high_risk_contact == YES:
        return red_pathway(state.follow_up)
    if state.fever != YES or state.high_risk_contact != NO:
        return _pending(PENDING_SCREENING)

    if state.stage in (Stage.SCREENING, Stage.SELECT):
        return _pending(PENDING_TRAVEL)

    reviews = review_segments(state, risk_table)
    verdict = aggregate_review(reviews)
    if state.stage == Stage.REVIEW or not verdict.needs_exposures:
        return Outcome(
            tone=verdict.tone,
            title=verdict.title,
            actions=verdict.actions,
            cards=(DecisionCard(verdict.tone, verdict.title, verdict.actions),),
            terminal=not verdict.needs_exposures,
        )

    progress = exposure_progress(state, risk_table, reviews)
    if not progress.all_answered:
        return _pending(PENDING_EXPOSURES)
    if progress.any_yes:
        return red_pathway(state.follow_up)
    return amber_pathway(state.follow_up)
