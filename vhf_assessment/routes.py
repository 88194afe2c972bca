"""
routes.py
==========
Flask JSON API for the VHF risk assessment.
Holds one AssessmentState per browser session and drives it through the
state machine: screen → select → review → exposures → summary.
"""

import argparse
import logging
from datetime import date

from flask import Flask, jsonify, request, session

from .assessment_state import AssessmentState
from .audit import audit_rows
from .errors import InvalidEventError, TransitionError
from .exposures import exposure_progress, exposure_questions
from .logging_utils import configure_logging
from .outcome import resolve
from .review import aggregate_review, review_segments
from .risk_table import load_risk_table
from .settings import load_settings
from .state_machine import Reset, event_from_payload, transition
from .travel_dates import detect_conflicts, segment_issues

logger = logging.getLogger(__name__)

SESSION_KEY = "assessment"


def _get_state() -> AssessmentState:
    """Restore AssessmentState from session."""
    return AssessmentState.from_dict(session.get(SESSION_KEY))


def _save_state(state: AssessmentState):
    """Persist AssessmentState to session."""
    session[SESSION_KEY] = state.to_dict()


def build_view(state, risk_table, today=None) -> dict:
    """Everything the presentation layer needs for the current stage."""
    today = today or date.today()
    reviews = review_segments(state, risk_table)
    return {
        "state": state.to_dict(),
        "stage": state.stage.value,
        "select": {
            "issues": segment_issues(state.segments, today),
            "conflicts": sorted(detect_conflicts(state.segments, today)),
        },
        "review": {
            "segments": [r.as_dict() for r in reviews],
            "aggregate": aggregate_review(reviews).as_dict(),
        },
        "exposures": {
            "questions": [
                q.as_dict() for q in exposure_questions(state, risk_table, reviews)
            ],
            "progress": exposure_progress(state, risk_table, reviews).as_dict(),
        },
        "outcome": resolve(state, risk_table).as_dict(),
        "provenance": risk_table.provenance.as_dict(),
    }


def create_app(settings=None, risk_table=None) -> Flask:
    settings = settings or load_settings()
    configure_logging(level=settings.log_level, log_path=settings.log_path)
    table = risk_table
    if table is None:
        table = load_risk_table(snapshot_path=settings.snapshot_path)

    app = Flask(__name__)
    app.secret_key = settings.secret_key

    @app.errorhandler(InvalidEventError)
    def invalid_event(exc):
        logger.warning("Rejected event payload: %s", exc)
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(TransitionError)
    def rejected_transition(exc):
        return jsonify({"error": str(exc)}), 409

    @app.get("/api/assessment")
    def assessment():
        return jsonify(build_view(_get_state(), table))

    @app.post("/api/assessment/events")
    def assessment_event():
        """Apply one event to the session's assessment."""
        event = event_from_payload(request.get_json(silent=True))
        state = transition(_get_state(), event, table)
        _save_state(state)
        return jsonify(build_view(state, table))

    @app.post("/api/assessment/reset")
    def assessment_reset():
        """Start a new assessment."""
        state = transition(_get_state(), Reset(), table)
        _save_state(state)
        logger.info("New assessment started")
        return jsonify(build_view(state, table))

    @app.get("/api/risk-table")
    def risk_table_info():
        return jsonify({
            "provenance": table.provenance.as_dict(),
            "countries": len(table),
        })

    @app.get("/api/audit")
    def audit():
        rows = audit_rows(table, request.args.get("q", ""))
        return jsonify({
            "provenance": table.provenance.as_dict(),
            "rows": [r.as_dict() for r in rows],
        })

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="VHF risk assessment service")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
