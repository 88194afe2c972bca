"""
travel_dates.py
================
Sanity checks for the travel segments entered at the Select stage:
per-segment range validation, overlap detection and display ordering.

Nothing here blocks the assessment. Results are shown next to the
segments so the clinician can fix obvious data-entry mistakes.
"""

from datetime import date

from .incubation import parse_date

OK = "ok"
INCOMPLETE = "incomplete"
INVALID_RANGE = "invalid-range"
FUTURE_DATE = "future-date"


def validate_segment_range(arrival, departure, today=None):
    """Classify a single arrival/departure pair."""
    start = parse_date(arrival)
    end = parse_date(departure)
    if start is None or end is None:
        return INCOMPLETE
    if start > end:
        return INVALID_RANGE
    today = parse_date(today) or date.today()
    if start > today or end > today:
        return FUTURE_DATE
    return OK


def _ranges_overlap(a_start, a_end, b_start, b_end) -> bool:
    # Leaving one country and arriving in the next on the same day is fine.
    return not (a_end <= b_start or b_end <= a_start)


def detect_conflicts(segments, today=None) -> set:
    """Ids of segments whose valid date ranges intersect another segment."""
    valid = [
        s for s in segments
        if validate_segment_range(s.arrival_date, s.departure_date, today) == OK
    ]
    conflicts = set()
    for i, a in enumerate(valid):
        for b in valid[i + 1:]:
            if _ranges_overlap(
                parse_date(a.arrival_date), parse_date(a.departure_date),
                parse_date(b.arrival_date), parse_date(b.departure_date),
            ):
                conflicts.add(a.id)
                conflicts.add(b.id)
    return conflicts


def sort_segments(segments):
    """Complete ranges first (by arrival, departure, name), then the rest by name."""
    def key(segment):
        start = parse_date(segment.arrival_date)
        end = parse_date(segment.departure_date)
        name = (segment.country_name or "").lower()
        if start and end:
            return (0, start, end, name)
        return (1, date.min, date.min, name)

    return sorted(segments, key=key)


def segment_issues(segments, today=None) -> dict:
    """Map of segment id -> validation status for everything not "ok"."""
    issues = {}
    conflicts = detect_conflicts(segments, today)
    for segment in segments:
        status = validate_segment_range(
            segment.arrival_date, segment.departure_date, today
        )
        if status != OK:
            issues[segment.id] = status
        elif segment.id in conflicts:
            issues[segment.id] = "overlap"
    return issues
