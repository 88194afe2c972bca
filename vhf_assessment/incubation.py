"""
incubation.py
==============
Incubation-window arithmetic between leaving a country and symptom onset.

General VHF pathway: onset more than 21 days after leaving puts the
country outside the incubation window. MERS has its own 14-day window and
only produces an extra notice; it never changes the VHF tone.
"""

from datetime import date, datetime

from .names import canonical_key

GENERAL_WINDOW_DAYS = 21
MERS_WINDOW_DAYS = 14

# Countries where UKHSA advises a separate MERS-CoV risk assessment.
MERS_COUNTRIES = frozenset(
    canonical_key(name) for name in (
        "Bahrain",
        "Iran",
        "Iraq",
        "Israel",
        "Jordan",
        "Kuwait",
        "Lebanon",
        "Oman",
        "Palestine",
        "Qatar",
        "Saudi Arabia",
        "Syria",
        "United Arab Emirates",
        "Yemen",
    )
)


def parse_date(value):
    """Return a `date` for a date, datetime or ISO string; None otherwise.

    Any time-of-day component is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def days_elapsed(departure, onset):
    """Whole calendar days from leaving to onset, or None if a date is missing.

    Negative when onset precedes departure.
    """
    left = parse_date(departure)
    started = parse_date(onset)
    if left is None or started is None:
        return None
    return (started - left).days


def is_outside_window(days) -> bool:
    return days is not None and days > GENERAL_WINDOW_DAYS


def is_mers_country(country_name) -> bool:
    return canonical_key(country_name) in MERS_COUNTRIES


def needs_mers_notice(country_name, days) -> bool:
    """Onset within the MERS window after leaving a MERS-risk country."""
    return (
        days is not None
        and days <= MERS_WINDOW_DAYS
        and is_mers_country(country_name)
    )
