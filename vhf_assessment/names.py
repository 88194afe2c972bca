"""
names.py
=========
Country-name normalisation for risk-table lookups.

Free-text country names arrive from the clinician, from the GOV.UK HCID
country list and from the MERS country set. All of them are folded into
the same canonical key space here so that "Türkiye", "turkey" and
"The Turkey" end up on the same risk-table row.
"""

import re
import unicodedata

_QUOTES_AND_HYPHENS = re.compile(r"['‘’‛`´\"“”-]+")
_OTHER_PUNCTUATION = re.compile(r"[^\w\s]+")
_THE = re.compile(r"\bthe\b")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(raw) -> str:
    """Lowercase, strip accents and punctuation, drop "the", squeeze spaces.

    Never raises: None or non-string input gives back an empty string.
    """
    if not isinstance(raw, str):
        return ""
    text = unicodedata.normalize("NFD", raw.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _QUOTES_AND_HYPHENS.sub(" ", text)
    text = _OTHER_PUNCTUATION.sub(" ", text)
    text = text.replace("_", " ")
    text = _THE.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


# ── Aliases ──────────────────────────────────────────────────────────
# Keys and values are both already-normalised names. Values must never
# appear as keys: lookups resolve one hop only.
ALIASES = {
    "turkiye": "turkey",
    "democratic republic of congo": "congo democratic republic",
    "congo democratic republic of": "congo democratic republic",
    "dr congo": "congo democratic republic",
    "drc": "congo democratic republic",
    "congo kinshasa": "congo democratic republic",
    "republic of congo": "congo",
    "congo republic": "congo",
    "congo brazzaville": "congo",
    "ivory coast": "cote d ivoire",
    "cote divoire": "cote d ivoire",
    "swaziland": "eswatini",
    "kingdom of eswatini": "eswatini",
    "burma": "myanmar",
    "east timor": "timor leste",
    "cape verde": "cabo verde",
    "uae": "united arab emirates",
    "emirates": "united arab emirates",
    "ksa": "saudi arabia",
    "kingdom of saudi arabia": "saudi arabia",
    "russian federation": "russia",
    "syrian arab republic": "syria",
    "iran islamic republic of": "iran",
    "islamic republic of iran": "iran",
    "united republic of tanzania": "tanzania",
    "tanzania united republic of": "tanzania",
    "lao pdr": "laos",
    "lao people s democratic republic": "laos",
    "occupied palestinian territories": "palestine",
    "palestinian territories": "palestine",
    "gambia republic of": "gambia",
}


def canonical_key(raw) -> str:
    """Normalise a name and apply at most one alias hop."""
    key = normalize_name(raw)
    return ALIASES.get(key, key)
