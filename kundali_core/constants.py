"""Fixed astrological tables shared by the chart pipeline.

Signs are numbered 1..12 (Aries=1) in public data and indexed 0..11
internally; nakshatras likewise 1..27 / 0..26.
"""
from __future__ import annotations

from typing import Dict, Tuple

SIGN_NAMES: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)

NAKSHATRA_NAMES: Tuple[str, ...] = (
    "Ashwini", "Bharani", "Krittika", "Rohini", "Mrigashira", "Ardra",
    "Punarvasu", "Pushya", "Ashlesha", "Magha", "Purva Phalguni",
    "Uttara Phalguni", "Hasta", "Chitra", "Swati", "Vishakha", "Anuradha",
    "Jyeshtha", "Mula", "Purva Ashadha", "Uttara Ashadha", "Shravana",
    "Dhanishta", "Shatabhisha", "Purva Bhadrapada", "Uttara Bhadrapada",
    "Revati",
)

# The nine grahas in chart order
BODIES: Tuple[str, ...] = (
    "Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn", "Rahu", "Ketu",
)

SIGN_SPAN = 30.0
NAKSHATRA_SPAN = 360.0 / 27.0      # 13°20'
PADA_SPAN = NAKSHATRA_SPAN / 4.0    # 3°20'

# Sign index (0..11) -> lord
SIGN_LORDS: Tuple[str, ...] = (
    "Mars", "Venus", "Mercury", "Moon", "Sun", "Mercury",
    "Venus", "Mars", "Jupiter", "Saturn", "Saturn", "Jupiter",
)

# Exaltation / debilitation sign index (0..11); nodes per the common Taurus/Scorpio convention
EXALTATION: Dict[str, int] = {
    "Sun": 0, "Moon": 1, "Mars": 9, "Mercury": 5, "Jupiter": 3,
    "Venus": 11, "Saturn": 6, "Rahu": 1, "Ketu": 7,
}
DEBILITATION: Dict[str, int] = {body: (idx + 6) % 12 for body, idx in EXALTATION.items()}

OWN_SIGNS: Dict[str, Tuple[int, ...]] = {
    "Sun": (4,),
    "Moon": (3,),
    "Mars": (0, 7),
    "Mercury": (2, 5),
    "Jupiter": (8, 11),
    "Venus": (1, 6),
    "Saturn": (9, 10),
}

NATURAL_BENEFICS: Tuple[str, ...] = ("Mercury", "Jupiter", "Venus")

KENDRA_HOUSES: Tuple[int, ...] = (1, 4, 7, 10)
TRIKONA_HOUSES: Tuple[int, ...] = (1, 5, 9)
DUSTHANA_HOUSES: Tuple[int, ...] = (6, 8, 12)

# --- Vimshottari ---
VIMSHOTTARI_ORDER: Tuple[str, ...] = (
    "Ketu", "Venus", "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury",
)
VIMSHOTTARI_YEARS: Dict[str, int] = {
    "Ketu": 7, "Venus": 20, "Sun": 6, "Moon": 10, "Mars": 7,
    "Rahu": 18, "Jupiter": 16, "Saturn": 19, "Mercury": 17,
}
VIMSHOTTARI_TOTAL_YEARS = 120
DAYS_PER_YEAR = 365.25

# Nakshatra index (0..26) -> ruling body: Ashwini=Ketu, Bharani=Venus, ... repeating every 9
NAKSHATRA_LORDS: Tuple[str, ...] = tuple(VIMSHOTTARI_ORDER[i % 9] for i in range(27))


def sign_name(sign: int) -> str:
    """Name for a 1-based sign number."""
    return SIGN_NAMES[(sign - 1) % 12]


def nakshatra_name(nakshatra: int) -> str:
    """Name for a 1-based nakshatra number."""
    return NAKSHATRA_NAMES[(nakshatra - 1) % 27]
