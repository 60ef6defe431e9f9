"""Tropical -> sidereal conversion and zodiac subdivisions.

The ayanamsa is read from Swiss Ephemeris as a continuous function of time.
Swiss keeps the sidereal mode in process-global state, so the
set-mode/read pair is serialized with ``_SIDM_LOCK``.

Boundary policy: a longitude sitting exactly on a division boundary (within
``BOUNDARY_EPSILON`` of it, measured in units of that division) belongs to the
division that starts there.
"""
from __future__ import annotations

import math
import threading
from typing import Dict, Optional, Tuple

import swisseph as swe

from .constants import NAKSHATRA_SPAN, PADA_SPAN, SIGN_SPAN
from .errors import InvalidLongitude, UnsupportedAyanamsa

# Friendly-name -> Swiss Ephemeris constant NAME mapping (resolved at runtime)
AYANAMSA_MAP: Dict[str, str] = {
    "Lahiri": "SIDM_LAHIRI",
    "Raman": "SIDM_RAMAN",
    "Krishnamurti": "SIDM_KRISHNAMURTI",
    "FaganBradley": "SIDM_FAGAN_BRADLEY",
    "DeLuce": "SIDM_DELUCE",
    # Spelled SIDM_YUKTESHWAR in most builds
    "Yukteshwar": "SIDM_YUKTESHWAR",
    "Sassanian": "SIDM_SASSANIAN",
}

BOUNDARY_EPSILON = 1e-9

_SIDM_LOCK = threading.Lock()


def _resolve_sidm_const(const_name: str) -> Optional[int]:
    const = getattr(swe, const_name, None)
    if const is None and const_name == "SIDM_YUKTESHWAR":
        const = getattr(swe, "SIDM_YUKTESHVARA", None)
    return const


def supported_ayanamsas() -> Tuple[str, ...]:
    return tuple(name for name, c in AYANAMSA_MAP.items() if _resolve_sidm_const(c) is not None)


def ayanamsa_value(jd_ut: float, name: str = "Lahiri") -> float:
    """Ayanamsa in degrees at the given UT Julian day."""
    const_name = AYANAMSA_MAP.get(name)
    const = _resolve_sidm_const(const_name) if const_name else None
    if const is None:
        raise UnsupportedAyanamsa(
            f"Unsupported ayanamsa {name!r}. Supported: {', '.join(supported_ayanamsas())}"
        )
    with _SIDM_LOCK:
        swe.set_sid_mode(const, 0, 0)
        value = swe.get_ayanamsa_ut(jd_ut)
    if not math.isfinite(value):
        raise InvalidLongitude(f"non-finite ayanamsa for JD {jd_ut}")
    return value


def normalize_longitude(lon: float) -> float:
    """Map any finite angle into [0, 360)."""
    try:
        x = float(lon)
    except (TypeError, ValueError):
        raise InvalidLongitude(f"longitude must be numeric, got {lon!r}")
    if not math.isfinite(x):
        raise InvalidLongitude(f"longitude must be finite, got {lon!r}")
    x %= 360.0
    # -1e-17 % 360.0 == 360.0 in floating point
    if x >= 360.0:
        x = 0.0
    if not (0.0 <= x < 360.0):
        raise InvalidLongitude(f"longitude {lon!r} normalized outside [0, 360): {x}")
    return x


def to_sidereal(tropical_lon: float, ayanamsa: float) -> float:
    return normalize_longitude(tropical_lon - ayanamsa)


def _division_index(lon: float, span: float, count: int) -> Tuple[int, float]:
    """(index, fraction into the division) with boundary snapping to the later division."""
    position = normalize_longitude(lon) / span
    idx = int(math.floor(position + BOUNDARY_EPSILON))
    fraction = max(0.0, position - idx)
    return idx % count, fraction


def sign_of(lon: float) -> int:
    """Sign number 1..12 (Aries = 1)."""
    return _division_index(lon, SIGN_SPAN, 12)[0] + 1


def nakshatra_of(lon: float) -> int:
    """Nakshatra number 1..27 (Ashwini = 1)."""
    return _division_index(lon, NAKSHATRA_SPAN, 27)[0] + 1


def nakshatra_fraction(lon: float) -> float:
    """Fraction [0, 1) of the nakshatra already traversed."""
    return _division_index(lon, NAKSHATRA_SPAN, 27)[1]


def pada_of(lon: float) -> int:
    """Pada 1..4 within the nakshatra."""
    return _division_index(lon, PADA_SPAN, 108)[0] % 4 + 1


def degree_in_sign(lon: float) -> float:
    """Degrees into the sign returned by ``sign_of`` (0 at a snapped boundary)."""
    lon = normalize_longitude(lon)
    d = (lon - SIGN_SPAN * (sign_of(lon) - 1)) % 360.0
    return 0.0 if d >= SIGN_SPAN else d
