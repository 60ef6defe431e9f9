"""ephemeris
================================================================================
Geocentric positions of the nine grahas and the ascendant for one instant.

Purpose
-------
Thin, pure wrapper over Swiss Ephemeris (``pyswisseph``). All calls here are
made in the *tropical* frame; the sidereal correction is applied afterwards by
``kundali_core.sidereal`` so that no process-global sidereal mode leaks into
position calls.

Public API
----------
configure_ephemeris_path(path) -> None
julian_day_ut(instant) -> float
compute_positions(instant, latitude, longitude, *, node_type, house_system) -> EphemerisSnapshot

Notes
-----
Without ephemeris files on ``EPHE_PATH`` Swiss Ephemeris falls back to its
built-in Moshier model, which is well inside the arc-minute precision the
sign/nakshatra classification needs.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

try:
    import swisseph as swe
except Exception as e:  # ModuleNotFoundError or other import errors
    raise ImportError(
        "Swiss Ephemeris (pyswisseph) is required. Install with: pip install pyswisseph\n"
        f"Original import error: {e}"
    )

from .errors import InvalidInstant, UnsupportedHouseSystem

swe.set_ephe_path("")  # overridden at startup from settings.EPHE_PATH

# Body name -> Swiss Ephemeris id. Ketu is derived from Rahu.
SWISS_BODY_IDS: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mars": swe.MARS,
    "Mercury": swe.MERCURY,
    "Jupiter": swe.JUPITER,
    "Venus": swe.VENUS,
    "Saturn": swe.SATURN,
}
NODE_IDS: Dict[str, int] = {
    "mean": swe.MEAN_NODE,
    "true": swe.TRUE_NODE,
}

# House system name -> Swiss one-letter code. Whole-sign and equal houses only
# need the ascendant, so both use the equal-house call.
HOUSE_SYSTEM_CODES: Dict[str, bytes] = {
    "WHOLE_SIGN": b"E",
    "EQUAL": b"E",
    "PLACIDUS": b"P",
}

# Placidus is undefined inside the polar circles
PLACIDUS_MAX_LATITUDE = 66.0

_FLAGS = swe.FLG_SWIEPH | swe.FLG_SPEED


@dataclass(frozen=True)
class BodyPosition:
    longitude: float   # tropical, degrees
    latitude: float
    speed: float       # degrees/day in longitude


@dataclass(frozen=True)
class EphemerisSnapshot:
    julian_day: float
    bodies: Mapping[str, BodyPosition]
    ascendant: float                # tropical
    mc: float                       # tropical
    armc: float                     # degrees
    local_sidereal_time: float      # hours, 0..24
    cusps: Optional[Tuple[float, ...]] = None   # tropical, houses 1..12 (cusp systems only)


def configure_ephemeris_path(path: str) -> None:
    """Point Swiss Ephemeris at a directory of .se1 files ('' = built-in model)."""
    swe.set_ephe_path(path or "")


# ----------------- Time helpers -----------------
def julian_day_ut(instant: dt.datetime) -> float:
    """UT Julian day for a timezone-aware datetime."""
    if not isinstance(instant, dt.datetime):
        raise InvalidInstant(f"instant must be a datetime, got {type(instant).__name__}")
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInstant("instant must be timezone-aware")
    try:
        u = instant.astimezone(dt.timezone.utc)
    except (OverflowError, ValueError) as exc:
        raise InvalidInstant(f"instant cannot be converted to UTC: {exc}")
    frac_hour = u.hour + u.minute / 60.0 + u.second / 3600.0 + u.microsecond / 3_600_000_000.0
    jd = swe.julday(u.year, u.month, u.day, frac_hour, swe.GREG_CAL)
    if not math.isfinite(jd):
        raise InvalidInstant(f"non-finite Julian day for {instant.isoformat()}")
    return jd


def _as_12_cusps(cusps_obj) -> Tuple[float, ...]:
    """Normalize Swiss cusp output (12 values, or 13 with index 0 unused) to 12 values."""
    seq = list(cusps_obj)
    if len(seq) == 13:
        seq = seq[1:13]
    if len(seq) != 12:
        raise ValueError(f"Unexpected number of cusps: {len(seq)} (expected 12 or 13)")
    return tuple(float(c) % 360.0 for c in seq)


# --------------- Public API ----------------------
def compute_positions(
    instant: dt.datetime,
    latitude: float,
    longitude: float,
    *,
    node_type: str = "mean",
    house_system: str = "WHOLE_SIGN",
) -> EphemerisSnapshot:
    """Tropical positions of the nine grahas plus ascendant/MC/LST.

    Cusps are returned only for cusp-based systems (PLACIDUS); equal and
    whole-sign houses derive from the ascendant alone.
    """
    node_id = NODE_IDS.get(node_type)
    if node_id is None:
        raise ValueError(f"node_type must be one of {sorted(NODE_IDS)}, got {node_type!r}")
    hsys = HOUSE_SYSTEM_CODES.get(house_system)
    if hsys is None:
        raise UnsupportedHouseSystem(
            f"Unsupported house system {house_system!r}. Supported: {', '.join(HOUSE_SYSTEM_CODES)}"
        )
    if hsys == b"P" and abs(latitude) > PLACIDUS_MAX_LATITUDE:
        raise UnsupportedHouseSystem(
            f"Placidus houses are undefined at latitude {latitude:.2f}; use WHOLE_SIGN or EQUAL"
        )

    jd_ut = julian_day_ut(instant)
    bodies: Dict[str, BodyPosition] = {}
    try:
        for name, pid in SWISS_BODY_IDS.items():
            pos, _ = swe.calc_ut(jd_ut, pid, _FLAGS)
            bodies[name] = BodyPosition(longitude=pos[0] % 360.0, latitude=pos[1], speed=pos[3])

        node, _ = swe.calc_ut(jd_ut, node_id, _FLAGS)
        rahu = BodyPosition(longitude=node[0] % 360.0, latitude=node[1], speed=node[3])
        bodies["Rahu"] = rahu
        bodies["Ketu"] = BodyPosition(
            longitude=(rahu.longitude + 180.0) % 360.0,
            latitude=-rahu.latitude,
            speed=rahu.speed,
        )

        cusps, ascmc = swe.houses(jd_ut, latitude, longitude, hsys)
    except swe.Error as exc:
        raise InvalidInstant(f"ephemeris failed for JD {jd_ut:.6f}: {exc}")

    armc = float(ascmc[2]) % 360.0
    return EphemerisSnapshot(
        julian_day=jd_ut,
        bodies=bodies,
        ascendant=float(ascmc[0]),
        mc=float(ascmc[1]),
        armc=armc,
        local_sidereal_time=armc / 15.0,
        cusps=None if hsys == b"E" else _as_12_cusps(cusps),
    )
