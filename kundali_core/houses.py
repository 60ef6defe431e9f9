"""House (bhava) assignment for WHOLE_SIGN, EQUAL and PLACIDUS systems.

All longitudes here are sidereal. Signs are 1-based.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .constants import BODIES
from .errors import UnsupportedHouseSystem
from .models import House
from .sidereal import normalize_longitude, sign_of

HOUSE_SYSTEMS: Tuple[str, ...] = ("WHOLE_SIGN", "EQUAL", "PLACIDUS")


def _check_system(system: str) -> None:
    if system not in HOUSE_SYSTEMS:
        raise UnsupportedHouseSystem(
            f"Unsupported house system {system!r}. Supported: {', '.join(HOUSE_SYSTEMS)}"
        )


def house_whole_sign(lagna_sign: int, planet_sign: int) -> int:
    """House 1..12 counted from the lagna sign."""
    return ((planet_sign - lagna_sign) % 12) + 1


def _wrap_cusp_segment(a: float, b: float, x: float) -> bool:
    """True if angle x lies within arc a->b going forward (wrapping 360)."""
    if a <= b:
        return a <= x < b
    return x >= a or x < b


def house_by_cusps(longitude: float, cusps: Sequence[float]) -> int:
    """House whose arc [cusp N, cusp N+1) contains the longitude."""
    x = normalize_longitude(longitude)
    for i in range(12):
        if _wrap_cusp_segment(cusps[i], cusps[(i + 1) % 12], x):
            return i + 1
    # Only reachable for degenerate (zero-width) cusp sets
    return 12


def house_cusps(
    system: str,
    lagna_longitude: float,
    sidereal_cusps: Optional[Sequence[float]] = None,
) -> Tuple[float, ...]:
    """Twelve sidereal cusp longitudes, house 1 first."""
    _check_system(system)
    if system == "WHOLE_SIGN":
        start = 30.0 * (sign_of(lagna_longitude) - 1)
        return tuple((start + 30.0 * i) % 360.0 for i in range(12))
    if system == "EQUAL":
        return tuple(normalize_longitude(lagna_longitude + 30.0 * i) for i in range(12))
    if sidereal_cusps is None or len(sidereal_cusps) != 12:
        raise UnsupportedHouseSystem("PLACIDUS requires 12 cusps from the ephemeris")
    return tuple(normalize_longitude(c) for c in sidereal_cusps)


def house_of(
    longitude: float,
    system: str,
    lagna_longitude: float,
    cusps: Sequence[float],
) -> int:
    if system == "WHOLE_SIGN":
        return house_whole_sign(sign_of(lagna_longitude), sign_of(longitude))
    return house_by_cusps(longitude, cusps)


def assign_houses(
    system: str,
    lagna_longitude: float,
    longitudes: Mapping[str, float],
    sidereal_cusps: Optional[Sequence[float]] = None,
) -> Tuple[Tuple[House, ...], Dict[str, int]]:
    """Build the 12 houses and the body -> house placement.

    Occupants are listed in the fixed graha order regardless of mapping order.
    """
    cusps = house_cusps(system, lagna_longitude, sidereal_cusps)
    placement = {
        body: house_of(lon, system, lagna_longitude, cusps) for body, lon in longitudes.items()
    }
    order = {b: i for i, b in enumerate(BODIES)}
    occupants: List[List[str]] = [[] for _ in range(12)]
    for body in sorted(placement, key=lambda b: (order.get(b, len(order)), b)):
        occupants[placement[body] - 1].append(body)

    houses = tuple(
        House(
            number=i + 1,
            sign=sign_of(cusps[i]),
            cusp_longitude=cusps[i],
            occupants=tuple(occupants[i]),
        )
        for i in range(12)
    )
    return houses, placement
