"""Divisional (varga) charts.

Each varga splits a sign into ``parts`` slices and maps slice *k* of sign *s*
to a target sign. The mapping is stored as data on ``DivisionRule``:

* ``start_by_sign``: target sign of slice 0 for each of the 12 signs; slice
  *k* lands ``k * step`` signs further on.
* ``sequence_by_parity``: explicit target per slice for odd and even signs
  (Hora).
* ``unequal``: (upper bound in degrees, target) pairs for odd and even signs
  (Trimsamsa).

Sign indices are 0..11 internally; odd signs are Aries, Gemini, ... (index 0, 2, ...).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .errors import UnsupportedDivision
from .houses import house_whole_sign
from .models import DivisionalChart, DivisionalPlacement
from .sidereal import BOUNDARY_EPSILON, degree_in_sign, sign_of

_Sequence = Tuple[int, ...]
_Bounds = Tuple[Tuple[float, int], ...]


@dataclass(frozen=True)
class DivisionRule:
    code: str
    name: str
    parts: int
    start_by_sign: Optional[_Sequence] = None
    step: int = 1
    sequence_by_parity: Optional[Tuple[_Sequence, _Sequence]] = None
    unequal: Optional[Tuple[_Bounds, _Bounds]] = None


def _is_odd(sign_idx: int) -> bool:
    return sign_idx % 2 == 0


def _from_sign(odd_offset: int = 0, even_offset: int = 0) -> _Sequence:
    return tuple((i + (odd_offset if _is_odd(i) else even_offset)) % 12 for i in range(12))


def _by_element(fire: int, earth: int, air: int, water: int) -> _Sequence:
    table = (fire, earth, air, water)
    return tuple(table[i % 4] for i in range(12))


def _by_modality(movable: int, fixed: int, dual: int) -> _Sequence:
    table = (movable, fixed, dual)
    return tuple(table[i % 3] for i in range(12))


def _by_parity(odd: int, even: int) -> _Sequence:
    return tuple(odd if _is_odd(i) else even for i in range(12))


ARIES, TAURUS, GEMINI, CANCER, LEO, VIRGO = range(6)
LIBRA, SCORPIO, SAGITTARIUS, CAPRICORN, AQUARIUS, PISCES = range(6, 12)

DIVISION_RULES: Dict[str, DivisionRule] = {
    r.code: r
    for r in (
        DivisionRule("D1", "Rasi", 1, start_by_sign=_from_sign()),
        DivisionRule("D2", "Hora", 2, sequence_by_parity=((LEO, CANCER), (CANCER, LEO))),
        DivisionRule("D3", "Drekkana", 3, start_by_sign=_from_sign(), step=4),
        DivisionRule("D4", "Chaturthamsa", 4, start_by_sign=_from_sign(), step=3),
        DivisionRule("D7", "Saptamsa", 7, start_by_sign=_from_sign(0, 6)),
        DivisionRule("D9", "Navamsa", 9, start_by_sign=_by_element(ARIES, CAPRICORN, LIBRA, CANCER)),
        DivisionRule("D10", "Dasamsa", 10, start_by_sign=_from_sign(0, 8)),
        DivisionRule("D12", "Dvadasamsa", 12, start_by_sign=_from_sign()),
        DivisionRule("D16", "Shodasamsa", 16, start_by_sign=_by_modality(ARIES, LEO, SAGITTARIUS)),
        DivisionRule("D20", "Vimsamsa", 20, start_by_sign=_by_modality(ARIES, SAGITTARIUS, LEO)),
        DivisionRule("D24", "Chaturvimsamsa", 24, start_by_sign=_by_parity(LEO, CANCER)),
        DivisionRule("D27", "Bhamsa", 27, start_by_sign=_by_element(ARIES, CANCER, LIBRA, CAPRICORN)),
        DivisionRule(
            "D30", "Trimsamsa", 5,
            unequal=(
                # Mars, Saturn, Jupiter, Mercury, Venus
                ((5.0, ARIES), (10.0, AQUARIUS), (18.0, SAGITTARIUS), (25.0, GEMINI), (30.0, LIBRA)),
                # Venus, Mercury, Jupiter, Saturn, Mars
                ((5.0, TAURUS), (12.0, VIRGO), (20.0, PISCES), (25.0, CAPRICORN), (30.0, SCORPIO)),
            ),
        ),
        DivisionRule("D40", "Khavedamsa", 40, start_by_sign=_by_parity(ARIES, LIBRA)),
        DivisionRule("D45", "Akshavedamsa", 45, start_by_sign=_by_modality(ARIES, LEO, SAGITTARIUS)),
        DivisionRule("D60", "Shashtiamsa", 60, start_by_sign=_from_sign()),
    )
}

SUPPORTED_DIVISIONS: Tuple[str, ...] = tuple(DIVISION_RULES)


def get_rule(code: str) -> DivisionRule:
    """Look up a rule by code; case-insensitive ("d9" == "D9")."""
    key = str(code).strip().upper()
    rule = DIVISION_RULES.get(key)
    if rule is None:
        raise UnsupportedDivision(str(code), SUPPORTED_DIVISIONS)
    return rule


def _unequal_part(deg: float, bounds: _Bounds) -> Tuple[int, float]:
    lower = 0.0
    for upper, target in bounds:
        if deg + BOUNDARY_EPSILON < upper:
            return target, (deg - lower) / (upper - lower) * 30.0
        lower = upper
    # sign_of already snaps a degree this close to 30 into the next sign
    return bounds[-1][1], 0.0


def divisional_position(longitude: float, code: str) -> Tuple[int, float]:
    """(divisional sign 1..12, degree within that sign) for a sidereal longitude."""
    rule = get_rule(code)
    sign_idx = sign_of(longitude) - 1
    deg = degree_in_sign(longitude)

    if rule.unequal is not None:
        bounds = rule.unequal[0] if _is_odd(sign_idx) else rule.unequal[1]
        target, ddeg = _unequal_part(deg, bounds)
        return target + 1, max(0.0, ddeg)

    position = deg * rule.parts / 30.0
    part = min(int(math.floor(position + BOUNDARY_EPSILON)), rule.parts - 1)
    ddeg = max(0.0, position - part) * 30.0

    if rule.sequence_by_parity is not None:
        seq = rule.sequence_by_parity[0] if _is_odd(sign_idx) else rule.sequence_by_parity[1]
        target = seq[part]
    else:
        target = (rule.start_by_sign[sign_idx] + part * rule.step) % 12
    return target + 1, ddeg


def divisional_sign(longitude: float, code: str) -> int:
    return divisional_position(longitude, code)[0]


def build_divisional_chart(
    code: str,
    longitudes: Mapping[str, float],
    lagna_longitude: float,
) -> DivisionalChart:
    """Divisional chart for the given bodies; houses are whole-sign from the divisional lagna."""
    rule = get_rule(code)
    lagna_sign = divisional_sign(lagna_longitude, rule.code)
    placements = {}
    for body, lon in longitudes.items():
        sign, ddeg = divisional_position(lon, rule.code)
        placements[body] = DivisionalPlacement(
            body=body,
            sign=sign,
            house=house_whole_sign(lagna_sign, sign),
            degree_in_sign=ddeg,
        )
    return DivisionalChart(code=rule.code, name=rule.name, lagna_sign=lagna_sign, placements=placements)
