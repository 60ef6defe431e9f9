"""Vimshottari dasha timeline.

The 120-year cycle is anchored on the Moon's nakshatra at birth: the lord of
that nakshatra runs first, and the fraction of the nakshatra already
traversed is the fraction of that lord's period already elapsed. The cycle
therefore starts *before* birth, at ``birth - elapsed``.

Mahadasha boundaries sit on whole Julian years (365.25 days) from that origin,
so the nine periods span exactly 120 years. Sub-periods divide their parent
in the proportion ``years / 120`` starting with the parent's own lord; every
boundary is computed from the cumulative fraction of the parent so children
tile the parent with no gap or overlap.
"""
from __future__ import annotations

import bisect
import datetime as dt
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .constants import (
    DAYS_PER_YEAR,
    NAKSHATRA_LORDS,
    VIMSHOTTARI_ORDER,
    VIMSHOTTARI_TOTAL_YEARS,
    VIMSHOTTARI_YEARS,
)
from .errors import InvalidInstant
from .models import DashaPeriod
from .sidereal import nakshatra_fraction, nakshatra_of

MAX_DEPTH = 3
LEVEL_NAMES = {1: "Mahadasha", 2: "Antardasha", 3: "Pratyantardasha"}


@dataclass(frozen=True)
class BirthDashaState:
    nakshatra: int              # 1..27
    lord: str
    elapsed_fraction: float     # of the nakshatra, [0, 1)
    elapsed_years: float
    remaining_years: float
    cycle_position_years: float  # [0, 120)


def _lords_from(lord: str) -> Tuple[str, ...]:
    i = VIMSHOTTARI_ORDER.index(lord)
    return VIMSHOTTARI_ORDER[i:] + VIMSHOTTARI_ORDER[:i]


def birth_dasha_state(moon_longitude: float) -> BirthDashaState:
    nak = nakshatra_of(moon_longitude)
    frac = nakshatra_fraction(moon_longitude)
    lord = NAKSHATRA_LORDS[nak - 1]
    years = VIMSHOTTARI_YEARS[lord]
    elapsed = years * frac
    before = sum(VIMSHOTTARI_YEARS[l] for l in VIMSHOTTARI_ORDER[: VIMSHOTTARI_ORDER.index(lord)])
    return BirthDashaState(
        nakshatra=nak,
        lord=lord,
        elapsed_fraction=frac,
        elapsed_years=elapsed,
        remaining_years=years - elapsed,
        cycle_position_years=(before + elapsed) % VIMSHOTTARI_TOTAL_YEARS,
    )


def _subdivide(parent: DashaPeriod, depth: int) -> DashaPeriod:
    """Return ``parent`` with sub-periods nested down to ``depth`` levels."""
    if parent.level >= depth:
        return parent
    lords = _lords_from(parent.lord)
    duration = parent.end - parent.start
    cumulative = 0
    bounds = [parent.start]
    for lord in lords[:-1]:
        cumulative += VIMSHOTTARI_YEARS[lord]
        bounds.append(parent.start + duration * (cumulative / VIMSHOTTARI_TOTAL_YEARS))
    bounds.append(parent.end)

    children = tuple(
        _subdivide(
            DashaPeriod(lord=lord, start=bounds[i], end=bounds[i + 1], level=parent.level + 1),
            depth,
        )
        for i, lord in enumerate(lords)
    )
    return DashaPeriod(
        lord=parent.lord,
        start=parent.start,
        end=parent.end,
        level=parent.level,
        sub_periods=children,
    )


def build_dasha_timeline(
    moon_longitude: float,
    birth_instant: dt.datetime,
    depth: int = MAX_DEPTH,
) -> Tuple[DashaPeriod, ...]:
    """The nine Mahadashas covering the 120-year cycle that contains the birth."""
    if not isinstance(depth, int) or not 1 <= depth <= MAX_DEPTH:
        raise ValueError(f"depth must be 1..{MAX_DEPTH}, got {depth!r}")
    if birth_instant.tzinfo is None or birth_instant.utcoffset() is None:
        raise InvalidInstant("birth_instant must be timezone-aware")

    state = birth_dasha_state(moon_longitude)
    birth_utc = birth_instant.astimezone(dt.timezone.utc)
    origin = birth_utc - dt.timedelta(days=state.elapsed_years * DAYS_PER_YEAR)

    periods: List[DashaPeriod] = []
    cumulative = 0
    for lord in _lords_from(state.lord):
        start = origin + dt.timedelta(days=cumulative * DAYS_PER_YEAR)
        cumulative += VIMSHOTTARI_YEARS[lord]
        end = origin + dt.timedelta(days=cumulative * DAYS_PER_YEAR)
        periods.append(_subdivide(DashaPeriod(lord=lord, start=start, end=end, level=1), depth))
    return tuple(periods)


def _find(periods: Sequence[DashaPeriod], when: dt.datetime) -> Optional[DashaPeriod]:
    starts = [p.start for p in periods]
    i = bisect.bisect_right(starts, when) - 1
    if i < 0 or not periods[i].contains(when):
        return None
    return periods[i]


def active_periods(
    timeline: Sequence[DashaPeriod],
    when: dt.datetime,
) -> Optional[Tuple[DashaPeriod, ...]]:
    """Chain (Mahadasha, Antardasha, Pratyantardasha) active at ``when``.

    The chain is as deep as the timeline was built; None outside the cycle.
    """
    if when.tzinfo is None or when.utcoffset() is None:
        raise InvalidInstant("when must be timezone-aware")
    chain: List[DashaPeriod] = []
    level: Sequence[DashaPeriod] = timeline
    while level:
        found = _find(level, when)
        if found is None:
            break
        chain.append(found)
        level = found.sub_periods
    return tuple(chain) or None
