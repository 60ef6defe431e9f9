"""Immutable value objects produced by the chart pipeline."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from .constants import (
    DAYS_PER_YEAR,
    NAKSHATRA_LORDS,
    NAKSHATRA_SPAN,
    SIGN_SPAN,
    nakshatra_name,
    sign_name,
)
from .errors import IncompleteBirthDetails


def _frozen_mapping(data: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data))


def _degree_in(longitude: float, index: int, span: float = SIGN_SPAN) -> float:
    """Degrees past the start of division ``index`` (1-based) of width ``span``."""
    d = (longitude - span * (index - 1)) % 360.0
    return 0.0 if d >= span else d


# --------------------------- Input ---------------------------

@dataclass(frozen=True)
class BirthDetails:
    """Birth data as supplied by the profile store.

    Fields are optional at construction so that incomplete profiles can be
    represented; ``kundali.validate_birth_details`` rejects them.
    """
    date: Optional[dt.date]
    time: Optional[dt.time]
    place: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    timezone: Optional[str]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BirthDetails":
        """Build from the short profile keys (``dob``, ``tob``, ``pob``, ``lat``, ``lng``, ``timezone``).

        Unparseable values raise IncompleteBirthDetails naming the field.
        """
        def _get(*keys: str) -> Any:
            for k in keys:
                if data.get(k) not in (None, ""):
                    return data[k]
            return None

        raw_date = _get("dob", "date", "dateOfBirth")
        raw_time = _get("tob", "time", "timeOfBirth")
        raw_lat = _get("lat", "latitude")
        raw_lng = _get("lng", "lon", "longitude")

        return cls(
            date=parse_date(raw_date) if raw_date is not None else None,
            time=parse_time(raw_time) if raw_time is not None else None,
            place=_get("pob", "place", "placeOfBirth"),
            latitude=_parse_float(raw_lat, "latitude") if raw_lat is not None else None,
            longitude=_parse_float(raw_lng, "longitude") if raw_lng is not None else None,
            timezone=_get("timezone", "tz", "timeZone"),
        )


def parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value))
    except ValueError:
        raise IncompleteBirthDetails(f"date must be 'YYYY-MM-DD', got {value!r}", field="date")


def parse_time(value: Any) -> dt.time:
    if isinstance(value, dt.time):
        return value
    parts = str(value).strip().split(":")
    try:
        nums = [int(x) for x in parts]
    except ValueError:
        raise IncompleteBirthDetails(f"time must be 'HH:MM' or 'HH:MM:SS', got {value!r}", field="time")
    if len(nums) == 2:
        nums.append(0)
    if len(nums) != 3:
        raise IncompleteBirthDetails(f"time must be 'HH:MM' or 'HH:MM:SS', got {value!r}", field="time")
    try:
        return dt.time(*nums)
    except ValueError as exc:
        raise IncompleteBirthDetails(f"invalid time {value!r}: {exc}", field="time")


def _parse_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise IncompleteBirthDetails(f"{name} must be a number, got {value!r}", field=name)


@dataclass(frozen=True)
class ChartSettings:
    """Explicit configuration choices for a chart.

    ayanamsa: sidereal reference (Lahiri by default).
    house_system: WHOLE_SIGN (default), EQUAL or PLACIDUS.
    node_type: "mean" or "true" lunar node for Rahu/Ketu.
    dasha_depth: 1 = Mahadasha only, 2 = + Antardasha, 3 = + Pratyantardasha.
    divisions: divisional charts computed eagerly during generation.
    """
    ayanamsa: str = "Lahiri"
    house_system: str = "WHOLE_SIGN"
    node_type: str = "mean"
    dasha_depth: int = 3
    divisions: Tuple[str, ...] = ("D9", "D10")


# --------------------------- Chart entities ---------------------------

@dataclass(frozen=True)
class PlanetPosition:
    body: str
    longitude: float        # sidereal, [0, 360)
    latitude: float
    speed: float            # deg/day in longitude
    sign: int               # 1..12
    nakshatra: int          # 1..27
    pada: int               # 1..4
    house: int              # 1..12
    retrograde: bool

    @property
    def degree_in_sign(self) -> float:
        return _degree_in(self.longitude, self.sign)

    @property
    def sign_name(self) -> str:
        return sign_name(self.sign)

    @property
    def nakshatra_name(self) -> str:
        return nakshatra_name(self.nakshatra)

    @property
    def nakshatra_lord(self) -> str:
        return NAKSHATRA_LORDS[self.nakshatra - 1]

    @property
    def degrees_in_nakshatra(self) -> float:
        return _degree_in(self.longitude, self.nakshatra, NAKSHATRA_SPAN)


@dataclass(frozen=True)
class House:
    number: int             # 1..12
    sign: int               # sign at the cusp, 1..12
    cusp_longitude: float
    occupants: Tuple[str, ...] = ()

    @property
    def sign_name(self) -> str:
        return sign_name(self.sign)


@dataclass(frozen=True)
class Lagna:
    longitude: float
    sign: int
    nakshatra: int
    pada: int

    @property
    def degree_in_sign(self) -> float:
        return _degree_in(self.longitude, self.sign)

    @property
    def sign_name(self) -> str:
        return sign_name(self.sign)


@dataclass(frozen=True)
class DashaPeriod:
    lord: str
    start: dt.datetime
    end: dt.datetime
    level: int = 1          # 1 Mahadasha, 2 Antardasha, 3 Pratyantardasha
    sub_periods: Tuple["DashaPeriod", ...] = ()

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start

    @property
    def years(self) -> float:
        return self.duration.total_seconds() / (DAYS_PER_YEAR * 86400.0)

    def contains(self, when: dt.datetime) -> bool:
        return self.start <= when < self.end


@dataclass(frozen=True)
class Yoga:
    name: str
    bodies: Tuple[str, ...]
    strength: float         # 0..100
    meaning: str


@dataclass(frozen=True)
class DivisionalPlacement:
    body: str
    sign: int
    house: int
    degree_in_sign: float

    @property
    def sign_name(self) -> str:
        return sign_name(self.sign)


@dataclass(frozen=True)
class DivisionalChart:
    code: str
    name: str
    lagna_sign: int
    placements: Mapping[str, DivisionalPlacement]

    def __post_init__(self) -> None:
        object.__setattr__(self, "placements", _frozen_mapping(self.placements))


@dataclass(frozen=True)
class KundaliData:
    """Aggregate root. Never mutated; regenerating produces a new instance."""
    birth: BirthDetails
    settings: ChartSettings
    birth_utc: dt.datetime
    julian_day: float
    ayanamsa: float
    local_sidereal_time: float      # hours
    planets: Mapping[str, PlanetPosition]
    houses: Tuple[House, ...]
    lagna: Lagna
    yogas: FrozenSet[Yoga]
    dasha: Tuple[DashaPeriod, ...]
    divisional_charts: Mapping[str, DivisionalChart] = field(default_factory=dict)
    generated_at: Optional[dt.datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "planets", _frozen_mapping(self.planets))
        object.__setattr__(self, "divisional_charts", _frozen_mapping(self.divisional_charts))
        object.__setattr__(self, "houses", tuple(self.houses))
        object.__setattr__(self, "dasha", tuple(self.dasha))
        object.__setattr__(self, "yogas", frozenset(self.yogas))
