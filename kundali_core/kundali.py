"""kundali
================================================================================
End-to-end natal chart generation.

Pipeline: validate -> ephemeris -> sidereal -> houses -> divisional -> yogas
-> dasha. Each stage after validation runs inside ``_stage`` so a failure is
re-raised as ``GenerationFailed`` tagged with the stage name; nothing partial
is ever returned.

``generate`` is pure: it reads no clock and keeps no state, so identical
input yields an equal ``KundaliData``. ``generated_at`` is only stamped when
the caller supplies it.
"""
from __future__ import annotations

import datetime as dt
import logging
import math
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import BODIES
from .dasha import MAX_DEPTH, active_periods, build_dasha_timeline
from .divisional import build_divisional_chart, get_rule
from .ephemeris import NODE_IDS, compute_positions
from .errors import (
    GenerationFailed,
    IncompleteBirthDetails,
    InvalidInstant,
    InvalidLongitude,
    KundaliError,
    UnsupportedAyanamsa,
    UnsupportedHouseSystem,
)
from .houses import HOUSE_SYSTEMS, assign_houses
from .models import (
    BirthDetails,
    ChartSettings,
    DashaPeriod,
    DivisionalChart,
    KundaliData,
    Lagna,
    PlanetPosition,
)
from .sidereal import (
    AYANAMSA_MAP,
    ayanamsa_value,
    nakshatra_of,
    pada_of,
    sign_of,
    to_sidereal,
)
from .yogas import detect_yogas

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("date", "time", "latitude", "longitude", "timezone")

# Birth dates the built-in ephemeris covers together with the 120-year
# dasha cycle that starts up to 20 years before birth.
MIN_BIRTH_DATE = dt.date(1500, 1, 1)
MAX_BIRTH_DATE = dt.date(2899, 12, 31)


# ----------------- Validation -----------------
def validate_birth_details(birth: Optional[BirthDetails]) -> dt.datetime:
    """Return the timezone-aware local birth instant or raise IncompleteBirthDetails.

    The local wall time must map to exactly one UTC instant: times skipped by a
    DST transition, and times repeated by one, are both rejected.
    """
    if birth is None:
        raise IncompleteBirthDetails("birth details are required")

    missing = [f for f in _REQUIRED_FIELDS if getattr(birth, f) in (None, "")]
    if missing:
        raise IncompleteBirthDetails(
            f"missing birth details: {', '.join(missing)}", field=missing[0]
        )

    if not isinstance(birth.date, dt.date):
        raise IncompleteBirthDetails(f"date must be a date, got {type(birth.date).__name__}", field="date")
    if not isinstance(birth.time, dt.time):
        raise IncompleteBirthDetails(f"time must be a time, got {type(birth.time).__name__}", field="time")
    for name in ("latitude", "longitude"):
        value = getattr(birth, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise IncompleteBirthDetails(f"{name} must be a number, got {type(value).__name__}", field=name)
    if not isinstance(birth.timezone, str):
        raise IncompleteBirthDetails(
            f"timezone must be an IANA name, got {type(birth.timezone).__name__}", field="timezone"
        )

    birth_date = birth.date.date() if isinstance(birth.date, dt.datetime) else birth.date
    if not MIN_BIRTH_DATE <= birth_date <= MAX_BIRTH_DATE:
        raise IncompleteBirthDetails(
            f"date {birth_date.isoformat()} outside supported range "
            f"{MIN_BIRTH_DATE.isoformat()}..{MAX_BIRTH_DATE.isoformat()}",
            field="date",
        )

    lat, lng = birth.latitude, birth.longitude
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise IncompleteBirthDetails(f"latitude out of range [-90, 90]: {lat}", field="latitude")
    if not (math.isfinite(lng) and -180.0 <= lng <= 180.0):
        raise IncompleteBirthDetails(f"longitude out of range [-180, 180]: {lng}", field="longitude")

    try:
        zone = ZoneInfo(birth.timezone)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise IncompleteBirthDetails(f"unknown timezone: {birth.timezone!r}", field="timezone")

    wall = dt.datetime.combine(birth.date, birth.time.replace(tzinfo=None))
    local = wall.replace(tzinfo=zone)
    if local.replace(fold=0).utcoffset() != local.replace(fold=1).utcoffset():
        roundtrip = local.astimezone(dt.timezone.utc).astimezone(zone).replace(tzinfo=None)
        if roundtrip != wall:
            raise IncompleteBirthDetails(
                f"{wall.isoformat()} does not exist in {birth.timezone} (DST gap)", field="time"
            )
        raise IncompleteBirthDetails(
            f"{wall.isoformat()} is ambiguous in {birth.timezone} (DST overlap)", field="time"
        )
    return local


def validate_settings(settings: ChartSettings) -> None:
    """Configuration checks; unsupported names are user-correctable errors."""
    if settings.ayanamsa not in AYANAMSA_MAP:
        raise UnsupportedAyanamsa(
            f"Unsupported ayanamsa {settings.ayanamsa!r}. Supported: {', '.join(AYANAMSA_MAP)}"
        )
    if settings.house_system not in HOUSE_SYSTEMS:
        raise UnsupportedHouseSystem(
            f"Unsupported house system {settings.house_system!r}. Supported: {', '.join(HOUSE_SYSTEMS)}"
        )
    if settings.node_type not in NODE_IDS:
        raise ValueError(f"node_type must be one of {sorted(NODE_IDS)}, got {settings.node_type!r}")
    if not isinstance(settings.dasha_depth, int) or not 1 <= settings.dasha_depth <= MAX_DEPTH:
        raise ValueError(f"dasha_depth must be 1..{MAX_DEPTH}, got {settings.dasha_depth!r}")
    for code in settings.divisions:
        get_rule(code)


# ----------------- Stage wrapper -----------------
@contextmanager
def _stage(name: str) -> Iterator[None]:
    try:
        yield
    except (InvalidInstant, InvalidLongitude) as exc:
        logger.exception("kundali.stage_failed", extra={"stage": name})
        raise GenerationFailed(name, exc) from exc
    except (KundaliError, ValueError, ArithmeticError) as exc:
        logger.warning("kundali.stage_failed", extra={"stage": name, "error": str(exc)})
        raise GenerationFailed(name, exc) from exc


def _lagna(longitude: float) -> Lagna:
    return Lagna(
        longitude=longitude,
        sign=sign_of(longitude),
        nakshatra=nakshatra_of(longitude),
        pada=pada_of(longitude),
    )


# ----------------- Public API -----------------
def generate(
    birth: BirthDetails,
    settings: Optional[ChartSettings] = None,
    *,
    generated_at: Optional[dt.datetime] = None,
) -> KundaliData:
    """Compute the full natal chart for ``birth``."""
    settings = settings or ChartSettings()
    local = validate_birth_details(birth)
    validate_settings(settings)
    birth_utc = local.astimezone(dt.timezone.utc)

    with _stage("ephemeris"):
        snap = compute_positions(
            birth_utc,
            birth.latitude,
            birth.longitude,
            node_type=settings.node_type,
            house_system=settings.house_system,
        )

    with _stage("sidereal"):
        ayanamsa = ayanamsa_value(snap.julian_day, settings.ayanamsa)
        sidereal: Dict[str, float] = {
            body: to_sidereal(snap.bodies[body].longitude, ayanamsa) for body in BODIES
        }
        lagna = _lagna(to_sidereal(snap.ascendant, ayanamsa))
        cusps = (
            tuple(to_sidereal(c, ayanamsa) for c in snap.cusps) if snap.cusps is not None else None
        )

    with _stage("houses"):
        houses, placement = assign_houses(settings.house_system, lagna.longitude, sidereal, cusps)
        planets = {}
        for body in BODIES:
            pos = snap.bodies[body]
            lon = sidereal[body]
            planets[body] = PlanetPosition(
                body=body,
                longitude=lon,
                latitude=pos.latitude,
                speed=pos.speed,
                sign=sign_of(lon),
                nakshatra=nakshatra_of(lon),
                pada=pada_of(lon),
                house=placement[body],
                retrograde=pos.speed < 0,
            )

    with _stage("divisional"):
        charts = {
            get_rule(code).code: build_divisional_chart(code, sidereal, lagna.longitude)
            for code in settings.divisions
        }

    with _stage("yogas"):
        yogas = detect_yogas(planets, lagna)

    with _stage("dasha"):
        dasha = build_dasha_timeline(sidereal["Moon"], birth_utc, settings.dasha_depth)

    logger.info(
        "kundali.generated",
        extra={
            "jd": round(snap.julian_day, 6),
            "ayanamsa": settings.ayanamsa,
            "lagna_sign": lagna.sign,
            "yogas": len(yogas),
        },
    )
    return KundaliData(
        birth=birth,
        settings=settings,
        birth_utc=birth_utc,
        julian_day=snap.julian_day,
        ayanamsa=ayanamsa,
        local_sidereal_time=snap.local_sidereal_time,
        planets=planets,
        houses=houses,
        lagna=lagna,
        yogas=yogas,
        dasha=dasha,
        divisional_charts=charts,
        generated_at=generated_at,
    )


def divisional_chart(kundali: KundaliData, code: str) -> DivisionalChart:
    """Divisional chart from an existing chart; computed from stored longitudes if not cached on it."""
    rule = get_rule(code)
    cached = kundali.divisional_charts.get(rule.code)
    if cached is not None:
        return cached
    longitudes = {body: p.longitude for body, p in kundali.planets.items()}
    return build_divisional_chart(rule.code, longitudes, kundali.lagna.longitude)


def active_dasha(kundali: KundaliData, when: dt.datetime) -> Optional[Tuple[DashaPeriod, ...]]:
    """Active (Mahadasha, Antardasha, Pratyantardasha) chain at ``when``."""
    return active_periods(kundali.dasha, when)
