"""kundali_services
================================================================================
Application-side glue between the HTTP schemas and ``kundali_core``.

Responsibilities
---------------
- Translate ``BirthPayload``/``ChartOptions`` into core value objects, filling
  unset options from ``settings``.
- Serve charts through the per-user ``ChartCache`` (optional ``X-User-ID``).
- Stamp ``generated_at`` (the core never reads the clock).
- Render ``KundaliData`` into the camelCase response models; the rendered
  ``KundaliChartData`` is also the serialized copy persisted for the profile.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Optional, Tuple

from kundali_core import generate
from kundali_core.constants import BODIES, nakshatra_name, sign_name
from kundali_core.dasha import LEVEL_NAMES
from kundali_core.kundali import active_dasha, divisional_chart
from kundali_core.models import (
    BirthDetails,
    ChartSettings,
    DashaPeriod,
    DivisionalChart,
    KundaliData,
)
from schemas import (
    ActiveDashaData,
    ActiveDashaOut,
    ActiveDashaRequest,
    BirthPayload,
    ChartOptions,
    ChartSettingsOut,
    DashaPeriodOut,
    DivisionalChartOut,
    DivisionalOut,
    DivisionalPlacementOut,
    HouseOut,
    KundaliChartData,
    KundaliOut,
    KundaliRequest,
    LagnaOut,
    PlanetOut,
    YogaOut,
)
from services.chart_cache import ChartCache
from settings import (
    CHART_CACHE_SIZE,
    DEFAULT_AYANAMSA,
    DEFAULT_DASHA_DEPTH,
    DEFAULT_DIVISIONS,
    DEFAULT_HOUSE_SYSTEM,
    DEFAULT_NODE_TYPE,
)

logger = logging.getLogger(__name__)

_CACHE = ChartCache(CHART_CACHE_SIZE)


def get_chart_cache() -> ChartCache:
    return _CACHE


# ----------------- Input mapping -----------------
def birth_from_payload(payload: BirthPayload) -> BirthDetails:
    return BirthDetails.from_mapping(payload.model_dump(exclude_none=True))


def settings_from_options(options: Optional[ChartOptions]) -> ChartSettings:
    o = options or ChartOptions()
    divisions = o.divisions if o.divisions is not None else DEFAULT_DIVISIONS
    return ChartSettings(
        ayanamsa=o.ayanamsa or DEFAULT_AYANAMSA,
        house_system=o.houseSystem or DEFAULT_HOUSE_SYSTEM,
        node_type=o.nodeType or DEFAULT_NODE_TYPE,
        dasha_depth=o.dashaDepth or DEFAULT_DASHA_DEPTH,
        divisions=tuple(str(d).strip().upper() for d in divisions),
    )


def build_kundali(
    req: KundaliRequest,
    user_id: Optional[str] = None,
    now: Optional[dt.datetime] = None,
) -> Tuple[KundaliData, bool]:
    """Return ``(chart, served_from_cache)``."""
    birth = birth_from_payload(req.birth)
    chart_settings = settings_from_options(req.options)

    if user_id:
        cached = _CACHE.get(user_id, birth, chart_settings)
        if cached is not None:
            logger.debug("kundali.cache_hit", extra={"user_id": user_id})
            return cached, True

    kundali = generate(
        birth,
        chart_settings,
        generated_at=now or dt.datetime.now(dt.timezone.utc),
    )
    if user_id:
        _CACHE.put(user_id, kundali)
    return kundali, False


# ----------------- Rendering -----------------
def dasha_to_schema(period: DashaPeriod, include_sub_periods: bool = True) -> DashaPeriodOut:
    return DashaPeriodOut(
        lord=period.lord,
        level=period.level,
        levelName=LEVEL_NAMES[period.level],
        start=period.start,
        end=period.end,
        years=round(period.years, 6),
        subPeriods=[dasha_to_schema(p) for p in period.sub_periods] if include_sub_periods else [],
    )


def divisional_to_schema(chart: DivisionalChart) -> DivisionalChartOut:
    placements = [
        DivisionalPlacementOut(
            planetName=p.body,
            sign=p.sign,
            signName=p.sign_name,
            houseNumber=p.house,
            degreeInSign=round(p.degree_in_sign, 6),
        )
        for p in (chart.placements[b] for b in BODIES if b in chart.placements)
    ]
    return DivisionalChartOut(
        code=chart.code,
        name=chart.name,
        lagnaSign=chart.lagna_sign,
        lagnaSignName=sign_name(chart.lagna_sign),
        placements=placements,
    )


def kundali_to_schema(k: KundaliData, birth: BirthPayload) -> KundaliChartData:
    planets = [
        PlanetOut(
            planetName=p.body,
            longitude=round(p.longitude, 6),
            latitude=round(p.latitude, 6),
            speed=round(p.speed, 6),
            sign=p.sign,
            signName=p.sign_name,
            degreeInSign=round(p.degree_in_sign, 6),
            nakshatra=p.nakshatra,
            nakshatraName=p.nakshatra_name,
            nakshatraLord=p.nakshatra_lord,
            degreesInNakshatra=round(p.degrees_in_nakshatra, 6),
            pada=p.pada,
            houseNumber=p.house,
            retrograde=p.retrograde,
        )
        for p in (k.planets[b] for b in BODIES)
    ]
    houses = [
        HouseOut(
            houseNumber=h.number,
            sign=h.sign,
            signName=h.sign_name,
            cuspLongitude=round(h.cusp_longitude, 6),
            occupants=list(h.occupants),
        )
        for h in k.houses
    ]
    yogas = [
        YogaOut(name=y.name, planets=list(y.bodies), strength=y.strength, meaning=y.meaning)
        for y in sorted(k.yogas, key=lambda y: (-y.strength, y.name, y.bodies))
    ]
    lagna = k.lagna
    return KundaliChartData(
        birth=birth,
        settings=ChartSettingsOut(
            ayanamsa=k.settings.ayanamsa,
            houseSystem=k.settings.house_system,
            nodeType=k.settings.node_type,
            dashaDepth=k.settings.dasha_depth,
            divisions=list(k.settings.divisions),
        ),
        birthUtc=k.birth_utc,
        julianDay=k.julian_day,
        ayanamsa=round(k.ayanamsa, 6),
        localSiderealTime=round(k.local_sidereal_time, 6),
        lagna=LagnaOut(
            longitude=round(lagna.longitude, 6),
            sign=lagna.sign,
            signName=lagna.sign_name,
            degreeInSign=round(lagna.degree_in_sign, 6),
            nakshatra=lagna.nakshatra,
            nakshatraName=nakshatra_name(lagna.nakshatra),
            pada=lagna.pada,
        ),
        planets=planets,
        houses=houses,
        yogas=yogas,
        dasha=[dasha_to_schema(p) for p in k.dasha],
        divisionalCharts={code: divisional_to_schema(c) for code, c in k.divisional_charts.items()},
        generatedAt=k.generated_at,
    )


# ----------------- Endpoint services -----------------
def compute_kundali(req: KundaliRequest, user_id: Optional[str] = None) -> KundaliOut:
    kundali, cached = build_kundali(req, user_id)
    return KundaliOut(data=kundali_to_schema(kundali, req.birth), cached=cached)


def compute_divisional(req: KundaliRequest, code: str, user_id: Optional[str] = None) -> DivisionalOut:
    kundali, _ = build_kundali(req, user_id)
    return DivisionalOut(data=divisional_to_schema(divisional_chart(kundali, code)))


def compute_active_dasha(req: ActiveDashaRequest, user_id: Optional[str] = None) -> ActiveDashaOut:
    at = req.at or dt.datetime.now(dt.timezone.utc)
    if at.tzinfo is None:
        at = at.replace(tzinfo=dt.timezone.utc)
    kundali, _ = build_kundali(req, user_id)
    chain = active_dasha(kundali, at) or ()
    levels = [dasha_to_schema(p, include_sub_periods=False) for p in chain]
    levels += [None] * (3 - len(levels))
    return ActiveDashaOut(
        data=ActiveDashaData(
            at=at,
            mahadasha=levels[0],
            antardasha=levels[1],
            pratyantardasha=levels[2],
        )
    )
