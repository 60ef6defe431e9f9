"""Yoga detection over a computed chart.

Every rule is an independent predicate over an immutable chart view and
yields zero or more ``Yoga`` records; the detector unions them into a
frozenset, so the result does not depend on rule order.

Houses are counted whole-sign from the lagna (and from the Moon for the
lunar yogas) whatever house system the chart itself uses. Strengths are
clamped to 0..100.
"""
from __future__ import annotations

import itertools
import logging
from typing import Callable, Iterable, Iterator, Mapping, Sequence, Tuple

from .constants import (
    DEBILITATION,
    DUSTHANA_HOUSES,
    EXALTATION,
    KENDRA_HOUSES,
    NATURAL_BENEFICS,
    OWN_SIGNS,
    SIGN_LORDS,
    TRIKONA_HOUSES,
)
from .models import Lagna, PlanetPosition, Yoga

logger = logging.getLogger(__name__)

# Sun..Saturn; the nodes own no signs
CLASSICAL: Tuple[str, ...] = ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn")
# Graha drishti beyond the 7th, counted inclusively from the aspecting body
SPECIAL_ASPECTS: Mapping[str, Tuple[int, ...]] = {"Mars": (4, 8), "Jupiter": (5, 9), "Saturn": (3, 10)}
# Bodies that count for the Moon-relative yogas
_LUNAR_FLANKERS: Tuple[str, ...] = ("Mars", "Mercury", "Jupiter", "Venus", "Saturn")


def _clamp(x: float) -> float:
    return round(max(0.0, min(100.0, x)), 2)


def _separation(a: float, b: float) -> float:
    d = abs(a - b) % 360.0
    return min(d, 360.0 - d)


class ChartView:
    """Read-only helper answering placement questions for the rules."""

    def __init__(self, planets: Mapping[str, PlanetPosition], lagna: Lagna):
        self.planets = planets
        self.lagna_idx = lagna.sign - 1
        self._sign = {b: p.sign - 1 for b, p in planets.items()}

    def has(self, *bodies: str) -> bool:
        return all(b in self.planets for b in bodies)

    def sign(self, body: str) -> int:
        return self._sign[body]

    def house(self, body: str) -> int:
        """Whole-sign house from lagna, 1..12."""
        return (self._sign[body] - self.lagna_idx) % 12 + 1

    def house_from(self, body: str, ref: str) -> int:
        return (self._sign[body] - self._sign[ref]) % 12 + 1

    def lord_of_house(self, house: int) -> str:
        return SIGN_LORDS[(self.lagna_idx + house - 1) % 12]

    def conjunct(self, a: str, b: str) -> bool:
        return self._sign[a] == self._sign[b]

    def closeness(self, a: str, b: str) -> float:
        """1.0 for an exact conjunction, 0.0 at 30 degrees apart."""
        sep = _separation(self.planets[a].longitude, self.planets[b].longitude)
        return max(0.0, 1.0 - sep / 30.0)

    def is_exalted(self, body: str) -> bool:
        return EXALTATION.get(body) == self._sign[body]

    def is_debilitated(self, body: str) -> bool:
        return DEBILITATION.get(body) == self._sign[body]

    def in_own_sign(self, body: str) -> bool:
        return self._sign[body] in OWN_SIGNS.get(body, ())

    def dignified(self, body: str) -> bool:
        return self.is_exalted(body) or self.in_own_sign(body)

    def aspects(self, a: str, b: str) -> bool:
        """Whether ``a`` casts full graha drishti on the sign holding ``b``.

        Every body aspects the 7th sign from itself; Mars also the 4th and
        8th, Jupiter the 5th and 9th, Saturn the 3rd and 10th.
        """
        rel = self.house_from(b, a)
        return rel == 7 or rel in SPECIAL_ASPECTS.get(a, ())

    def mutual_aspect(self, a: str, b: str) -> bool:
        return self.aspects(a, b) and self.aspects(b, a)


YogaRule = Callable[[ChartView], Iterator[Yoga]]


# --------------------------- Lunar / solar combinations ---------------------------

def gaja_kesari(v: ChartView) -> Iterator[Yoga]:
    """Jupiter in a kendra from the Moon. 60 base, +15 dignified, -20 debilitated, +10 in kendra from lagna."""
    if not v.has("Jupiter", "Moon") or v.house_from("Jupiter", "Moon") not in KENDRA_HOUSES:
        return
    s = 60.0
    if v.dignified("Jupiter"):
        s += 15
    if v.is_debilitated("Jupiter"):
        s -= 20
    if v.house("Jupiter") in KENDRA_HOUSES:
        s += 10
    yield Yoga("Gaja Kesari", ("Jupiter", "Moon"), _clamp(s),
               "Wisdom, reputation and lasting prosperity.")


def _conjunction_yoga(v: ChartView, a: str, b: str, name: str, meaning: str) -> Iterator[Yoga]:
    if v.has(a, b) and v.conjunct(a, b):
        yield Yoga(name, tuple(sorted((a, b))), _clamp(50 + 40 * v.closeness(a, b)), meaning)


def budha_aditya(v: ChartView) -> Iterator[Yoga]:
    """Sun and Mercury in one sign. 50 + 40 x closeness."""
    yield from _conjunction_yoga(v, "Sun", "Mercury", "Budha-Aditya",
                                 "Sharp intellect and skill in communication.")


def chandra_mangala(v: ChartView) -> Iterator[Yoga]:
    """Moon and Mars in one sign. 50 + 40 x closeness."""
    yield from _conjunction_yoga(v, "Moon", "Mars", "Chandra-Mangala",
                                 "Drive for earning and enterprising spirit.")


# --------------------------- Pancha Mahapurusha ---------------------------

_MAHAPURUSHA = {
    "Mars": ("Ruchaka", "Courage, leadership and physical vigour."),
    "Mercury": ("Bhadra", "Eloquence, learning and commercial acumen."),
    "Jupiter": ("Hamsa", "Righteousness, wisdom and respect."),
    "Venus": ("Malavya", "Refinement, comforts and artistic gifts."),
    "Saturn": ("Sasa", "Authority over people and organisational power."),
}


def pancha_mahapurusha(v: ChartView) -> Iterator[Yoga]:
    """Planet in own/exalted sign and in a kendra. 70 base, +20 exalted, +10 in houses 1 or 10."""
    for body, (name, meaning) in _MAHAPURUSHA.items():
        if not v.has(body) or not v.dignified(body) or v.house(body) not in KENDRA_HOUSES:
            continue
        s = 70.0
        if v.is_exalted(body):
            s += 20
        if v.house(body) in (1, 10):
            s += 10
        yield Yoga(name, (body,), _clamp(s), meaning)


# --------------------------- Lordship combinations ---------------------------

def _lord_pairs(
    v: ChartView,
    houses_a: Sequence[int],
    houses_b: Sequence[int],
    related: Callable[[str, str], bool],
) -> Iterator[Tuple[str, str]]:
    seen = set()
    for ha, hb in itertools.product(houses_a, houses_b):
        a, b = v.lord_of_house(ha), v.lord_of_house(hb)
        if a == b or not v.has(a, b) or not related(a, b):
            continue
        pair = tuple(sorted((a, b)))
        if pair not in seen:
            seen.add(pair)
            yield pair


def _aspect_strength(v: ChartView, base: float, a: str, b: str) -> float:
    """``base`` + 10 for each of the two lords that is exalted or in its own sign."""
    return _clamp(base + 10 * sum(v.dignified(x) for x in (a, b)))


def raja(v: ChartView) -> Iterator[Yoga]:
    """Lord of a kendra joined with the lord of the 5th or 9th.

    Conjunction scores 55 + 35 x closeness. Mutual aspect between the two
    lords scores 50, plus 10 per dignified lord.
    """
    meaning = "Status, authority and success in undertakings."
    for a, b in _lord_pairs(v, KENDRA_HOUSES, (5, 9), v.conjunct):
        yield Yoga("Raja", (a, b), _clamp(55 + 35 * v.closeness(a, b)), meaning)
    for a, b in _lord_pairs(v, KENDRA_HOUSES, (5, 9), v.mutual_aspect):
        yield Yoga("Raja", (a, b), _aspect_strength(v, 50, a, b), meaning)


def dhana(v: ChartView) -> Iterator[Yoga]:
    """Lords of the 2nd and 11th conjunct. 50 + 30 x closeness."""
    for a, b in _lord_pairs(v, (2,), (11,), v.conjunct):
        yield Yoga("Dhana", (a, b), _clamp(50 + 30 * v.closeness(a, b)),
                   "Accumulation of wealth.")


def dharma_karmadhipati(v: ChartView) -> Iterator[Yoga]:
    """Lords of the 9th and 10th related.

    Conjunction 60 + 30 x closeness, exchange of houses 80, mutual aspect
    60 plus 10 per dignified lord.
    """
    l9, l10 = v.lord_of_house(9), v.lord_of_house(10)
    if l9 == l10 or not v.has(l9, l10):
        return
    bodies = tuple(sorted((l9, l10)))
    meaning = "Fortune aligned with career; dutiful rise in life."
    if v.conjunct(l9, l10):
        yield Yoga("Dharma-Karmadhipati", bodies, _clamp(60 + 30 * v.closeness(l9, l10)), meaning)
    elif v.house(l9) == 10 and v.house(l10) == 9:
        yield Yoga("Dharma-Karmadhipati", bodies, 80.0, meaning)
    elif v.mutual_aspect(l9, l10):
        yield Yoga("Dharma-Karmadhipati", bodies, _aspect_strength(v, 60, l9, l10), meaning)


def parivartana(v: ChartView) -> Iterator[Yoga]:
    """Two planets each in a sign of the other. 70, +10 when both sit in kendra/trikona houses."""
    strong = set(KENDRA_HOUSES) | set(TRIKONA_HOUSES)
    for a, b in itertools.combinations(CLASSICAL, 2):
        if not v.has(a, b):
            continue
        if SIGN_LORDS[v.sign(a)] == b and SIGN_LORDS[v.sign(b)] == a:
            s = 70.0
            if v.house(a) in strong and v.house(b) in strong:
                s += 10
            yield Yoga("Parivartana", tuple(sorted((a, b))), _clamp(s),
                       "Mutual exchange binding the affairs of both houses.")


_VIPAREETA = {
    6: ("Harsha", "Victory over opponents and good health."),
    8: ("Sarala", "Resilience and longevity through adversity."),
    12: ("Vimala", "Frugality and independence; gains through loss."),
}


def vipareeta_raja(v: ChartView) -> Iterator[Yoga]:
    """Lord of the 6th, 8th or 12th placed in a dusthana. 60."""
    for house, (name, meaning) in _VIPAREETA.items():
        lord = v.lord_of_house(house)
        if v.has(lord) and v.house(lord) in DUSTHANA_HOUSES:
            yield Yoga(name, (lord,), 60.0, meaning)


# --------------------------- Moon-relative ---------------------------

def _flanking(v: ChartView, house_from_moon: int) -> Tuple[str, ...]:
    return tuple(sorted(
        b for b in _LUNAR_FLANKERS if v.has(b) and v.house_from(b, "Moon") == house_from_moon
    ))


def kemadruma(v: ChartView) -> Iterator[Yoga]:
    """No planet in the 2nd or 12th from the Moon. 50, or 30 when a planet occupies a kendra from the Moon."""
    if not v.has("Moon") or _flanking(v, 2) or _flanking(v, 12):
        return
    relieved = any(
        v.has(b) and v.house_from(b, "Moon") in KENDRA_HOUSES and b != "Moon"
        for b in CLASSICAL
    )
    yield Yoga("Kemadruma", ("Moon",), 30.0 if relieved else 50.0,
               "Periods of isolation and want of support.")


def sunapha_anapha_durudhara(v: ChartView) -> Iterator[Yoga]:
    """Planets in the 2nd (Sunapha), 12th (Anapha) or both (Durudhara) from the Moon. 40 + 10 per planet, max 80."""
    if not v.has("Moon"):
        return
    second, twelfth = _flanking(v, 2), _flanking(v, 12)
    if second and twelfth:
        bodies = tuple(sorted(second + twelfth))
        yield Yoga("Durudhara", bodies, _clamp(min(80.0, 40 + 10 * len(bodies))),
                   "Wealth, vehicles and generosity.")
    elif second:
        yield Yoga("Sunapha", second, _clamp(min(80.0, 40 + 10 * len(second))),
                   "Self-earned wealth and good reputation.")
    elif twelfth:
        yield Yoga("Anapha", twelfth, _clamp(min(80.0, 40 + 10 * len(twelfth))),
                   "Good health, poise and comfort.")


def adhi(v: ChartView) -> Iterator[Yoga]:
    """At least two natural benefics in the 6th, 7th or 8th from the Moon. 50 + 15 per benefic."""
    if not v.has("Moon"):
        return
    bodies = tuple(sorted(
        b for b in NATURAL_BENEFICS if v.has(b) and v.house_from(b, "Moon") in (6, 7, 8)
    ))
    if len(bodies) >= 2:
        yield Yoga("Adhi", bodies, _clamp(50 + 15 * len(bodies)),
                   "Leadership, comfort and victory over enemies.")


def amala(v: ChartView) -> Iterator[Yoga]:
    """Natural benefic in the 10th from lagna. 55, +15 when one of them is dignified."""
    bodies = tuple(sorted(b for b in NATURAL_BENEFICS if v.has(b) and v.house(b) == 10))
    if bodies:
        s = 55.0 + (15 if any(v.dignified(b) for b in bodies) else 0)
        yield Yoga("Amala", bodies, _clamp(s), "Spotless reputation through virtuous deeds.")


def neecha_bhanga_raja(v: ChartView) -> Iterator[Yoga]:
    """Debilitation cancelled: the dispositor of the debilitated planet, or the lord
    of its exaltation sign, sits in a kendra from lagna or Moon. 55."""
    for body in CLASSICAL:
        if not v.has(body) or not v.is_debilitated(body):
            continue
        helpers = {SIGN_LORDS[v.sign(body)], SIGN_LORDS[EXALTATION[body]]}
        for h in sorted(helpers):
            if not v.has(h):
                continue
            in_kendra = v.house(h) in KENDRA_HOUSES or (
                v.has("Moon") and v.house_from(h, "Moon") in KENDRA_HOUSES
            )
            if in_kendra:
                yield Yoga("Neecha Bhanga Raja", (body,), 55.0,
                           "Rise after early setbacks; weakness turned to strength.")
                break


YOGA_RULES: Tuple[YogaRule, ...] = (
    gaja_kesari,
    budha_aditya,
    chandra_mangala,
    pancha_mahapurusha,
    raja,
    dhana,
    dharma_karmadhipati,
    parivartana,
    vipareeta_raja,
    kemadruma,
    sunapha_anapha_durudhara,
    adhi,
    amala,
    neecha_bhanga_raja,
)


def detect_yogas(
    planets: Mapping[str, PlanetPosition],
    lagna: Lagna,
    rules: Iterable[YogaRule] = YOGA_RULES,
) -> frozenset:
    """Evaluate every rule and return the union of the yogas found."""
    view = ChartView(planets, lagna)
    found = set()
    for rule in rules:
        found.update(rule(view))
    logger.debug("yogas.detected", extra={"count": len(found)})
    return frozenset(found)
