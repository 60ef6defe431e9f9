import random

import pytest

from kundali_core.constants import BODIES
from kundali_core.houses import house_whole_sign
from kundali_core.models import Lagna, PlanetPosition
from kundali_core.sidereal import nakshatra_of, pada_of, sign_of
from kundali_core.yogas import YOGA_RULES, ChartView, detect_yogas


def _chart(lagna_lon, **lons):
    lagna = Lagna(longitude=lagna_lon, sign=sign_of(lagna_lon),
                  nakshatra=nakshatra_of(lagna_lon), pada=pada_of(lagna_lon))
    planets = {
        body: PlanetPosition(
            body=body, longitude=lon, latitude=0.0, speed=1.0,
            sign=sign_of(lon), nakshatra=nakshatra_of(lon), pada=pada_of(lon),
            house=house_whole_sign(lagna.sign, sign_of(lon)), retrograde=False,
        )
        for body, lon in lons.items()
    }
    return planets, lagna


def _named(yogas, name):
    return [y for y in yogas if y.name == name]


def test_gaja_kesari_strength():
    # Jupiter exalted in Cancer, 4th from an Aries Moon and 4th from an Aries lagna
    planets, lagna = _chart(5.0, Moon=10.0, Jupiter=100.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Gaja Kesari")
    assert yoga.bodies == ("Jupiter", "Moon")
    assert yoga.strength == 85.0


def test_gaja_kesari_absent_when_jupiter_not_in_kendra_from_moon():
    planets, lagna = _chart(5.0, Moon=10.0, Jupiter=40.0)
    assert not _named(detect_yogas(planets, lagna), "Gaja Kesari")


def test_budha_aditya_scores_tighter_conjunction_higher():
    tight, lagna = _chart(0.0, Sun=40.0, Mercury=40.0)
    wide, _ = _chart(0.0, Sun=31.0, Mercury=59.0)
    [t] = _named(detect_yogas(tight, lagna), "Budha-Aditya")
    [w] = _named(detect_yogas(wide, lagna), "Budha-Aditya")
    assert t.strength == 90.0
    assert w.strength == pytest.approx(52.67, abs=0.01)
    assert t.bodies == ("Mercury", "Sun")


def test_chandra_mangala():
    planets, lagna = _chart(0.0, Moon=200.0, Mars=205.0)
    assert _named(detect_yogas(planets, lagna), "Chandra-Mangala")


def test_ruchaka_exalted_in_tenth():
    planets, lagna = _chart(0.0, Mars=280.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Ruchaka")
    assert yoga.strength == 100.0


def test_hamsa_own_sign_in_seventh():
    # Jupiter in Sagittarius, 7th from a Gemini lagna
    planets, lagna = _chart(65.0, Jupiter=250.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Hamsa")
    assert yoga.strength == 70.0


def test_parivartana_exchange():
    planets, lagna = _chart(0.0, Mars=40.0, Venus=10.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Parivartana")
    assert yoga.bodies == ("Mars", "Venus")


def test_raja_kendra_and_trikona_lords_conjunct():
    # Aries lagna: Moon lords the 4th, Sun lords the 5th
    planets, lagna = _chart(0.0, Sun=150.0, Moon=152.0)
    yogas = _named(detect_yogas(planets, lagna), "Raja")
    assert [y.bodies for y in yogas] == [("Moon", "Sun")]
    assert yogas[0].strength == pytest.approx(55 + 35 * (1 - 2 / 30), abs=0.01)


def test_dharma_karmadhipati_exchange():
    # Aries lagna: 9th lord Jupiter sits in the 10th, 10th lord Saturn in the 9th
    planets, lagna = _chart(0.0, Jupiter=275.0, Saturn=245.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Dharma-Karmadhipati")
    assert yoga.strength == 80.0


def test_special_aspects_of_mars():
    # Mars in Aries: Cancer is 4th, Libra 7th, Scorpio 8th, Leo 5th
    planets, lagna = _chart(0.0, Mars=10.0, Moon=100.0, Venus=190.0, Sun=220.0, Mercury=130.0)
    v = ChartView(planets, lagna)
    assert v.aspects("Mars", "Moon")
    assert v.aspects("Mars", "Venus")
    assert v.aspects("Mars", "Sun")
    assert not v.aspects("Mars", "Mercury")
    # Mars is 10th from the Moon, which only aspects the 7th
    assert not v.aspects("Moon", "Mars")
    assert v.mutual_aspect("Mars", "Venus")
    assert not v.mutual_aspect("Mars", "Moon")


def test_special_aspects_of_jupiter_and_saturn():
    planets, lagna = _chart(0.0, Jupiter=10.0, Saturn=130.0, Venus=250.0, Moon=70.0)
    v = ChartView(planets, lagna)
    # Leo and Sagittarius are 5th and 9th from Jupiter in Aries
    assert v.aspects("Jupiter", "Saturn")
    assert v.aspects("Jupiter", "Venus")
    assert not v.aspects("Jupiter", "Moon")
    # Gemini is 11th from Saturn in Leo; Aries is 9th
    assert not v.aspects("Saturn", "Moon")
    assert not v.aspects("Saturn", "Jupiter")
    # Libra is 3rd from Leo, Taurus 10th
    libra, _ = _chart(0.0, Saturn=130.0, Venus=190.0, Moon=40.0)
    w = ChartView(libra, lagna)
    assert w.aspects("Saturn", "Venus")
    assert w.aspects("Saturn", "Moon")


@pytest.mark.parametrize(
    "sun, saturn, strength",
    [
        (130.0, 310.0, 70.0),  # both in own signs
        (310.0, 130.0, 50.0),
    ],
)
def test_raja_by_mutual_aspect(sun, saturn, strength):
    # Aries lagna: Sun lords the 5th, Saturn the 10th; opposite signs aspect each other
    planets, lagna = _chart(0.0, Sun=sun, Saturn=saturn)
    [yoga] = _named(detect_yogas(planets, lagna), "Raja")
    assert yoga.bodies == ("Saturn", "Sun")
    assert yoga.strength == strength


def test_raja_needs_aspect_both_ways():
    # Jupiter (9th lord) sees Saturn (10th lord) by its 5th aspect; Saturn sees nothing back
    planets, lagna = _chart(0.0, Jupiter=250.0, Saturn=10.0)
    yogas = detect_yogas(planets, lagna)
    assert not _named(yogas, "Raja")
    assert not _named(yogas, "Dharma-Karmadhipati")


def test_dharma_karmadhipati_mutual_aspect():
    # Aries lagna: Jupiter in its own Sagittarius opposite Saturn in Gemini
    planets, lagna = _chart(0.0, Jupiter=250.0, Saturn=70.0)
    yogas = detect_yogas(planets, lagna)
    [yoga] = _named(yogas, "Dharma-Karmadhipati")
    assert yoga.bodies == ("Jupiter", "Saturn")
    assert yoga.strength == 70.0
    [raja] = _named(yogas, "Raja")
    assert raja.strength == 60.0


def test_vipareeta_harsha():
    # Aries lagna: 6th lord Mercury placed in the 8th
    planets, lagna = _chart(0.0, Mercury=215.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Harsha")
    assert yoga.bodies == ("Mercury",)


def test_kemadruma_and_relief():
    lonely, lagna = _chart(0.0, Moon=5.0, Sun=130.0, Mars=135.0, Mercury=140.0,
                           Jupiter=155.0, Venus=160.0, Saturn=170.0)
    [yoga] = _named(detect_yogas(lonely, lagna), "Kemadruma")
    assert yoga.strength == 50.0

    relieved, _ = _chart(0.0, Moon=5.0, Sun=130.0, Mars=95.0)
    [yoga] = _named(detect_yogas(relieved, lagna), "Kemadruma")
    assert yoga.strength == 30.0


def test_sunapha_anapha_durudhara():
    second, lagna = _chart(0.0, Moon=5.0, Mars=40.0)
    assert [y.bodies for y in _named(detect_yogas(second, lagna), "Sunapha")] == [("Mars",)]

    twelfth, _ = _chart(0.0, Moon=5.0, Saturn=340.0)
    assert _named(detect_yogas(twelfth, lagna), "Anapha")

    both, _ = _chart(0.0, Moon=5.0, Mars=40.0, Saturn=340.0)
    yogas = detect_yogas(both, lagna)
    [d] = _named(yogas, "Durudhara")
    assert d.bodies == ("Mars", "Saturn")
    assert d.strength == 60.0
    assert not _named(yogas, "Sunapha") and not _named(yogas, "Anapha")
    assert not _named(yogas, "Kemadruma")


def test_adhi_and_amala():
    planets, lagna = _chart(0.0, Moon=5.0, Mercury=185.0, Venus=200.0, Jupiter=275.0)
    yogas = detect_yogas(planets, lagna)
    [adhi] = _named(yogas, "Adhi")
    assert adhi.bodies == ("Mercury", "Venus")
    assert adhi.strength == 80.0
    [amala] = _named(yogas, "Amala")
    assert amala.bodies == ("Jupiter",)


def test_neecha_bhanga_raja():
    # Sun debilitated in Libra; its dispositor Venus in the 1st
    planets, lagna = _chart(0.0, Sun=190.0, Venus=10.0)
    [yoga] = _named(detect_yogas(planets, lagna), "Neecha Bhanga Raja")
    assert yoga.bodies == ("Sun",)


def _random_chart(rng):
    return _chart(rng.uniform(0, 360), **{b: rng.uniform(0, 360) for b in BODIES})


def test_result_independent_of_rule_order():
    rng = random.Random(42)
    for _ in range(50):
        planets, lagna = _random_chart(rng)
        rules = list(YOGA_RULES)
        expected = detect_yogas(planets, lagna)
        rng.shuffle(rules)
        assert detect_yogas(planets, lagna, rules) == expected
        assert detect_yogas(planets, lagna, reversed(YOGA_RULES)) == expected


def test_strengths_stay_in_range():
    rng = random.Random(7)
    for _ in range(200):
        planets, lagna = _random_chart(rng)
        for yoga in detect_yogas(planets, lagna):
            assert 0.0 <= yoga.strength <= 100.0
            assert list(yoga.bodies) == sorted(yoga.bodies)
