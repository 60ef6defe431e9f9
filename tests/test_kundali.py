import dataclasses
import datetime as dt

import pytest

import kundali_core.kundali as kundali_mod
from kundali_core import (
    BirthDetails,
    ChartSettings,
    GenerationFailed,
    IncompleteBirthDetails,
    InvalidLongitude,
    UnsupportedAyanamsa,
    UnsupportedDivision,
    UnsupportedHouseSystem,
    active_dasha,
    divisional_chart,
    generate,
)
from kundali_core.constants import BODIES, NAKSHATRA_SPAN

NEW_DELHI = {
    "dob": "1990-01-15",
    "tob": "14:30",
    "pob": "New Delhi",
    "lat": 28.6139,
    "lng": 77.2090,
    "timezone": "Asia/Kolkata",
}


def _birth(**overrides):
    data = dict(NEW_DELHI)
    data.update(overrides)
    return BirthDetails.from_mapping(data)


@pytest.fixture(scope="module")
def chart():
    return generate(_birth())


def test_new_delhi_scenario(chart):
    assert set(chart.planets) == set(BODIES)
    assert len(chart.houses) == 12
    assert 1 <= chart.lagna.sign <= 12
    assert isinstance(chart.yogas, frozenset)
    assert len(chart.dasha) == 9
    assert chart.dasha[0].lord == chart.planets["Moon"].nakshatra_lord
    assert chart.birth_utc == dt.datetime(1990, 1, 15, 9, 0, tzinfo=dt.timezone.utc)
    assert chart.generated_at is None


def test_sun_in_sidereal_capricorn(chart):
    # Makara Sankranti falls on 14 January
    assert chart.planets["Sun"].sign == 10
    assert chart.planets["Sun"].sign_name == "Capricorn"
    assert 23.5 < chart.ayanamsa < 23.9


def test_houses_rotate_from_lagna(chart):
    start = chart.lagna.sign
    assert [h.sign for h in chart.houses] == [(start - 1 + i) % 12 + 1 for i in range(12)]
    for p in chart.planets.values():
        assert p.house == (p.sign - chart.lagna.sign) % 12 + 1
        assert p.body in chart.houses[p.house - 1].occupants


def test_nodes_are_opposite_and_retrograde(chart):
    rahu, ketu = chart.planets["Rahu"], chart.planets["Ketu"]
    assert (ketu.longitude - rahu.longitude) % 360.0 == pytest.approx(180.0)
    assert rahu.retrograde and ketu.retrograde
    assert not chart.planets["Sun"].retrograde


def test_local_sidereal_time_in_hours(chart):
    assert 0.0 <= chart.local_sidereal_time < 24.0


def test_generate_is_idempotent(chart):
    assert generate(_birth()) == chart


def test_generated_at_is_caller_supplied():
    stamp = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    assert generate(_birth(), generated_at=stamp).generated_at == stamp


def test_default_divisions_are_precomputed(chart):
    assert set(chart.divisional_charts) == {"D9", "D10"}
    assert divisional_chart(chart, "d9") is chart.divisional_charts["D9"]


def test_divisional_projection_without_recomputation(chart):
    d60 = divisional_chart(chart, "D60")
    assert d60.code == "D60"
    assert set(d60.placements) == set(BODIES)
    with pytest.raises(UnsupportedDivision):
        divisional_chart(chart, "D11")


def test_active_dasha_projection(chart):
    chain = active_dasha(chart, chart.birth_utc)
    assert chain[0].lord == chart.dasha[0].lord
    assert len(chain) == 3
    assert active_dasha(chart, chart.dasha[-1].end) is None


def test_missing_time_of_birth():
    data = dict(NEW_DELHI)
    del data["tob"]
    with pytest.raises(IncompleteBirthDetails) as info:
        generate(BirthDetails.from_mapping(data))
    assert info.value.field == "time"


def test_none_birth_details():
    with pytest.raises(IncompleteBirthDetails):
        generate(None)


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"lat": 91.0}, "latitude"),
        ({"lng": -181.0}, "longitude"),
        ({"timezone": "Mars/Olympus"}, "timezone"),
        ({"dob": "1990-02-30"}, "date"),
        ({"tob": "25:10"}, "time"),
        ({"lat": "north"}, "latitude"),
    ],
)
def test_invalid_birth_details(overrides, field):
    with pytest.raises(IncompleteBirthDetails) as info:
        generate(_birth(**overrides))
    assert info.value.field == field


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"date": "1990-01-15"}, "date"),
        ({"time": "14:30"}, "time"),
        ({"latitude": "28.6"}, "latitude"),
        ({"longitude": True}, "longitude"),
        ({"timezone": 530}, "timezone"),
    ],
)
def test_wrongly_typed_birth_details(changes, field):
    birth = dataclasses.replace(_birth(), **changes)
    with pytest.raises(IncompleteBirthDetails) as info:
        generate(birth)
    assert info.value.field == field


@pytest.mark.parametrize("dob", ["0001-01-01", "1499-12-31", "2900-01-01", "9999-12-31"])
def test_dates_outside_supported_range(dob):
    with pytest.raises(IncompleteBirthDetails) as info:
        generate(_birth(dob=dob))
    assert info.value.field == "date"


@pytest.mark.parametrize("dob", ["1500-01-01", "2899-12-31"])
def test_dates_at_range_edges_generate(dob):
    k = generate(_birth(dob=dob), ChartSettings(divisions=()))
    assert set(k.planets) == set(BODIES)
    assert k.dasha[0].start <= k.birth_utc < k.dasha[-1].end


def test_degrees_in_nakshatra(chart):
    for p in chart.planets.values():
        assert 0.0 <= p.degrees_in_nakshatra < NAKSHATRA_SPAN
        assert (p.nakshatra - 1) * NAKSHATRA_SPAN + p.degrees_in_nakshatra == pytest.approx(p.longitude)


def test_dst_gap_rejected():
    birth = _birth(dob="2021-03-14", tob="02:30", lat=40.71, lng=-74.0, timezone="America/New_York")
    with pytest.raises(IncompleteBirthDetails, match="DST gap"):
        generate(birth)


def test_dst_overlap_rejected():
    birth = _birth(dob="2021-11-07", tob="01:30", lat=40.71, lng=-74.0, timezone="America/New_York")
    with pytest.raises(IncompleteBirthDetails, match="ambiguous"):
        generate(birth)


def test_unsupported_ayanamsa_is_configuration_error():
    with pytest.raises(UnsupportedAyanamsa) as info:
        generate(_birth(), ChartSettings(ayanamsa="Tropical"))
    assert info.value.user_correctable


def test_unsupported_division_in_settings():
    with pytest.raises(UnsupportedDivision):
        generate(_birth(), ChartSettings(divisions=("D9", "D13")))


def test_placidus_in_polar_latitudes_fails_at_ephemeris_stage():
    birth = _birth(lat=70.0, lng=25.0, timezone="Europe/Oslo")
    with pytest.raises(GenerationFailed) as info:
        generate(birth, ChartSettings(house_system="PLACIDUS"))
    assert info.value.stage == "ephemeris"
    assert isinstance(info.value.cause, UnsupportedHouseSystem)
    assert info.value.user_correctable


def test_internal_failure_is_tagged_and_not_user_correctable(monkeypatch):
    def boom(*args, **kwargs):
        raise InvalidLongitude("longitude must be finite, got nan")

    monkeypatch.setattr(kundali_mod, "build_dasha_timeline", boom)
    with pytest.raises(GenerationFailed) as info:
        generate(_birth())
    assert info.value.stage == "dasha"
    assert not info.value.user_correctable


def test_equal_and_placidus_houses():
    equal = generate(_birth(), ChartSettings(house_system="EQUAL", divisions=()))
    assert equal.houses[0].cusp_longitude == pytest.approx(equal.lagna.longitude)
    placidus = generate(_birth(), ChartSettings(house_system="PLACIDUS", divisions=()))
    assert placidus.houses[0].cusp_longitude == pytest.approx(placidus.lagna.longitude, abs=1e-6)
    assert placidus.divisional_charts == {}
    for p in placidus.planets.values():
        assert 1 <= p.house <= 12


def test_true_node_differs_from_mean_node(chart):
    true_chart = generate(_birth(), ChartSettings(node_type="true"))
    delta = abs(true_chart.planets["Rahu"].longitude - chart.planets["Rahu"].longitude)
    assert 0.0 < min(delta, 360.0 - delta) < 3.0
    assert true_chart.planets["Sun"] == chart.planets["Sun"]


def test_dasha_depth_setting():
    shallow = generate(_birth(), ChartSettings(dasha_depth=1))
    assert all(not p.sub_periods for p in shallow.dasha)


def test_from_mapping_accepts_profile_aliases():
    birth = BirthDetails.from_mapping({
        "dateOfBirth": "1990-01-15", "timeOfBirth": "14:30:00", "placeOfBirth": "New Delhi",
        "latitude": "28.6139", "longitude": 77.209, "timeZone": "Asia/Kolkata",
    })
    assert birth == _birth(lng=77.209)
