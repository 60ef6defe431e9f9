import datetime as dt
import random

import pytest

from kundali_core.constants import NAKSHATRA_LORDS, NAKSHATRA_SPAN, VIMSHOTTARI_ORDER
from kundali_core.dasha import active_periods, birth_dasha_state, build_dasha_timeline
from kundali_core.errors import InvalidInstant
from kundali_core.sidereal import nakshatra_of

BIRTH = dt.datetime(1990, 1, 15, 9, 0, tzinfo=dt.timezone.utc)
FULL_CYCLE = dt.timedelta(days=120 * 365.25)


def test_state_at_start_of_ashwini():
    s = birth_dasha_state(0.0)
    assert (s.nakshatra, s.lord) == (1, "Ketu")
    assert s.elapsed_years == 0.0
    assert s.remaining_years == 7.0
    assert s.cycle_position_years == 0.0


def test_state_in_middle_of_bharani():
    s = birth_dasha_state(NAKSHATRA_SPAN * 1.5)
    assert s.lord == "Venus"
    assert s.elapsed_years == pytest.approx(10.0)
    assert s.remaining_years == pytest.approx(10.0)
    assert s.cycle_position_years == pytest.approx(17.0)


def _cyclic_gap(a, b):
    d = abs(a - b) % 120.0
    return min(d, 120.0 - d)


def test_cycle_position_continuous_across_nakshatra_boundaries():
    for k in range(1, 28):
        edge = k * NAKSHATRA_SPAN
        before = birth_dasha_state(edge - 1e-6).cycle_position_years
        after = birth_dasha_state((edge + 1e-6) % 360.0).cycle_position_years
        assert _cyclic_gap(before, after) < 1e-3


def _assert_contiguous(periods):
    for prev, nxt in zip(periods, periods[1:]):
        assert prev.end == nxt.start


def test_mahadashas_span_exactly_120_years():
    rng = random.Random(2024)
    for _ in range(200):
        moon = rng.uniform(0.0, 360.0)
        timeline = build_dasha_timeline(moon, BIRTH, depth=1)
        assert len(timeline) == 9
        assert timeline[-1].end - timeline[0].start == FULL_CYCLE
        _assert_contiguous(timeline)
        assert timeline[0].lord == NAKSHATRA_LORDS[nakshatra_of(moon) - 1]
        assert timeline[0].start <= BIRTH < timeline[0].end
        assert [p.lord for p in timeline] == list(
            VIMSHOTTARI_ORDER[VIMSHOTTARI_ORDER.index(timeline[0].lord):]
            + VIMSHOTTARI_ORDER[:VIMSHOTTARI_ORDER.index(timeline[0].lord)]
        )


def test_first_period_starts_before_birth_by_elapsed_share():
    timeline = build_dasha_timeline(NAKSHATRA_SPAN * 1.5, BIRTH, depth=1)
    first = timeline[0]
    assert first.lord == "Venus"
    assert (BIRTH - first.start) == dt.timedelta(days=10 * 365.25)
    assert first.years == pytest.approx(20.0)


def test_sub_periods_tile_parents_three_levels_deep():
    timeline = build_dasha_timeline(123.456, BIRTH, depth=3)
    for maha in timeline:
        assert len(maha.sub_periods) == 9
        assert maha.sub_periods[0].lord == maha.lord
        assert maha.sub_periods[0].start == maha.start
        assert maha.sub_periods[-1].end == maha.end
        _assert_contiguous(maha.sub_periods)
        for antar in maha.sub_periods:
            assert antar.level == 2
            assert len(antar.sub_periods) == 9
            assert antar.sub_periods[0].start == antar.start
            assert antar.sub_periods[-1].end == antar.end
            _assert_contiguous(antar.sub_periods)
            assert all(p.level == 3 and not p.sub_periods for p in antar.sub_periods)


def test_antardasha_proportions():
    ketu_maha = build_dasha_timeline(0.0, BIRTH, depth=2)[0]
    assert ketu_maha.lord == "Ketu"
    years = {p.lord: p.years for p in ketu_maha.sub_periods}
    assert years["Ketu"] == pytest.approx(7 * 7 / 120, abs=1e-6)
    assert years["Venus"] == pytest.approx(7 * 20 / 120, abs=1e-6)
    assert sum(years.values()) == pytest.approx(7.0, abs=1e-6)


def test_depth_one_has_no_sub_periods():
    assert all(not p.sub_periods for p in build_dasha_timeline(10.0, BIRTH, depth=1))


@pytest.mark.parametrize("depth", [0, 4, "2"])
def test_invalid_depth(depth):
    with pytest.raises(ValueError):
        build_dasha_timeline(10.0, BIRTH, depth=depth)


def test_naive_birth_rejected():
    with pytest.raises(InvalidInstant):
        build_dasha_timeline(10.0, dt.datetime(1990, 1, 15, 9, 0))


def test_active_periods_chain():
    timeline = build_dasha_timeline(200.0, BIRTH, depth=3)
    when = BIRTH + dt.timedelta(days=4000)
    chain = active_periods(timeline, when)
    assert [p.level for p in chain] == [1, 2, 3]
    assert all(p.contains(when) for p in chain)
    assert chain[1] in chain[0].sub_periods
    assert chain[2] in chain[1].sub_periods


def test_active_periods_at_exact_boundary_picks_next_period():
    timeline = build_dasha_timeline(200.0, BIRTH, depth=2)
    boundary = timeline[1].start
    chain = active_periods(timeline, boundary)
    assert chain[0] is timeline[1]
    assert chain[1] is timeline[1].sub_periods[0]


def test_active_periods_outside_cycle():
    timeline = build_dasha_timeline(200.0, BIRTH, depth=3)
    assert active_periods(timeline, timeline[0].start - dt.timedelta(seconds=1)) is None
    assert active_periods(timeline, timeline[-1].end) is None


def test_active_periods_requires_aware_instant():
    timeline = build_dasha_timeline(200.0, BIRTH, depth=1)
    with pytest.raises(InvalidInstant):
        active_periods(timeline, dt.datetime(2000, 1, 1))
