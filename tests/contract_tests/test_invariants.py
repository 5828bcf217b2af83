"""
Property Tests for Temporal Contracts
Verifies conversion, overlap, gradient and identity invariants over
generated inputs.
"""

from dataclasses import replace
from datetime import datetime, timezone

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from local_time.contracts.base import (
    RealityRelationType, TimePrecision, UniverseId,
)
from local_time.contracts.universe import RealityAnchor, TemporalEpoch, TemporalWindow
from local_time.core.reality import CATEGORY_BANDS, RealityGradientAnalyzer, categorize_level
from local_time.query import calculate_overlap
from local_time.registry import RegistryConfig, UniverseRegistry
from local_time.temporal.addressing import absolute_to_relative, relative_to_absolute
from local_time.temporal.conversion import datetime_to_nanoseconds, nanoseconds_to_date

from tests.fixtures import make_universe

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

NS_BOUND = 10**20

calendar_datetimes = st.datetimes(
    min_value=datetime(1, 1, 1),
    max_value=datetime(9999, 12, 31, 23, 59, 59),
)

segments = st.text(
    alphabet=st.characters(blacklist_categories=("Cs", "Zs", "Zl", "Zp", "Cc"), blacklist_characters=":"),
    min_size=1,
    max_size=12,
).filter(lambda s: not any(c.isspace() for c in s))


@composite
def windows(draw):
    """Generates windows with start <= end."""
    start = draw(st.integers(min_value=-NS_BOUND, max_value=NS_BOUND))
    length = draw(st.integers(min_value=0, max_value=NS_BOUND))
    return TemporalWindow(
        window_id="w" + str(draw(st.integers(0, 999))),
        start_time=start,
        end_time=start + length,
        precision=draw(st.sampled_from(TimePrecision)),
    )


@composite
def universe_ids(draw):
    parts = draw(st.lists(segments, min_size=2, max_size=4))
    return ":".join(parts)


@composite
def scored_universes(draw):
    anchors = draw(st.lists(
        st.floats(min_value=0.0, max_value=1.0).map(lambda c: RealityAnchor("event:x", "depicts", c)),
        max_size=4,
    ))
    return make_universe(
        "test:generated:2000",
        relation=draw(st.sampled_from(RealityRelationType)),
        degree=draw(st.floats(min_value=-1.0, max_value=2.0)),
        anchors=anchors,
        consultants=draw(st.lists(st.just("Historian"), max_size=2)),
        claims_accuracy=draw(st.booleans()),
    )


# =============================================================================
# PROPERTIES
# =============================================================================

class TestConversionInvariants:

    @given(calendar_datetimes)
    def test_datetime_round_trip_at_millisecond_resolution(self, dt):
        ns = datetime_to_nanoseconds(dt)
        expected = dt.replace(microsecond=dt.microsecond // 1000 * 1000, tzinfo=timezone.utc)
        assert nanoseconds_to_date(ns) == expected

    @given(calendar_datetimes, calendar_datetimes)
    def test_conversion_preserves_order(self, a, b):
        if a.replace(microsecond=0) < b.replace(microsecond=0):
            assert datetime_to_nanoseconds(a) < datetime_to_nanoseconds(b)


class TestOverlapInvariants:

    @given(windows(), windows())
    def test_percentage_bounded(self, a, b):
        overlap = calculate_overlap(a, b)
        assert 0.0 <= overlap.percentage <= 1.0
        assert 0 <= overlap.duration <= min(a.duration, b.duration)

    @given(windows(), windows())
    def test_duration_symmetric(self, a, b):
        assert calculate_overlap(a, b).duration == calculate_overlap(b, a).duration

    @given(windows())
    def test_self_overlap_is_full(self, window):
        if window.duration > 0:
            assert calculate_overlap(window, window).percentage == 1.0


class TestGradientInvariants:

    @given(st.floats(0.0, 1.0), st.floats(0.0, 1.0))
    def test_categories_monotonic(self, a, b):
        order = [category for _, category in CATEGORY_BANDS]
        order.append(categorize_level(1.0))
        low, high = sorted((a, b))
        assert order.index(categorize_level(low)) <= order.index(categorize_level(high))

    @given(scored_universes())
    def test_level_always_in_unit_interval(self, universe):
        gradient = RealityGradientAnalyzer.analyze_universe(universe)
        assert 0.0 <= gradient.level <= 1.0
        assert gradient.category == categorize_level(gradient.level)
        assert len(gradient.evidence) >= 1


class TestAddressingInvariants:

    @given(
        st.integers(min_value=-NS_BOUND, max_value=NS_BOUND),
        st.integers(min_value=-10**12, max_value=10**12),
    )
    def test_relative_round_trip_at_millisecond_resolution(self, zero_point, offset_ms):
        epoch = TemporalEpoch(
            start_time=zero_point, end_time=zero_point,
            precision=TimePrecision.MILLISECOND, zero_point=zero_point,
        )
        absolute = zero_point + offset_ms * 1_000_000
        assert relative_to_absolute(absolute_to_relative(absolute, epoch), epoch) == absolute


class TestIdentityInvariants:

    @given(universe_ids())
    def test_generated_ids_valid(self, value):
        assert UniverseId.is_valid(value)
        assert UniverseId(value).segments == tuple(value.split(":"))

    @given(universe_ids(), st.sampled_from([" ", "\t", "\n", "::"]))
    def test_whitespace_or_empty_segment_invalid(self, value, junk):
        head, tail = value.split(":", 1)
        assert not UniverseId.is_valid(f"{head}{junk}{tail}")

    @settings(max_examples=25)
    @given(st.lists(universe_ids(), min_size=1, max_size=6))
    def test_first_registration_wins(self, ids):
        registry = UniverseRegistry(config=RegistryConfig(load_builtins=False))
        for order, value in enumerate(ids):
            registry.register(replace(make_universe(value), metadata={"order": order}))
        for value in set(ids):
            assert registry.get_universe(value).metadata["order"] == ids.index(value)
