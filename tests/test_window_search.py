"""
Window Search Tests
===================

Window resolution (calendar and declared), universe search with filters and
ordering, overlap arithmetic and window alignments.
"""

import pytest

from local_time.contracts.base import (
    AliasFormat, RealityRelationType, TimePrecision, UniverseType,
)
from local_time.contracts.events import AuditEventType
from local_time.contracts.universe import WindowAlias
from local_time.query import (
    WindowSearchEngine, WindowSearchOptions, calculate_overlap,
    calendar_window, has_semantic_alignment, intervals_overlap,
)
from local_time.temporal.conversion import date_to_nanoseconds, year_bounds

from tests.fixtures import (
    Y1969, make_registry, make_universe, make_window, year_alias,
)


def _ids(universes):
    return [u.universe_id.value for u in universes]


@pytest.fixture
def builtin_engine():
    return WindowSearchEngine(make_registry())


@pytest.fixture
def sixties_engine():
    """Three 1969 universes with distinct types, relations and significance."""
    registry = make_registry(builtins=False)
    registry.register(make_universe(
        "film:moon_movie:1969", universe_type=UniverseType.FILM,
        relation=RealityRelationType.HISTORICAL_FICTION, degree=0.5,
        span=(date_to_nanoseconds(1969, 7, 1), date_to_nanoseconds(1969, 7, 31)),
        significance=0.4,
    ))
    registry.register(make_universe(
        "docs:moon_doc:1969", universe_type=UniverseType.HISTORICAL_EVENT,
        relation=RealityRelationType.DOCUMENTARY, degree=0.0,
        span=Y1969, significance=0.9,
    ))
    registry.register(make_universe(
        "books:moon_novel:1969", universe_type=UniverseType.BOOK,
        relation=RealityRelationType.PURE_FICTION, degree=1.0,
        span=(date_to_nanoseconds(1969, 12, 1), date_to_nanoseconds(1970, 3, 1)),
        significance=0.6,
    ))
    return WindowSearchEngine(registry)


class TestWindowResolution:

    def test_calendar_window(self):
        window = calendar_window("cal:1969")
        assert (window.start_time, window.end_time) == year_bounds(1969)
        assert window.precision == TimePrecision.YEAR
        assert window.aliases == (WindowAlias(AliasFormat.YEAR, "1969"),)
        assert window.window_type == "calendar_year"

    @pytest.mark.parametrize("window_id", ["cal:0000", "cal:69", "cal:1969x", "cal:", "1969"])
    def test_malformed_calendar_windows(self, window_id, builtin_engine):
        assert calendar_window(window_id) is None
        assert builtin_engine.get_window(window_id) is None

    def test_declared_window(self, builtin_engine):
        window = builtin_engine.get_window("apollo11:mission")
        assert window.start_time == date_to_nanoseconds(1969, 7, 16)
        assert WindowAlias(AliasFormat.NAMED_PERIOD, "Apollo 11") in window.aliases

    def test_unknown_window(self, builtin_engine):
        assert builtin_engine.get_window("nowhere") is None


class TestFindUniversesInWindow:

    def test_apollo_in_1969(self, builtin_engine):
        assert _ids(builtin_engine.find_universes_in_window("cal:1969")) == ["nasa:apollo11:1969"]

    def test_declared_window_makes_universe_match(self, builtin_engine):
        assert _ids(builtin_engine.find_universes_in_window("cal:1964")) == ["disney:mary_poppins:1964"]

    def test_two_day_epoch_matches_only_its_year(self):
        registry = make_registry(builtins=False)
        registry.register(make_universe(
            "film:noah:2014",
            span=(date_to_nanoseconds(2014, 4, 7), date_to_nanoseconds(2014, 4, 8)),
        ))
        engine = WindowSearchEngine(registry)
        assert _ids(engine.find_universes_in_window("cal:2014")) == ["film:noah:2014"]
        assert engine.find_universes_in_window("cal:2015") == []
        assert engine.find_universes_in_window("cal:2013") == []

    def test_baseline_epoch_never_matches(self, builtin_engine):
        assert builtin_engine.find_universes_in_window("cal:2000") == []

    def test_unknown_window_is_empty_and_audited(self, builtin_engine):
        assert builtin_engine.find_universes_in_window("nowhere") == []
        log = builtin_engine._registry.observability.get_layer_log("query", AuditEventType.QUERY)
        assert log[-1].action == "window_unresolved"

    def test_query_is_audited(self, builtin_engine):
        builtin_engine.find_universes_in_window("cal:1969")
        obs = builtin_engine._registry.observability
        entry = obs.get_layer_log("query")[-1]
        assert entry.action == "find_universes_in_window"
        assert entry.get("results") == "1"
        assert obs.get_metrics().get_latest("window_query_results").value == 1.0

    def test_touching_span_does_not_match(self):
        registry = make_registry(builtins=False)
        start, _ = year_bounds(1970)
        registry.register(make_universe("test:edge:1969", span=(start - 10**9, start)))
        engine = WindowSearchEngine(registry)
        assert engine.find_universes_in_window("cal:1970") == []
        assert _ids(engine.find_universes_in_window("cal:1969")) == ["test:edge:1969"]

    def test_filter_by_type(self, sixties_engine):
        options = WindowSearchOptions(universe_types={UniverseType.BOOK, UniverseType.FILM})
        result = sixties_engine.find_universes_in_window("cal:1969", options)
        assert sorted(_ids(result)) == ["books:moon_novel:1969", "film:moon_movie:1969"]

    def test_filter_by_fictionalization(self, sixties_engine):
        options = WindowSearchOptions(max_fictionalization_degree=0.5)
        result = sixties_engine.find_universes_in_window("cal:1969", options)
        assert sorted(_ids(result)) == ["docs:moon_doc:1969", "film:moon_movie:1969"]

    @pytest.mark.parametrize("relation", [RealityRelationType.DOCUMENTARY, "documentary"])
    def test_filter_by_relation(self, sixties_engine, relation):
        options = WindowSearchOptions(reality_relation=relation)
        result = sixties_engine.find_universes_in_window("cal:1969", options)
        assert _ids(result) == ["docs:moon_doc:1969"]

    def test_sort_by_significance(self, sixties_engine):
        asc = sixties_engine.find_universes_in_window(
            "cal:1969", WindowSearchOptions(sort_by="cultural_significance"))
        desc = sixties_engine.find_universes_in_window(
            "cal:1969", WindowSearchOptions(sort_by="cultural_significance", order="desc"))
        assert _ids(asc) == ["film:moon_movie:1969", "books:moon_novel:1969", "docs:moon_doc:1969"]
        assert _ids(desc) == list(reversed(_ids(asc)))

    def test_sort_by_temporal_overlap(self, sixties_engine):
        result = sixties_engine.find_universes_in_window(
            "cal:1969", WindowSearchOptions(sort_by="temporal_overlap", order="desc"))
        assert _ids(result) == ["docs:moon_doc:1969", "books:moon_novel:1969", "film:moon_movie:1969"]

    def test_invalid_options(self):
        with pytest.raises(ValueError):
            WindowSearchOptions(sort_by="popularity")
        with pytest.raises(ValueError):
            WindowSearchOptions(order="up")


class TestOverlap:

    def test_identical_windows(self):
        window = make_window("w", 0, 100)
        assert calculate_overlap(window, window).percentage == 1.0
        assert calculate_overlap(window, window).duration == 100

    def test_overlap_is_relative_to_first_window(self):
        big = make_window("big", 0, 100)
        small = make_window("small", 0, 50)
        assert calculate_overlap(big, small).percentage == 0.5
        assert calculate_overlap(small, big).percentage == 1.0
        assert calculate_overlap(big, small).duration == calculate_overlap(small, big).duration == 50

    @pytest.mark.parametrize("a,b", [
        ((0, 100), (200, 300)),
        ((0, 100), (100, 200)),
        ((50, 50), (0, 100)),
    ])
    def test_no_overlap(self, a, b):
        overlap = calculate_overlap(make_window("a", *a), make_window("b", *b))
        assert overlap.percentage == 0.0
        assert overlap.duration == 0

    @pytest.mark.parametrize("a_end,b_end,expected", [
        (3, 1, 0.33),
        (3, 2, 0.66),
        (8, 1, 0.12),
        (1000, 999, 0.99),
        (200, 1, 0.0),
    ])
    def test_truncates_to_hundredths(self, a_end, b_end, expected):
        overlap = calculate_overlap(make_window("a", 0, a_end), make_window("b", 0, b_end))
        assert overlap.percentage == expected

    def test_year_scale_values(self):
        year = make_window("y", *year_bounds(1969))
        first_half = make_window("h", year.start_time, year.start_time + year.duration // 2)
        assert calculate_overlap(year, first_half).percentage == 0.5

    def test_engine_exposes_static_overlap(self):
        window = make_window("w", 0, 10)
        assert WindowSearchEngine.calculate_overlap(window, window).percentage == 1.0

    def test_intervals_overlap_half_open(self):
        assert intervals_overlap(0, 10, 5, 15)
        assert not intervals_overlap(0, 10, 10, 20)

    def test_semantic_alignment(self):
        a = make_window("a", 0, 1, aliases=[year_alias(1969)])
        b = make_window("b", 0, 1, aliases=[year_alias(1969), WindowAlias(AliasFormat.CUSTOM, "x")])
        c = make_window("c", 0, 1, aliases=[WindowAlias(AliasFormat.CUSTOM, "1969")])
        assert has_semantic_alignment(a, b)
        assert not has_semantic_alignment(a, c)


class TestAlignments:

    def test_calendar_year_aligns_with_mission(self, builtin_engine):
        alignments = builtin_engine.get_window_alignments("cal:1969")
        assert len(alignments) == 1
        alignment = alignments[0]
        assert alignment.target_window.window_id == "apollo11:mission"
        assert alignment.target_universe_id == "nasa:apollo11:1969"
        assert alignment.semantic_alignment is True
        assert alignment.precision_mismatch is True
        assert alignment.overlap.duration == alignment.target_window.duration
        assert 0.0 < alignment.overlap.percentage < 0.1

    def test_declared_window_aligns_with_itself(self, builtin_engine):
        alignments = builtin_engine.get_window_alignments("apollo11:mission")
        assert [a.target_window.window_id for a in alignments] == ["apollo11:mission"]
        assert alignments[0].overlap.percentage == 1.0
        assert alignments[0].precision_mismatch is False

    def test_unknown_window(self, builtin_engine):
        assert builtin_engine.get_window_alignments("nowhere") == []

    def test_sliver_below_one_hundredth_is_not_aligned(self):
        start, end = Y1969
        sliver = make_window("film:flash:1969:premiere", start, start + (end - start) // 1000)
        tenth = make_window("film:flash:1969:run", start, start + (end - start) // 10 + 1)
        registry = make_registry(builtins=False)
        registry.register(make_universe("film:flash:1969", windows=[sliver, tenth]))

        alignments = WindowSearchEngine(registry).get_window_alignments("cal:1969")
        assert [a.target_window.window_id for a in alignments] == ["film:flash:1969:run"]
        assert alignments[0].overlap.percentage == 0.1
        assert all(a.overlap.percentage > 0 for a in alignments)
