"""
Tests for the audit trail and metric catalogue.

The observability layer only records: these tests check ordering,
bounding, label validation and the per-layer summary.
"""

import pytest

from local_time.contracts.base import Error, ErrorCode
from local_time.contracts.events import AuditEventType, AuditLogEntry
from local_time.engine import LocalTime, LocalTimeConfig, SourcesConfig
from local_time.observability import (
    DEFAULT_MAX_ENTRIES_PER_LAYER,
    DEFAULT_MAX_POINTS_PER_METRIC,
    LAYERS,
    MetricsCollector,
    ObservabilityConfig,
    ObservabilityEngine,
)


@pytest.fixture
def obs():
    return ObservabilityEngine()


class TestAuditTrail:

    def test_every_layer_starts_empty(self, obs):
        assert set(obs.summary()) == set(LAYERS)
        assert all(counts["entries"] == 0 for counts in obs.summary().values())

    def test_unified_log_follows_recording_order(self, obs):
        obs.record("query", AuditEventType.QUERY, "first")
        obs.record("registry", AuditEventType.REGISTRATION, "second")
        obs.record("query", AuditEventType.QUERY, "third")

        assert [e.action for e in obs.get_unified_log()] == ["first", "second", "third"]
        assert [e.action for e in obs.get_unified_log(["query"])] == ["first", "third"]

    def test_unknown_layer_gets_its_own_trail(self, obs):
        obs.record("custom", AuditEventType.SYSTEM, "ping")
        assert [e.action for e in obs.get_layer_log("custom")] == ["ping"]
        assert obs.get_layer_log("missing") == []

    def test_metadata_is_frozen_as_strings(self, obs):
        entry = obs.record("registry", AuditEventType.REGISTRATION, "universe_registered", count=3)
        assert entry.get("count") == "3"
        assert entry.get("absent") is None

    def test_errors_are_collected_across_layers(self, obs):
        error = Error.create(ErrorCode.DUPLICATE_UNIVERSE, "already registered")
        obs.record("query", AuditEventType.QUERY, "window_search")
        obs.record_error("registry", "duplicate_ignored", error, entity_id="a:b")

        errors = obs.get_errors()
        assert len(errors) == 1
        assert errors[0].is_error
        assert errors[0].error is error
        assert obs.summary()["registry"]["errors"] == 1

    def test_bounded_trail_keeps_most_recent(self):
        obs = ObservabilityEngine(ObservabilityConfig(max_entries_per_layer=2))
        for action in ("a", "b", "c"):
            obs.record("query", AuditEventType.QUERY, action)

        assert [e.action for e in obs.get_layer_log("query")] == ["b", "c"]
        assert obs.summary()["query"] == {"entries": 2, "errors": 0, "dropped": 1}

    def test_entry_ids_are_deterministic(self):
        first = AuditLogEntry.create("registry", AuditEventType.SYSTEM, "initialized", sequence=1)
        second = AuditLogEntry.create("registry", AuditEventType.SYSTEM, "initialized", sequence=1)
        assert first.entry_id == second.entry_id
        assert first.entry_id.startswith("audit_")

    def test_only_error_entries_carry_errors(self):
        error = Error.create(ErrorCode.DUPLICATE_UNIVERSE, "x")
        with pytest.raises(ValueError):
            AuditLogEntry.create("registry", AuditEventType.QUERY, "q", sequence=1, error=error)


class TestMetrics:

    def test_totals_filter_by_label(self):
        metrics = MetricsCollector()
        metrics.record("universes_registered_total", 1.0, {"origin": "builtin"})
        metrics.record("universes_registered_total", 1.0, {"origin": "builtin"})
        metrics.record("universes_registered_total", 1.0, {"origin": "file"})

        assert metrics.total("universes_registered_total") == 3.0
        assert metrics.total("universes_registered_total", origin="file") == 1.0
        assert metrics.get_latest("universes_registered_total").label("origin") == "file"

    def test_unregistered_metric_rejected(self):
        with pytest.raises(KeyError):
            MetricsCollector().record("made_up_total", 1.0)

    def test_undeclared_label_rejected(self):
        with pytest.raises(ValueError):
            MetricsCollector().record("registry_size", 4.0, {"window_id": "cal:1969"})

    def test_disabled_metrics_are_ignored(self):
        obs = ObservabilityEngine(ObservabilityConfig(enable_metrics=False))
        obs.collect_metric("registry_size", 1.0)
        assert obs.get_metrics() is None


class TestRetention:

    def test_defaults_are_bounded(self):
        config = ObservabilityConfig()
        assert config.max_entries_per_layer == DEFAULT_MAX_ENTRIES_PER_LAYER
        assert config.max_points_per_metric == DEFAULT_MAX_POINTS_PER_METRIC

    def test_metric_series_keeps_most_recent(self):
        metrics = MetricsCollector(capacity=3)
        for n in range(5):
            metrics.record("window_query_results", float(n), {"window_id": f"cal:{1960 + n}"})

        assert [p.value for p in metrics.get_metric("window_query_results")] == [2.0, 3.0, 4.0]
        assert metrics.get_latest("window_query_results").label("window_id") == "cal:1964"

    def test_repeated_window_queries_stay_within_bounds(self):
        config = LocalTimeConfig(
            sources=SourcesConfig(config_paths=()),
            observability=ObservabilityConfig(max_entries_per_layer=50, max_points_per_metric=20),
        )
        engine = LocalTime(config).initialize()
        for year in range(1500, 2000):
            engine.find_universes_in_window(f"cal:{year}")

        obs = engine.observability
        assert len(obs.get_layer_log("query")) == 50
        assert obs.summary()["query"]["dropped"] > 0
        assert len(obs.get_metrics().get_metric("window_query_results")) == 20

    def test_server_engine_uses_bounded_defaults(self):
        engine = LocalTime(LocalTimeConfig.from_env({}))
        assert engine.config.observability.max_entries_per_layer == DEFAULT_MAX_ENTRIES_PER_LAYER
        assert engine.config.observability.max_points_per_metric == DEFAULT_MAX_POINTS_PER_METRIC
