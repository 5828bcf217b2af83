"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail and metrics for registration, configuration
loading and queries
ALLOWED INPUTS: Events and metric samples from any layer
OUTPUTS: Read-only audit log, metric series, a summary for health checks

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Print or write anywhere on its own

Skipped configuration sources, alias reassignments and ignored duplicate
registrations all land here as immutable entries the caller can inspect.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Tuple
from enum import Enum

from ..contracts.base import Error, Timestamp
from ..contracts.events import AuditLogEntry, AuditEventType, MetricPoint


# =============================================================================
# AUDIT TRAILS (One per layer)
# =============================================================================

LAYERS = ('registry', 'sources', 'query', 'reality', 'api')


class LayerTrail:
    """
    Entries recorded by a single layer, oldest first.

    With a capacity the trail keeps only the most recent entries;
    ``dropped`` counts what fell off the front.
    """

    def __init__(self, layer_name: str, capacity: Optional[int] = None):
        self._layer_name = layer_name
        self._entries: Deque[AuditLogEntry] = deque(maxlen=capacity)
        self._dropped = 0

    def append(self, entry: AuditLogEntry) -> None:
        if self._entries.maxlen is not None and len(self._entries) == self._entries.maxlen:
            self._dropped += 1
        self._entries.append(entry)

    def entries(
        self,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None,
    ) -> List[AuditLogEntry]:
        return [
            e for e in self._entries
            if (event_type is None or e.event_type is event_type)
            and (action is None or e.action == action)
        ]

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def dropped(self) -> int:
        return self._dropped

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS
# =============================================================================

class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


REGISTERED_METRICS: Tuple[MetricDefinition, ...] = (
    MetricDefinition("universes_registered_total", MetricType.COUNTER,
                     "Universes accepted by the registry", ("origin",)),
    MetricDefinition("duplicate_registrations_total", MetricType.COUNTER,
                     "Registrations ignored because the id already existed"),
    MetricDefinition("networks_registered_total", MetricType.COUNTER,
                     "Networks stored in the network table"),
    MetricDefinition("config_sources_loaded_total", MetricType.COUNTER,
                     "Configuration sources that produced a batch", ("source_id",)),
    MetricDefinition("config_sources_skipped_total", MetricType.COUNTER,
                     "Configuration sources that failed and were skipped", ("source_id",)),
    MetricDefinition("registry_size", MetricType.GAUGE,
                     "Entries in the universe index after initialization"),
    MetricDefinition("window_query_results", MetricType.GAUGE,
                     "Universes returned by a window query", ("window_id",)),
)


class MetricsCollector:
    """
    Samples keyed by metric name. Only names in the catalogue are accepted,
    and a sample may only carry the labels its definition declares. With a
    capacity each series keeps only its most recent samples.
    """

    def __init__(
        self,
        definitions: Iterable[MetricDefinition] = REGISTERED_METRICS,
        capacity: Optional[int] = None,
    ):
        self._definitions: Dict[str, MetricDefinition] = {d.name: d for d in definitions}
        self._series: Dict[str, Deque[MetricPoint]] = {
            name: deque(maxlen=capacity) for name in self._definitions
        }

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Mapping[str, str]] = None,
    ) -> MetricPoint:
        definition = self._definitions.get(metric_name)
        if definition is None:
            raise KeyError(f"Unregistered metric: {metric_name}")
        labels = dict(labels or {})
        unknown = set(labels) - set(definition.labels)
        if unknown:
            raise ValueError(f"{metric_name} does not take labels {sorted(unknown)}")

        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=Timestamp.now(),
            labels=tuple(sorted(labels.items())),
        )
        self._series[metric_name].append(point)
        return point

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._series.get(metric_name, ()))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        series = self._series.get(metric_name)
        return series[-1] if series else None

    def total(self, metric_name: str, **labels: str) -> float:
        """Sum of a series, restricted to samples carrying the given labels."""
        wanted = set(labels.items())
        return sum(
            p.value for p in self._series.get(metric_name, ())
            if wanted <= set(p.labels)
        )

    @property
    def definitions(self) -> List[MetricDefinition]:
        return list(self._definitions.values())


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

DEFAULT_MAX_ENTRIES_PER_LAYER = 10_000
DEFAULT_MAX_POINTS_PER_METRIC = 10_000


@dataclass
class ObservabilityConfig:
    """Retention limits. None means unbounded."""
    enable_metrics: bool = True
    max_entries_per_layer: Optional[int] = DEFAULT_MAX_ENTRIES_PER_LAYER
    max_points_per_metric: Optional[int] = DEFAULT_MAX_POINTS_PER_METRIC


class ObservabilityEngine:
    """
    Audit trail shared by every layer of one LocalTime instance.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._trails: Dict[str, LayerTrail] = {}
        for layer in LAYERS:
            self._trail(layer)
        self._metrics = (
            MetricsCollector(capacity=self._config.max_points_per_metric)
            if self._config.enable_metrics else None
        )
        self._sequence = 0

    def _trail(self, layer: str) -> LayerTrail:
        trail = self._trails.get(layer)
        if trail is None:
            trail = self._trails[layer] = LayerTrail(layer, self._config.max_entries_per_layer)
        return trail

    def record(
        self,
        layer: str,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        error: Optional[Error] = None,
        **metadata,
    ) -> AuditLogEntry:
        self._sequence += 1
        entry = AuditLogEntry.create(
            layer=layer,
            event_type=event_type,
            action=action,
            sequence=self._sequence,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=metadata,
            error=error,
        )
        self._trail(layer).append(entry)
        return entry

    def record_error(self, layer: str, action: str, error: Error,
                     entity_id: Optional[str] = None, **metadata) -> AuditLogEntry:
        return self.record(
            layer, AuditEventType.ERROR, action,
            entity_id=entity_id, error=error, **metadata
        )

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        if self._metrics is not None:
            self._metrics.record(metric_name, value, labels)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def get_layer_log(
        self,
        layer_name: str,
        event_type: Optional[AuditEventType] = None,
    ) -> List[AuditLogEntry]:
        trail = self._trails.get(layer_name)
        return trail.entries(event_type=event_type) if trail else []

    def get_unified_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        """Entries from all (or the given) layers in the order they were recorded."""
        names = layers or list(self._trails)
        merged = [e for name in names if name in self._trails for e in self._trails[name].entries()]
        merged.sort(key=lambda e: e.sequence)
        return merged

    def get_errors(self) -> List[AuditLogEntry]:
        return [e for e in self.get_unified_log() if e.is_error]

    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._metrics

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Entry and error counts per layer."""
        return {
            name: {
                "entries": len(trail),
                "errors": len(trail.entries(AuditEventType.ERROR)),
                "dropped": trail.dropped,
            }
            for name, trail in self._trails.items()
        }


__all__ = [
    'LAYERS',
    'LayerTrail',
    'MetricType',
    'MetricDefinition',
    'MetricsCollector',
    'REGISTERED_METRICS',
    'DEFAULT_MAX_ENTRIES_PER_LAYER',
    'DEFAULT_MAX_POINTS_PER_METRIC',
    'ObservabilityConfig',
    'ObservabilityEngine',
]
