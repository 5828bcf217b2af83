"""
Universe Contracts

Immutable data model for temporal universes: epochs grouped into layers,
segments and keyframes, declared windows, reality metadata and networks.

All nanosecond fields are signed Python ints counted from
1970-01-01T00:00:00Z (or from zero for runtime-relative media). Ordering of
start/end values is NOT enforced here; see RegistryConfig.strict_ordering.
"""

from __future__ import annotations
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from .base import (
    AliasFormat, LayerType, RealityCategory, RealityRelationType,
    TimePrecision, UniverseId, UniverseType,
)


def freeze(value: Any) -> Any:
    """
    Read-only deep copy of plain containers: mappings become mapping
    proxies, lists become tuples, sets become frozensets. Anything else
    (frozen dataclasses, scalars) is kept as-is.
    """
    if isinstance(value, MappingABC):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


# =============================================================================
# EPOCHS AND LAYERS
# =============================================================================

@dataclass(frozen=True)
class TemporalEpoch:
    """
    A bounded time span inside one coordinate system.

    Zero-referenced epochs (missions, countdowns) additionally carry the
    instant all relative addresses are measured from.
    """
    start_time: int
    end_time: int
    precision: TimePrecision
    epoch_id: Optional[str] = None
    description: Optional[str] = None
    zero_point: Optional[int] = None
    zero_event: Optional[str] = None
    before_prefix: Optional[str] = None
    after_prefix: Optional[str] = None
    relative_format: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_zero_referenced(self) -> bool:
        return self.zero_point is not None


@dataclass(frozen=True)
class TemporalLayer:
    """Named set of epochs sharing one interpretation (primary, meta, ...)."""
    layer_id: str
    epochs: Mapping[str, TemporalEpoch] = field(default_factory=dict)
    layer_type: LayerType = LayerType.PRIMARY

    def __post_init__(self):
        object.__setattr__(self, "epochs", freeze(self.epochs))


# =============================================================================
# STRUCTURE (segments, keyframes, windowing hints)
# =============================================================================

@dataclass(frozen=True)
class TemporalSegment:
    segment_id: str
    start_time: int
    end_time: int
    segment_type: str
    status: Optional[str] = None
    jurisdiction: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class TemporalKeyframe:
    keyframe_id: str
    timestamp: int
    significance: float
    tags: Tuple[str, ...] = field(default_factory=tuple)
    certainty: float = 1.0
    earliest: Optional[int] = None
    latest: Optional[int] = None


@dataclass(frozen=True)
class WindowingStrategy:
    """Suggested windowing for analysis. Informational only."""
    strategy: str
    average_window_size: Optional[int] = None


@dataclass(frozen=True)
class TemporalStructure:
    segments: Tuple[TemporalSegment, ...] = field(default_factory=tuple)
    keyframes: Tuple[TemporalKeyframe, ...] = field(default_factory=tuple)
    windows: Optional[WindowingStrategy] = None


# =============================================================================
# WINDOWS
# =============================================================================

@dataclass(frozen=True)
class WindowAlias:
    """Human-facing name for a window, e.g. ``{year, "1964"}``."""
    format: AliasFormat
    value: str
    universe_context: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.format.value, self.value)


@dataclass(frozen=True)
class TemporalWindow:
    window_id: str
    start_time: int
    end_time: int
    precision: TimePrecision
    aliases: Tuple[WindowAlias, ...] = field(default_factory=tuple)
    window_type: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class WindowOverlap:
    """Intersection of two windows relative to the first one."""
    percentage: float
    duration: int


@dataclass(frozen=True)
class WindowAlignment:
    source_window: TemporalWindow
    target_window: TemporalWindow
    overlap: WindowOverlap
    semantic_alignment: bool
    precision_mismatch: bool = False
    target_universe_id: Optional[str] = None


# =============================================================================
# REALITY METADATA
# =============================================================================

@dataclass(frozen=True)
class RealityAnchor:
    real_event_id: str
    relationship_type: str
    confidence: float
    evidence: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Anchor confidence must be in [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class RealityRelation:
    type: RealityRelationType
    fictionalization_degree: float
    reality_anchors: Tuple[RealityAnchor, ...] = field(default_factory=tuple)
    historical_consultants: Tuple[str, ...] = field(default_factory=tuple)
    claims_historical_accuracy: bool = False
    disclaimer: Optional[str] = None


@dataclass(frozen=True)
class RealityGradient:
    """Analyzed position of a universe on the reality-to-fantasy scale."""
    level: float
    category: RealityCategory
    confidence: float
    evidence: Tuple[str, ...] = field(default_factory=tuple)


# =============================================================================
# UNIVERSE
# =============================================================================

@dataclass(frozen=True)
class UniverseIdentifiers:
    primary: str
    aliases: Tuple[str, ...] = field(default_factory=tuple)
    imdb: Optional[str] = None
    isbn: Optional[str] = None
    doi: Optional[str] = None
    patent: Optional[str] = None


@dataclass(frozen=True)
class Attribution:
    """Who produced the work. Carried for display, never interpreted."""
    copyright_holders: Tuple[str, ...] = field(default_factory=tuple)
    copyright_year: Optional[int] = None
    creators: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)  # role -> names
    sources: Tuple[str, ...] = field(default_factory=tuple)
    public_domain: bool = False
    citations_required: bool = False
    usage_restrictions: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "creators", freeze(self.creators))


@dataclass(frozen=True)
class Universe:
    universe_id: UniverseId
    type: UniverseType
    identifiers: UniverseIdentifiers
    reality_relation: RealityRelation
    attribution: Optional[Attribution] = None
    layers: Tuple[TemporalLayer, ...] = field(default_factory=tuple)
    temporal_structure: Optional[TemporalStructure] = None
    temporal_windows: Tuple[TemporalWindow, ...] = field(default_factory=tuple)
    epochs: Mapping[str, TemporalEpoch] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # stored values are shared by every reader; nothing may be mutable
        object.__setattr__(self, "layers", tuple(self.layers))
        object.__setattr__(self, "temporal_windows", tuple(self.temporal_windows))
        object.__setattr__(self, "epochs", freeze(self.epochs))
        object.__setattr__(self, "metadata", freeze(self.metadata))

    @property
    def cultural_significance(self) -> float:
        return float(self.metadata.get("cultural_significance", 0.0))

    @property
    def canonical_name(self) -> str:
        return str(self.metadata.get("canonical_name", self.universe_id.value))

    @property
    def aliases(self) -> Tuple[str, ...]:
        return self.identifiers.aliases

    def iter_layer_epochs(self):
        """Yield ``(layer, key, epoch)`` for every epoch in every layer."""
        for layer in self.layers:
            for key, epoch in layer.epochs.items():
                yield layer, key, epoch


# =============================================================================
# NETWORKS
# =============================================================================

@dataclass(frozen=True)
class NetworkEra:
    era_id: str
    name: str
    start_time: int
    end_time: int
    universes: FrozenSet[UniverseId] = field(default_factory=frozenset)


@dataclass(frozen=True)
class UniverseNetwork:
    """
    A named grouping of universes. Membership is a set, so each member
    appears once however many times it was declared.
    """
    network_id: Optional[str] = None
    universes: FrozenSet[UniverseId] = field(default_factory=frozenset)
    eras: Tuple[NetworkEra, ...] = field(default_factory=tuple)
    universe_id: Optional[UniverseId] = None
    name: Optional[str] = None

    def __post_init__(self):
        if not self.network_id and self.universe_id is None:
            raise ValueError("UniverseNetwork requires a network_id or a universe_id")

    @property
    def key(self) -> str:
        return self.network_id or self.universe_id.value
