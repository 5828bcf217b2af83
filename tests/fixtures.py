"""
Test Fixtures

Explicit universe builders and a registry factory. No random generation;
property tests build their own inputs with hypothesis.
"""

from typing import Iterable, Optional, Sequence

from local_time.contracts.base import (
    AliasFormat, LayerType, RealityRelationType, TimePrecision, UniverseId,
    UniverseType,
)
from local_time.contracts.universe import (
    RealityAnchor, RealityRelation, TemporalEpoch, TemporalLayer,
    TemporalWindow, Universe, UniverseIdentifiers, WindowAlias,
)
from local_time.observability import ObservabilityEngine
from local_time.registry import RegistryConfig, UniverseRegistry
from local_time.sources import ConfigSource
from local_time.temporal.conversion import date_to_nanoseconds, year_bounds


# =============================================================================
# FIXED INSTANTS
# =============================================================================

APOLLO_LIFTOFF = date_to_nanoseconds(1969, 7, 16, 13, 32, 0)
Y1964 = year_bounds(1964)
Y1969 = year_bounds(1969)


# =============================================================================
# BUILDERS
# =============================================================================

def make_window(
    window_id: str,
    start: int,
    end: int,
    precision: TimePrecision = TimePrecision.DAY,
    aliases: Iterable[WindowAlias] = (),
) -> TemporalWindow:
    return TemporalWindow(
        window_id=window_id,
        start_time=start,
        end_time=end,
        precision=precision,
        aliases=tuple(aliases),
    )


def make_universe(
    universe_id: str,
    *,
    universe_type: UniverseType = UniverseType.FILM,
    relation: RealityRelationType = RealityRelationType.PURE_FICTION,
    degree: float = 1.0,
    aliases: Sequence[str] = (),
    span: Optional[tuple] = None,
    epoch_id: Optional[str] = "main",
    windows: Iterable[TemporalWindow] = (),
    significance: Optional[float] = None,
    anchors: Iterable[RealityAnchor] = (),
    consultants: Sequence[str] = (),
    claims_accuracy: bool = False,
    epochs: Optional[dict] = None,
) -> Universe:
    """One-layer universe whose primary epoch covers ``span`` (if given)."""
    layers = ()
    if span is not None:
        layers = (
            TemporalLayer(
                layer_id="primary",
                layer_type=LayerType.PRIMARY,
                epochs={
                    "main": TemporalEpoch(
                        start_time=span[0],
                        end_time=span[1],
                        precision=TimePrecision.DAY,
                        epoch_id=epoch_id,
                    ),
                },
            ),
        )
    metadata = {"canonical_name": universe_id.split(":")[1].replace("_", " ").title()}
    if significance is not None:
        metadata["cultural_significance"] = significance
    return Universe(
        universe_id=UniverseId(universe_id),
        type=universe_type,
        identifiers=UniverseIdentifiers(primary=universe_id, aliases=tuple(aliases)),
        reality_relation=RealityRelation(
            type=relation,
            fictionalization_degree=degree,
            reality_anchors=tuple(anchors),
            historical_consultants=tuple(consultants),
            claims_historical_accuracy=claims_accuracy,
        ),
        layers=layers,
        temporal_windows=tuple(windows),
        epochs=dict(epochs or {}),
        metadata=metadata,
    )


def year_alias(year: int) -> WindowAlias:
    return WindowAlias(AliasFormat.YEAR, str(year))


def make_registry(
    *,
    builtins: bool = True,
    sources: Sequence[ConfigSource] = (),
    strict: bool = False,
    key_unnamed: bool = True,
    initialize: bool = True,
) -> UniverseRegistry:
    registry = UniverseRegistry(
        config=RegistryConfig(
            load_builtins=builtins,
            strict_ordering=strict,
            key_unnamed_epochs=key_unnamed,
        ),
        sources=sources,
        observability=ObservabilityEngine(),
    )
    if initialize:
        registry.initialize()
    return registry
