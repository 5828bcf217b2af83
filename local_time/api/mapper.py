"""
API Mapper
==========

Maps registry values to response DTOs.

Nanosecond values are rendered as decimal strings: JSON consumers that
parse numbers as doubles would otherwise lose precision past 2**53.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..contracts.universe import (
    RealityGradient, TemporalEpoch, TemporalWindow, Universe, UniverseNetwork,
    WindowAlignment,
)
from ..domain.serialization import to_plain
from ..temporal.conversion import format_duration


class UniverseSearchView(BaseModel):
    """Summary row for universe listings and window search results."""
    universe_id: str
    canonical_name: str
    type: str
    aliases: List[str]
    reality_relation: str
    fictionalization_degree: float
    cultural_significance: float
    placeholder: bool = False


class RealityGradientView(BaseModel):
    universe_id: Optional[str] = None
    level: float
    category: str
    confidence: float
    evidence: List[str]


class WindowView(BaseModel):
    window_id: str
    start_time: str
    end_time: str
    duration: str
    precision: str
    aliases: List[Dict[str, str]]
    window_type: Optional[str] = None


class AlignmentView(BaseModel):
    source_window: str
    target_window: str
    target_universe_id: Optional[str] = None
    overlap_percentage: float
    overlap_duration: str
    semantic_alignment: bool
    precision_mismatch: bool


def map_universe_summary(universe: Universe) -> UniverseSearchView:
    return UniverseSearchView(
        universe_id=universe.universe_id.value,
        canonical_name=universe.canonical_name,
        type=universe.type.value,
        aliases=list(universe.aliases),
        reality_relation=universe.reality_relation.type.value,
        fictionalization_degree=universe.reality_relation.fictionalization_degree,
        cultural_significance=universe.cultural_significance,
        placeholder=bool(universe.metadata.get("placeholder", False)),
    )


def map_gradient(gradient: RealityGradient, universe_id: Optional[str] = None) -> RealityGradientView:
    return RealityGradientView(
        universe_id=universe_id,
        level=gradient.level,
        category=gradient.category.value,
        confidence=gradient.confidence,
        evidence=list(gradient.evidence),
    )


def map_window(window: TemporalWindow) -> WindowView:
    return WindowView(
        window_id=window.window_id,
        start_time=str(window.start_time),
        end_time=str(window.end_time),
        duration=format_duration(window.duration),
        precision=window.precision.name.lower(),
        aliases=[{"format": a.format.value, "value": a.value} for a in window.aliases],
        window_type=window.window_type,
    )


def map_alignment(alignment: WindowAlignment) -> AlignmentView:
    return AlignmentView(
        source_window=alignment.source_window.window_id,
        target_window=alignment.target_window.window_id,
        target_universe_id=alignment.target_universe_id,
        overlap_percentage=alignment.overlap.percentage,
        overlap_duration=str(alignment.overlap.duration),
        semantic_alignment=alignment.semantic_alignment,
        precision_mismatch=alignment.precision_mismatch,
    )


def _stringify_ns(value: Any) -> Any:
    """Turn every int (but not bool/float) in a plain structure into a string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, dict):
        return {k: _stringify_ns(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_ns(v) for v in value]
    return value


def _map_epoch(epoch: TemporalEpoch) -> Dict[str, Any]:
    data = _stringify_ns(to_plain(epoch))
    data["precision"] = epoch.precision.name.lower()
    return data


def map_universe_detail(universe: Universe) -> Dict[str, Any]:
    """Full universe with flattened epochs; nanoseconds as strings."""
    return {
        **map_universe_summary(universe).model_dump(),
        "identifiers": to_plain(universe.identifiers),
        "layers": [
            {
                "layer_id": layer.layer_id,
                "layer_type": layer.layer_type.value,
                "epochs": {key: _map_epoch(epoch) for key, epoch in layer.epochs.items()},
            }
            for layer in universe.layers
        ],
        "epochs": {key: _map_epoch(epoch) for key, epoch in universe.epochs.items()},
        "temporal_windows": [map_window(w).model_dump() for w in universe.temporal_windows],
        "temporal_structure": (
            _stringify_ns(to_plain(universe.temporal_structure))
            if universe.temporal_structure is not None else None
        ),
    }


def map_network(network: UniverseNetwork) -> Dict[str, Any]:
    return {
        "network_id": network.key,
        "name": network.name,
        "universes": sorted(u.value for u in network.universes),
        "eras": [
            {
                "era_id": era.era_id,
                "name": era.name,
                "start_time": str(era.start_time),
                "end_time": str(era.end_time),
            }
            for era in network.eras
        ],
    }
