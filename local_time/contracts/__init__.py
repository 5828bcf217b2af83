"""
Contracts Module

Immutable types shared by every layer. Layers exchange only these values;
no layer imports another layer's implementation details.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses or enums)
2. Identity is validated at construction (UniverseId)
3. Nanosecond values are arbitrary-precision ints
4. Error states are enumerated (ErrorCode) and recordable (Error)
"""

from .base import (
    AliasFormat, Error, ErrorCode, InvalidUniverseIdError, LayerType,
    RealityCategory, RealityRelationType, ReferenceType, TimePrecision,
    Timestamp, UniverseId, UniverseType,
)
from .universe import (
    Attribution, NetworkEra, RealityAnchor, RealityGradient, RealityRelation,
    TemporalEpoch, TemporalKeyframe, TemporalLayer, TemporalSegment,
    TemporalStructure, TemporalWindow, Universe, UniverseIdentifiers,
    UniverseNetwork, WindowAlias, WindowAlignment, WindowingStrategy,
    WindowOverlap,
)
from .events import AuditEventType, AuditLogEntry, MetricPoint

__all__ = [
    "AliasFormat", "Error", "ErrorCode", "InvalidUniverseIdError", "LayerType",
    "RealityCategory", "RealityRelationType", "ReferenceType", "TimePrecision",
    "Timestamp", "UniverseId", "UniverseType",
    "Attribution", "NetworkEra", "RealityAnchor", "RealityGradient",
    "RealityRelation", "TemporalEpoch", "TemporalKeyframe", "TemporalLayer",
    "TemporalSegment", "TemporalStructure", "TemporalWindow", "Universe",
    "UniverseIdentifiers", "UniverseNetwork", "WindowAlias", "WindowAlignment",
    "WindowingStrategy", "WindowOverlap",
    "AuditEventType", "AuditLogEntry", "MetricPoint",
]
