"""
Configuration batch (de)serialization.

Reads the JSON shape external configuration sources supply and writes the
same shape back. Keys may be snake_case (what ``batch_to_dict`` emits) or the
camelCase spelling used by hand-written config files; nanosecond values may be
JSON integers or decimal strings.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, date
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..contracts.base import (
    AliasFormat, LayerType, RealityRelationType, TimePrecision, UniverseId,
    UniverseType,
)
from ..contracts.universe import (
    Attribution, NetworkEra, RealityAnchor, RealityRelation, TemporalEpoch,
    TemporalKeyframe, TemporalLayer, TemporalSegment, TemporalStructure,
    TemporalWindow, Universe, UniverseIdentifiers, UniverseNetwork,
    WindowAlias, WindowingStrategy,
)


CURRENT_VERSION = "1.0"


class MalformedConfigError(ValueError):
    """A configuration payload is missing a field or has the wrong shape."""


@dataclass(frozen=True)
class ConfigBatch:
    """One ``{universes, networks}`` payload from a configuration source."""
    universes: Tuple[Universe, ...] = field(default_factory=tuple)
    networks: Tuple[UniverseNetwork, ...] = field(default_factory=tuple)
    version: str = CURRENT_VERSION


# =============================================================================
# FIELD HELPERS
# =============================================================================

_MISSING = object()


def _get(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _require(data: Dict[str, Any], *keys: str, context: str) -> Any:
    value = _get(data, *keys, default=_MISSING)
    if value is _MISSING:
        raise MalformedConfigError(f"{context}: missing required field '{keys[0]}'")
    return value


def _mapping(data: Any, context: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedConfigError(f"{context}: expected an object, got {type(data).__name__}")
    return data


def parse_nanoseconds(value: Any, context: str = "timestamp") -> int:
    """Accept ints, integral floats and decimal strings (``"-600000000000"``)."""
    if isinstance(value, bool):
        raise MalformedConfigError(f"{context}: expected nanoseconds, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip().rstrip("n")
        try:
            return int(text)
        except ValueError:
            pass
    raise MalformedConfigError(f"{context}: expected nanoseconds, got {value!r}")


def _optional_ns(value: Any, context: str) -> Optional[int]:
    return None if value is None else parse_nanoseconds(value, context)


def parse_precision(value: Any) -> TimePrecision:
    if value is None:
        return TimePrecision.SECOND
    if isinstance(value, TimePrecision):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return TimePrecision(value)
    if isinstance(value, str):
        try:
            return TimePrecision[value.strip().upper()]
        except KeyError:
            if value.strip().isdigit():
                return TimePrecision(int(value))
    raise MalformedConfigError(f"unknown precision {value!r}")


def _enum(enum_cls, value: Any, context: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedConfigError(f"{context}: unknown {enum_cls.__name__} {value!r}") from None


def _strings(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


# =============================================================================
# FROM DICT
# =============================================================================

def epoch_from_dict(data: Dict[str, Any]) -> TemporalEpoch:
    data = _mapping(data, "epoch")
    context = f"epoch {_get(data, 'epoch_id', 'epochId', default='<unnamed>')}"
    return TemporalEpoch(
        start_time=parse_nanoseconds(_require(data, "start_time", "startTime", "start", context=context), context),
        end_time=parse_nanoseconds(_require(data, "end_time", "endTime", "end", context=context), context),
        precision=parse_precision(_get(data, "precision")),
        epoch_id=_get(data, "epoch_id", "epochId"),
        description=_get(data, "description"),
        zero_point=_optional_ns(_get(data, "zero_point", "zeroPoint"), context),
        zero_event=_get(data, "zero_event", "zeroEvent"),
        before_prefix=_get(data, "before_prefix", "beforePrefix"),
        after_prefix=_get(data, "after_prefix", "afterPrefix"),
        relative_format=_get(data, "relative_format", "relativeFormat"),
    )


def _epochs_from_dict(data: Any) -> Dict[str, TemporalEpoch]:
    return {
        str(key): epoch_from_dict(value)
        for key, value in _mapping(data or {}, "epochs").items()
    }


def layer_from_dict(data: Dict[str, Any]) -> TemporalLayer:
    data = _mapping(data, "layer")
    layer_id = _require(data, "layer_id", "layerId", context="layer")
    return TemporalLayer(
        layer_id=layer_id,
        epochs=_epochs_from_dict(_get(data, "epochs")),
        layer_type=_enum(LayerType, _get(data, "layer_type", "type", default="primary"), f"layer {layer_id}"),
    )


def segment_from_dict(data: Dict[str, Any]) -> TemporalSegment:
    data = _mapping(data, "segment")
    segment_id = _require(data, "segment_id", "id", context="segment")
    context = f"segment {segment_id}"
    return TemporalSegment(
        segment_id=segment_id,
        start_time=parse_nanoseconds(_require(data, "start_time", "start", context=context), context),
        end_time=parse_nanoseconds(_require(data, "end_time", "end", context=context), context),
        segment_type=_get(data, "segment_type", "type", default="sequence"),
        status=_get(data, "status"),
        jurisdiction=_get(data, "jurisdiction"),
        description=_get(data, "description"),
    )


def keyframe_from_dict(data: Dict[str, Any]) -> TemporalKeyframe:
    data = _mapping(data, "keyframe")
    keyframe_id = _require(data, "keyframe_id", "id", context="keyframe")
    context = f"keyframe {keyframe_id}"
    date_range = _get(data, "date_range", "dateRange", default={}) or {}
    return TemporalKeyframe(
        keyframe_id=keyframe_id,
        timestamp=parse_nanoseconds(_require(data, "timestamp", context=context), context),
        significance=float(_get(data, "significance", default=0.0)),
        tags=_strings(_get(data, "tags")),
        certainty=float(_get(data, "certainty", default=1.0)),
        earliest=_optional_ns(_get(data, "earliest", default=date_range.get("earliest")), context),
        latest=_optional_ns(_get(data, "latest", default=date_range.get("latest")), context),
    )


def structure_from_dict(data: Dict[str, Any]) -> TemporalStructure:
    data = _mapping(data, "temporal_structure")
    windows = _get(data, "windows")
    strategy = None
    if windows:
        windows = _mapping(windows, "windowing strategy")
        avg = _get(windows, "average_window_size", "avgWindowSize")
        strategy = WindowingStrategy(
            strategy=_require(windows, "strategy", context="windowing strategy"),
            average_window_size=_optional_ns(avg, "windowing strategy"),
        )
    return TemporalStructure(
        segments=tuple(segment_from_dict(s) for s in _get(data, "segments", default=[]) or []),
        keyframes=tuple(keyframe_from_dict(k) for k in _get(data, "keyframes", default=[]) or []),
        windows=strategy,
    )


def window_from_dict(data: Dict[str, Any]) -> TemporalWindow:
    data = _mapping(data, "window")
    window_id = _require(data, "window_id", "windowId", "id", context="window")
    context = f"window {window_id}"
    aliases = tuple(
        WindowAlias(
            format=_enum(AliasFormat, _require(a, "format", context=context), context),
            value=str(_require(a, "value", context=context)),
            universe_context=_get(a, "universe_context", "universeContext"),
        )
        for a in _get(data, "aliases", default=[]) or []
    )
    return TemporalWindow(
        window_id=window_id,
        start_time=parse_nanoseconds(_require(data, "start_time", "startTime", "start", context=context), context),
        end_time=parse_nanoseconds(_require(data, "end_time", "endTime", "end", context=context), context),
        precision=parse_precision(_get(data, "precision")),
        aliases=aliases,
        window_type=_get(data, "window_type", "type"),
    )


def relation_from_dict(data: Dict[str, Any]) -> RealityRelation:
    data = _mapping(data, "reality_relation")
    anchors = tuple(
        RealityAnchor(
            real_event_id=_require(a, "real_event_id", "realEventId", context="reality anchor"),
            relationship_type=_get(a, "relationship_type", "relationshipType", default="references"),
            confidence=float(_get(a, "confidence", default=0.0)),
            evidence=_strings(_get(a, "evidence")),
        )
        for a in _get(data, "reality_anchors", "realityAnchors", default=[]) or []
    )
    return RealityRelation(
        type=_enum(RealityRelationType, _require(data, "type", context="reality_relation"), "reality_relation"),
        fictionalization_degree=float(
            _require(data, "fictionalization_degree", "fictionalizationDegree", context="reality_relation")
        ),
        reality_anchors=anchors,
        historical_consultants=_strings(_get(data, "historical_consultants", "historicalConsultants")),
        claims_historical_accuracy=bool(_get(data, "claims_historical_accuracy", "claimsHistoricalAccuracy", default=False)),
        disclaimer=_get(data, "disclaimer"),
    )


def attribution_from_dict(data: Dict[str, Any]) -> Attribution:
    data = _mapping(data, "attribution")
    copyright_info = _get(data, "copyright", default={}) or {}
    creators = _get(data, "creators", default={}) or {}
    if not isinstance(creators, dict):
        creators = {"creators": creators}
    return Attribution(
        copyright_holders=_strings(_get(data, "copyright_holders", default=copyright_info.get("holders"))),
        copyright_year=_get(data, "copyright_year", default=copyright_info.get("year")),
        creators={str(role): _strings(names) for role, names in creators.items()},
        sources=_strings(_get(data, "sources")),
        public_domain=bool(_get(data, "public_domain", "publicDomain", default=False)),
        citations_required=bool(_get(data, "citations_required", "citationsRequired", default=False)),
        usage_restrictions=_strings(_get(data, "usage_restrictions", "usageRestrictions")),
    )


def _metadata_from_dict(data: Any) -> Dict[str, Any]:
    metadata = dict(_mapping(data or {}, "metadata"))
    if "canonicalName" in metadata and "canonical_name" not in metadata:
        metadata["canonical_name"] = metadata.pop("canonicalName")
    return metadata


def universe_from_dict(data: Dict[str, Any]) -> Universe:
    """
    Build a Universe from its JSON shape.

    Raises InvalidUniverseIdError for a malformed id and MalformedConfigError
    for any other shape problem.
    """
    data = _mapping(data, "universe")
    universe_id = UniverseId.parse(_require(data, "universe_id", "universeId", context="universe"))
    context = f"universe {universe_id}"

    identifiers = _mapping(_get(data, "identifiers", default={}) or {}, context)
    structure = _get(data, "temporal_structure", "temporalStructure")
    attribution = _get(data, "attribution")

    return Universe(
        universe_id=universe_id,
        type=_enum(UniverseType, _require(data, "type", context=context), context),
        identifiers=UniverseIdentifiers(
            primary=_get(identifiers, "primary", default=universe_id.value),
            aliases=_strings(_get(identifiers, "aliases")),
            imdb=_get(identifiers, "imdb"),
            isbn=_get(identifiers, "isbn"),
            doi=_get(identifiers, "doi"),
            patent=_get(identifiers, "patent"),
        ),
        reality_relation=relation_from_dict(_require(data, "reality_relation", "realityRelation", context=context)),
        attribution=attribution_from_dict(attribution) if attribution else None,
        layers=tuple(layer_from_dict(layer) for layer in _get(data, "layers", default=[]) or []),
        temporal_structure=structure_from_dict(structure) if structure else None,
        temporal_windows=tuple(
            window_from_dict(w) for w in _get(data, "temporal_windows", "temporalWindows", default=[]) or []
        ),
        epochs=_epochs_from_dict(_get(data, "epochs")),
        metadata=_metadata_from_dict(_get(data, "metadata")),
    )


def network_from_dict(data: Dict[str, Any]) -> UniverseNetwork:
    data = _mapping(data, "network")
    network_id = _get(data, "network_id", "networkId")
    raw_universe_id = _get(data, "universe_id", "universeId")
    context = f"network {network_id or raw_universe_id}"
    eras = tuple(
        NetworkEra(
            era_id=_require(e, "era_id", "eraId", context=context),
            name=_get(e, "name", default=_get(e, "era_id", "eraId")),
            start_time=parse_nanoseconds(_require(e, "start_time", "start", context=context), context),
            end_time=parse_nanoseconds(_require(e, "end_time", "end", context=context), context),
            universes=frozenset(UniverseId.parse(u) for u in _get(e, "universes", default=[]) or []),
        )
        for e in _get(data, "eras", default=[]) or []
    )
    if not network_id and not raw_universe_id:
        raise MalformedConfigError("network: needs network_id or universe_id")
    return UniverseNetwork(
        network_id=network_id,
        universes=frozenset(UniverseId.parse(u) for u in _get(data, "universes", default=[]) or []),
        eras=eras,
        universe_id=UniverseId.parse(raw_universe_id) if raw_universe_id else None,
        name=_get(data, "name"),
    )


def batch_from_dict(data: Dict[str, Any]) -> ConfigBatch:
    data = _mapping(data, "configuration batch")
    return ConfigBatch(
        universes=tuple(universe_from_dict(u) for u in _get(data, "universes", default=[]) or []),
        networks=tuple(network_from_dict(n) for n in _get(data, "networks", default=[]) or []),
        version=str(_get(data, "version", default=CURRENT_VERSION)),
    )


def loads_batch(text: str) -> ConfigBatch:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedConfigError(f"invalid JSON: {exc}") from exc
    return batch_from_dict(payload)


# =============================================================================
# TO DICT
# =============================================================================

def to_plain(obj: Any) -> Any:
    """
    Recursively convert contract values into JSON-compatible structures.

    Field names are kept as-is (snake_case), enums become their value and
    sets become sorted lists, so the output reads back through
    ``batch_from_dict``.
    """
    if isinstance(obj, UniverseId):
        return obj.value
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Mapping):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(to_plain(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return obj


def universe_to_dict(universe: Universe) -> Dict[str, Any]:
    return to_plain(universe)


def network_to_dict(network: UniverseNetwork) -> Dict[str, Any]:
    return to_plain(network)


def batch_to_dict(batch: ConfigBatch) -> Dict[str, Any]:
    return {
        "version": batch.version,
        "universes": [universe_to_dict(u) for u in batch.universes],
        "networks": [network_to_dict(n) for n in batch.networks],
    }


class LocalTimeEncoder(json.JSONEncoder):
    """
    JSON encoder for contract values.

    RULES:
    1. Dates are ISO 8601 strings (UTC).
    2. Enums use their .value.
    3. Sets become sorted lists (deterministic output).
    4. Dataclasses are expanded field by field.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, (Enum, UniverseId, set, frozenset, Mapping)):
            return to_plain(obj)
        if hasattr(obj, "__dataclass_fields__"):
            return to_plain(obj)
        return super().default(obj)


def dumps_batch(batch: ConfigBatch, indent: Optional[int] = 2) -> str:
    return json.dumps(batch_to_dict(batch), cls=LocalTimeEncoder, indent=indent, sort_keys=False)
