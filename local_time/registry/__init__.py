"""
Universe Registry

RESPONSIBILITY: Canonical identity, alias resolution and epoch flattening for
every known universe and network
ALLOWED INPUTS: Universe / UniverseNetwork values, ConfigBatch from sources
OUTPUTS: Read-only Universe / UniverseNetwork values

INVARIANTS:
===========
- First write wins on universe ids: re-registering an id is a no-op
- Last write wins on aliases
- Every stored universe carries the baseline epochs plus its flattened
  layer epochs; its own top-level epochs win on key collisions
- Lookups never raise; misses are None / empty

LIFECYCLE:
==========
construct -> initialize() -> read-only queries. Single writer during
initialization; maps are treated as immutable afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..contracts.base import (
    Error, ErrorCode, InvalidUniverseIdError, LayerType, RealityRelationType,
    TimePrecision, UniverseId, UniverseType,
)
from ..contracts.events import AuditEventType
from ..contracts.universe import (
    RealityRelation, TemporalEpoch, TemporalLayer, Universe,
    UniverseIdentifiers, UniverseNetwork,
)
from ..domain.serialization import ConfigBatch
from ..observability import ObservabilityEngine
from ..sources import ConfigSource, ConfigSourceError
from ..temporal.conversion import create_epoch
from .builtin import builtin_batch


LAYER = "registry"

UNIX_EPOCH_KEY = "unix"


def unix_baseline_epoch() -> TemporalEpoch:
    """Reference epoch present in every registered universe."""
    return create_epoch(
        1970, 1, 1, 2038, 1, 19, TimePrecision.SECOND,
        epoch_id=UNIX_EPOCH_KEY,
        description="Unix time (32-bit range)",
    )


@dataclass
class RegistryConfig:
    """Configuration for the universe registry."""
    load_builtins: bool = True
    key_unnamed_epochs: bool = True  # False drops layer epochs without epoch_id
    strict_ordering: bool = False  # reject start > end at registration
    baseline_epochs: Optional[Dict[str, TemporalEpoch]] = None

    def __post_init__(self):
        if self.baseline_epochs is None:
            self.baseline_epochs = {UNIX_EPOCH_KEY: unix_baseline_epoch()}


# =============================================================================
# INDEX ENTRIES (tagged: a real universe or a network stand-in)
# =============================================================================

@dataclass(frozen=True)
class _UniverseEntry:
    universe: Universe


@dataclass(frozen=True)
class _NetworkPlaceholder:
    """Stands in for a member id that a network referenced before it was registered."""
    network: UniverseNetwork
    view: Universe


_Entry = Union[_UniverseEntry, _NetworkPlaceholder]


class UniverseRegistry:
    """
    In-memory store of universes and networks.

    Construct it, call ``initialize()`` once, then query. Every consumer
    (window search, addressing, API) receives this object explicitly.
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        sources: Sequence[ConfigSource] = (),
        observability: Optional[ObservabilityEngine] = None,
    ):
        self._config = config or RegistryConfig()
        self._sources = tuple(sources)
        self._obs = observability or ObservabilityEngine()
        self._entries: Dict[str, _Entry] = {}
        self._aliases: Dict[str, str] = {}
        self._networks: Dict[str, UniverseNetwork] = {}
        self._initialized = False

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def observability(self) -> ObservabilityEngine:
        return self._obs

    def initialize(self, sources: Optional[Iterable[ConfigSource]] = None) -> None:
        """
        Load the built-in dataset, then every configured source in order.

        A source that fails is recorded and skipped; initialization itself
        never fails because of an optional source. Calling again is a no-op.
        """
        if self._initialized:
            return

        if self._config.load_builtins:
            self.apply_batch(builtin_batch(), origin="builtin")

        for source in (self._sources if sources is None else tuple(sources)):
            self._load_source(source)

        self._initialized = True
        self._obs.record(
            LAYER, AuditEventType.SYSTEM, "initialized",
            universes=len(self._entries), networks=len(self._networks),
        )
        self._obs.collect_metric("registry_size", float(len(self._entries)))

    def _load_source(self, source: ConfigSource) -> None:
        labels = {"source_id": source.source_id}
        try:
            batch = source.load_batch()
        except ConfigSourceError as exc:
            self._skip_source(source, exc.error)
            return
        except (OSError, ValueError, TypeError, KeyError) as exc:
            self._skip_source(source, Error.create(
                ErrorCode.SOURCE_FAILED, f"{type(exc).__name__}: {exc}",
                source_id=source.source_id,
            ))
            return

        if batch is None:
            self._obs.record(
                "sources", AuditEventType.CONFIGURATION, "source_absent",
                entity_id=source.source_id, entity_type=source.source_type,
            )
            return

        self.apply_batch(batch, origin=source.source_id)
        self._obs.record(
            "sources", AuditEventType.CONFIGURATION, "source_loaded",
            entity_id=source.source_id, entity_type=source.source_type,
            universes=len(batch.universes), networks=len(batch.networks),
            version=batch.version,
        )
        self._obs.collect_metric("config_sources_loaded_total", 1.0, labels)

    def _skip_source(self, source: ConfigSource, error: Error) -> None:
        self._obs.record_error(
            "sources", "source_skipped", error,
            entity_id=source.source_id,
        )
        self._obs.collect_metric(
            "config_sources_skipped_total", 1.0, {"source_id": source.source_id}
        )

    def apply_batch(self, batch: ConfigBatch, origin: str = "batch") -> None:
        """
        Register every universe, then every network, of a batch.

        Items rejected by validation are recorded and skipped so that one bad
        entry does not discard the rest of its batch.
        """
        for universe in batch.universes:
            try:
                self.register_universe(universe.universe_id, universe, origin=origin)
            except ValueError as exc:
                code = (
                    ErrorCode.INVALID_UNIVERSE_ID
                    if isinstance(exc, InvalidUniverseIdError)
                    else ErrorCode.INVALID_TIME_RANGE
                )
                self._obs.record_error(
                    LAYER, "universe_rejected",
                    Error.create(code, str(exc), origin=origin),
                    entity_id=str(universe.universe_id),
                )
        for network in batch.networks:
            self.register_network(network, origin=origin)

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register_universe(
        self,
        universe_id: Union[str, UniverseId],
        universe: Universe,
        origin: str = "direct",
    ) -> Universe:
        """
        Register ``universe`` under ``universe_id`` and return the stored value.

        Raises InvalidUniverseIdError for a malformed id (and ValueError for
        inverted time ranges when strict ordering is on). If the id is
        already taken by a real universe the existing value is kept and
        returned; the incoming aliases are still indexed.
        """
        canonical_id = UniverseId.parse(universe_id)
        if self._config.strict_ordering:
            self._check_ordering(universe)

        key = canonical_id.value
        candidate = self._canonicalize(canonical_id, universe)
        existing = self._entries.get(key)

        if isinstance(existing, _UniverseEntry):
            stored = existing.universe
            self._obs.record(
                LAYER, AuditEventType.REGISTRATION, "duplicate_ignored",
                entity_id=key, entity_type="universe", origin=origin,
            )
            self._obs.collect_metric("duplicate_registrations_total", 1.0)
        else:
            stored = candidate
            self._entries[key] = _UniverseEntry(candidate)
            action = "placeholder_replaced" if existing is not None else "registered"
            self._obs.record(
                LAYER, AuditEventType.REGISTRATION, action,
                entity_id=key, entity_type="universe", origin=origin,
                universe_type=candidate.type.value,
            )
            self._obs.collect_metric("universes_registered_total", 1.0, {"origin": origin})

        for alias in universe.identifiers.aliases:
            self._index_alias(alias, key)

        return stored

    def register(self, universe: Universe) -> Universe:
        """Register a universe under its own id."""
        return self.register_universe(universe.universe_id, universe)

    def register_network(self, network: UniverseNetwork, origin: str = "direct") -> None:
        """
        Store a network and index stand-ins for members not yet registered.

        A stand-in resolves through get_universe() as a minimal universe of
        type ``network`` until the real universe is registered.
        """
        for member in sorted(network.universes, key=lambda u: u.value):
            if self.resolve_id(member.value) is None:
                self._add_placeholder(member.value, network, origin)

        if not network.network_id and network.universe_id is not None:
            if self.resolve_id(network.universe_id.value) is None:
                self._add_placeholder(network.universe_id.value, network, origin)

        self._networks[network.key] = network
        self._obs.record(
            LAYER, AuditEventType.REGISTRATION, "network_registered",
            entity_id=network.key, entity_type="network", origin=origin,
            members=len(network.universes),
        )
        self._obs.collect_metric("networks_registered_total", 1.0)

    def _add_placeholder(self, key: str, network: UniverseNetwork, origin: str) -> None:
        view = self._canonicalize(UniverseId(key), _network_view(key, network))
        self._entries[key] = _NetworkPlaceholder(network=network, view=view)
        self._obs.record(
            LAYER, AuditEventType.REGISTRATION, "placeholder_indexed",
            entity_id=key, entity_type="network_placeholder", origin=origin,
            network=network.key,
        )

    def _index_alias(self, alias: str, key: str) -> None:
        previous = self._aliases.get(alias)
        if previous is not None and previous != key:
            self._obs.record(
                LAYER, AuditEventType.REGISTRATION, "alias_reassigned",
                entity_id=alias, entity_type="alias",
                previous=previous, current=key,
            )
        self._aliases[alias] = key

    def _canonicalize(self, canonical_id: UniverseId, universe: Universe) -> Universe:
        epochs: Dict[str, TemporalEpoch] = dict(self._config.baseline_epochs)
        for layer, key, epoch in universe.iter_layer_epochs():
            if epoch.epoch_id:
                epochs[epoch.epoch_id] = epoch
            elif self._config.key_unnamed_epochs:
                epochs[f"{layer.layer_id}:{key}"] = epoch
        epochs.update(universe.epochs)
        return replace(universe, universe_id=canonical_id, epochs=epochs)

    def _check_ordering(self, universe: Universe) -> None:
        spans = [(f"epoch {key}", e.start_time, e.end_time) for _, key, e in universe.iter_layer_epochs()]
        spans += [(f"epoch {key}", e.start_time, e.end_time) for key, e in universe.epochs.items()]
        spans += [(f"window {w.window_id}", w.start_time, w.end_time) for w in universe.temporal_windows]
        if universe.temporal_structure is not None:
            spans += [
                (f"segment {s.segment_id}", s.start_time, s.end_time)
                for s in universe.temporal_structure.segments
            ]
        inverted = [name for name, start, end in spans if start > end]
        if inverted:
            raise ValueError(
                f"{universe.universe_id}: start after end in {', '.join(inverted)}"
            )

    # =========================================================================
    # LOOKUP (never raises)
    # =========================================================================

    def resolve_id(self, id_or_alias: Union[str, UniverseId]) -> Optional[str]:
        """Canonical id for an id or alias, or None."""
        key = str(id_or_alias)
        if key in self._entries:
            return key
        target = self._aliases.get(key)
        if target is not None and target in self._entries:
            return target
        return None

    def get_universe(self, id_or_alias: Union[str, UniverseId]) -> Optional[Universe]:
        key = self.resolve_id(id_or_alias)
        if key is None:
            return None
        return _view(self._entries[key])

    def is_placeholder(self, id_or_alias: Union[str, UniverseId]) -> bool:
        key = self.resolve_id(id_or_alias)
        return key is not None and isinstance(self._entries[key], _NetworkPlaceholder)

    def get_all_universes(self) -> List[Universe]:
        """Snapshot of every indexed universe, stand-ins included."""
        return [_view(entry) for entry in self._entries.values()]

    def get_network(self, network_id: str) -> Optional[UniverseNetwork]:
        return self._networks.get(network_id)

    def get_all_networks(self) -> List[UniverseNetwork]:
        return list(self._networks.values())

    def get_aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, id_or_alias) -> bool:
        return self.resolve_id(id_or_alias) is not None


def _view(entry: _Entry) -> Universe:
    if isinstance(entry, _UniverseEntry):
        return entry.universe
    return entry.view


def _network_view(key: str, network: UniverseNetwork) -> Universe:
    """Minimal universe shape for a network stand-in; eras become epochs."""
    era_epochs = {
        era.era_id: TemporalEpoch(
            start_time=era.start_time,
            end_time=era.end_time,
            precision=TimePrecision.YEAR,
            epoch_id=f"{network.key}:{era.era_id}",
            description=era.name,
        )
        for era in network.eras
    }
    return Universe(
        universe_id=UniverseId(key),
        type=UniverseType.NETWORK,
        identifiers=UniverseIdentifiers(primary=key),
        reality_relation=RealityRelation(
            type=RealityRelationType.PURE_FICTION,
            fictionalization_degree=1.0,
        ),
        layers=(TemporalLayer(layer_id="eras", epochs=era_epochs, layer_type=LayerType.META),),
        metadata={
            "canonical_name": network.name or network.key,
            "network_id": network.key,
            "placeholder": True,
        },
    )


__all__ = [
    'RegistryConfig',
    'UniverseRegistry',
    'unix_baseline_epoch',
]
