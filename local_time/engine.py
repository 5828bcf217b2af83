"""
Engine Orchestration Module

Single entry point wiring one registry into every consumer.

DESIGN PRINCIPLES:
==================
1. The registry is an explicit object, never a module-level singleton
2. Configuration sources are declared statically, in order
3. All registry and source activity is traceable through observability
4. Lifecycle: construct -> initialize() -> read-only queries
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple, Union
import os

from .contracts.base import ReferenceType
from .contracts.universe import (
    RealityGradient, TemporalWindow, Universe, UniverseNetwork, WindowAlignment,
)
from .core.attribution import AttributionEngine, AttributionRequirement, UsageContext
from .core.reality import RealityGradientAnalyzer
from .core.topology import ReferenceGraph
from .observability import ObservabilityConfig, ObservabilityEngine
from .query import BiographicalQueryService, WindowSearchEngine, WindowSearchOptions
from .registry import RegistryConfig, UniverseRegistry
from .sources import ConfigSource, JsonFileSource
from .temporal.addressing import resolve_relative_address


CONFIG_PATH_ENV = "LOCAL_TIME_CONFIG_PATH"
STRICT_ORDERING_ENV = "LOCAL_TIME_STRICT_ORDERING"
DEFAULT_CONFIG_PATHS = ("./local-time.config.json", "./config/local-time.json")

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class SourcesConfig:
    """Where external configuration batches come from, in load order."""
    config_paths: Tuple[str, ...] = DEFAULT_CONFIG_PATHS
    env_config_path: Optional[str] = None
    extra_sources: Tuple[ConfigSource, ...] = field(default_factory=tuple)

    def build_sources(self) -> List[ConfigSource]:
        """
        The explicitly named path (from the environment) comes first, then
        the default paths, then any programmatic sources. Missing files are
        skipped by the registry.
        """
        sources: List[ConfigSource] = []
        if self.env_config_path:
            sources.append(JsonFileSource(self.env_config_path))
        sources.extend(JsonFileSource(path) for path in self.config_paths)
        sources.extend(self.extra_sources)
        return sources


@dataclass
class LocalTimeConfig:
    """Unified configuration."""
    registry: Optional[RegistryConfig] = None
    sources: Optional[SourcesConfig] = None
    observability: Optional[ObservabilityConfig] = None

    def __post_init__(self):
        self.registry = self.registry or RegistryConfig()
        self.sources = self.sources or SourcesConfig()
        self.observability = self.observability or ObservabilityConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> LocalTimeConfig:
        """Defaults overridden by LOCAL_TIME_* environment variables."""
        environ = os.environ if environ is None else environ
        strict = environ.get(STRICT_ORDERING_ENV, "").strip().lower() in _TRUE_VALUES
        return cls(
            registry=RegistryConfig(strict_ordering=strict),
            sources=SourcesConfig(env_config_path=environ.get(CONFIG_PATH_ENV) or None),
        )


class LocalTime:
    """
    Facade over registry, window search and reality analysis.

    LAYER FLOW:
    ===========
    1. Sources: configuration batches (built-ins first, then files)
    2. Registry: canonical universes, aliases, networks
    3. Query: window search and alignment over the registry,
       biographical and legal queries
    4. Core: reality gradient, attribution guidance and reference graph over registry values
    5. Observability: records everything above
    """

    def __init__(
        self,
        config: Optional[LocalTimeConfig] = None,
        sources: Optional[Sequence[ConfigSource]] = None,
    ):
        self._config = config or LocalTimeConfig()
        self._observability = ObservabilityEngine(self._config.observability)
        if sources is None:
            sources = self._config.sources.build_sources()
        self._registry = UniverseRegistry(
            config=self._config.registry,
            sources=sources,
            observability=self._observability,
        )
        self._windows = WindowSearchEngine(self._registry)
        self._biographies = BiographicalQueryService(self._registry)

    def initialize(self) -> LocalTime:
        self._registry.initialize()
        return self

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    @property
    def config(self) -> LocalTimeConfig:
        return self._config

    @property
    def registry(self) -> UniverseRegistry:
        return self._registry

    @property
    def windows(self) -> WindowSearchEngine:
        return self._windows

    @property
    def biographies(self) -> BiographicalQueryService:
        return self._biographies

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    # =========================================================================
    # REGISTRY INTERFACE
    # =========================================================================

    def get_universe(self, id_or_alias: str) -> Optional[Universe]:
        return self._registry.get_universe(id_or_alias)

    def get_all_universes(self) -> List[Universe]:
        return self._registry.get_all_universes()

    def get_network(self, network_id: str) -> Optional[UniverseNetwork]:
        return self._registry.get_network(network_id)

    # =========================================================================
    # WINDOW INTERFACE
    # =========================================================================

    def get_window(self, window_id: str) -> Optional[TemporalWindow]:
        return self._windows.get_window(window_id)

    def find_universes_in_window(
        self,
        window_id: str,
        options: Optional[WindowSearchOptions] = None,
    ) -> List[Universe]:
        return self._windows.find_universes_in_window(window_id, options)

    def get_window_alignments(self, window_id: str) -> List[WindowAlignment]:
        return self._windows.get_window_alignments(window_id)

    def resolve_address(self, address: str) -> Optional[int]:
        """Absolute nanoseconds for a ``<universe>:<epoch>:T-HH:MM:SS`` address."""
        return resolve_relative_address(self._registry, address)

    # =========================================================================
    # REALITY INTERFACE
    # =========================================================================

    def analyze_universe(self, id_or_alias: str) -> Optional[RealityGradient]:
        universe = self._registry.get_universe(id_or_alias)
        if universe is None:
            return None
        return RealityGradientAnalyzer.analyze_universe(universe)

    def analyze_reference(
        self,
        source_id: str,
        target_id: str,
        reference_type: Union[ReferenceType, str],
    ) -> Optional[RealityGradient]:
        source = self._registry.get_universe(source_id)
        target = self._registry.get_universe(target_id)
        if source is None or target is None:
            return None
        return RealityGradientAnalyzer.analyze_reference(source, target, reference_type)

    def reality_report(self, id_or_alias: str) -> Optional[str]:
        universe = self._registry.get_universe(id_or_alias)
        if universe is None:
            return None
        return RealityGradientAnalyzer.generate_reality_report(universe)

    def attribution_guidance(
        self,
        source_id: str,
        target_id: str,
        reference_type: Union[ReferenceType, str],
        context: Optional[UsageContext] = None,
    ) -> Optional[AttributionRequirement]:
        source = self._registry.get_universe(source_id)
        target = self._registry.get_universe(target_id)
        if source is None or target is None:
            return None
        return AttributionEngine.validate_reference(source, target, reference_type, context)

    def reference_graph(self) -> ReferenceGraph:
        graph = ReferenceGraph()
        graph.build(self._registry.get_all_universes(), self._registry.get_all_networks())
        return graph
