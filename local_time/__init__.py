"""
Local Time

Registry of temporal universes (films, books, missions, historical periods),
each carrying its own epochs on an absolute nanosecond timeline, queried by
time window and scored by how closely it tracks real history.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Immutable value types, enums, error values
   - MUST NOT: Hold state or perform I/O

2. TEMPORAL (temporal/)
   - Responsibility: Calendar <-> nanosecond conversion, zero-reference addressing
   - MUST NOT: Know about the registry beyond lookups

3. SOURCES (sources/, domain/serialization)
   - Responsibility: Read configuration batches (JSON files, static, callables)
   - Outputs: ConfigBatch
   - MUST NOT: Register anything; failures are reported, never swallowed

4. REGISTRY (registry/)
   - Responsibility: Canonical universes, aliases, networks, baseline epochs
   - Allowed inputs: ConfigBatch, direct registration
   - MUST NOT: Answer window queries

5. QUERY (query/)
   - Responsibility: Window resolution, window search, alignments
   - MUST NOT: Mutate the registry

6. CORE ANALYSIS (core/)
   - Responsibility: Reality gradient, reference graph
   - MUST NOT: Mutate the registry

7. OBSERVABILITY (observability/)
   - Responsibility: Audit log and metrics for every layer above
   - MUST NOT: Modify system behavior

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: all universe values are frozen dataclasses
- Explicit registry: no module-level singleton
- Integer nanoseconds: no float arithmetic on absolute times
"""

from .engine import LocalTime, LocalTimeConfig, SourcesConfig
from .registry import RegistryConfig, UniverseRegistry
from .query import BiographicalQueryService, WindowSearchEngine, WindowSearchOptions
from .domain import UniverseBuilder

__version__ = "0.1.0"

__all__ = [
    'LocalTime',
    'LocalTimeConfig',
    'SourcesConfig',
    'RegistryConfig',
    'UniverseRegistry',
    'WindowSearchEngine',
    'WindowSearchOptions',
    'BiographicalQueryService',
    'UniverseBuilder',
]
