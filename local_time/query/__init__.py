"""
Window Search Layer

RESPONSIBILITY: "Which universes have temporal presence inside this window"
and "how do two windows align" (biographical and legal questions
live in the biography module)
ALLOWED INPUTS: Window ids (declared or ``cal:YYYY``), search options
OUTPUTS: Universe lists, WindowOverlap, WindowAlignment

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the registry or the values it returns
- Raise for unknown windows (empty results instead)

Intervals are compared half-open: two spans that only touch at a single
instant do not overlap.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union
import re

from ..contracts.base import (
    AliasFormat, RealityRelationType, TimePrecision, UniverseType,
)
from ..contracts.events import AuditEventType
from ..contracts.universe import (
    TemporalWindow, Universe, WindowAlias, WindowAlignment, WindowOverlap,
)
from ..registry import UniverseRegistry
from ..temporal.conversion import year_bounds
from .biography import (
    ActiveLaw, AgeAnswer, AwardEvent, BiographicalQuery, BiographicalQueryService,
    ElapsedTime, EventInterval, LegalQuery, PersonAlive,
)


LAYER = "query"

CALENDAR_PREFIX = "cal:"
_CALENDAR_WINDOW = re.compile(r"^cal:(\d{4})$")

SORT_FIELDS = ("cultural_significance", "temporal_overlap")
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class WindowSearchOptions:
    """Post-filters and ordering for find_universes_in_window."""
    universe_types: Optional[FrozenSet[UniverseType]] = None
    max_fictionalization_degree: Optional[float] = None
    reality_relation: Optional[Union[RealityRelationType, str]] = None
    sort_by: Optional[str] = None
    order: str = "asc"

    def __post_init__(self):
        if self.sort_by is not None and self.sort_by not in SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {SORT_FIELDS}, got {self.sort_by!r}")
        if self.order not in SORT_ORDERS:
            raise ValueError(f"order must be one of {SORT_ORDERS}, got {self.order!r}")
        if self.universe_types is not None:
            object.__setattr__(self, "universe_types", frozenset(self.universe_types))

    @property
    def reality_relation_value(self) -> Optional[str]:
        if isinstance(self.reality_relation, RealityRelationType):
            return self.reality_relation.value
        return self.reality_relation


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open intersection test."""
    return start_a < end_b and end_a > start_b


def calculate_overlap(window_a: TemporalWindow, window_b: TemporalWindow) -> WindowOverlap:
    """
    Intersection of ``window_b`` with ``window_a`` as a fraction of
    ``window_a``'s duration, truncated to whole hundredths.

    Asymmetric: swapping the arguments changes the percentage unless the
    durations are equal. Disjoint, touching and zero-length cases give 0.
    """
    overlap_start = max(window_a.start_time, window_b.start_time)
    overlap_end = min(window_a.end_time, window_b.end_time)
    if overlap_start >= overlap_end:
        return WindowOverlap(percentage=0.0, duration=0)

    duration = overlap_end - overlap_start
    a_duration = window_a.end_time - window_a.start_time
    if a_duration <= 0:
        return WindowOverlap(percentage=0.0, duration=duration)

    # integer division keeps year-scale nanosecond values exact
    hundredths = duration * 100 // a_duration
    return WindowOverlap(percentage=hundredths / 100, duration=duration)


def has_semantic_alignment(window_a: TemporalWindow, window_b: TemporalWindow) -> bool:
    """True when the windows share an alias with the same format and value."""
    keys = {alias.key for alias in window_a.aliases}
    return any(alias.key in keys for alias in window_b.aliases)


def calendar_window(window_id: str) -> Optional[TemporalWindow]:
    """Synthetic full-year window for ``cal:YYYY``, or None."""
    match = _CALENDAR_WINDOW.fullmatch(window_id)
    if not match:
        return None
    year = int(match.group(1))
    if year < 1:
        return None
    start, end = year_bounds(year)
    return TemporalWindow(
        window_id=window_id,
        start_time=start,
        end_time=end,
        precision=TimePrecision.YEAR,
        aliases=(WindowAlias(AliasFormat.YEAR, match.group(1)),),
        window_type="calendar_year",
    )


class WindowSearchEngine:
    """
    Temporal queries over an explicit registry.

    The registry should be initialized before querying; the engine does
    not initialize it.
    """

    def __init__(self, registry: UniverseRegistry):
        self._registry = registry
        self._obs = registry.observability

    # =========================================================================
    # WINDOW RESOLUTION
    # =========================================================================

    def get_window(self, window_id: str) -> Optional[TemporalWindow]:
        if window_id.startswith(CALENDAR_PREFIX):
            window = calendar_window(window_id)
            if window is not None:
                return window

        for _, window in self._declared_windows():
            if window.window_id == window_id:
                return window
        return None

    def _declared_windows(self) -> Iterator[Tuple[Universe, TemporalWindow]]:
        for universe in self._registry.get_all_universes():
            for window in universe.temporal_windows:
                yield universe, window

    # =========================================================================
    # OVERLAP
    # =========================================================================

    @staticmethod
    def _spans(universe: Universe) -> Iterator[Tuple[int, int]]:
        for _, _, epoch in universe.iter_layer_epochs():
            yield epoch.start_time, epoch.end_time
        for window in universe.temporal_windows:
            yield window.start_time, window.end_time

    def has_temporal_overlap(self, universe: Universe, window: TemporalWindow) -> bool:
        """
        True if any layer epoch or declared window of ``universe`` intersects
        ``window``. Top-level flattened epochs are not consulted, so the
        baseline epochs never make a universe match.
        """
        return any(
            intervals_overlap(start, end, window.start_time, window.end_time)
            for start, end in self._spans(universe)
        )

    def overlap_duration(self, universe: Universe, window: TemporalWindow) -> int:
        """Longest single intersection between the universe's spans and ``window``."""
        best = 0
        for start, end in self._spans(universe):
            length = min(end, window.end_time) - max(start, window.start_time)
            if length > best:
                best = length
        return best

    calculate_overlap = staticmethod(calculate_overlap)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def find_universes_in_window(
        self,
        window_id: str,
        options: Optional[WindowSearchOptions] = None,
    ) -> List[Universe]:
        options = options or WindowSearchOptions()
        window = self.get_window(window_id)
        if window is None:
            self._obs.record(LAYER, AuditEventType.QUERY, "window_unresolved", entity_id=window_id)
            return []

        universes = [
            u for u in self._registry.get_all_universes()
            if self.has_temporal_overlap(u, window)
        ]

        if options.universe_types is not None:
            universes = [u for u in universes if u.type in options.universe_types]

        if options.max_fictionalization_degree is not None:
            universes = [
                u for u in universes
                if u.reality_relation.fictionalization_degree <= options.max_fictionalization_degree
            ]

        relation = options.reality_relation_value
        if relation is not None:
            universes = [u for u in universes if u.reality_relation.type.value == relation]

        reverse = options.order == "desc"
        if options.sort_by == "cultural_significance":
            universes.sort(key=lambda u: u.cultural_significance, reverse=reverse)
        elif options.sort_by == "temporal_overlap":
            universes.sort(key=lambda u: self.overlap_duration(u, window), reverse=reverse)

        self._obs.record(
            LAYER, AuditEventType.QUERY, "find_universes_in_window",
            entity_id=window_id, results=len(universes),
        )
        self._obs.collect_metric("window_query_results", float(len(universes)), {"window_id": window_id})
        return universes

    def get_window_alignments(self, window_id: str) -> List[WindowAlignment]:
        """
        Every declared window overlapping at least one hundredth of
        ``window_id``. A sliver below that truncates to 0 and is left out.
        """
        source = self.get_window(window_id)
        if source is None:
            return []

        alignments = []
        for universe, target in self._declared_windows():
            overlap = calculate_overlap(source, target)
            if overlap.percentage <= 0:
                continue
            alignments.append(WindowAlignment(
                source_window=source,
                target_window=target,
                overlap=overlap,
                semantic_alignment=has_semantic_alignment(source, target),
                precision_mismatch=source.precision != target.precision,
                target_universe_id=universe.universe_id.value,
            ))
        return alignments


__all__ = [
    'WindowSearchEngine',
    'WindowSearchOptions',
    'calculate_overlap',
    'calendar_window',
    'has_semantic_alignment',
    'intervals_overlap',
    'BiographicalQueryService',
    'BiographicalQuery',
    'LegalQuery',
    'PersonAlive',
    'ActiveLaw',
    'AgeAnswer',
    'AwardEvent',
    'ElapsedTime',
    'EventInterval',
]
