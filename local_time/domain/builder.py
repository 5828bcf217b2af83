"""
Universe Builder

RESPONSIBILITY: Assemble a Universe step by step from calendar fields and
runtime minutes
ALLOWED INPUTS: Names, years, calendar fields, prebuilt epochs/segments/keyframes
OUTPUTS: An immutable Universe ready for UniverseRegistry.register_universe

WHAT THIS LAYER MUST NOT DO:
============================
- Register anything (the caller decides where the universe goes)
- Flatten layer epochs (the registry does that on registration)
- Interpret local time; every calendar field is UTC

The builder is the only mutable object in the domain package. ``build()``
copies its state into frozen values, so one builder can produce several
universes that share nothing.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple
import re

from ..contracts.base import (
    LayerType, RealityRelationType, TimePrecision, UniverseId, UniverseType,
)
from ..contracts.universe import (
    Attribution, RealityAnchor, RealityRelation, TemporalEpoch, TemporalKeyframe,
    TemporalLayer, TemporalSegment, TemporalStructure, TemporalWindow, Universe,
    UniverseIdentifiers, WindowingStrategy,
)
from ..temporal.conversion import (
    create_epoch, create_keyframe, create_runtime_epoch, create_runtime_keyframe,
    create_runtime_segment, create_segment, date_to_nanoseconds,
    hours_to_nanoseconds,
)


RUNTIME_LAYER = "runtime"
TIMESPAN_LAYER = "main"
ZERO_REFERENCE_LAYER = "zero_reference"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """``"Mary Poppins"`` -> ``"mary_poppins"``; every run of other characters becomes one underscore."""
    slug = _NON_SLUG.sub("_", name.strip().lower()).strip("_")
    if not slug:
        raise ValueError(f"cannot derive an id segment from {name!r}")
    return slug


def year_range(start_year: int, end_year: Optional[int] = None, open_ended: bool = False) -> str:
    if end_year is not None:
        return f"{start_year}-{end_year}"
    return f"{start_year}-present" if open_ended else str(start_year)


@dataclass
class _LayerDraft:
    layer_type: LayerType
    epochs: Dict[str, TemporalEpoch] = field(default_factory=dict)


class UniverseBuilder:
    """
    Fluent accumulator for a single Universe.

    Every ``with_*`` / ``add_*`` method mutates the builder and returns it.
    Identity helpers (``film``, ``historical``, ``mission``, ``biography``,
    ``media``) derive both the id and the universe type.
    """

    def __init__(self, universe_type: UniverseType = UniverseType.FILM):
        self._universe_id: Optional[str] = None
        self._type = universe_type
        self._aliases: List[str] = []
        self._identifiers: Dict[str, str] = {}
        self._relation = RealityRelation(
            type=RealityRelationType.PURE_FICTION,
            fictionalization_degree=1.0,
        )
        self._attribution = Attribution(citations_required=True)
        self._layers: Dict[str, _LayerDraft] = {}
        self._segments: List[TemporalSegment] = []
        self._keyframes: List[TemporalKeyframe] = []
        self._windowing: Optional[WindowingStrategy] = None
        self._windows: List[TemporalWindow] = []
        self._metadata: Dict[str, Any] = {}

    # =========================================================================
    # IDENTITY
    # =========================================================================

    def with_id(self, universe_id: str) -> UniverseBuilder:
        self._universe_id = UniverseId.parse(universe_id).value
        return self

    def with_type(self, universe_type: UniverseType) -> UniverseBuilder:
        self._type = universe_type
        return self

    def film(self, studio: str, title: str, year: int, subtitle: Optional[str] = None) -> UniverseBuilder:
        """``studio:title[_subtitle]:year``"""
        name = slugify(title) if subtitle is None else f"{slugify(title)}_{slugify(subtitle)}"
        self._type = UniverseType.FILM
        return self.with_id(f"{slugify(studio)}:{name}:{year}").with_name(title)

    def historical(self, event: str, start_year: int, end_year: Optional[int] = None) -> UniverseBuilder:
        self._type = UniverseType.HISTORICAL_EVENT
        return self.with_id(f"history:{slugify(event)}:{year_range(start_year, end_year)}").with_name(event)

    def mission(self, agency: str, mission: str, year: int) -> UniverseBuilder:
        self._type = UniverseType.MISSION
        return self.with_id(f"{slugify(agency)}:{slugify(mission)}:{year}").with_name(mission)

    def biography(self, person: str, birth_year: int, death_year: Optional[int] = None) -> UniverseBuilder:
        """A living person gets an open ``birth-present`` range."""
        self._type = UniverseType.BIOGRAPHY
        qualifier = year_range(birth_year, death_year, open_ended=True)
        return self.with_id(f"biography:{slugify(person)}:{qualifier}").with_name(person)

    def legal(self, jurisdiction: str, name: str, start_year: int,
              end_year: Optional[int] = None) -> UniverseBuilder:
        self._type = UniverseType.LEGAL_TIMELINE
        qualifier = year_range(start_year, end_year, open_ended=True)
        return self.with_id(f"{slugify(jurisdiction)}:{slugify(name)}:{qualifier}").with_name(name)

    def media(self, kind: str, title: str, year: int) -> UniverseBuilder:
        """Episodic media (series, podcasts, serials) of the given ``kind``."""
        self._type = UniverseType.SERIES
        return self.with_id(f"{slugify(kind)}:{slugify(title)}:{year}").with_name(title)

    def with_name(self, name: str) -> UniverseBuilder:
        self._metadata["canonical_name"] = name
        return self

    def with_aliases(self, *aliases: str) -> UniverseBuilder:
        for alias in aliases:
            if alias not in self._aliases:
                self._aliases.append(alias)
        return self

    def with_identifiers(self, **identifiers: str) -> UniverseBuilder:
        """External ids: ``imdb``, ``isbn``, ``doi``, ``patent``."""
        unknown = set(identifiers) - {"imdb", "isbn", "doi", "patent"}
        if unknown:
            raise ValueError(f"unknown identifier kinds: {sorted(unknown)}")
        self._identifiers.update(identifiers)
        return self

    # =========================================================================
    # REALITY, ATTRIBUTION, METADATA
    # =========================================================================

    def with_reality_relation(
        self,
        relation_type: RealityRelationType,
        fictionalization_degree: float,
        anchors: Iterable[RealityAnchor] = (),
        consultants: Iterable[str] = (),
        claims_historical_accuracy: bool = False,
        disclaimer: Optional[str] = None,
    ) -> UniverseBuilder:
        if not 0.0 <= fictionalization_degree <= 1.0:
            raise ValueError(f"fictionalization_degree must be in [0, 1], got {fictionalization_degree}")
        self._relation = RealityRelation(
            type=relation_type,
            fictionalization_degree=fictionalization_degree,
            reality_anchors=tuple(anchors),
            historical_consultants=tuple(consultants),
            claims_historical_accuracy=claims_historical_accuracy,
            disclaimer=disclaimer,
        )
        return self

    def with_copyright(self, holders: Iterable[str], year: int) -> UniverseBuilder:
        self._attribution = replace(
            self._attribution,
            copyright_holders=tuple(holders),
            copyright_year=year,
            public_domain=False,
        )
        return self

    def with_public_domain(self, sources: Iterable[str]) -> UniverseBuilder:
        self._attribution = replace(
            self._attribution,
            sources=tuple(sources),
            public_domain=True,
            citations_required=False,
        )
        return self

    def with_creators(self, **roles: Iterable[str]) -> UniverseBuilder:
        """``with_creators(director=["Robert Stevenson"], writer=[...])``"""
        creators = dict(self._attribution.creators)
        for role, names in roles.items():
            creators[role] = (names,) if isinstance(names, str) else tuple(names)
        self._attribution = replace(self._attribution, creators=creators)
        return self

    def with_description(self, description: str) -> UniverseBuilder:
        self._metadata["description"] = description
        return self

    def with_cultural_significance(self, value: float,
                                   description: Optional[str] = None) -> UniverseBuilder:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"cultural_significance must be in [0, 1], got {value}")
        self._metadata["cultural_significance"] = value
        if description is not None:
            self._metadata["cultural_significance_description"] = description
        return self

    def with_release_date(self, year: int, month: int, day: int) -> UniverseBuilder:
        self._metadata["released"] = f"{year:04d}-{month:02d}-{day:02d}"
        return self

    def with_tags(self, *tags: str) -> UniverseBuilder:
        merged = list(self._metadata.get("tags", ()))
        for tag in tags:
            if tag not in merged:
                merged.append(tag)
        self._metadata["tags"] = merged
        return self

    def with_metadata(self, **values: Any) -> UniverseBuilder:
        self._metadata.update(values)
        return self

    # =========================================================================
    # TEMPORAL LAYERS
    # =========================================================================

    def add_layer(self, layer_id: str, layer_type: LayerType = LayerType.PRIMARY) -> UniverseBuilder:
        draft = self._layers.setdefault(layer_id, _LayerDraft(layer_type))
        draft.layer_type = layer_type
        return self

    def add_epoch(self, layer_id: str, key: str, epoch: TemporalEpoch,
                  layer_type: LayerType = LayerType.PRIMARY) -> UniverseBuilder:
        self._layers.setdefault(layer_id, _LayerDraft(layer_type)).epochs[key] = epoch
        return self

    def with_runtime(self, minutes: int,
                     precision: TimePrecision = TimePrecision.SECOND) -> UniverseBuilder:
        """Runtime-relative media: one epoch from 0 to ``minutes``."""
        epoch = create_runtime_epoch(
            minutes, precision, epoch_id="runtime", description=f"{minutes} minute runtime",
        )
        return self.add_epoch(RUNTIME_LAYER, "main", epoch)

    def with_date_range(
        self,
        start: Tuple[int, int, int],
        end: Tuple[int, int, int],
        precision: TimePrecision = TimePrecision.DAY,
        description: Optional[str] = None,
    ) -> UniverseBuilder:
        """Calendar span from the start of ``start`` to the last instant of ``end``, both ``(y, m, d)``."""
        epoch = create_epoch(*start, *end, precision, epoch_id="timespan", description=description)
        return self.add_epoch(TIMESPAN_LAYER, "timespan", epoch)

    def with_zero_reference(
        self,
        instant: Tuple[int, ...],
        event: str,
        before_prefix: str = "T-",
        after_prefix: str = "T+",
        duration_hours: int = 24,
        precision: TimePrecision = TimePrecision.SECOND,
    ) -> UniverseBuilder:
        """
        Countdown-style epoch centred on ``instant`` (``(y, m, d[, h, mi, s])``).

        The epoch spans ``duration_hours`` on each side of the zero point so
        that both ``T-`` and ``T+`` addresses resolve inside it.
        """
        zero = date_to_nanoseconds(*instant)
        half = hours_to_nanoseconds(duration_hours)
        epoch = TemporalEpoch(
            start_time=zero - half,
            end_time=zero + half,
            precision=precision,
            epoch_id="zero_reference",
            description=f"{event} reference point",
            zero_point=zero,
            zero_event=event,
            before_prefix=before_prefix,
            after_prefix=after_prefix,
            relative_format="HMS",
        )
        return self.add_epoch(ZERO_REFERENCE_LAYER, "zero_reference", epoch)

    # =========================================================================
    # TEMPORAL STRUCTURE
    # =========================================================================

    def add_segment(self, segment: TemporalSegment) -> UniverseBuilder:
        self._segments.append(segment)
        return self

    def add_date_segment(
        self,
        segment_id: str,
        segment_type: str,
        start: Tuple[int, int, int],
        end: Tuple[int, int, int],
        status: Optional[str] = None,
        jurisdiction: Optional[str] = None,
    ) -> UniverseBuilder:
        return self.add_segment(create_segment(
            *start, *end,
            segment_id=segment_id,
            segment_type=segment_type,
            status=status,
            jurisdiction=jurisdiction,
        ))

    def add_runtime_segment(self, segment_id: str, segment_type: str,
                            start: Tuple[int, int], end: Tuple[int, int]) -> UniverseBuilder:
        """``start`` and ``end`` are ``(minutes, seconds)`` into the runtime."""
        return self.add_segment(create_runtime_segment(*start, *end, segment_id, segment_type))

    def add_keyframe(self, keyframe: TemporalKeyframe) -> UniverseBuilder:
        self._keyframes.append(keyframe)
        return self

    def add_date_keyframe(
        self,
        keyframe_id: str,
        instant: Tuple[int, ...],
        significance: float,
        tags: Iterable[str] = (),
        certainty: float = 1.0,
    ) -> UniverseBuilder:
        return self.add_keyframe(create_keyframe(
            *instant,
            keyframe_id=keyframe_id,
            significance=significance,
            tags=tags,
            certainty=certainty,
        ))

    def add_runtime_keyframe(self, keyframe_id: str, at: Tuple[int, int], significance: float,
                             tags: Iterable[str] = ()) -> UniverseBuilder:
        return self.add_keyframe(create_runtime_keyframe(*at, keyframe_id, significance, tags))

    def with_windowing(self, strategy: str,
                       average_window_size: Optional[int] = None) -> UniverseBuilder:
        self._windowing = WindowingStrategy(strategy, average_window_size)
        return self

    def add_window(self, window: TemporalWindow) -> UniverseBuilder:
        self._windows.append(window)
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> Universe:
        """
        Freeze the accumulated state into a Universe.

        Raises ValueError if no id was set and InvalidUniverseIdError if the
        id is malformed.
        """
        if self._universe_id is None:
            raise ValueError("universe id not set; call with_id() or an identity helper first")
        universe_id = UniverseId(self._universe_id)

        structure = None
        if self._segments or self._keyframes or self._windowing is not None:
            structure = TemporalStructure(
                segments=tuple(self._segments),
                keyframes=tuple(self._keyframes),
                windows=self._windowing,
            )

        return Universe(
            universe_id=universe_id,
            type=self._type,
            identifiers=UniverseIdentifiers(
                primary=universe_id.value,
                aliases=tuple(self._aliases),
                **self._identifiers,
            ),
            reality_relation=self._relation,
            attribution=self._attribution,
            layers=tuple(
                TemporalLayer(layer_id=layer_id, epochs=dict(draft.epochs), layer_type=draft.layer_type)
                for layer_id, draft in self._layers.items()
            ),
            temporal_structure=structure,
            temporal_windows=tuple(self._windows),
            metadata=dict(self._metadata),
        )


# =============================================================================
# PRESET BUILDERS
# =============================================================================

def create_film_builder() -> UniverseBuilder:
    """Fiction with citations required; runtime and copyright still to be set."""
    return UniverseBuilder(UniverseType.FILM).with_windowing("scene_based")


def create_historical_builder() -> UniverseBuilder:
    return (
        UniverseBuilder(UniverseType.HISTORICAL_EVENT)
        .with_reality_relation(RealityRelationType.DOCUMENTARY, 0.0)
        .with_windowing("time_based")
    )


def create_mission_builder() -> UniverseBuilder:
    return (
        UniverseBuilder(UniverseType.MISSION)
        .with_reality_relation(RealityRelationType.DOCUMENTARY, 0.0)
        .with_windowing("phase_based")
    )


def create_biography_builder() -> UniverseBuilder:
    return (
        UniverseBuilder(UniverseType.BIOGRAPHY)
        .with_reality_relation(RealityRelationType.DOCUMENTARY, 0.0)
        .with_windowing("life_stage")
    )


def create_legal_builder() -> UniverseBuilder:
    return (
        UniverseBuilder(UniverseType.LEGAL_TIMELINE)
        .with_reality_relation(RealityRelationType.DOCUMENTARY, 0.0)
        .with_windowing("status_based")
    )
