"""
Built-in demonstration dataset.

Loaded by UniverseRegistry.initialize() before any external source, so
external configuration can add ids and aliases but never replace these.
"""

from ..contracts.base import (
    AliasFormat, LayerType, RealityRelationType, TimePrecision, UniverseId,
    UniverseType,
)
from ..contracts.universe import (
    Attribution, NetworkEra, RealityRelation, TemporalEpoch, TemporalKeyframe,
    TemporalLayer, TemporalSegment, TemporalStructure, TemporalWindow,
    Universe, UniverseIdentifiers, UniverseNetwork, WindowAlias,
    WindowingStrategy,
)
from ..domain.serialization import ConfigBatch
from ..temporal.conversion import (
    create_epoch, create_runtime_epoch, create_runtime_keyframe,
    create_runtime_segment, date_to_nanoseconds, minutes_to_nanoseconds,
)


def _mary_poppins() -> Universe:
    return Universe(
        universe_id=UniverseId("disney:mary_poppins:1964"),
        type=UniverseType.FILM,
        identifiers=UniverseIdentifiers(
            primary="disney:mary_poppins:1964",
            aliases=("mary_poppins", "mp1964"),
            imdb="tt0058331",
        ),
        reality_relation=RealityRelation(
            type=RealityRelationType.PURE_FICTION,
            fictionalization_degree=1.0,
        ),
        attribution=Attribution(
            copyright_holders=("Walt Disney Productions",),
            copyright_year=1964,
            creators={
                "director": ("Robert Stevenson",),
                "writer": ("Bill Walsh", "Don DaGradi"),
            },
            citations_required=True,
            usage_restrictions=("Fair use for criticism and comment",),
        ),
        layers=(
            TemporalLayer(
                layer_id="runtime",
                layer_type=LayerType.PRIMARY,
                epochs={
                    "film": create_runtime_epoch(
                        139,
                        epoch_id="mp:runtime",
                        description="Film runtime from opening to closing credits",
                    ),
                },
            ),
        ),
        temporal_structure=TemporalStructure(
            segments=(
                create_runtime_segment(0, 0, 5, 0, "opening", "sequence"),
                create_runtime_segment(87, 0, 89, 0, "umbrella_flight", "scene"),
            ),
            keyframes=(
                create_runtime_keyframe(
                    87, 15, "umbrella_descent", 0.95,
                    ("iconic", "referenced", "magical_realism"),
                ),
            ),
            windows=WindowingStrategy(
                strategy="scene_based",
                average_window_size=minutes_to_nanoseconds(3),
            ),
        ),
        temporal_windows=(
            TemporalWindow(
                window_id="mp1964:theatrical_release",
                start_time=date_to_nanoseconds(1964, 8, 27),
                end_time=date_to_nanoseconds(1964, 12, 31, 23, 59, 59, 999),
                precision=TimePrecision.DAY,
                aliases=(WindowAlias(AliasFormat.YEAR, "1964"),),
                window_type="release",
            ),
        ),
        metadata={
            "canonical_name": "Mary Poppins",
            "creators": ["Walt Disney", "P.L. Travers"],
            "released": "1964-08-27",
            "cultural_significance": 0.98,
        },
    )


def _apollo11() -> Universe:
    liftoff = date_to_nanoseconds(1969, 7, 16, 13, 32, 0)
    return Universe(
        universe_id=UniverseId("nasa:apollo11:1969"),
        type=UniverseType.MISSION,
        identifiers=UniverseIdentifiers(
            primary="nasa:apollo11:1969",
            aliases=("apollo11", "moon_landing"),
        ),
        reality_relation=RealityRelation(
            type=RealityRelationType.DOCUMENTARY,
            fictionalization_degree=0.0,
        ),
        attribution=Attribution(
            sources=("NASA Mission Records", "Flight transcripts"),
            public_domain=True,
        ),
        layers=(
            TemporalLayer(
                layer_id="mission",
                layer_type=LayerType.PRIMARY,
                epochs={
                    "launch": TemporalEpoch(
                        start_time=liftoff,
                        end_time=liftoff,
                        precision=TimePrecision.SECOND,
                        epoch_id="apollo11:launch",
                        description="Apollo 11 Launch",
                        zero_point=liftoff,
                        zero_event="Liftoff",
                        before_prefix="T-",
                        after_prefix="T+",
                        relative_format="HMS",
                    ),
                    "flight": create_epoch(
                        1969, 7, 16, 1969, 7, 24, TimePrecision.SECOND,
                        epoch_id="apollo11:flight",
                        description="Launch to splashdown",
                    ),
                },
            ),
        ),
        temporal_structure=TemporalStructure(
            # Offsets relative to liftoff.
            segments=(
                TemporalSegment("countdown", -600 * 10**9, 0, "countdown"),
                TemporalSegment("ascent", 0, 690 * 10**9, "mission_phase"),
            ),
            keyframes=(
                TemporalKeyframe(
                    keyframe_id="liftoff",
                    timestamp=0,
                    significance=1.0,
                    tags=("historic", "space", "moon_mission"),
                ),
            ),
            windows=WindowingStrategy(strategy="countdown_based"),
        ),
        temporal_windows=(
            TemporalWindow(
                window_id="apollo11:mission",
                start_time=date_to_nanoseconds(1969, 7, 16),
                end_time=date_to_nanoseconds(1969, 7, 24, 23, 59, 59, 999),
                precision=TimePrecision.SECOND,
                aliases=(
                    WindowAlias(AliasFormat.YEAR, "1969"),
                    WindowAlias(AliasFormat.NAMED_PERIOD, "Apollo 11"),
                ),
                window_type="mission",
            ),
        ),
        metadata={
            "canonical_name": "Apollo 11 Mission",
            "creators": ["NASA"],
            "released": "1969-07-16",
            "cultural_significance": 1.0,
        },
    )


def _disney_network() -> UniverseNetwork:
    return UniverseNetwork(
        network_id="disney",
        name="Walt Disney Animation",
        universes=frozenset({UniverseId("disney:mary_poppins:1964")}),
        eras=(
            NetworkEra(
                era_id="golden_age",
                name="Golden Age",
                start_time=date_to_nanoseconds(1937, 1, 1),
                end_time=date_to_nanoseconds(1942, 1, 1),
            ),
            NetworkEra(
                era_id="renaissance",
                name="Disney Renaissance",
                start_time=date_to_nanoseconds(1989, 1, 1),
                end_time=date_to_nanoseconds(1999, 1, 1),
            ),
        ),
    )


def builtin_batch() -> ConfigBatch:
    """Fresh copy of the built-in dataset."""
    return ConfigBatch(
        universes=(_mary_poppins(), _apollo11()),
        networks=(_disney_network(),),
        version="builtin",
    )
