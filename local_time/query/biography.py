"""
Biographical & Legal Queries

RESPONSIBILITY: Questions about people and laws answered from the keyframes
and segments of BIOGRAPHY and LEGAL_TIMELINE universes
ALLOWED INPUTS: Criteria objects, nanosecond instants, keyframe tags
OUTPUTS: Universe lists and frozen result records

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the registry or the values it returns
- Read the wall clock implicitly when a ``now`` is supplied

Tag conventions read by this module: ``birth`` and ``death`` on biography
keyframes, ``military`` for service events, ``award`` / ``achievement`` /
``milestone`` for honours, ``enactment`` / ``decision_rendered`` on legal
timelines. Ages are whole Julian years (365.25 days).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import math

from ..contracts.base import UniverseType
from ..contracts.events import AuditEventType
from ..contracts.universe import TemporalKeyframe, TemporalSegment, Universe
from ..registry import UniverseRegistry
from ..temporal.conversion import (
    datetime_to_nanoseconds, days_to_nanoseconds, nanoseconds_to_date,
)


LAYER = "query"

DAY_NS = days_to_nanoseconds(1)
JULIAN_YEAR_NS = 36525 * DAY_NS // 100
DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = 30.44

BIRTH_TAG = "birth"
DEATH_TAG = "death"
MILITARY_TAG = "military"
AWARD_TAGS = ("award", "achievement", "milestone")
ENACTMENT_TAGS = ("enactment", "decision_rendered")
UNKNOWN = "unknown"


# =============================================================================
# CRITERIA
# =============================================================================

@dataclass(frozen=True)
class BiographicalQuery:
    """All set criteria must hold. Years are UTC calendar years."""
    person_name: Optional[str] = None
    birth_year: Optional[int] = None
    death_year: Optional[int] = None
    education_period: bool = False
    military_service: bool = False


@dataclass(frozen=True)
class LegalQuery:
    """``enacted_after`` / ``enacted_before`` are inclusive nanosecond bounds."""
    jurisdiction: Optional[str] = None
    status: Optional[str] = None
    enacted_after: Optional[int] = None
    enacted_before: Optional[int] = None


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class PersonAlive:
    universe: Universe
    life_stage: str
    age: int


@dataclass(frozen=True)
class ActiveLaw:
    universe: Universe
    status: str
    active_segments: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AgeAnswer:
    """
    ``answer`` is False with zero confidence when the person, the birth
    keyframe or the event keyframe cannot be found; the detail fields are
    then None.
    """
    answer: bool
    confidence: float
    age_at_event: Optional[int] = None
    person_age: Optional[int] = None
    birth_time: Optional[int] = None
    event_time: Optional[int] = None
    event_description: Optional[str] = None


@dataclass(frozen=True)
class AwardEvent:
    event_name: str
    timestamp: int
    age_at_event: int
    significance: float
    tags: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ElapsedTime:
    years: int
    months: int
    days: int
    total_days: int


@dataclass(frozen=True)
class EventInterval:
    """Time from a zero event (T=0) to a target event."""
    zero_event: TemporalKeyframe
    target_event: TemporalKeyframe
    elapsed: ElapsedTime
    confidence: float

    @property
    def description(self) -> str:
        return f"T=0: {describe(self.zero_event.keyframe_id)}"


# =============================================================================
# HELPERS
# =============================================================================

def describe(identifier: str) -> str:
    """``"oscar_best_actress"`` -> ``"oscar best actress"``"""
    return identifier.replace("_", " ")


def age_between(birth: int, instant: int) -> int:
    """Completed Julian years from ``birth`` to ``instant`` (negative before birth)."""
    return (instant - birth) // JULIAN_YEAR_NS


def elapsed_between(start: int, end: int) -> ElapsedTime:
    """
    Calendar-ish breakdown using average year and month lengths. Only
    ``total_days`` is exact.
    """
    total_days = (end - start) // DAY_NS
    years = math.floor(total_days / DAYS_PER_YEAR)
    remaining = total_days - math.floor(years * DAYS_PER_YEAR)
    months = math.floor(remaining / DAYS_PER_MONTH)
    days = math.floor(remaining - months * DAYS_PER_MONTH)
    return ElapsedTime(years=years, months=months, days=days, total_days=total_days)


def find_keyframe(universe: Universe, *tags: str) -> Optional[TemporalKeyframe]:
    """First keyframe carrying any of ``tags``, in declaration order."""
    for keyframe in _keyframes(universe):
        if any(tag in keyframe.tags for tag in tags):
            return keyframe
    return None


def life_stage_at(universe: Universe, instant: int) -> str:
    """Type of the first segment containing ``instant`` (bounds inclusive)."""
    for segment in _segments(universe):
        if segment.start_time <= instant <= segment.end_time:
            return segment.segment_type
    return UNKNOWN


def _keyframes(universe: Universe) -> Tuple[TemporalKeyframe, ...]:
    structure = universe.temporal_structure
    return structure.keyframes if structure is not None else ()


def _segments(universe: Universe) -> Tuple[TemporalSegment, ...]:
    structure = universe.temporal_structure
    return structure.segments if structure is not None else ()


def _year_of(keyframe: Optional[TemporalKeyframe]) -> Optional[int]:
    return nanoseconds_to_date(keyframe.timestamp).year if keyframe is not None else None


def _now() -> int:
    return datetime_to_nanoseconds(datetime.now(timezone.utc))


# =============================================================================
# SERVICE
# =============================================================================

class BiographicalQueryService:
    """
    Queries over the BIOGRAPHY and LEGAL_TIMELINE universes of one registry.

    Person lookups by name take the first match in registry order.
    """

    def __init__(self, registry: UniverseRegistry):
        self._registry = registry
        self._obs = registry.observability

    def _of_type(self, universe_type: UniverseType) -> List[Universe]:
        return [u for u in self._registry.get_all_universes() if u.type is universe_type]

    # =========================================================================
    # SEARCH
    # =========================================================================

    def find_biographies(self, query: Optional[BiographicalQuery] = None) -> List[Universe]:
        query = query or BiographicalQuery()
        universes = self._of_type(UniverseType.BIOGRAPHY)

        if query.person_name:
            needle = query.person_name.lower()
            universes = [
                u for u in universes
                if needle in u.canonical_name.lower()
                or any(needle in alias.lower() for alias in u.aliases)
            ]

        if query.birth_year is not None:
            universes = [u for u in universes if _year_of(find_keyframe(u, BIRTH_TAG)) == query.birth_year]

        if query.death_year is not None:
            universes = [u for u in universes if _year_of(find_keyframe(u, DEATH_TAG)) == query.death_year]

        if query.education_period:
            universes = [
                u for u in universes
                if any(s.segment_type == "education" for s in _segments(u))
            ]

        if query.military_service:
            universes = [
                u for u in universes
                if any(s.segment_type == "public_service" for s in _segments(u))
                and find_keyframe(u, MILITARY_TAG) is not None
            ]

        self._obs.record(LAYER, AuditEventType.QUERY, "find_biographies", results=len(universes))
        return universes

    def find_legal_timelines(self, query: Optional[LegalQuery] = None) -> List[Universe]:
        query = query or LegalQuery()
        universes = self._of_type(UniverseType.LEGAL_TIMELINE)

        if query.jurisdiction:
            universes = [u for u in universes if self._in_jurisdiction(u, query.jurisdiction)]

        if query.status is not None:
            universes = [
                u for u in universes
                if any(s.status == query.status for s in _segments(u))
            ]

        if query.enacted_after is not None or query.enacted_before is not None:
            lower = query.enacted_after
            upper = query.enacted_before
            kept = []
            for universe in universes:
                enactment = find_keyframe(universe, *ENACTMENT_TAGS)
                if enactment is None:
                    continue
                if lower is not None and enactment.timestamp < lower:
                    continue
                if upper is not None and enactment.timestamp > upper:
                    continue
                kept.append(universe)
            universes = kept

        self._obs.record(LAYER, AuditEventType.QUERY, "find_legal_timelines", results=len(universes))
        return universes

    @staticmethod
    def _in_jurisdiction(universe: Universe, jurisdiction: str) -> bool:
        needle = jurisdiction.lower()
        return any(
            s.jurisdiction is not None and needle in s.jurisdiction.lower()
            for s in _segments(universe)
        )

    # =========================================================================
    # PERIOD QUERIES
    # =========================================================================

    def find_people_alive_during(self, start: int, end: int,
                                 now: Optional[int] = None) -> List[PersonAlive]:
        """
        People whose lifetime intersects ``[start, end]``, youngest first.

        A biography without a death keyframe is treated as alive until
        ``now``. Age and life stage are taken at ``start``; age is clamped
        at 0 for people born inside the period.
        """
        now = _now() if now is None else now
        results = []
        for universe in self._of_type(UniverseType.BIOGRAPHY):
            birth = find_keyframe(universe, BIRTH_TAG)
            if birth is None:
                continue
            death = find_keyframe(universe, DEATH_TAG)
            death_time = death.timestamp if death is not None else now
            if birth.timestamp <= end and death_time >= start:
                results.append(PersonAlive(
                    universe=universe,
                    life_stage=life_stage_at(universe, start),
                    age=max(0, age_between(birth.timestamp, start)),
                ))
        results.sort(key=lambda r: r.age)
        return results

    def find_active_laws_during(self, start: int, end: int,
                                jurisdiction: Optional[str] = None) -> List[ActiveLaw]:
        """
        Legal timelines with at least one segment intersecting ``[start, end]``.
        The reported status is that of the last such segment.
        """
        results = []
        for universe in self._of_type(UniverseType.LEGAL_TIMELINE):
            if jurisdiction and not self._in_jurisdiction(universe, jurisdiction):
                continue
            active = [s for s in _segments(universe) if s.start_time <= end and s.end_time >= start]
            if active:
                results.append(ActiveLaw(
                    universe=universe,
                    status=active[-1].status or UNKNOWN,
                    active_segments=tuple(s.segment_id for s in active),
                ))
        return results

    # =========================================================================
    # EVENT QUERIES
    # =========================================================================

    def _person(self, person_name: str) -> Optional[Universe]:
        matches = self.find_biographies(BiographicalQuery(person_name=person_name))
        return matches[0] if matches else None

    def answer_age_query(self, person_name: str, event_tag: str, age_threshold: int,
                         now: Optional[int] = None) -> AgeAnswer:
        """Was ``person_name`` at least ``age_threshold`` when the ``event_tag`` event happened?"""
        universe = self._person(person_name)
        birth = find_keyframe(universe, BIRTH_TAG) if universe is not None else None
        event = find_keyframe(universe, event_tag) if universe is not None else None
        if birth is None or event is None:
            return AgeAnswer(answer=False, confidence=0.0)

        age_at_event = age_between(birth.timestamp, event.timestamp)
        return AgeAnswer(
            answer=age_at_event >= age_threshold,
            confidence=min(birth.certainty, event.certainty),
            age_at_event=age_at_event,
            person_age=age_between(birth.timestamp, _now() if now is None else now),
            birth_time=birth.timestamp,
            event_time=event.timestamp,
            event_description=describe(event.keyframe_id),
        )

    def find_award_events(self, person_name: str) -> List[AwardEvent]:
        """Honours and milestones of a person in chronological order."""
        universe = self._person(person_name)
        if universe is None:
            return []
        birth = find_keyframe(universe, BIRTH_TAG)
        if birth is None:
            return []

        events = [
            AwardEvent(
                event_name=describe(k.keyframe_id),
                timestamp=k.timestamp,
                age_at_event=age_between(birth.timestamp, k.timestamp),
                significance=k.significance,
                tags=k.tags,
            )
            for k in _keyframes(universe)
            if any(tag in k.tags for tag in AWARD_TAGS)
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def calculate_time_between_events(self, person_name: str, zero_event_tag: str,
                                      target_event_tag: str) -> Optional[EventInterval]:
        """None when the person or either tagged event is missing."""
        universe = self._person(person_name)
        if universe is None:
            return None
        zero = find_keyframe(universe, zero_event_tag)
        target = find_keyframe(universe, target_event_tag)
        if zero is None or target is None:
            return None
        return EventInterval(
            zero_event=zero,
            target_event=target,
            elapsed=elapsed_between(zero.timestamp, target.timestamp),
            confidence=min(zero.certainty, target.certainty),
        )

    # =========================================================================
    # REPORTING
    # =========================================================================

    @staticmethod
    def generate_biographical_report(universe: Universe) -> str:
        """Markdown timeline of key life events and life periods."""
        if universe.type is not UniverseType.BIOGRAPHY:
            return "Not a biographical universe"

        lines = [f"# Biographical Timeline: {universe.canonical_name}", "", "## Key Life Events"]
        for keyframe in sorted(_keyframes(universe), key=lambda k: k.timestamp):
            date = nanoseconds_to_date(keyframe.timestamp).strftime("%a %b %d %Y")
            certainty = f" ({keyframe.certainty * 100:.0f}% certain)" if keyframe.certainty < 1.0 else ""
            lines.append(f"- **{date}**: {describe(keyframe.keyframe_id)}{certainty}")

        lines += ["", "## Life Periods"]
        for segment in sorted(_segments(universe), key=lambda s: s.start_time):
            start_year = nanoseconds_to_date(segment.start_time).year
            end_year = nanoseconds_to_date(segment.end_time).year
            lines.append(f"- **{describe(segment.segment_type)}**: {start_year} - {end_year}")

        return "\n".join(lines) + "\n"


__all__ = [
    'BiographicalQuery',
    'LegalQuery',
    'PersonAlive',
    'ActiveLaw',
    'AgeAnswer',
    'AwardEvent',
    'ElapsedTime',
    'EventInterval',
    'BiographicalQueryService',
    'age_between',
    'elapsed_between',
    'find_keyframe',
    'life_stage_at',
]
