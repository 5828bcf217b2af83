"""
Base Contracts

Error records, precision units, the universe classification enums and the
validated UniverseId shared by every layer.

BOUNDARY ENFORCEMENT:
=====================
- Value types are frozen dataclasses or enums
- Nothing here touches the registry or performs I/O
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, IntEnum, auto
import re


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes recorded alongside audit entries.
    Every error state the registry can observe is enumerated.
    """
    # Identity errors
    INVALID_UNIVERSE_ID = auto()
    INVALID_NETWORK = auto()

    # Registration errors
    DUPLICATE_UNIVERSE = auto()
    ALIAS_REASSIGNED = auto()
    INVALID_TIME_RANGE = auto()

    # Configuration source errors
    SOURCE_UNREADABLE = auto()
    MALFORMED_PAYLOAD = auto()
    SOURCE_FAILED = auto()

    # Addressing errors
    EPOCH_NOT_ZERO_REFERENCED = auto()


@dataclass(frozen=True)
class Error:
    """
    A failure recorded as data. The registry keeps going after one of these
    and stores it in the audit trail instead of raising.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple(sorted((k, str(v)) for k, v in context.items())),
        )

    def with_context(self, key: str, value: str) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


class InvalidUniverseIdError(ValueError):
    """Raised when a string does not follow the universe id grammar."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid universe id {value!r}: expected "
            f"'category:identifier[:year-or-range]' (colon-delimited, at least "
            f"two non-empty segments, no whitespace)"
        )


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Wall-clock instant (UTC) attached to audit entries and metric samples.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()


class TimePrecision(IntEnum):
    """
    Nominal unit sizes in nanoseconds.

    These are labels for the resolution a value was recorded at, not
    calendar-exact durations: MONTH is 1/12 of a 365.2425-day year and YEAR is
    365 days.
    """
    NANOSECOND = 1
    MICROSECOND = 1_000
    MILLISECOND = 1_000_000
    SECOND = 1_000_000_000
    MINUTE = 60_000_000_000
    HOUR = 3_600_000_000_000
    DAY = 86_400_000_000_000
    MONTH = 2_629_746_000_000_000
    YEAR = 31_536_000_000_000_000
    MILLION_YEARS = 31_536_000_000_000_000_000_000


# =============================================================================
# CLASSIFICATION ENUMS
# =============================================================================

class UniverseType(Enum):
    FILM = "film"
    SERIES = "series"
    BOOK = "book"
    PATENT = "patent"
    HISTORICAL_EVENT = "historical_event"
    PERSONAL_EXPERIENCE = "personal_experience"
    SIMULATION = "simulation"
    MISSION = "mission"
    MEDICAL_PROCEDURE = "medical_procedure"
    BIOGRAPHY = "biography"
    LEGAL_TIMELINE = "legal_timeline"
    INSTITUTIONAL_PERIOD = "institutional_period"
    TECHNICAL_SPECIFICATION = "technical_specification"
    TECHNICAL_LOG = "technical_log"
    TECHNOLOGY = "technology"
    NETWORK = "network"


class RealityRelationType(Enum):
    DOCUMENTARY = "documentary"
    HISTORICAL_FICTION = "historical_fiction"
    INSPIRED_BY = "inspired_by"
    PURE_FICTION = "pure_fiction"
    METAFICTION = "metafiction"


class ReferenceType(Enum):
    """How one universe refers to another."""
    # Narrative references
    DEPICTS = "depicts"
    RECREATES = "recreates"
    INSPIRED_BY = "inspired_by"
    PARODIES = "parodies"
    HOMAGES = "homages"
    REFERENCES = "references"
    SEQUELS = "sequels"
    PREQUELS = "prequels"
    REMAKES = "remakes"
    ADAPTS = "adapts"
    # Cultural and analytical
    SUBLIMATED = "sublimated"
    ALLEGORIZES = "allegorizes"
    METAFICTION = "metafiction"
    REINTERPRETS = "reinterprets"
    DOCUMENTS = "documents"
    MYTHOLOGIZES = "mythologizes"
    # Structural
    CONTAINS = "contains"
    PART_OF = "part_of"
    CONTEMPORANEOUS = "contemporaneous"
    CAUSES = "causes"
    PRECEDES = "precedes"
    FOLLOWS = "follows"
    # Legal and institutional
    CITES = "cites"
    SUPERSEDES = "supersedes"
    IMPLEMENTS = "implements"
    VIOLATES = "violates"
    # Technical
    EXTENDS = "extends"
    REPLACES = "replaces"
    DEPENDS_ON = "depends_on"


class RealityCategory(Enum):
    """Ten bands of the reality gradient, least to most fictional."""
    PURE_REALITY = "pure_reality"
    DOCUMENTED_REALITY = "documented_reality"
    INTERPRETED_REALITY = "interpreted_reality"
    DRAMATIZED_REALITY = "dramatized_reality"
    INSPIRED_FICTION = "inspired_fiction"
    HISTORICAL_FICTION = "historical_fiction"
    FANTASY_REALISM = "fantasy_realism"
    SOFT_FICTION = "soft_fiction"
    HARD_FICTION = "hard_fiction"
    PURE_FANTASY = "pure_fantasy"


class LayerType(Enum):
    PRIMARY = "primary"
    META = "meta"
    RECREATION = "recreation"
    SUBJECTIVE = "subjective"


class AliasFormat(Enum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    NAMED_PERIOD = "named_period"
    CUSTOM = "custom"


# =============================================================================
# IDENTITY TYPES (Immutable, validated on construction)
# =============================================================================

_SEGMENT = r"[^\s:]+"
_UNIVERSE_ID_PATTERN = re.compile(rf"^{_SEGMENT}(?::{_SEGMENT})+$")
_QUALIFIER_PATTERN = re.compile(r"^(?:\d{4}(?:-(?:\d{4}|present))?|\*)$")


@dataclass(frozen=True)
class UniverseId:
    """
    Canonical universe identifier: ``category:identifier[:year-or-range]``.

    Examples: ``disney:mary_poppins:1964``, ``nasa:apollo11:1969``,
    ``ukraine:zelensky_presidency:2019-present``, ``network:disney:*``.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not _UNIVERSE_ID_PATTERN.fullmatch(self.value):
            raise InvalidUniverseIdError(self.value)

    @staticmethod
    def parse(value: object) -> UniverseId:
        """Accept an existing UniverseId or validate a raw string."""
        if isinstance(value, UniverseId):
            return value
        return UniverseId(value=value)

    @staticmethod
    def is_valid(value: object) -> bool:
        return isinstance(value, str) and bool(_UNIVERSE_ID_PATTERN.fullmatch(value))

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.value.split(":"))

    @property
    def category(self) -> str:
        return self.segments[0]

    @property
    def qualifier(self) -> Optional[str]:
        """Trailing year, year range or wildcard segment, if present."""
        segments = self.segments
        if len(segments) > 2 and _QUALIFIER_PATTERN.fullmatch(segments[-1]):
            return segments[-1]
        return None

    @property
    def identifier(self) -> str:
        segments = self.segments
        tail = segments[1:-1] if self.qualifier is not None else segments[1:]
        return ":".join(tail)

    def __str__(self) -> str:
        return self.value
