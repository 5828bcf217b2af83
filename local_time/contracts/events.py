"""
Audit Contracts

Immutable records emitted by the registry, loaders and query layers and
collected by the observability layer. Producers never read them back to make
decisions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple
from enum import Enum
import hashlib

from .base import Error, Timestamp


class AuditEventType(Enum):
    REGISTRATION = "registration"   # universe, network, alias or placeholder written
    CONFIGURATION = "configuration" # a source was read (or found absent)
    QUERY = "query"                 # window resolution and search
    ERROR = "error"                 # rejected input; always carries an Error
    SYSTEM = "system"               # lifecycle (initialization)


def _freeze(details: Optional[Mapping[str, Any]]) -> Tuple[Tuple[str, str], ...]:
    if not details:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in details.items()))


@dataclass(frozen=True)
class AuditLogEntry:
    """
    One thing that happened in one layer.

    ``entry_id`` is derived from the layer, the engine-wide sequence number,
    the action and the entity, so replaying the same initialization yields
    the same ids.
    """
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str
    action: str
    sequence: int = 0
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    error: Optional[Error] = None

    @staticmethod
    def create(
        layer: str,
        event_type: AuditEventType,
        action: str,
        sequence: int,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        error: Optional[Error] = None,
    ) -> AuditLogEntry:
        digest = hashlib.sha256(
            "\x1f".join((layer, str(sequence), action, entity_id or "")).encode("utf-8")
        ).hexdigest()
        if error is not None and event_type is not AuditEventType.ERROR:
            raise ValueError(f"{action}: only ERROR entries may carry an error")
        return AuditLogEntry(
            entry_id=f"audit_{digest[:16]}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            layer=layer,
            action=action,
            sequence=sequence,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=_freeze(metadata),
            error=error,
        )

    def get(self, key: str) -> Optional[str]:
        """Metadata value recorded under ``key``, if any."""
        return dict(self.metadata).get(key)

    @property
    def is_error(self) -> bool:
        return self.event_type is AuditEventType.ERROR


@dataclass(frozen=True)
class MetricPoint:
    """A single sample of a registered metric."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def label(self, key: str) -> Optional[str]:
        return dict(self.labels).get(key)
