"""
Zero-Reference Addressing

Countdown-style addresses measured from an epoch's zero point, e.g.
``nasa:apollo11:1969:launch:T-00:05:30`` (five and a half minutes before
launch). Only epochs carrying a ``zero_point`` can be addressed this way.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import re

from ..contracts.universe import TemporalEpoch

if TYPE_CHECKING:
    from ..registry import UniverseRegistry


_RELATIVE_TIME = re.compile(r"([A-Z][+-])(\d{2,}):(\d{2}):(\d{2})(?:\.(\d{3}))?")
_ADDRESS = re.compile(rf"^(?P<head>.+):(?P<time>{_RELATIVE_TIME.pattern})$")

DEFAULT_BEFORE_PREFIX = "T-"
DEFAULT_AFTER_PREFIX = "T+"

_MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000


@dataclass(frozen=True)
class RelativeTimeComponents:
    prefix: str
    hours: int
    minutes: int
    seconds: int
    milliseconds: int = 0

    @property
    def is_before_zero(self) -> bool:
        return self.prefix.endswith("-")

    @property
    def offset_ms(self) -> int:
        return (
            self.hours * _MS_PER_HOUR
            + self.minutes * _MS_PER_MINUTE
            + self.seconds * 1000
            + self.milliseconds
        )

    def format(self) -> str:
        return self.prefix + format_relative_time(
            self.hours, self.minutes, self.seconds, self.milliseconds
        )


@dataclass(frozen=True)
class ParsedRelativeAddress:
    universe_id: str
    epoch_id: str
    relative_time: Optional[RelativeTimeComponents]
    is_valid: bool


_INVALID = ParsedRelativeAddress(universe_id="", epoch_id="", relative_time=None, is_valid=False)


def format_relative_time(hours: int, minutes: int, seconds: int = 0, milliseconds: int = 0) -> str:
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if milliseconds > 0:
        text += f".{milliseconds:03d}"
    return text


def parse_relative_time(text: str) -> Optional[RelativeTimeComponents]:
    match = _RELATIVE_TIME.fullmatch(text)
    if not match:
        return None
    prefix, hours, minutes, seconds, milliseconds = match.groups()
    return RelativeTimeComponents(
        prefix=prefix,
        hours=int(hours),
        minutes=int(minutes),
        seconds=int(seconds),
        milliseconds=int(milliseconds) if milliseconds else 0,
    )


def generate_relative_address(
    universe_id: str,
    epoch_id: str,
    prefix: str,
    hours: int,
    minutes: int,
    seconds: int = 0,
    milliseconds: int = 0,
) -> str:
    time_text = format_relative_time(hours, minutes, seconds, milliseconds)
    return f"{universe_id}:{epoch_id}:{prefix}{time_text}"


def parse_relative_address(address: str) -> ParsedRelativeAddress:
    """
    Split an address into universe id, epoch id and relative time.

    The epoch id is taken as the last segment before the time; epoch ids that
    themselves contain colons need ``resolve_relative_address``, which tries
    every split against the registry. Malformed input yields ``is_valid=False``.
    """
    match = _ADDRESS.fullmatch(address or "")
    if not match:
        return _INVALID
    head = match.group("head")
    if ":" not in head:
        return _INVALID
    universe_id, epoch_id = head.rsplit(":", 1)
    if not universe_id or not epoch_id:
        return _INVALID
    return ParsedRelativeAddress(
        universe_id=universe_id,
        epoch_id=epoch_id,
        relative_time=parse_relative_time(match.group("time")),
        is_valid=True,
    )


def _require_zero_point(epoch: TemporalEpoch) -> int:
    if epoch.zero_point is None:
        raise ValueError(
            f"Epoch {epoch.epoch_id or '<unnamed>'} has no zero point; "
            f"relative addressing needs a zero-referenced epoch"
        )
    return epoch.zero_point


def relative_to_absolute(relative_time: RelativeTimeComponents, epoch: TemporalEpoch) -> int:
    zero_point = _require_zero_point(epoch)
    offset_ns = relative_time.offset_ms * 1_000_000
    if relative_time.is_before_zero:
        return zero_point - offset_ns
    return zero_point + offset_ns


def absolute_to_relative(absolute_time: int, epoch: TemporalEpoch) -> RelativeTimeComponents:
    """Millisecond-resolution offset from the zero point (sub-ms truncated)."""
    zero_point = _require_zero_point(epoch)
    diff_ns = absolute_time - zero_point
    diff_ms = abs(diff_ns) // 1_000_000
    before = diff_ns < 0 and diff_ms > 0

    hours, rest = divmod(diff_ms, _MS_PER_HOUR)
    minutes, rest = divmod(rest, _MS_PER_MINUTE)
    seconds, milliseconds = divmod(rest, 1000)

    if before:
        prefix = epoch.before_prefix or DEFAULT_BEFORE_PREFIX
    else:
        prefix = epoch.after_prefix or DEFAULT_AFTER_PREFIX
    return RelativeTimeComponents(
        prefix=prefix,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        milliseconds=milliseconds,
    )


def find_epoch(universe, epoch_id: str) -> Optional[TemporalEpoch]:
    """Look up an epoch by flattened key, declared ``epoch_id`` or layer key."""
    epoch = universe.epochs.get(epoch_id)
    if epoch is not None:
        return epoch
    for _, key, candidate in universe.iter_layer_epochs():
        if candidate.epoch_id == epoch_id or key == epoch_id:
            return candidate
    return None


def resolve_relative_address(registry: UniverseRegistry, address: str) -> Optional[int]:
    """
    Resolve an address to an absolute nanosecond timestamp through the
    registry. Returns None when the address, universe or epoch cannot be
    resolved or the epoch is not zero-referenced.
    """
    match = _ADDRESS.fullmatch(address or "")
    if not match:
        return None
    relative_time = parse_relative_time(match.group("time"))
    parts = match.group("head").split(":")

    # Universe ids and epoch ids may both contain colons: try the longest
    # universe id first.
    for split in range(len(parts) - 1, 0, -1):
        universe = registry.get_universe(":".join(parts[:split]))
        if universe is None:
            continue
        epoch = find_epoch(universe, ":".join(parts[split:]))
        if epoch is not None and epoch.zero_point is not None:
            return relative_to_absolute(relative_time, epoch)
    return None
