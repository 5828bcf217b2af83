"""
Temporal Layer
==============

Calendar and relative-time arithmetic over nanosecond ints.

INVARIANTS:
- Identical calendar inputs always produce identical integers
- No floating point on the nanosecond path (except years_to_nanoseconds,
  which is approximate by definition)

Modules:
- conversion: calendar <-> nanoseconds, entity factories, unit helpers
- addressing: T-minus / T-plus addresses over zero-referenced epochs
"""

from .conversion import (
    date_to_nanoseconds, datetime_to_nanoseconds, nanoseconds_to_date,
    create_epoch, create_day_epoch, create_year_epoch, create_keyframe,
    create_segment, create_runtime_epoch, create_runtime_keyframe,
    create_runtime_segment, format_duration, calculate_duration,
    is_within_range, years_to_nanoseconds, days_to_nanoseconds,
    hours_to_nanoseconds, minutes_to_nanoseconds, year_bounds,
)
from .addressing import (
    RelativeTimeComponents, ParsedRelativeAddress, generate_relative_address,
    parse_relative_address, relative_to_absolute, absolute_to_relative,
    resolve_relative_address,
)

__all__ = [
    'date_to_nanoseconds',
    'datetime_to_nanoseconds',
    'nanoseconds_to_date',
    'create_epoch',
    'create_day_epoch',
    'create_year_epoch',
    'create_keyframe',
    'create_segment',
    'create_runtime_epoch',
    'create_runtime_keyframe',
    'create_runtime_segment',
    'format_duration',
    'calculate_duration',
    'is_within_range',
    'years_to_nanoseconds',
    'days_to_nanoseconds',
    'hours_to_nanoseconds',
    'minutes_to_nanoseconds',
    'year_bounds',
    'RelativeTimeComponents',
    'ParsedRelativeAddress',
    'generate_relative_address',
    'parse_relative_address',
    'relative_to_absolute',
    'absolute_to_relative',
    'resolve_relative_address',
]
