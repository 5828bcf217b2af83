"""
Domain helpers shared by the sources, registry and API layers.

Modules:
- serialization: contract values <-> plain JSON data, configuration batches
- builder: fluent construction of Universe values from calendar fields
"""

from .builder import (
    UniverseBuilder, create_biography_builder, create_film_builder,
    create_historical_builder, create_legal_builder, create_mission_builder,
    slugify,
)

__all__ = [
    'UniverseBuilder',
    'create_film_builder',
    'create_historical_builder',
    'create_mission_builder',
    'create_biography_builder',
    'create_legal_builder',
    'slugify',
]
