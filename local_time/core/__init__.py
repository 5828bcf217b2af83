"""
Analysis Core

- reality: reality gradient scoring of universes and of references between them
- attribution: citation and permission guidance for a reference
- topology: networkx graph of universes and the real-world referents they anchor to
"""

from .attribution import AttributionEngine, AttributionRequirement, UsageContext
from .reality import RealityGradientAnalyzer, categorize_level
from .topology import GraphMetrics, ReferenceGraph, network_node

__all__ = [
    'AttributionEngine',
    'AttributionRequirement',
    'UsageContext',
    'RealityGradientAnalyzer',
    'categorize_level',
    'GraphMetrics',
    'ReferenceGraph',
    'network_node',
]
