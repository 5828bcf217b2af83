"""
Reality Gradient Analyzer
=========================

Turns a universe's (often partially inconsistent) reality metadata into one
comparable score on the 0.0 (pure reality) .. 1.0 (pure fantasy) scale,
with a category band, a confidence and an evidence trail.

Rules fire in a fixed order and every rule that fires appends one evidence
line, so the trail reads as the derivation of the final level.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Tuple, Union

from ..contracts.base import RealityCategory, RealityRelationType, ReferenceType
from ..contracts.universe import RealityGradient, Universe


DEFAULT_CONFIDENCE = 0.8
DOCUMENTARY_CONFIDENCE = 0.95

# Inclusive upper bound of each band; anything above the last is pure fantasy.
CATEGORY_BANDS: Tuple[Tuple[float, RealityCategory], ...] = (
    (0.05, RealityCategory.PURE_REALITY),
    (0.15, RealityCategory.DOCUMENTED_REALITY),
    (0.25, RealityCategory.INTERPRETED_REALITY),
    (0.35, RealityCategory.DRAMATIZED_REALITY),
    (0.45, RealityCategory.INSPIRED_FICTION),
    (0.55, RealityCategory.HISTORICAL_FICTION),
    (0.65, RealityCategory.FANTASY_REALISM),
    (0.75, RealityCategory.SOFT_FICTION),
    (0.85, RealityCategory.HARD_FICTION),
)

# relation type -> (floor, ceiling, evidence); one side of the clamp is None
_TYPE_RULES = {
    RealityRelationType.DOCUMENTARY: (None, 0.1, "Classified as documentary"),
    RealityRelationType.HISTORICAL_FICTION: (0.4, None, "Historical fiction with fictional characters"),
    RealityRelationType.INSPIRED_BY: (0.3, None, "Inspired by real events"),
    RealityRelationType.PURE_FICTION: (0.7, None, "Classified as pure fiction"),
    RealityRelationType.METAFICTION: (0.8, None, "Metafictional work"),
}


def categorize_level(level: float) -> RealityCategory:
    for upper, category in CATEGORY_BANDS:
        if level <= upper:
            return category
    return RealityCategory.PURE_FANTASY


def clamp(level: float) -> float:
    return max(0.0, min(1.0, level))


class RealityGradientAnalyzer:
    """Stateless; methods are static so callers need no instance."""

    @staticmethod
    def analyze_universe(universe: Universe) -> RealityGradient:
        relation = universe.reality_relation
        level = relation.fictionalization_degree
        confidence = DEFAULT_CONFIDENCE
        evidence: List[str] = []

        floor, ceiling, reason = _TYPE_RULES[relation.type]
        if floor is not None:
            level = max(level, floor)
        if ceiling is not None:
            level = min(level, ceiling)
        if relation.type is RealityRelationType.DOCUMENTARY:
            confidence = DOCUMENTARY_CONFIDENCE
        evidence.append(reason)

        anchors = relation.reality_anchors
        if anchors:
            mean_confidence = sum(a.confidence for a in anchors) / len(anchors)
            # At most a 30% reduction however many anchors corroborate.
            level *= 1 - mean_confidence * 0.3
            evidence.append(
                f"{len(anchors)} reality anchors with avg confidence {mean_confidence:.2f}"
            )

        if relation.historical_consultants:
            level *= 0.9
            evidence.append(
                f"Historical consultants: {', '.join(relation.historical_consultants)}"
            )

        if relation.claims_historical_accuracy:
            level *= 0.8
            evidence.append("Claims historical accuracy")

        level = clamp(level)
        return RealityGradient(
            level=level,
            category=categorize_level(level),
            confidence=confidence,
            evidence=tuple(evidence),
        )

    @staticmethod
    def analyze_reference(
        source: Universe,
        target: Universe,
        reference_type: Union[ReferenceType, str],
    ) -> RealityGradient:
        """
        Reality level of ``source`` referring to ``target`` in the given way.

        Unknown reference types (including plain strings that are not a
        ReferenceType value) fall back to the average of both levels.
        """
        source_gradient = RealityGradientAnalyzer.analyze_universe(source)
        target_gradient = RealityGradientAnalyzer.analyze_universe(target)
        ref = _as_reference_type(reference_type)
        average = (source_gradient.level + target_gradient.level) / 2
        target_level = target_gradient.level

        if ref in (ReferenceType.DOCUMENTS, ReferenceType.DEPICTS):
            level = target_level
            reason = "Direct reference maintains target reality level"
        elif ref is ReferenceType.RECREATES:
            level = target_level + 0.1
            reason = "Recreation adds fictionalization to target"
        elif ref is ReferenceType.INSPIRED_BY:
            level = target_level + 0.3
            reason = "Inspiration increases fictionalization"
        elif ref in (ReferenceType.SUBLIMATED, ReferenceType.ALLEGORIZES):
            level = max(0.6, min(1.0, target_level + 0.4))
            reason = "Psychological transformation creates high fictionalization"
        elif ref in (ReferenceType.PARODIES, ReferenceType.REINTERPRETS):
            level = average + 0.2
            reason = "Meta reference blends source and target realities"
        elif ref is ReferenceType.MYTHOLOGIZES:
            level = max(0.8, target_level)
            reason = "Mythologizing creates high fictionalization"
        elif ref is ReferenceType.METAFICTION:
            level = 0.9
            reason = "Metafiction is highly fictional"
        else:
            level = average
            reason = "Default: average of source and target reality levels"

        level = clamp(level)
        return RealityGradient(
            level=level,
            category=categorize_level(level),
            confidence=min(source_gradient.confidence, target_gradient.confidence),
            evidence=(
                reason,
                f"Source: {source_gradient.category.value} ({source_gradient.level:.2f})",
                f"Target: {target_gradient.category.value} ({target_gradient.level:.2f})",
            ),
        )

    @staticmethod
    def find_universes_by_reality_level(
        universes: Iterable[Universe],
        min_level: float = 0.0,
        max_level: float = 1.0,
        category: Optional[RealityCategory] = None,
    ) -> List[Tuple[Universe, RealityGradient]]:
        """Analyzed universes with level in [min_level, max_level], least fictional first."""
        analyzed = [
            (universe, RealityGradientAnalyzer.analyze_universe(universe))
            for universe in universes
        ]
        matches = [
            (universe, gradient) for universe, gradient in analyzed
            if min_level <= gradient.level <= max_level
            and (category is None or gradient.category == category)
        ]
        matches.sort(key=lambda pair: pair[1].level)
        return matches

    @staticmethod
    def generate_reality_report(universe: Universe) -> str:
        """Markdown summary of the analysis for one universe."""
        gradient = RealityGradientAnalyzer.analyze_universe(universe)
        relation = universe.reality_relation

        lines = [
            "# Reality Gradient Analysis",
            "",
            f"**Universe:** {universe.canonical_name}",
            f"**Reality Level:** {gradient.level:.3f} ({gradient.category.value})",
            f"**Confidence:** {gradient.confidence * 100:.1f}%",
            "",
            "## Classification",
            f"- **Category:** {gradient.category.value.replace('_', ' ').upper()}",
            f"- **Fictionalization Degree:** {relation.fictionalization_degree}",
            f"- **Reality Relation:** {relation.type.value}",
            "",
        ]

        if gradient.evidence:
            lines.append("## Evidence")
            lines.extend(f"- {line}" for line in gradient.evidence)
            lines.append("")

        if relation.reality_anchors:
            lines.append("## Reality Anchors")
            lines.extend(
                f"- **{a.real_event_id}** ({a.relationship_type}, confidence: {a.confidence})"
                for a in relation.reality_anchors
            )
            lines.append("")

        return "\n".join(lines)


def _as_reference_type(value: Union[ReferenceType, str]) -> Optional[ReferenceType]:
    if isinstance(value, ReferenceType):
        return value
    try:
        return ReferenceType(value)
    except ValueError:
        return None


# Module-level aliases for function-style callers.
analyze_universe = RealityGradientAnalyzer.analyze_universe
analyze_reference = RealityGradientAnalyzer.analyze_reference
find_universes_by_reality_level = RealityGradientAnalyzer.find_universes_by_reality_level
generate_reality_report = RealityGradientAnalyzer.generate_reality_report
