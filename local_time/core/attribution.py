"""
Attribution Guidance
====================

Heuristic citation / permission guidance for a reference from one universe
to another, derived from the target's attribution block and reality
relation. The output is advisory text plus flags; nothing in the registry
or the query layer consults it.

Copyright status is inferred in this order: explicit public domain,
government or NASA sourced documentary material, then the age of the
copyright year against a 95-year term.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..contracts.base import RealityRelationType, ReferenceType
from ..contracts.universe import Attribution, Universe


COPYRIGHT_TERM_YEARS = 95
PUBLIC_SOURCE_MARKERS = ("Government", "NASA")
FAIR_USE_THRESHOLD = 2

HIGH_RISK_REFERENCES = frozenset({ReferenceType.RECREATES, ReferenceType.DEPICTS})
LOW_RISK_REFERENCES = frozenset({
    ReferenceType.INSPIRED_BY, ReferenceType.HOMAGES, ReferenceType.PARODIES,
})

DISCLAIMER = "*This is automated guidance only. Consult legal counsel for definitive advice.*"


class CopyrightStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PUBLIC_DOMAIN = "public_domain"
    UNKNOWN = "unknown"


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UsePurpose(Enum):
    COMMERCIAL = "commercial"
    EDUCATIONAL = "educational"
    CRITICISM = "criticism"
    PARODY = "parody"
    RESEARCH = "research"


class UseExtent(Enum):
    MINIMAL = "minimal"
    SUBSTANTIAL = "substantial"
    COMPLETE = "complete"


@dataclass(frozen=True)
class UsageContext:
    """How the referencing work uses the target. Every field is optional."""
    purpose: Optional[UsePurpose] = None
    extent: Optional[UseExtent] = None
    transformative: bool = False


@dataclass(frozen=True)
class FairUseAssessment:
    score: int
    likely: bool
    restrictions: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AttributionRequirement:
    copyright_status: CopyrightStatus
    risk_level: RiskLevel
    citation_required: bool = False
    permission_required: bool = False
    fees_required: bool = False
    fair_use_likely: bool = False
    restrictions: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)


def _attribution(universe: Universe) -> Attribution:
    return universe.attribution if universe.attribution is not None else Attribution()


def _current_year() -> int:
    return datetime.now(timezone.utc).year


class AttributionEngine:
    """Stateless; methods are static so callers need no instance."""

    @staticmethod
    def determine_copyright_status(universe: Universe,
                                   current_year: Optional[int] = None) -> CopyrightStatus:
        attribution = _attribution(universe)
        if attribution.public_domain:
            return CopyrightStatus.PUBLIC_DOMAIN

        if universe.reality_relation.type is RealityRelationType.DOCUMENTARY and any(
            marker in source for source in attribution.sources for marker in PUBLIC_SOURCE_MARKERS
        ):
            return CopyrightStatus.PUBLIC_DOMAIN

        if attribution.copyright_year is not None:
            year = _current_year() if current_year is None else current_year
            age = year - attribution.copyright_year
            # the boundary year itself is left undecided
            if age > COPYRIGHT_TERM_YEARS:
                return CopyrightStatus.EXPIRED
            if age < COPYRIGHT_TERM_YEARS:
                return CopyrightStatus.ACTIVE

        return CopyrightStatus.UNKNOWN

    @staticmethod
    def assess_fair_use(target: Universe, reference_type: ReferenceType,
                        context: Optional[UsageContext] = None) -> FairUseAssessment:
        """
        Additive score over the four fair-use factors; ``likely`` at 2 or more.

        Commercial purpose counts against both the purpose and the market
        factor, so it costs two points.
        """
        context = context or UsageContext()
        score = 0
        restrictions: List[str] = []
        recommendations: List[str] = []

        # purpose and character
        if context.purpose in (UsePurpose.EDUCATIONAL, UsePurpose.CRITICISM, UsePurpose.RESEARCH):
            score += 2
            recommendations.append("Educational/critical purpose supports fair use")
        if context.purpose is UsePurpose.PARODY or reference_type is ReferenceType.PARODIES:
            score += 3
            recommendations.append("Parody is strongly protected")
        if context.transformative:
            score += 2
            recommendations.append("Transformative use supports fair use")
        if context.purpose is UsePurpose.COMMERCIAL:
            score -= 1
            restrictions.append("Commercial use weighs against fair use")

        # nature of the work
        if target.reality_relation.fictionalization_degree < 0.5:
            score += 1

        # amount used
        if context.extent is UseExtent.MINIMAL:
            score += 2
        elif context.extent is UseExtent.SUBSTANTIAL:
            score -= 2
            restrictions.append("Substantial use weighs against fair use")
        elif context.extent is UseExtent.COMPLETE:
            score -= 3
            restrictions.append("Complete use strongly weighs against fair use")

        # market effect
        if context.purpose is UsePurpose.COMMERCIAL:
            score -= 1

        if reference_type in LOW_RISK_REFERENCES:
            score += 1

        if score < 0:
            recommendations.append("Fair use unlikely - consider seeking permission")
        elif score < FAIR_USE_THRESHOLD:
            recommendations.append("Fair use uncertain - document justification carefully")

        return FairUseAssessment(
            score=score,
            likely=score >= FAIR_USE_THRESHOLD,
            restrictions=tuple(restrictions),
            recommendations=tuple(recommendations),
        )

    @staticmethod
    def validate_reference(
        source: Universe,
        target: Universe,
        reference_type: Union[ReferenceType, str],
        context: Optional[UsageContext] = None,
        current_year: Optional[int] = None,
    ) -> AttributionRequirement:
        reference_type = ReferenceType(reference_type)
        status = AttributionEngine.determine_copyright_status(target, current_year)

        if status is CopyrightStatus.PUBLIC_DOMAIN:
            return AttributionRequirement(
                copyright_status=status,
                risk_level=RiskLevel.LOW,
                citation_required=True,
                recommendations=("Public domain - citation recommended for academic integrity",),
            )

        risk = RiskLevel.MEDIUM
        citation = permission = fees = fair_use = False
        restrictions: List[str] = []
        recommendations: List[str] = []

        if status is CopyrightStatus.ACTIVE:
            citation = True
            assessment = AttributionEngine.assess_fair_use(target, reference_type, context)
            fair_use = assessment.likely
            restrictions.extend(assessment.restrictions)
            recommendations.extend(assessment.recommendations)

            if reference_type in HIGH_RISK_REFERENCES:
                if fair_use:
                    recommendations.append("Fair use may apply - document transformative purpose")
                else:
                    permission = fees = True
                    risk = RiskLevel.HIGH
                    recommendations.append("Consider seeking permission or legal advice")

            purpose = context.purpose if context is not None else None
            if purpose is UsePurpose.COMMERCIAL:
                risk = RiskLevel.MEDIUM if risk is RiskLevel.LOW else RiskLevel.HIGH
                recommendations.append("Commercial use increases copyright risk")
            if purpose in (UsePurpose.EDUCATIONAL, UsePurpose.CRITICISM):
                fair_use = True
                risk = RiskLevel.LOW
                recommendations.append("Educational/critical use supports fair use claim")
            if reference_type is ReferenceType.PARODIES:
                fair_use = True
                risk = RiskLevel.LOW
                recommendations.append("Parody has strong fair use protection")

        elif status is CopyrightStatus.EXPIRED:
            citation = True
            risk = RiskLevel.LOW
            recommendations.append("Copyright expired - work in public domain")

        recommendations.extend(_general_recommendations(reference_type, risk, permission))
        return AttributionRequirement(
            copyright_status=status,
            risk_level=risk,
            citation_required=citation,
            permission_required=permission,
            fees_required=fees,
            fair_use_likely=fair_use,
            restrictions=tuple(restrictions),
            recommendations=tuple(recommendations),
        )

    @staticmethod
    def generate_compliance_report(
        source: Universe,
        target: Universe,
        reference_type: Union[ReferenceType, str],
        context: Optional[UsageContext] = None,
        current_year: Optional[int] = None,
    ) -> str:
        reference_type = ReferenceType(reference_type)
        req = AttributionEngine.validate_reference(source, target, reference_type, context, current_year)

        def yes_no(flag: bool) -> str:
            return "Yes" if flag else "No"

        lines = [
            "# Copyright Compliance Report",
            "",
            f"**Source:** {source.canonical_name}",
            f"**Target:** {target.canonical_name}",
            f"**Reference Type:** {reference_type.value}",
            f"**Copyright Status:** {req.copyright_status.value}",
            f"**Risk Level:** {req.risk_level.value}",
            "",
            "## Requirements",
            f"- Citation Required: {yes_no(req.citation_required)}",
            f"- Permission Required: {yes_no(req.permission_required)}",
            f"- Fees Required: {yes_no(req.fees_required)}",
            f"- Fair Use Likely: {yes_no(req.fair_use_likely)}",
            "",
        ]
        if req.restrictions:
            lines.append("## Restrictions")
            lines.extend(f"- {r}" for r in req.restrictions)
            lines.append("")
        lines.append("## Recommendations")
        lines.extend(f"- {r}" for r in req.recommendations)
        lines += ["", "---", DISCLAIMER]
        return "\n".join(lines)


def _general_recommendations(reference_type: ReferenceType, risk: RiskLevel,
                             permission_required: bool) -> List[str]:
    advice = ["Always provide proper attribution to original creators"]
    if reference_type is ReferenceType.HOMAGES:
        advice.append("Ensure homage is transformative, not copying")
    elif reference_type is ReferenceType.PARODIES:
        advice.append("Ensure parody comments on or criticizes original")
    elif reference_type is ReferenceType.INSPIRED_BY:
        advice.append("Inspiration generally safe if not copying expression")
    if risk is RiskLevel.HIGH:
        advice.append("Consider consulting with intellectual property attorney")
        advice.append("Document fair use justification thoroughly")
    if permission_required:
        advice.append("Contact rights holders for permission")
        advice.append("Consider alternative approaches if permission denied")
    return advice


__all__ = [
    'AttributionEngine',
    'AttributionRequirement',
    'CopyrightStatus',
    'FairUseAssessment',
    'RiskLevel',
    'UsageContext',
    'UseExtent',
    'UsePurpose',
    'COPYRIGHT_TERM_YEARS',
]
