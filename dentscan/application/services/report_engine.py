"""Synthesis of a dental health report from a single random draw.

The same draw gates every catalog entry, so for a given draw the report is
fully deterministic: a draw above 0.7 always brings every lower-threshold
finding with it.
"""
from typing import List

from ..taxonomy import (
    ALL_CLEAR_RECOMMENDATIONS,
    ALL_CLEAR_SUMMARY,
    FINDING_CATALOG,
    FOLLOW_UP_RECOMMENDATIONS,
    FindingTemplate,
)
from ...schemas.analysis.analysis import AnalysisResult, Finding, derive_status

__all__ = ["synthesize", "detect_findings", "compute_score", "build_summary", "derive_status"]

NO_FINDINGS_SCORE = 95
BASE_SCORE = 85
SCORE_PENALTY_PER_FINDING = 10
MIN_SCORE = 50


def _to_finding(template: FindingTemplate) -> Finding:
    return Finding(
        id=template.finding_id,
        condition=template.condition,
        location=template.location,
        tooth_number=template.tooth_number,
        confidence=template.confidence,
        severity=template.severity,
        description=template.description,
        recommendation=template.recommendation,
    )


def detect_findings(draw: float) -> List[Finding]:
    return [_to_finding(t) for t in FINDING_CATALOG if t.is_triggered(draw)]


def compute_score(finding_count: int) -> int:
    if finding_count == 0:
        return NO_FINDINGS_SCORE
    return max(MIN_SCORE, BASE_SCORE - SCORE_PENALTY_PER_FINDING * finding_count)


def build_summary(finding_count: int) -> str:
    if finding_count == 0:
        return ALL_CLEAR_SUMMARY
    noun = "finding" if finding_count == 1 else "findings"
    return f"Analysis complete. {finding_count} {noun} detected that require attention."


def synthesize(draw: float) -> AnalysisResult:
    """Build the report for ``draw``, which must lie in [0, 1)."""
    if not 0.0 <= draw < 1.0:
        raise ValueError(f"Random draw must be in [0, 1), got {draw!r}")

    findings = detect_findings(draw)
    count = len(findings)
    recommendations = ALL_CLEAR_RECOMMENDATIONS if count == 0 else FOLLOW_UP_RECOMMENDATIONS
    return AnalysisResult(
        overall_score=compute_score(count),
        findings=findings,
        summary=build_summary(count),
        recommendations=list(recommendations),
    )
