from __future__ import annotations

import logging
from typing import Any

from resume_ats.core.config.scoring import get_scoring_value
from resume_ats.schemas.ats import CompatibilityScore, Finding, ScoreAdjustment, StructuralProfile
from resume_ats.taxonomy import AtsVocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)

_DEFAULT_PENALTIES = {
    "text_boxes": 40,
    "non_safe_fonts": 15,
    "columns": 15,
    "nested_tables": 10,
    "images": 10,
    "many_tables": 5,
}
_DEFAULT_BONUSES = {
    "heading_styles": 5,
    "safe_fonts": 5,
}
_DEFAULT_TEXT_BOX_CEILING = 60
_DEFAULT_LIMITATIONS = (
    "Heuristic linear triage score. Penalties are fixed weights per detected risk signal, "
    "not a calibrated prediction of any specific ATS vendor."
)


def _weights(path: str, defaults: dict[str, int]) -> dict[str, int]:
    configured: Any = get_scoring_value(path, {}) or {}
    weights = dict(defaults)
    if isinstance(configured, dict):
        for key, value in configured.items():
            try:
                weights[str(key)] = int(value)
            except (TypeError, ValueError):
                logger.warning("ats_scoring_weight_invalid path=%s key=%s value=%r", path, key, value)
    return weights


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def score_structure(
    profile: StructuralProfile,
    *,
    penalties: dict[str, int] | None = None,
    bonuses: dict[str, int] | None = None,
) -> CompatibilityScore:
    """Linear 0-100 score: start at 100, subtract per risk signal, add small bonuses."""
    penalties = {**_weights("structure.penalties", _DEFAULT_PENALTIES), **(penalties or {})}
    bonuses = {**_weights("structure.bonuses", _DEFAULT_BONUSES), **(bonuses or {})}
    many_tables_threshold = int(get_scoring_value("structure.many_tables_threshold", 3))

    fired: list[tuple[str, bool, int]] = [
        ("text_boxes", profile.text_boxes.present, -penalties["text_boxes"]),
        ("non_safe_fonts", bool(profile.fonts.non_safe), -penalties["non_safe_fonts"]),
        ("columns", profile.columns.present, -penalties["columns"]),
        ("nested_tables", profile.tables.has_nested, -penalties["nested_tables"]),
        ("images", profile.images.count > 0, -penalties["images"]),
        ("many_tables", profile.tables.count > many_tables_threshold, -penalties["many_tables"]),
        ("heading_styles", profile.styles.uses_headings, bonuses["heading_styles"]),
        ("safe_fonts", profile.fonts.is_safe, bonuses["safe_fonts"]),
    ]
    breakdown = [ScoreAdjustment(rule=rule, points=points) for rule, active, points in fired if active]
    score = _clamp(100 + sum(item.points for item in breakdown))
    # A document with a text box never scores above the ceiling, bonuses included.
    ceiling = int(get_scoring_value("structure.text_box_ceiling", _DEFAULT_TEXT_BOX_CEILING))
    if profile.text_boxes.present and score > ceiling:
        breakdown.append(ScoreAdjustment(rule="text_box_ceiling", points=ceiling - score))
        score = ceiling
    limitations = str(get_scoring_value("structure.limitations", _DEFAULT_LIMITATIONS) or _DEFAULT_LIMITATIONS)
    return CompatibilityScore(score=score, breakdown=breakdown, limitations=limitations.strip())


def build_findings(
    profile: StructuralProfile,
    vocabulary: AtsVocabulary | None = None,
) -> tuple[list[Finding], list[Finding]]:
    """Apply the rule table. CRITICAL findings are issues, everything else a warning."""
    vocabulary = vocabulary or get_default_vocabulary()
    findings: list[Finding] = []

    if profile.text_boxes.present:
        findings.append(
            Finding(
                severity="CRITICAL",
                type="TEXT_BOXES",
                message=f"{profile.text_boxes.count} text box(es) detected. ATS cannot read content in text boxes.",
                fix="Convert text boxes to regular paragraphs",
            )
        )
    if profile.columns.present:
        findings.append(
            Finding(
                severity="HIGH",
                type="COLUMNS",
                message=f"{profile.columns.max_count}-column layout may confuse ATS parsers",
                fix="Convert to single-column layout",
            )
        )
    if profile.fonts.non_safe:
        suggested = ", ".join(vocabulary.safe_fonts[:3])
        findings.append(
            Finding(
                severity="HIGH",
                type="FONTS",
                message=f"Non-ATS-safe fonts: {', '.join(profile.fonts.non_safe)}",
                fix=f"Change to: {suggested}" if suggested else "Use a standard system font",
            )
        )
    if profile.images.count > 0:
        findings.append(
            Finding(
                severity="MEDIUM",
                type="IMAGES",
                message=f"{profile.images.count} image(s) found. ATS cannot read text in images.",
                fix="Ensure all content is also in text format",
            )
        )
    if profile.tables.has_nested:
        findings.append(
            Finding(
                severity="MEDIUM",
                type="NESTED_TABLES",
                message=f"{profile.tables.nested_count} nested table(s) detected",
                fix="Simplify table structure",
            )
        )
    if not profile.styles.uses_headings:
        findings.append(
            Finding(
                severity="LOW",
                type="STYLES",
                message="No heading styles detected",
                fix="Use built-in Heading 1, Heading 2 styles",
            )
        )

    issues = [finding for finding in findings if finding.severity == "CRITICAL"]
    warnings = [finding for finding in findings if finding.severity != "CRITICAL"]
    return issues, warnings
