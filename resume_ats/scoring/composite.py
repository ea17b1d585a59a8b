from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from resume_ats.core.config.scoring import get_scoring_value
from resume_ats.schemas.ats import (
    CompositeResult,
    ContentRelevance,
    Finding,
    Recommendation,
    ScoreTier,
    ScoringProfile,
)
from resume_ats.semantic import EmbeddingProvider
from resume_ats.taxonomy import AtsVocabulary

from .relevance import compute_relevance

logger = logging.getLogger(__name__)

_DEFAULT_PROFILE_WEIGHTS: dict[str, dict[str, float]] = {
    ScoringProfile.WHOLE_DOCUMENT.value: {"structural": 0.5, "content": 0.5},
    ScoringProfile.KEYWORD_PREVIEW.value: {"keyword": 0.30, "skill": 0.25, "tfidf": 0.20, "semantic": 0.25},
}
_DEFAULT_TIERS: list[dict[str, Any]] = [
    {"name": "perfect", "label": "Perfect Match", "min": 91, "max": 100,
     "advice": "Strong match. Highly recommended to apply."},
    {"name": "excellent", "label": "Excellent Match", "min": 76, "max": 90,
     "advice": "Strong match. Fine-tune a few keywords before applying."},
    {"name": "good", "label": "Good Match", "min": 61, "max": 75,
     "advice": "Room for improvement. Adding missing skills would help significantly."},
    {"name": "moderate", "label": "Moderate Match", "min": 41, "max": 60,
     "advice": "Partial match. Improve keyword alignment for a higher score."},
    {"name": "critical", "label": "Critical Gaps", "min": 0, "max": 40,
     "advice": "This job may not be an ideal fit. Enhance your CV with missing keywords."},
]


@dataclass(frozen=True)
class TierRule:
    tier: ScoreTier
    advice: str


def profile_weights(profile: ScoringProfile) -> dict[str, float]:
    configured = get_scoring_value(f"composite.profiles.{profile.value}", None)
    if not isinstance(configured, dict) or not configured:
        return dict(_DEFAULT_PROFILE_WEIGHTS[profile.value])
    return {str(key): float(value) for key, value in configured.items()}


def load_tiers() -> list[TierRule]:
    configured = get_scoring_value("tiers", None)
    rows = configured if isinstance(configured, list) and configured else _DEFAULT_TIERS
    rules = [
        TierRule(
            tier=ScoreTier(name=str(row["name"]), label=str(row["label"]), min=int(row["min"]), max=int(row["max"])),
            advice=str(row.get("advice", "")),
        )
        for row in rows
    ]
    return sorted(rules, key=lambda rule: rule.tier.min, reverse=True)


def finalize_score(value: float) -> int:
    if value is None or math.isnan(value):
        return 0
    return max(0, min(100, int(round(value))))


def classify_score(score: int, tiers: list[TierRule] | None = None) -> TierRule:
    tiers = tiers or load_tiers()
    for rule in tiers:
        if rule.tier.min <= score <= rule.tier.max:
            return rule
    # Gaps in a custom tier table fall through to the lowest tier.
    return tiers[-1]


def content_composite(relevance: ContentRelevance) -> int:
    weights = profile_weights(ScoringProfile.KEYWORD_PREVIEW)
    value = (
        relevance.keyword_score * weights.get("keyword", 0.0)
        + relevance.skill_match.percent * weights.get("skill", 0.0)
        + relevance.tfidf_score * weights.get("tfidf", 0.0)
        + relevance.semantic_score * weights.get("semantic", 0.0)
    )
    return finalize_score(value)


def build_advice(rule: TierRule, relevance: ContentRelevance) -> list[str]:
    advice = [rule.advice] if rule.advice else []
    missing = relevance.skill_match.missing
    if missing:
        limit = int(get_scoring_value("composite.max_advice_skills", 3))
        advice.append(f"Consider adding: {', '.join(missing[:limit])}")
    return advice


def combine(
    profile: ScoringProfile,
    relevance: ContentRelevance,
    *,
    structural_score: int | None = None,
) -> CompositeResult:
    """Produce the final score for ``profile``.

    ``WHOLE_DOCUMENT`` blends the structural score with the keyword-preview
    composite of the content; ``KEYWORD_PREVIEW`` uses the content signals only.
    """
    content = content_composite(relevance)
    if profile is ScoringProfile.WHOLE_DOCUMENT:
        if structural_score is None:
            raise ValueError("structural_score is required for the whole-document profile")
        weights = profile_weights(profile)
        final = finalize_score(
            structural_score * weights.get("structural", 0.0) + content * weights.get("content", 0.0)
        )
    else:
        final = content

    rule = classify_score(final)
    return CompositeResult(profile=profile, final_score=final, tier=rule.tier, advice=build_advice(rule, relevance))


def build_recommendations(
    findings: list[Finding],
    relevance: ContentRelevance,
    *,
    structural_score: int,
    content_score: int,
) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    critical = [finding for finding in findings if finding.severity == "CRITICAL"]
    if critical:
        recommendations.append(
            Recommendation(
                category="structure",
                priority="CRITICAL",
                description="; ".join(finding.message for finding in critical),
                action="Run optimize to convert these automatically",
            )
        )
    high = [finding for finding in findings if finding.severity == "HIGH"]
    if high:
        recommendations.append(
            Recommendation(
                category="formatting",
                priority="HIGH",
                description="; ".join(finding.message for finding in high),
                action="Automatic fixes available",
            )
        )
    if relevance.skill_match.missing:
        recommendations.append(
            Recommendation(
                category="skills",
                priority="HIGH",
                description=f"Missing skills: {', '.join(relevance.skill_match.missing[:5])}",
                action="Add these skills to your CV if you have them",
            )
        )
    if relevance.missing_keywords:
        recommendations.append(
            Recommendation(
                category="keywords",
                priority="MEDIUM",
                description=f"Missing keywords: {', '.join(relevance.missing_keywords[:10])}",
                action="Incorporate relevant keywords naturally",
            )
        )

    if structural_score >= 80 and content_score >= 75:
        recommendations.append(
            Recommendation(
                category="overall",
                priority="INFO",
                description="Your CV is well-optimized for ATS",
                action="Ready to submit",
            )
        )
    elif structural_score < 60 or content_score < 60:
        recommendations.append(
            Recommendation(
                category="overall",
                priority="HIGH",
                description="Significant improvements needed",
                action="Focus on fixing structure issues first, then content",
            )
        )
    return recommendations


def preview(
    candidate_text: str,
    job_text: str,
    *,
    vocabulary: AtsVocabulary | None = None,
    embedder: EmbeddingProvider | None = None,
) -> CompositeResult:
    """Text-only ATS preview under the keyword profile; no document needed."""
    relevance = compute_relevance(candidate_text, job_text, vocabulary=vocabulary, embedder=embedder)
    result = combine(ScoringProfile.KEYWORD_PREVIEW, relevance)
    logger.info("ats_preview_complete score=%s tier=%s", result.final_score, result.tier.name)
    return result
