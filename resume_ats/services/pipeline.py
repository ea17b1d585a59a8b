from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from resume_ats.analysis import analyze_package
from resume_ats.core.config import Settings, settings as default_settings
from resume_ats.core.errors import SizeOutOfBounds
from resume_ats.extraction import extract_text
from resume_ats.package import DocumentPackage, detect_format, open_package, sniff_format
from resume_ats.parsing import extract_pdf_text, stub_profile
from resume_ats.schemas.ats import (
    FIX_ORDER,
    ContentReport,
    DocumentFormat,
    ExtractedContent,
    ModificationRecord,
    OptimizationReport,
    ReportMetadata,
    ScoreSnapshot,
    ScoringProfile,
    StructuralProfile,
    StructuralReport,
    TransformOptions,
    ValidationReport,
)
from resume_ats.scoring import (
    build_findings,
    build_recommendations,
    combine,
    compute_relevance,
    content_composite,
    score_structure,
)
from resume_ats.semantic import EmbeddingProvider
from resume_ats.taxonomy import AtsVocabulary, get_default_vocabulary
from resume_ats.transform import TransformEngine

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def _snapshot(report: ValidationReport) -> ScoreSnapshot:
    return ScoreSnapshot(
        score=report.final_score,
        structural_score=report.structural.score,
        issues=len(report.structural.issues),
        warnings=len(report.structural.warnings),
    )


@dataclass
class _Inspection:
    format: DocumentFormat
    package: DocumentPackage | None
    profile: StructuralProfile
    content: ExtractedContent


class AtsPipeline:
    """Validate and repair one document per call; no state is shared between calls."""

    def __init__(
        self,
        vocabulary: AtsVocabulary | None = None,
        embedder: EmbeddingProvider | None = None,
        config: Settings | None = None,
    ):
        self.vocabulary = vocabulary or get_default_vocabulary()
        self.embedder = embedder
        self.settings = config or default_settings
        self.engine = TransformEngine(self.vocabulary)

    def check_size(self, data: bytes) -> None:
        size = len(data)
        if size < self.settings.min_document_bytes or size > self.settings.max_document_bytes:
            raise SizeOutOfBounds(
                size,
                min_bytes=self.settings.min_document_bytes,
                max_bytes=self.settings.max_document_bytes,
            )

    def inspect(self, data: bytes) -> _Inspection:
        if sniff_format(data) is DocumentFormat.PDF:
            return _Inspection(DocumentFormat.PDF, None, stub_profile(), extract_pdf_text(data))
        package = open_package(data, max_uncompressed_bytes=self.settings.max_uncompressed_bytes)
        fmt = detect_format(package)
        profile = analyze_package(package, fmt, self.vocabulary)
        content = extract_text(package, fmt)
        return _Inspection(fmt, package, profile, content)

    def _report(self, data: bytes, job_text: str, inspection: _Inspection, started: float) -> ValidationReport:
        compatibility = score_structure(inspection.profile)
        issues, warnings = build_findings(inspection.profile, self.vocabulary)
        relevance = compute_relevance(
            inspection.content.text,
            job_text or "",
            vocabulary=self.vocabulary,
            embedder=self.embedder,
        )
        content_score = content_composite(relevance)
        composite = combine(ScoringProfile.WHOLE_DOCUMENT, relevance, structural_score=compatibility.score)
        recommendations = build_recommendations(
            [*issues, *warnings],
            relevance,
            structural_score=compatibility.score,
            content_score=content_score,
        )
        return ValidationReport(
            final_score=composite.final_score,
            format=inspection.format,
            tier=composite.tier,
            advice=composite.advice,
            structural=StructuralReport(
                score=compatibility.score,
                issues=issues,
                warnings=warnings,
                breakdown=compatibility.breakdown,
                limitations=compatibility.limitations,
                profile=inspection.profile,
            ),
            content=ContentReport(
                score=content_score,
                keyword_score=round(relevance.keyword_score),
                tfidf_score=round(relevance.tfidf_score),
                semantic_score=round(relevance.semantic_score),
                skill_score=relevance.skill_match,
                missing_keywords=relevance.missing_keywords,
            ),
            recommendations=recommendations,
            metadata=ReportMetadata(
                word_count=inspection.content.word_count,
                char_count=inspection.content.char_count,
                file_size=len(data),
                processing_time_ms=_elapsed_ms(started),
                analyzed_at=datetime.now(timezone.utc),
                extraction_warnings=inspection.content.warnings,
            ),
        )

    def validate(self, data: bytes, job_text: str) -> ValidationReport:
        started = time.perf_counter()
        self.check_size(data)
        report = self._report(data, job_text, self.inspect(data), started)
        logger.info(
            "ats_validate_complete format=%s score=%s structural=%s content=%s elapsed_ms=%s",
            report.format.value,
            report.final_score,
            report.structural.score,
            report.content.score,
            report.metadata.processing_time_ms,
        )
        return report

    def optimize(self, data: bytes, job_text: str, options: TransformOptions | None = None) -> OptimizationReport:
        started = time.perf_counter()
        self.check_size(data)
        inspection = self.inspect(data)
        before = self._report(data, job_text, inspection, started)

        if inspection.package is None:
            modifications = [
                ModificationRecord(fix=fix, status="skipped", detail="pdf documents are analysis-only")
                for fix in FIX_ORDER
            ]
            repaired = data
            after = before
        else:
            result = self.engine.fix_issues(inspection.package, inspection.profile, options)
            modifications = result.modifications
            repaired = result.package.serialize()
            # Always re-measure; a fix is not assumed to have worked.
            after = self._report(repaired, job_text, self.inspect(repaired), time.perf_counter())

        report = OptimizationReport(
            format=before.format,
            before=_snapshot(before),
            after=_snapshot(after),
            improvement=after.final_score - before.final_score,
            structural_improvement=after.structural.score - before.structural.score,
            modifications=modifications,
            recommendations=after.recommendations,
            processing_time_ms=_elapsed_ms(started),
            document_bytes=repaired,
        )
        logger.info(
            "ats_optimize_complete format=%s before=%s after=%s applied=%s",
            report.format.value,
            report.before.score,
            report.after.score,
            ",".join(report.applied_fixes) or "none",
        )
        return report


@lru_cache(maxsize=1)
def get_default_pipeline() -> AtsPipeline:
    return AtsPipeline()


def validate_document(data: bytes, job_text: str) -> ValidationReport:
    return get_default_pipeline().validate(data, job_text)


def optimize_document(data: bytes, job_text: str, options: TransformOptions | None = None) -> OptimizationReport:
    return get_default_pipeline().optimize(data, job_text, options)
