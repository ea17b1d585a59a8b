from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]
Priority = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO"]
FixStatus = Literal["applied", "skipped", "failed"]
FixId = Literal["fonts", "text_boxes", "columns", "tables"]

FIX_ORDER: tuple[str, ...] = ("fonts", "text_boxes", "columns", "tables")


class DocumentFormat(str, Enum):
    OOXML = "ooxml"
    ODF = "odf"
    PDF = "pdf"


class ScoringProfile(str, Enum):
    """Named score combinations; callers pick one explicitly."""

    WHOLE_DOCUMENT = "whole_document"
    KEYWORD_PREVIEW = "keyword_preview"


class FontProfile(BaseModel):
    declared: list[str] = Field(default_factory=list)
    non_safe: list[str] = Field(default_factory=list)
    is_safe: bool = True


class ImageProfile(BaseModel):
    count: int = Field(default=0, ge=0)
    paths: list[str] = Field(default_factory=list)


class TableProfile(BaseModel):
    count: int = Field(default=0, ge=0)
    nested_count: int = Field(default=0, ge=0)

    @property
    def has_nested(self) -> bool:
        return self.nested_count > 0


class TextBoxProfile(BaseModel):
    count: int = Field(default=0, ge=0)

    @property
    def present(self) -> bool:
        return self.count > 0


class ColumnProfile(BaseModel):
    present: bool = False
    max_count: int = Field(default=1, ge=1)


class StyleProfile(BaseModel):
    uses_headings: bool = False


class StructuralProfile(BaseModel):
    format: DocumentFormat
    fonts: FontProfile = Field(default_factory=FontProfile)
    images: ImageProfile = Field(default_factory=ImageProfile)
    tables: TableProfile = Field(default_factory=TableProfile)
    text_boxes: TextBoxProfile = Field(default_factory=TextBoxProfile)
    columns: ColumnProfile = Field(default_factory=ColumnProfile)
    styles: StyleProfile = Field(default_factory=StyleProfile)


class Finding(BaseModel):
    severity: Severity
    type: str
    message: str
    fix: str


class ScoreAdjustment(BaseModel):
    rule: str
    points: int


class CompatibilityScore(BaseModel):
    score: int = Field(ge=0, le=100)
    breakdown: list[ScoreAdjustment] = Field(default_factory=list)
    limitations: str = ""


class ExtractedContent(BaseModel):
    text: str = ""
    word_count: int = Field(default=0, ge=0)
    char_count: int = Field(default=0, ge=0)
    warnings: list[str] = Field(default_factory=list)


class SkillMatch(BaseModel):
    found: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    percent: int = Field(default=0, ge=0, le=100)


class ContentRelevance(BaseModel):
    keyword_score: float = Field(default=0.0, ge=0.0, le=100.0)
    tfidf_score: float = Field(default=0.0, ge=0.0, le=100.0)
    semantic_score: float = Field(default=0.0, ge=0.0, le=100.0)
    skill_match: SkillMatch = Field(default_factory=SkillMatch)
    missing_keywords: list[str] = Field(default_factory=list, max_length=100)


class ScoreTier(BaseModel):
    name: str
    label: str
    min: int = Field(ge=0, le=100)
    max: int = Field(ge=0, le=100)


class CompositeResult(BaseModel):
    profile: ScoringProfile
    final_score: int = Field(ge=0, le=100)
    tier: ScoreTier
    advice: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    category: str
    priority: Priority
    description: str
    action: str


class StructuralReport(BaseModel):
    score: int = Field(ge=0, le=100)
    issues: list[Finding] = Field(default_factory=list)
    warnings: list[Finding] = Field(default_factory=list)
    breakdown: list[ScoreAdjustment] = Field(default_factory=list)
    limitations: str = ""
    profile: StructuralProfile


class ContentReport(BaseModel):
    score: int = Field(ge=0, le=100)
    keyword_score: int = Field(ge=0, le=100)
    tfidf_score: int = Field(ge=0, le=100)
    semantic_score: int = Field(ge=0, le=100)
    skill_score: SkillMatch
    missing_keywords: list[str] = Field(default_factory=list)


class ReportMetadata(BaseModel):
    word_count: int = Field(ge=0)
    char_count: int = Field(ge=0)
    file_size: int = Field(ge=0)
    processing_time_ms: int = Field(ge=0)
    analyzed_at: datetime
    extraction_warnings: list[str] = Field(default_factory=list)


class ValidationReport(BaseModel):
    final_score: int = Field(ge=0, le=100)
    format: DocumentFormat
    tier: ScoreTier
    advice: list[str] = Field(default_factory=list)
    structural: StructuralReport
    content: ContentReport
    recommendations: list[Recommendation] = Field(default_factory=list)
    metadata: ReportMetadata


class TransformOptions(BaseModel):
    fix_fonts: bool = True
    remove_text_boxes: bool = True
    convert_columns: bool = True
    simplify_tables: bool = True


class ModificationRecord(BaseModel):
    fix: FixId
    status: FixStatus
    parts: list[str] = Field(default_factory=list)
    detail: str = ""


class ScoreSnapshot(BaseModel):
    score: int = Field(ge=0, le=100)
    structural_score: int = Field(ge=0, le=100)
    issues: int = Field(ge=0)
    warnings: int = Field(ge=0)


class OptimizationReport(BaseModel):
    format: DocumentFormat
    before: ScoreSnapshot
    after: ScoreSnapshot
    improvement: int
    structural_improvement: int
    modifications: list[ModificationRecord] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    processing_time_ms: int = Field(ge=0)
    document_bytes: bytes = Field(default=b"", exclude=True, repr=False)

    @property
    def applied_fixes(self) -> list[str]:
        return [record.fix for record in self.modifications if record.status == "applied"]
