from .ats import (
    FIX_ORDER,
    ColumnProfile,
    CompatibilityScore,
    CompositeResult,
    ContentRelevance,
    ContentReport,
    DocumentFormat,
    ExtractedContent,
    Finding,
    FontProfile,
    ImageProfile,
    ModificationRecord,
    OptimizationReport,
    Recommendation,
    ReportMetadata,
    ScoreAdjustment,
    ScoreSnapshot,
    ScoreTier,
    ScoringProfile,
    SkillMatch,
    StructuralProfile,
    StructuralReport,
    StyleProfile,
    TableProfile,
    TextBoxProfile,
    TransformOptions,
    ValidationReport,
)

__all__ = [
    "FIX_ORDER",
    "ColumnProfile",
    "CompatibilityScore",
    "CompositeResult",
    "ContentRelevance",
    "ContentReport",
    "DocumentFormat",
    "ExtractedContent",
    "Finding",
    "FontProfile",
    "ImageProfile",
    "ModificationRecord",
    "OptimizationReport",
    "Recommendation",
    "ReportMetadata",
    "ScoreAdjustment",
    "ScoreSnapshot",
    "ScoreTier",
    "ScoringProfile",
    "SkillMatch",
    "StructuralProfile",
    "StructuralReport",
    "StyleProfile",
    "TableProfile",
    "TextBoxProfile",
    "TransformOptions",
    "ValidationReport",
]
