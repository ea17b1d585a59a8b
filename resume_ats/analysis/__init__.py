from .formats import ODF, OOXML, FormatVocabulary, vocabulary_for
from .structure import StructuralAnalyzer, analyze_package, analyzer_for

__all__ = [
    "ODF",
    "OOXML",
    "FormatVocabulary",
    "StructuralAnalyzer",
    "analyze_package",
    "analyzer_for",
    "vocabulary_for",
]
