from .compatibility import build_findings, score_structure
from .composite import build_recommendations, classify_score, combine, content_composite, preview
from .relevance import compute_relevance, keyword_score, missing_keywords, skill_match, tfidf_score, tokenize

__all__ = [
    "build_findings",
    "build_recommendations",
    "classify_score",
    "combine",
    "compute_relevance",
    "content_composite",
    "keyword_score",
    "missing_keywords",
    "preview",
    "score_structure",
    "skill_match",
    "tfidf_score",
    "tokenize",
]
