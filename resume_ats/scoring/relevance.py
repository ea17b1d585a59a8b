"""Text-vs-job relevance: keyword overlap, TF-IDF cosine, skill vocabulary coverage.

Everything here is a pure function of the two input texts and the vocabulary;
no randomness is involved, so identical inputs always produce identical scores.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from functools import lru_cache

from resume_ats.schemas.ats import ContentRelevance, SkillMatch
from resume_ats.semantic import EmbeddingProvider, HashedBagOfWordsProvider, similarity_percent
from resume_ats.taxonomy import AtsVocabulary, get_default_vocabulary

_PUNCTUATION_RE = re.compile(r"[^\w\s]+")


def normalize_words(text: str) -> list[str]:
    """Lower-case, punctuation to space, split on whitespace."""
    return _PUNCTUATION_RE.sub(" ", (text or "").lower()).split()


def tokenize(text: str, vocabulary: AtsVocabulary | None = None) -> list[str]:
    vocabulary = vocabulary or get_default_vocabulary()
    return [
        word
        for word in normalize_words(text)
        if len(word) >= vocabulary.min_token_length and word not in vocabulary.stop_words
    ]


def keyword_score(candidate: str, target: str, vocabulary: AtsVocabulary | None = None) -> float:
    vocabulary = vocabulary or get_default_vocabulary()
    target_tokens = set(tokenize(target, vocabulary))
    if not target_tokens:
        return 0.0
    candidate_tokens = set(tokenize(candidate, vocabulary))
    matched = len(candidate_tokens & target_tokens)
    return min(100.0, matched / len(target_tokens) * 100.0)


def _tfidf_terms(text: str, vocabulary: AtsVocabulary) -> list[str]:
    return [word for word in normalize_words(text) if word not in vocabulary.stop_words]


def _top_weights(terms: list[str], document_frequency: Counter, corpus_size: int, limit: int) -> dict[str, float]:
    if not terms:
        return {}
    counts = Counter(terms)
    total = len(terms)
    weights = {
        term: (count / total) * (math.log((1 + corpus_size) / (1 + document_frequency[term])) + 1.0)
        for term, count in counts.items()
    }
    # Counter preserves first-appearance order, so ties resolve deterministically.
    ranked = sorted(weights.items(), key=lambda item: item[1], reverse=True)[:limit]
    return dict(ranked)


def tfidf_score(candidate: str, target: str, vocabulary: AtsVocabulary | None = None) -> float:
    """Cosine similarity of top-N TF-IDF vectors over a two-document corpus, 0-100."""
    vocabulary = vocabulary or get_default_vocabulary()
    documents = [_tfidf_terms(candidate, vocabulary), _tfidf_terms(target, vocabulary)]
    document_frequency: Counter = Counter()
    for terms in documents:
        document_frequency.update(set(terms))

    left, right = (
        _top_weights(terms, document_frequency, len(documents), vocabulary.tfidf_top_terms) for terms in documents
    )
    union = set(left) | set(right)
    dot = sum(left.get(term, 0.0) * right.get(term, 0.0) for term in union)
    left_norm = math.sqrt(sum(value * value for value in left.values()))
    right_norm = math.sqrt(sum(value * value for value in right.values()))
    if left_norm <= 0 or right_norm <= 0:
        return 0.0
    return max(0.0, min(100.0, dot / (left_norm * right_norm) * 100.0))


@lru_cache(maxsize=512)
def _skill_pattern(skill: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(skill) + r"(?![a-z0-9])")


def contains_skill(text: str, skill: str) -> bool:
    return bool(_skill_pattern(skill.lower()).search(text))


def skill_match(candidate: str, target: str, vocabulary: AtsVocabulary | None = None) -> SkillMatch:
    vocabulary = vocabulary or get_default_vocabulary()
    candidate_lower = (candidate or "").lower()
    target_lower = (target or "").lower()
    found: list[str] = []
    missing: list[str] = []
    for skill in vocabulary.skills:
        if not contains_skill(target_lower, skill):
            continue
        if contains_skill(candidate_lower, skill):
            found.append(skill)
        else:
            missing.append(skill)
    required = len(found) + len(missing)
    percent = round(len(found) / required * 100) if required else 0
    return SkillMatch(found=found, missing=missing, percent=percent)


def missing_keywords(candidate: str, target: str, vocabulary: AtsVocabulary | None = None) -> list[str]:
    vocabulary = vocabulary or get_default_vocabulary()
    candidate_tokens = set(tokenize(candidate, vocabulary))
    ordered = dict.fromkeys(token for token in tokenize(target, vocabulary) if token not in candidate_tokens)
    return list(ordered)[: vocabulary.missing_keywords_limit]


def compute_relevance(
    candidate: str,
    target: str,
    *,
    vocabulary: AtsVocabulary | None = None,
    embedder: EmbeddingProvider | None = None,
) -> ContentRelevance:
    vocabulary = vocabulary or get_default_vocabulary()
    embedder = embedder or HashedBagOfWordsProvider(stop_words=vocabulary.stop_words)
    return ContentRelevance(
        keyword_score=round(keyword_score(candidate, target, vocabulary), 2),
        tfidf_score=round(tfidf_score(candidate, target, vocabulary), 2),
        semantic_score=round(similarity_percent(embedder, candidate, target), 2),
        skill_match=skill_match(candidate, target, vocabulary),
        missing_keywords=missing_keywords(candidate, target, vocabulary),
    )
