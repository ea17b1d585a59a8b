from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from resume_ats.core.config.scoring import get_scoring_value

_DEFAULT_REPLACEMENT_FONT = "Arial"


def _clean_font(name: str) -> str:
    return name.strip().strip("'\"").strip()


def _as_strings(values: Any) -> tuple[str, ...]:
    if not isinstance(values, (list, tuple)):
        return ()
    cleaned = [str(value).strip() for value in values if str(value).strip()]
    return tuple(dict.fromkeys(cleaned))


@dataclass(frozen=True)
class AtsVocabulary:
    """Tunable word lists used by the analyzer, the scorers and the fixes."""

    safe_fonts: tuple[str, ...]
    skills: tuple[str, ...]
    stop_words: frozenset[str] = frozenset()
    replacement_fonts: Mapping[str, str] = field(default_factory=dict)
    min_token_length: int = 4
    tfidf_top_terms: int = 50
    missing_keywords_limit: int = 20

    def __post_init__(self) -> None:
        if self.min_token_length < 1:
            raise ValueError("min_token_length must be at least 1")
        if self.tfidf_top_terms < 1:
            raise ValueError("tfidf_top_terms must be at least 1")
        object.__setattr__(self, "_safe_lookup", frozenset(font.casefold() for font in self.safe_fonts))

    def is_safe_font(self, name: str) -> bool:
        return primary_font_name(name).casefold() in self._safe_lookup  # type: ignore[attr-defined]

    def replacement_font(self, format_name: str) -> str:
        font = self.replacement_fonts.get(format_name)
        if font:
            return font
        return self.safe_fonts[0] if self.safe_fonts else _DEFAULT_REPLACEMENT_FONT

    def with_skills(self, skills: Iterable[str]) -> "AtsVocabulary":
        return AtsVocabulary(
            safe_fonts=self.safe_fonts,
            skills=tuple(skills),
            stop_words=self.stop_words,
            replacement_fonts=self.replacement_fonts,
            min_token_length=self.min_token_length,
            tfidf_top_terms=self.tfidf_top_terms,
            missing_keywords_limit=self.missing_keywords_limit,
        )

    @classmethod
    def from_config(cls) -> "AtsVocabulary":
        replacements = get_scoring_value("fonts.replacement", {}) or {}
        return cls(
            safe_fonts=_as_strings(get_scoring_value("fonts.ats_safe", [])),
            skills=tuple(skill.lower() for skill in _as_strings(get_scoring_value("skills", []))),
            stop_words=frozenset(word.lower() for word in _as_strings(get_scoring_value("tokens.stop_words", []))),
            replacement_fonts={str(key): str(value) for key, value in dict(replacements).items()},
            min_token_length=int(get_scoring_value("tokens.min_length", 4)),
            tfidf_top_terms=int(get_scoring_value("tokens.tfidf_top_terms", 50)),
            missing_keywords_limit=int(get_scoring_value("tokens.missing_keywords_limit", 20)),
        )


def primary_font_name(value: str) -> str:
    """First family of a font attribute value, without quotes (``"'Foo', serif"`` -> ``Foo``)."""
    return _clean_font(value.split(",", 1)[0])
