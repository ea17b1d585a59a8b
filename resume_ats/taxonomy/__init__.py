from functools import lru_cache

from .vocabulary import AtsVocabulary, primary_font_name


@lru_cache(maxsize=1)
def get_default_vocabulary() -> AtsVocabulary:
    return AtsVocabulary.from_config()


__all__ = ["AtsVocabulary", "get_default_vocabulary", "primary_font_name"]
