from .text import ContentExtractor, extract_text

__all__ = ["ContentExtractor", "extract_text"]
