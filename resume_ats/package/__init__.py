from .container import DocumentPackage, detect_format, open_package, sniff_format
from .markup import MarkupDocument, MarkupError, iter_elements

__all__ = [
    "DocumentPackage",
    "MarkupDocument",
    "MarkupError",
    "detect_format",
    "iter_elements",
    "open_package",
    "sniff_format",
]
