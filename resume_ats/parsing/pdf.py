from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from resume_ats.core.errors import InvalidFormat
from resume_ats.schemas.ats import DocumentFormat, ExtractedContent, FontProfile, StructuralProfile

logger = logging.getLogger(__name__)

PDF_STRUCTURE_WARNING = "PDF layout is not inspected; structural signals are assumed clean."


def extract_pdf_text(data: bytes) -> ExtractedContent:
    warnings = [PDF_STRUCTURE_WARNING]
    try:
        reader = PdfReader(BytesIO(data))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except (PdfReadError, ValueError, KeyError, TypeError) as exc:
        raise InvalidFormat(f"Unable to read PDF: {exc}") from exc

    text = "\n".join(page for page in pages if page)
    if not text:
        warnings.append("No extractable text found in PDF.")
    logger.debug("ats_pdf_text_extracted pages=%s chars=%s", len(pages), len(text))
    return ExtractedContent(text=text, word_count=len(text.split()), char_count=len(text), warnings=warnings)


def stub_profile() -> StructuralProfile:
    """Minimal profile for PDFs: embedded fonts are treated as safe, nothing else is detected."""
    return StructuralProfile(
        format=DocumentFormat.PDF,
        fonts=FontProfile(declared=["Embedded Fonts"], non_safe=[], is_safe=True),
    )
