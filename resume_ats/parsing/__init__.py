from .pdf import extract_pdf_text, stub_profile

__all__ = ["extract_pdf_text", "stub_profile"]
