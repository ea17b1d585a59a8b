import sys
import unittest
from io import BytesIO
from pathlib import Path

from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ats.parsing import extract_pdf_text, stub_profile  # noqa: E402
from resume_ats.parsing.pdf import PDF_STRUCTURE_WARNING  # noqa: E402
from resume_ats.schemas.ats import DocumentFormat  # noqa: E402
from resume_ats.scoring import score_structure  # noqa: E402


class PdfParsingTests(unittest.TestCase):
    def test_blank_pdf_reports_missing_text(self):
        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        buffer = BytesIO()
        writer.write(buffer)

        content = extract_pdf_text(buffer.getvalue())
        self.assertEqual(content.text, "")
        self.assertEqual(content.word_count, 0)
        self.assertEqual(content.warnings[0], PDF_STRUCTURE_WARNING)
        self.assertIn("No extractable text found in PDF.", content.warnings)

    def test_stub_profile_scores_clean(self):
        profile = stub_profile()
        self.assertEqual(profile.format, DocumentFormat.PDF)
        self.assertEqual(profile.fonts.declared, ["Embedded Fonts"])
        self.assertFalse(profile.text_boxes.present)
        self.assertGreaterEqual(score_structure(profile).score, 95)


if __name__ == "__main__":
    unittest.main()
