import json
import sys
import unittest
from io import BytesIO
from pathlib import Path

from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from resume_ats.core.config import Settings  # noqa: E402
from resume_ats.core.errors import InvalidFormat, SizeOutOfBounds  # noqa: E402
from resume_ats.package import open_package  # noqa: E402
from resume_ats.schemas.ats import DocumentFormat, TransformOptions  # noqa: E402
from resume_ats.services import AtsPipeline, optimize_document, validate_document  # noqa: E402
from sample_documents import build_docx, build_odt, odf_paragraph, odf_text_box, w_paragraph, w_section, w_text_box  # noqa: E402

JOB = (
    "We are hiring a platform engineer with Kubernetes, Docker, Terraform and AWS experience. "
    "You will build CI/CD pipelines and monitoring for production services."
)

RESUME_LINES = [
    "Jane Doe",
    "Platform engineer building Kubernetes clusters and Docker images",
    "Automated deployments with Terraform and Jenkins pipelines",
]


def problem_docx():
    body = (
        w_paragraph(RESUME_LINES[0], font="Comic Sans MS")
        + w_text_box("jane@example.com", "Berlin")
        + "".join(w_paragraph(line) for line in RESUME_LINES[1:])
    )
    return build_docx(body, section=w_section(2))


def blank_pdf():
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class ValidateTests(unittest.TestCase):
    def test_validation_report(self):
        data = problem_docx()
        report = AtsPipeline().validate(data, JOB)

        self.assertEqual(report.format, DocumentFormat.OOXML)
        self.assertEqual(report.structural.score, 35)
        self.assertEqual([issue.type for issue in report.structural.issues], ["TEXT_BOXES"])
        self.assertIn("kubernetes", report.content.skill_score.found)
        self.assertIn("aws", report.content.skill_score.missing)
        self.assertEqual(report.metadata.file_size, len(data))
        self.assertGreater(report.metadata.word_count, 10)
        self.assertTrue(0 <= report.final_score <= 100)
        self.assertTrue(report.tier.min <= report.final_score <= report.tier.max)
        self.assertEqual(report.recommendations[0].category, "structure")

        payload = json.loads(report.model_dump_json())
        self.assertIn("analyzed_at", payload["metadata"])
        self.assertIn("limitations", payload["structural"])

    def test_odt_validation(self):
        data = build_odt(odf_paragraph(RESUME_LINES[1]) + odf_text_box("Contact"))
        report = validate_document(data, JOB)
        self.assertEqual(report.format, DocumentFormat.ODF)
        self.assertEqual(report.structural.issues[0].type, "TEXT_BOXES")

    def test_validation_is_deterministic(self):
        data = problem_docx()
        pipeline = AtsPipeline()
        first = pipeline.validate(data, JOB)
        second = pipeline.validate(data, JOB)
        self.assertEqual(first.final_score, second.final_score)
        self.assertEqual(first.content, second.content)

    def test_size_bounds(self):
        with self.assertRaises(SizeOutOfBounds) as ctx:
            AtsPipeline().validate(b"PK\x03\x04", JOB)
        self.assertEqual(ctx.exception.code, "size_out_of_bounds")

        config = Settings(
            log_level="INFO",
            sentry_dsn=None,
            min_document_bytes=10,
            max_document_bytes=200,
            max_uncompressed_bytes=1024 * 1024,
            scoring_config_path=None,
        )
        with self.assertRaises(SizeOutOfBounds):
            AtsPipeline(config=config).validate(problem_docx(), JOB)

    def test_unsupported_payload(self):
        with self.assertRaises(InvalidFormat):
            AtsPipeline().validate(b"GIF89a" + b"\x00" * 200, JOB)

    def test_pdf_is_analysis_only(self):
        data = blank_pdf()
        pipeline = AtsPipeline()
        report = pipeline.validate(data, JOB)
        self.assertEqual(report.format, DocumentFormat.PDF)
        self.assertEqual(report.metadata.word_count, 0)
        self.assertTrue(report.metadata.extraction_warnings)

        optimized = pipeline.optimize(data, JOB)
        self.assertEqual(optimized.document_bytes, data)
        self.assertEqual({record.status for record in optimized.modifications}, {"skipped"})
        self.assertEqual(optimized.improvement, 0)


class OptimizeTests(unittest.TestCase):
    def test_optimize_improves_and_revalidates(self):
        data = problem_docx()
        report = optimize_document(data, JOB)

        self.assertEqual(report.applied_fixes, ["fonts", "text_boxes", "columns"])
        self.assertEqual(report.before.structural_score, 35)
        self.assertEqual(report.after.structural_score, 100)
        self.assertEqual(report.structural_improvement, 65)
        self.assertGreater(report.improvement, 0)
        self.assertEqual(report.after.issues, 0)

        revalidated = AtsPipeline().validate(report.document_bytes, JOB)
        self.assertEqual(revalidated.final_score, report.after.score)
        self.assertFalse(revalidated.structural.profile.text_boxes.present)
        package = open_package(report.document_bytes)
        self.assertIn("jane@example.com", package.read_text("word/document.xml"))

    def test_options_limit_fixes(self):
        report = AtsPipeline().optimize(problem_docx(), JOB, TransformOptions(remove_text_boxes=False))
        self.assertNotIn("text_boxes", report.applied_fixes)
        self.assertEqual(report.after.issues, 1)

    def test_document_bytes_are_not_serialized(self):
        report = AtsPipeline().optimize(problem_docx(), JOB)
        payload = report.model_dump(mode="json")
        self.assertNotIn("document_bytes", payload)
        self.assertEqual(len(payload["modifications"]), 4)


if __name__ == "__main__":
    unittest.main()
