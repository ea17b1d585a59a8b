import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from resume_ats.cli import default_output_path, main  # noqa: E402
from resume_ats.package import open_package  # noqa: E402
from sample_documents import build_docx, w_paragraph, w_text_box  # noqa: E402


class CliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.document = self.tmp / "resume.docx"
        self.document.write_bytes(build_docx(w_paragraph("Docker and Kubernetes engineer") + w_text_box("Contact")))
        self.job = self.tmp / "job.txt"
        self.job.write_text("Kubernetes engineer with Terraform", encoding="utf-8")

    def tearDown(self):
        self._tmp.cleanup()

    def test_validate_prints_report(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = main(["validate", str(self.document), "--job", str(self.job)])
        self.assertEqual(code, 0)
        payload = json.loads(stdout.getvalue())
        self.assertEqual(payload["format"], "ooxml")
        self.assertIn("final_score", payload)

    def test_optimize_writes_repaired_document(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = main(["optimize", str(self.document), "--job-text", "Kubernetes engineer"])
        self.assertEqual(code, 0)
        payload = json.loads(stdout.getvalue())
        output = default_output_path(self.document)
        self.assertEqual(payload["output_path"], str(output))
        self.assertEqual(output.name, "resume.ats-fixed.docx")
        repaired = open_package(output.read_bytes())
        self.assertNotIn("txbxContent", repaired.read_text("word/document.xml"))

    def test_invalid_document_reports_error_code(self):
        broken = self.tmp / "broken.docx"
        broken.write_bytes(b"this is not a document" * 20)
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            code = main(["validate", str(broken)])
        self.assertEqual(code, 2)
        self.assertEqual(json.loads(stderr.getvalue().strip().splitlines()[-1])["code"], "invalid_format")


if __name__ == "__main__":
    unittest.main()
