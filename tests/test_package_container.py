import sys
import unittest
from io import BytesIO
from pathlib import Path
from zipfile import ZIP_STORED, ZipFile

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from resume_ats.core.errors import InvalidFormat  # noqa: E402
from resume_ats.package import detect_format, open_package, sniff_format  # noqa: E402
from resume_ats.schemas.ats import DocumentFormat  # noqa: E402
from sample_documents import PNG_BYTES, build_docx, build_odt, w_paragraph  # noqa: E402


class DocumentPackageTests(unittest.TestCase):
    def test_rejects_payload_without_zip_signature(self):
        with self.assertRaises(InvalidFormat) as ctx:
            open_package(b"not a zip file at all" * 10)
        self.assertEqual(ctx.exception.code, "invalid_format")

    def test_rejects_truncated_archive(self):
        data = build_docx(w_paragraph("Hello"))
        with self.assertRaises(InvalidFormat):
            open_package(data[: len(data) // 2])

    def test_unmodified_package_serializes_to_source_bytes(self):
        data = build_docx(w_paragraph("Hello"))
        package = open_package(data)
        self.assertFalse(package.is_modified)
        self.assertEqual(package.serialize(), data)

    def test_with_entry_is_copy_on_write(self):
        data = build_docx(w_paragraph("Hello"), extra={"word/media/image1.png": PNG_BYTES})
        package = open_package(data)
        original_document = package.read_entry("word/document.xml")

        updated = package.with_entry("word/document.xml", b"<changed/>")

        self.assertIsNot(updated, package)
        self.assertEqual(package.read_entry("word/document.xml"), original_document)
        self.assertEqual(updated.read_entry("word/document.xml"), b"<changed/>")
        self.assertTrue(updated.is_modified)
        self.assertEqual(package.serialize(), data)

        reopened = open_package(updated.serialize())
        self.assertEqual(reopened.names(), package.names())
        for name in package.names():
            if name != "word/document.xml":
                self.assertEqual(reopened.read_entry(name), package.read_entry(name), name)

    def test_with_identical_bytes_returns_same_package(self):
        package = open_package(build_docx(w_paragraph("Hello")))
        same = package.with_entry("word/document.xml", package.read_entry("word/document.xml"))
        self.assertIs(same, package)

    def test_rewrite_keeps_odf_mimetype_first_and_stored(self):
        package = open_package(build_odt("<text:p>Hello</text:p>"))
        updated = package.with_entry("content.xml", package.read_entry("content.xml").replace(b"Hello", b"Hi"))
        with ZipFile(BytesIO(updated.serialize())) as archive:
            infos = archive.infolist()
            self.assertEqual(infos[0].filename, "mimetype")
            self.assertEqual(infos[0].compress_type, ZIP_STORED)
            self.assertEqual(infos[0].date_time, (2024, 5, 1, 12, 0, 0))
            self.assertIn(b"Hi", archive.read("content.xml"))

    def test_new_entry_is_appended(self):
        package = open_package(build_docx(w_paragraph("Hello")))
        updated = package.with_entry("word/extra.xml", b"<x/>")
        self.assertEqual(updated.names()[-1], "word/extra.xml")
        self.assertEqual(open_package(updated.serialize()).read_entry("word/extra.xml"), b"<x/>")

    def test_uncompressed_size_limit(self):
        data = build_docx(w_paragraph("Hello " * 500))
        with self.assertRaises(InvalidFormat):
            open_package(data, max_uncompressed_bytes=100)


class FormatDetectionTests(unittest.TestCase):
    def test_detects_ooxml_and_odf(self):
        self.assertEqual(detect_format(open_package(build_docx(w_paragraph("x")))), DocumentFormat.OOXML)
        self.assertEqual(detect_format(open_package(build_odt("<text:p>x</text:p>"))), DocumentFormat.ODF)

    def test_missing_main_part_is_invalid(self):
        buffer = BytesIO()
        with ZipFile(buffer, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
            archive.writestr("notes.txt", "hello " * 40)
        with self.assertRaises(InvalidFormat):
            detect_format(open_package(buffer.getvalue()))

    def test_rejects_non_text_odf_documents(self):
        data = build_odt("<text:p>x</text:p>", mimetype="application/vnd.oasis.opendocument.spreadsheet")
        with self.assertRaises(InvalidFormat):
            detect_format(open_package(data))

    def test_sniff_format(self):
        self.assertEqual(sniff_format(b"%PDF-1.7 rest"), DocumentFormat.PDF)
        self.assertIsNone(sniff_format(build_docx(w_paragraph("x"))))
        with self.assertRaises(InvalidFormat):
            sniff_format(b"GIF89a....")


if __name__ == "__main__":
    unittest.main()
