import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ats.package.markup import MarkupDocument, MarkupError, clark, iter_elements, token_text  # noqa: E402

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

SAMPLE = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<w:document xmlns:w="' + W_NS + '" xmlns:mc="urn:mc" mc:Ignorable="w14">'
    "<!-- keep me -->"
    '<w:body><w:p><w:r><w:rPr><w:rFonts w:ascii="Comic Sans MS"  w:hAnsi=\'Comic Sans MS\'/></w:rPr>'
    "<w:t>R&amp;D &lt;lead&gt;</w:t></w:r></w:p>"
    "<w:p><w:r><w:t><![CDATA[raw <text>]]></w:t></w:r></w:p></w:body></w:document>"
)


class MarkupDocumentTests(unittest.TestCase):
    def test_render_without_edits_is_lossless(self):
        document = MarkupDocument(SAMPLE)
        self.assertFalse(document.changed)
        self.assertEqual(document.render(), SAMPLE)

    def test_names_resolve_to_clark_notation(self):
        document = MarkupDocument(SAMPLE)
        paragraphs = document.find_all(clark(W_NS, "p"))
        self.assertEqual(len(paragraphs), 2)
        texts = [token_text(token) for token in document.tokens if token.kind in {"text", "cdata"}]
        self.assertIn("R&D <lead>", texts)
        self.assertIn("raw <text>", texts)

    def test_set_attribute_rewrites_only_the_value(self):
        document = MarkupDocument(SAMPLE)
        fonts = document.find_all(clark(W_NS, "rFonts"))[0]
        self.assertTrue(document.set_attribute(fonts, clark(W_NS, "ascii"), "Calibri"))
        self.assertTrue(document.set_attribute(fonts, clark(W_NS, "hAnsi"), "Calibri"))
        rendered = document.render()
        self.assertIn("<w:rFonts w:ascii=\"Calibri\"  w:hAnsi='Calibri'/>", rendered)
        self.assertIn("<!-- keep me -->", rendered)
        self.assertIn('mc:Ignorable="w14"', rendered)

    def test_set_attribute_missing_attribute_is_noop(self):
        document = MarkupDocument(SAMPLE)
        fonts = document.find_all(clark(W_NS, "rFonts"))[0]
        self.assertFalse(document.set_attribute(fonts, clark(W_NS, "cs"), "Calibri"))
        self.assertFalse(document.changed)

    def test_remove_and_insert(self):
        document = MarkupDocument(SAMPLE)
        first, second = document.find_all(clark(W_NS, "p"))
        document.remove_node(first)
        document.insert_before(second.start, "<w:p/>")
        rendered = document.render()
        self.assertNotIn("R&amp;D", rendered)
        self.assertIn("<w:p/><w:p><w:r><w:t><![CDATA[", rendered)
        self.assertTrue(all(event in {"start", "end"} for event, _ in iter_elements(rendered.encode())))

    def test_overlapping_edits_are_refused(self):
        document = MarkupDocument(SAMPLE)
        body = document.find_all(clark(W_NS, "body"))[0]
        paragraph = document.find_all(clark(W_NS, "p"))[0]
        document.remove_node(paragraph)
        with self.assertRaises(MarkupError):
            document.remove_node(body)

    def test_prefix_lookup(self):
        document = MarkupDocument(SAMPLE)
        body = document.find_all(clark(W_NS, "body"))[0]
        self.assertEqual(document.qualify(body, W_NS, "p"), "w:p")
        self.assertIsNone(document.prefix_for(body, "urn:unknown"))

        default_ns = MarkupDocument('<root xmlns="urn:x"><child/></root>')
        child = default_ns.find_all("{urn:x}child")[0]
        self.assertEqual(default_ns.qualify(child, "urn:x", "p"), "p")

    def test_unbalanced_markup_is_rejected(self):
        with self.assertRaises(MarkupError):
            MarkupDocument("<a><b></a>")
        with self.assertRaises(MarkupError):
            MarkupDocument("<a><b>")

    def test_iter_elements_reports_malformed_xml(self):
        with self.assertRaises(MarkupError):
            list(iter_elements(b"<a><b></a>", part="word/document.xml"))


if __name__ == "__main__":
    unittest.main()
