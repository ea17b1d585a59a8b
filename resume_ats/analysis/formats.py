from __future__ import annotations

from dataclasses import dataclass

from resume_ats.package.markup import clark
from resume_ats.schemas.ats import DocumentFormat

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
V_NS = "urn:schemas-microsoft-com:vml"
MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"

OFFICE_NS = "urn:oasis:names:tc:opendocument:xmlns:office:1.0"
STYLE_NS = "urn:oasis:names:tc:opendocument:xmlns:style:1.0"
TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"
TABLE_NS = "urn:oasis:names:tc:opendocument:xmlns:table:1.0"
DRAW_NS = "urn:oasis:names:tc:opendocument:xmlns:drawing:1.0"
FO_NS = "urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0"


def w(local: str) -> str:
    return clark(W_NS, local)


@dataclass(frozen=True)
class FormatVocabulary:
    """Element and attribute names one container format uses for each signal."""

    format: DocumentFormat
    main_part: str
    style_parts: tuple[str, ...]
    column_parts: tuple[str, ...]
    media_prefixes: tuple[str, ...]
    body: str
    body_trailer: str | None
    paragraphs: frozenset[str]
    text_runs: frozenset[str] | None
    line_breaks: frozenset[str]
    tabs: frozenset[str]
    skipped_subtrees: frozenset[str]
    font_elements: frozenset[str] | None
    font_attributes: tuple[str, ...]
    table: str
    table_row: str
    table_cells: frozenset[str]
    text_boxes: frozenset[str]
    frame_hosts: tuple[str, ...]
    columns: str
    column_count_attribute: str
    column_child: str | None
    column_breaks: tuple[tuple[str, str, str], ...]
    style_element: str
    heading_attributes: tuple[str, ...]
    heading_name_child: tuple[str, str] | None
    auxiliary_text_parts: tuple[str, ...]

    @property
    def font_parts(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys((*self.style_parts, self.main_part)))


OOXML = FormatVocabulary(
    format=DocumentFormat.OOXML,
    main_part="word/document.xml",
    style_parts=("word/styles.xml",),
    column_parts=("word/document.xml",),
    media_prefixes=("word/media/",),
    body=w("body"),
    body_trailer=w("sectPr"),
    paragraphs=frozenset({w("p")}),
    text_runs=frozenset({w("t")}),
    line_breaks=frozenset({w("br"), w("cr")}),
    tabs=frozenset({w("tab")}),
    skipped_subtrees=frozenset({clark(MC_NS, "Fallback"), w("delText"), w("instrText"), w("pPr"), w("rPr")}),
    font_elements=frozenset({w("rFonts")}),
    font_attributes=(w("ascii"), w("hAnsi"), w("cs"), w("eastAsia")),
    table=w("tbl"),
    table_row=w("tr"),
    table_cells=frozenset({w("tc")}),
    text_boxes=frozenset({w("txbxContent"), clark(V_NS, "textbox")}),
    frame_hosts=(clark(MC_NS, "AlternateContent"), w("drawing"), w("pict")),
    columns=w("cols"),
    column_count_attribute=w("num"),
    column_child=w("col"),
    column_breaks=((w("br"), w("type"), "column"),),
    style_element=w("style"),
    heading_attributes=(w("styleId"),),
    heading_name_child=(w("name"), w("val")),
    auxiliary_text_parts=("word/header", "word/footer", "word/footnotes.xml", "word/endnotes.xml"),
)

ODF = FormatVocabulary(
    format=DocumentFormat.ODF,
    main_part="content.xml",
    style_parts=("styles.xml",),
    column_parts=("styles.xml", "content.xml"),
    media_prefixes=("Pictures/",),
    body=clark(OFFICE_NS, "text"),
    body_trailer=None,
    paragraphs=frozenset({clark(TEXT_NS, "p"), clark(TEXT_NS, "h")}),
    text_runs=None,
    line_breaks=frozenset({clark(TEXT_NS, "line-break")}),
    tabs=frozenset({clark(TEXT_NS, "tab"), clark(TEXT_NS, "s")}),
    skipped_subtrees=frozenset({clark(OFFICE_NS, "annotation"), clark(TEXT_NS, "tracked-changes")}),
    font_elements=None,
    font_attributes=(
        clark(STYLE_NS, "font-name"),
        clark(STYLE_NS, "font-name-asian"),
        clark(STYLE_NS, "font-name-complex"),
        clark(FO_NS, "font-family"),
    ),
    table=clark(TABLE_NS, "table"),
    table_row=clark(TABLE_NS, "table-row"),
    table_cells=frozenset({clark(TABLE_NS, "table-cell"), clark(TABLE_NS, "covered-table-cell")}),
    text_boxes=frozenset({clark(DRAW_NS, "text-box")}),
    frame_hosts=(clark(DRAW_NS, "frame"),),
    columns=clark(STYLE_NS, "columns"),
    column_count_attribute=clark(FO_NS, "column-count"),
    column_child=None,
    column_breaks=(),
    style_element=clark(STYLE_NS, "style"),
    heading_attributes=(clark(STYLE_NS, "name"), clark(STYLE_NS, "display-name")),
    heading_name_child=None,
    auxiliary_text_parts=(),
)

_BY_FORMAT = {vocabulary.format: vocabulary for vocabulary in (OOXML, ODF)}


def vocabulary_for(fmt: DocumentFormat) -> FormatVocabulary:
    try:
        return _BY_FORMAT[fmt]
    except KeyError as exc:
        raise ValueError(f"No structural vocabulary for format '{fmt.value}'.") from exc
