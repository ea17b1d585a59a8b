"""OpenDocument text (.odt) fixes."""

from __future__ import annotations

from resume_ats.analysis.formats import OFFICE_NS, STYLE_NS, TEXT_NS
from resume_ats.package.container import DocumentPackage
from resume_ats.package.markup import MarkupDocument, Node, clark, escape_text

from .parts import FixContext, FixFunction, FixOutcome, drop_columns, flatten_nested_tables, qualified
from .parts import relocate_text_boxes, rewrite_fonts

SVG_NS = "urn:oasis:names:tc:opendocument:xmlns:svg-compatible:1.0"


def build_paragraphs(document: MarkupDocument, anchor: Node, lines: list[str]) -> str:
    p = qualified(document, anchor, TEXT_NS, "p", "odf")
    return "".join(f"<{p}>{escape_text(line)}</{p}>" if line else f"<{p}/>" for line in lines)


def declare_font_face(document: MarkupDocument, font: str) -> None:
    """Add a ``style:font-face`` for ``font`` so ``style:font-name`` references resolve."""
    declarations = document.find_all(clark(OFFICE_NS, "font-face-decls"))
    if not declarations or declarations[0].empty:
        return
    container = declarations[0]
    name_attribute = clark(STYLE_NS, "name")
    for face in document.children(container):
        if document.attrs(face).get(name_attribute) == font:
            return
    face = document.qualify(container, STYLE_NS, "font-face")
    name = document.qualify(container, STYLE_NS, "name")
    family = document.qualify(container, SVG_NS, "font-family")
    if face is None or name is None or family is None:
        return
    value = escape_text(font).replace('"', "&quot;")
    document.insert_before(container.end, f'<{face} {name}="{value}" {family}="{value}"/>')


def fix_fonts(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return rewrite_fonts(package, context, finish=declare_font_face)


def fix_text_boxes(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return relocate_text_boxes(package, context, build_paragraphs)


def fix_columns(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return drop_columns(package, context)


def fix_tables(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return flatten_nested_tables(package, context, build_paragraphs)


FIXES: dict[str, FixFunction] = {
    "fonts": fix_fonts,
    "text_boxes": fix_text_boxes,
    "columns": fix_columns,
    "tables": fix_tables,
}
