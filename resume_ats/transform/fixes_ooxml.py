"""WordprocessingML (.docx) fixes."""

from __future__ import annotations

from resume_ats.analysis.formats import W_NS
from resume_ats.package.container import DocumentPackage
from resume_ats.package.markup import MarkupDocument, Node, escape_text

from .parts import FixContext, FixFunction, FixOutcome, drop_columns, flatten_nested_tables, qualified
from .parts import relocate_text_boxes, rewrite_fonts


def build_paragraphs(document: MarkupDocument, anchor: Node, lines: list[str]) -> str:
    p = qualified(document, anchor, W_NS, "p", "ooxml")
    r = qualified(document, anchor, W_NS, "r", "ooxml")
    t = qualified(document, anchor, W_NS, "t", "ooxml")
    paragraphs = []
    for line in lines:
        if not line:
            paragraphs.append(f"<{p}/>")
            continue
        paragraphs.append(f'<{p}><{r}><{t} xml:space="preserve">{escape_text(line)}</{t}></{r}></{p}>')
    return "".join(paragraphs)


def fix_fonts(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return rewrite_fonts(package, context)


def fix_text_boxes(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return relocate_text_boxes(package, context, build_paragraphs)


def fix_columns(package: DocumentPackage, context: FixContext) -> FixOutcome:
    # Column breaks (w:br w:type="column") go together with w:cols.
    return drop_columns(package, context)


def fix_tables(package: DocumentPackage, context: FixContext) -> FixOutcome:
    return flatten_nested_tables(package, context, build_paragraphs)


FIXES: dict[str, FixFunction] = {
    "fonts": fix_fonts,
    "text_boxes": fix_text_boxes,
    "columns": fix_columns,
    "tables": fix_tables,
}
