"""Markup operations shared by the OOXML and ODF fixes.

A fix loads one part into a :class:`MarkupDocument`, records edits against
element spans, and hands back new bytes only when something changed. Parts
are checked with ``defusedxml`` before and after editing, so a fix can never
write a part that no longer parses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from resume_ats.analysis.formats import FormatVocabulary
from resume_ats.core.errors import InvalidFormat, PartFixFailure
from resume_ats.package.container import DocumentPackage
from resume_ats.package.markup import MarkupDocument, MarkupError, Node, ensure_well_formed, token_text
from resume_ats.taxonomy import AtsVocabulary

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class FixContext:
    formats: FormatVocabulary
    vocabulary: AtsVocabulary


@dataclass
class FixOutcome:
    updates: dict[str, bytes] = field(default_factory=dict)
    detail: str = ""


FixFunction = Callable[[DocumentPackage, FixContext], FixOutcome]


def load_part(package: DocumentPackage, part: str, fix: str) -> MarkupDocument | None:
    raw = package.read_entry(part)
    if raw is None:
        return None
    try:
        ensure_well_formed(raw, part=part)
        return MarkupDocument.from_bytes(raw)
    except (InvalidFormat, MarkupError) as exc:
        raise PartFixFailure(fix, f"cannot edit '{part}': {exc}") from exc


def render_part(document: MarkupDocument, part: str, fix: str) -> bytes:
    rendered = document.to_bytes()
    try:
        ensure_well_formed(rendered, part=part)
    except InvalidFormat as exc:
        raise PartFixFailure(fix, f"edit produced malformed XML in '{part}': {exc}") from exc
    return rendered


def qualified(document: MarkupDocument, node: Node, namespace: str, local: str, fix: str) -> str:
    name = document.qualify(node, namespace, local)
    if name is None:
        raise PartFixFailure(fix, f"namespace '{namespace}' is not declared")
    return name


def is_within(document: MarkupDocument, node: Node, names: frozenset[str] | set[str]) -> bool:
    return any(ancestor.name in names for ancestor in document.ancestors(node))


def outermost(document: MarkupDocument, nodes: list[Node]) -> list[Node]:
    """Drop nodes that sit inside another node of the list, keeping document order."""
    ordered = sorted({node.start: node for node in nodes}.values(), key=lambda node: node.start)
    kept: list[Node] = []
    for node in ordered:
        if kept and document.contains(kept[-1], node):
            continue
        kept.append(node)
    return kept


def paragraph_texts(document: MarkupDocument, node: Node, formats: FormatVocabulary) -> list[str]:
    """One line per paragraph inside ``node``, in document order.

    A paragraph that holds another paragraph (a frame anchored in it) keeps
    its own text: what precedes the nested paragraph becomes one line, what
    follows it another.
    """
    runs = formats.text_runs
    lines: list[str] = []
    buffers: list[list[str]] = []
    open_names: list[str] = []
    skipped = 0

    def flush() -> None:
        if not buffers:
            return
        for line in "".join(buffers[-1]).split("\n"):
            text = " ".join(line.split())
            if text:
                lines.append(text)
        buffers[-1].clear()

    for index in range(node.start + 1, node.end):
        token = document.tokens[index]
        if token.kind in {"start", "empty"}:
            if token.kind == "start":
                open_names.append(token.name)
            if skipped or token.name in formats.skipped_subtrees:
                skipped += 1 if token.kind == "start" else 0
                continue
            if token.name in formats.paragraphs:
                flush()
                if token.kind == "start":
                    buffers.append([])
            elif buffers and token.name in formats.tabs:
                buffers[-1].append(" ")
            elif buffers and token.name in formats.line_breaks:
                buffers[-1].append("\n")
        elif token.kind == "end":
            name = open_names.pop() if open_names else ""
            if skipped:
                skipped -= 1
                continue
            if name in formats.paragraphs and buffers:
                flush()
                buffers.pop()
        elif token.kind in {"text", "cdata"} and buffers and not skipped:
            if runs is not None and (not open_names or open_names[-1] not in runs):
                continue
            buffers[-1].append(_WHITESPACE_RE.sub(" ", token_text(token)))
    return lines


def replace_font_attributes(
    document: MarkupDocument,
    formats: FormatVocabulary,
    vocabulary: AtsVocabulary,
    replacement: str,
) -> list[str]:
    """Point every non-safe font attribute at ``replacement``; return the replaced names."""
    replaced: list[str] = []
    for node in document.nodes:
        if formats.font_elements is not None and node.name not in formats.font_elements:
            continue
        attrs = document.attrs(node)
        for attribute in formats.font_attributes:
            value = attrs.get(attribute)
            if not value or vocabulary.is_safe_font(value):
                continue
            if document.set_attribute(node, attribute, replacement):
                replaced.append(value)
    return list(dict.fromkeys(replaced))


def markup_column_count(document: MarkupDocument, node: Node, formats: FormatVocabulary) -> int:
    raw = document.attrs(node).get(formats.column_count_attribute)
    declared = 1
    if raw:
        try:
            declared = int(raw)
        except ValueError:
            declared = 1
    if formats.column_child is not None:
        declared = max(declared, sum(1 for child in document.children(node) if child.name == formats.column_child))
    return max(1, declared)


def remove_multi_columns(document: MarkupDocument, formats: FormatVocabulary) -> int:
    removed = 0
    for node in outermost(document, document.find_all(formats.columns)):
        if markup_column_count(document, node, formats) > 1:
            document.remove_node(node)
            removed += 1
    return removed


def remove_column_breaks(document: MarkupDocument, formats: FormatVocabulary) -> int:
    removed = 0
    for element, attribute, value in formats.column_breaks:
        for node in document.find_all(element):
            if document.attrs(node).get(attribute) == value:
                document.remove_node(node)
                removed += 1
    return removed


def text_box_targets(document: MarkupDocument, formats: FormatVocabulary) -> tuple[list[Node], list[Node]]:
    """Return ``(frames to delete, boxes to read text from)``.

    A frame is the outermost host around a text box (or the box itself when
    it has no host). Boxes inside skipped subtrees such as ``mc:Fallback``
    duplicate the primary copy and are not read.
    """
    boxes = [node for node in document.nodes if node.name in formats.text_boxes]
    frames: list[Node] = []
    for box in boxes:
        hosts = [ancestor for ancestor in document.ancestors(box) if ancestor.name in formats.frame_hosts]
        frames.append(hosts[-1] if hosts else box)
    readable = [box for box in boxes if not is_within(document, box, formats.skipped_subtrees)]
    return outermost(document, frames), outermost(document, readable)


def nested_tables(document: MarkupDocument, formats: FormatVocabulary) -> list[Node]:
    inner = [
        node
        for node in document.find_all(formats.table)
        if any(ancestor.name == formats.table for ancestor in document.ancestors(node))
    ]
    return outermost(document, inner)


def table_rows(document: MarkupDocument, table: Node, formats: FormatVocabulary) -> list[list[str]]:
    """Cell texts per row of ``table``; deeper tables are read as part of their cell."""

    def nearest(node: Node, name: str) -> Node | None:
        return next((ancestor for ancestor in document.ancestors(node) if ancestor.name == name), None)

    rows: list[list[str]] = []
    for row in document.descendants(table, formats.table_row):
        owner = nearest(row, formats.table)
        if owner is None or owner.start != table.start:
            continue
        cells: list[str] = []
        for cell in document.descendants(row):
            if cell.name not in formats.table_cells:
                continue
            parent_row = nearest(cell, formats.table_row)
            if parent_row is None or parent_row.start != row.start:
                continue
            text = " ".join(paragraph_texts(document, cell, formats))
            if text:
                cells.append(text)
        rows.append(cells)
    return rows



ParagraphBuilder = Callable[[MarkupDocument, Node, list[str]], str]
FontFinisher = Callable[[MarkupDocument, str], None]


def rewrite_fonts(
    package: DocumentPackage,
    context: FixContext,
    *,
    finish: FontFinisher | None = None,
) -> FixOutcome:
    formats = context.formats
    replacement = context.vocabulary.replacement_font(formats.format.value)
    updates: dict[str, bytes] = {}
    replaced: list[str] = []
    for part in formats.font_parts:
        try:
            document = load_part(package, part, "fonts")
        except PartFixFailure as exc:
            if part == formats.main_part:
                raise
            logger.warning("ats_optional_part_unreadable part=%s fix=fonts error=%s", part, exc)
            continue
        if document is None:
            continue
        names = replace_font_attributes(document, formats, context.vocabulary, replacement)
        if not names:
            continue
        if finish is not None:
            finish(document, replacement)
        replaced.extend(names)
        updates[part] = render_part(document, part, "fonts")
    if not updates:
        return FixOutcome(detail="no non-safe font attributes found")
    names = ", ".join(dict.fromkeys(replaced))
    return FixOutcome(updates=updates, detail=f"replaced {names} with {replacement}")


def body_anchor(document: MarkupDocument, formats: FormatVocabulary, fix: str) -> tuple[Node, int]:
    """Return the body node and the token index new paragraphs go in front of."""
    bodies = document.find_all(formats.body)
    if not bodies or bodies[0].empty:
        raise PartFixFailure(fix, "document body not found")
    body = bodies[0]
    if formats.body_trailer is not None:
        trailers = [child for child in document.children(body) if child.name == formats.body_trailer]
        if trailers:
            return body, trailers[-1].start
    return body, body.end


def relocate_text_boxes(package: DocumentPackage, context: FixContext, build: ParagraphBuilder) -> FixOutcome:
    formats = context.formats
    part = formats.main_part
    document = load_part(package, part, "text_boxes")
    if document is None:
        return FixOutcome(detail=f"'{part}' missing")
    frames, readable = text_box_targets(document, formats)
    if not frames:
        return FixOutcome(detail="no text boxes found")

    recovered = [text for box in readable for text in paragraph_texts(document, box, formats)]
    body, anchor = body_anchor(document, formats, "text_boxes")
    for frame in frames:
        document.remove_node(frame)
    if recovered:
        document.insert_before(anchor, build(document, body, recovered))
    return FixOutcome(
        updates={part: render_part(document, part, "text_boxes")},
        detail=f"removed {len(frames)} text box(es), moved {len(recovered)} paragraph(s) to the end of the body",
    )


def drop_columns(package: DocumentPackage, context: FixContext) -> FixOutcome:
    formats = context.formats
    updates: dict[str, bytes] = {}
    removed = 0
    breaks = 0
    for part in formats.column_parts:
        document = load_part(package, part, "columns")
        if document is None:
            continue
        removed += remove_multi_columns(document, formats)
        breaks += remove_column_breaks(document, formats)
        if document.changed:
            updates[part] = render_part(document, part, "columns")
    if not updates:
        return FixOutcome(detail="no multi-column declarations found")
    detail = f"removed {removed} column declaration(s)"
    if breaks:
        detail += f" and {breaks} column break(s)"
    return FixOutcome(updates=updates, detail=detail)


def flatten_nested_tables(package: DocumentPackage, context: FixContext, build: ParagraphBuilder) -> FixOutcome:
    formats = context.formats
    part = formats.main_part
    document = load_part(package, part, "tables")
    if document is None:
        return FixOutcome(detail=f"'{part}' missing")
    tables = nested_tables(document, formats)
    if not tables:
        return FixOutcome(detail="no nested tables found")
    for table in tables:
        lines = [" | ".join(cells) for cells in table_rows(document, table, formats) if cells]
        # A cell must keep at least one paragraph.
        document.replace_node(table, build(document, table, lines or [""]))
    return FixOutcome(
        updates={part: render_part(document, part, "tables")},
        detail=f"flattened {len(tables)} nested table(s) into paragraphs",
    )
