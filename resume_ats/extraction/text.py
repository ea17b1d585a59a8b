from __future__ import annotations

import logging
import re
from xml.etree.ElementTree import Element, ParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from resume_ats.analysis.formats import FormatVocabulary, vocabulary_for
from resume_ats.core.errors import InvalidFormat
from resume_ats.package.container import DocumentPackage
from resume_ats.schemas.ats import DocumentFormat, ExtractedContent

logger = logging.getLogger(__name__)

_INLINE_SPACE_RE = re.compile(r"[^\S\n]+")
_WHITESPACE_RE = re.compile(r"\s+")
_AUXILIARY_LABELS = {
    "word/header": "header",
    "word/footer": "footer",
    "word/footnotes.xml": "footnotes",
    "word/endnotes.xml": "endnotes",
}


def _parse(raw: bytes, part: str) -> Element:
    try:
        return ET.fromstring(raw)
    except (ParseError, DefusedXmlException) as exc:
        raise InvalidFormat(f"Malformed XML in '{part}': {exc}") from exc


def _append_chars(buffer: list[str], text: str | None) -> None:
    # Raw newlines in character data are layout whitespace; only break elements end a line.
    if text:
        buffer.append(_WHITESPACE_RE.sub(" ", text))


def _clean_line(parts: list[str]) -> str:
    lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in "".join(parts).split("\n")]
    return "\n".join(line for line in lines if line)


class ContentExtractor:
    """Plain-text view of the main content part, one paragraph per line."""

    def __init__(self, formats: FormatVocabulary):
        self.formats = formats

    def _collect(self, element: Element, buffer: list[str], lines: list[str]) -> None:
        tag = element.tag
        formats = self.formats
        if tag in formats.skipped_subtrees:
            return
        if tag in formats.paragraphs:
            # Text collected by an enclosing paragraph so far comes before the nested one.
            pending = _clean_line(buffer)
            if pending:
                lines.append(pending)
            buffer.clear()
            own: list[str] = []
            if formats.text_runs is None:
                _append_chars(own, element.text)
            self._collect_children(element, own, lines)
            line = _clean_line(own)
            if line:
                lines.append(line)
            return
        if tag in formats.tabs:
            buffer.append(" ")
        elif tag in formats.line_breaks:
            buffer.append("\n")
        elif formats.text_runs is None or tag in formats.text_runs:
            _append_chars(buffer, element.text)
        self._collect_children(element, buffer, lines)

    def _collect_children(self, element: Element, buffer: list[str], lines: list[str]) -> None:
        for child in element:
            self._collect(child, buffer, lines)
            # Mixed content: a child's tail belongs to the enclosing element.
            if self.formats.text_runs is None:
                _append_chars(buffer, child.tail)

    def auxiliary_warnings(self, package: DocumentPackage) -> list[str]:
        warnings: list[str] = []
        text_runs = self.formats.text_runs
        for name in package.names():
            prefix = next((p for p in self.formats.auxiliary_text_parts if name.startswith(p)), None)
            if prefix is None or not name.endswith(".xml"):
                continue
            try:
                root = _parse(package.read_entry(name) or b"", name)
            except InvalidFormat as exc:
                logger.warning("ats_optional_part_unreadable part=%s error=%s", name, exc)
                continue
            has_text = any(
                (text_runs is None or element.tag in text_runs) and (element.text or "").strip()
                for element in root.iter()
            )
            if has_text:
                label = _AUXILIARY_LABELS.get(prefix, prefix)
                warnings.append(f"Text in {label} part '{name}' is excluded; many ATS parsers ignore it.")
        return warnings

    def extract(self, package: DocumentPackage) -> ExtractedContent:
        part = self.formats.main_part
        raw = package.read_entry(part)
        if raw is None:
            raise InvalidFormat(f"Missing main document part '{part}'.")
        root = _parse(raw, part)

        lines: list[str] = []
        trailing: list[str] = []
        self._collect(root, trailing, lines)
        tail = _clean_line(trailing)
        if tail:
            lines.append(tail)

        text = "\n".join(lines)
        content = ExtractedContent(
            text=text,
            word_count=len(text.split()),
            char_count=len(text),
            warnings=self.auxiliary_warnings(package),
        )
        logger.debug(
            "ats_text_extracted format=%s words=%s chars=%s warnings=%s",
            self.formats.format.value,
            content.word_count,
            content.char_count,
            len(content.warnings),
        )
        return content


def extract_text(package: DocumentPackage, fmt: DocumentFormat) -> ExtractedContent:
    return ContentExtractor(vocabulary_for(fmt)).extract(package)
