from __future__ import annotations

import logging
import re
from typing import Iterator
from xml.etree.ElementTree import Element

from resume_ats.core.errors import InvalidFormat
from resume_ats.package.container import DocumentPackage
from resume_ats.package.markup import MarkupError, iter_elements
from resume_ats.schemas.ats import (
    ColumnProfile,
    DocumentFormat,
    FontProfile,
    ImageProfile,
    StructuralProfile,
    StyleProfile,
    TableProfile,
    TextBoxProfile,
)
from resume_ats.taxonomy import AtsVocabulary, get_default_vocabulary, primary_font_name

from .formats import FormatVocabulary, vocabulary_for

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"heading[1-9][0-9]?")


def is_heading_style_name(value: str) -> bool:
    normalized = value.replace("_20_", " ").casefold()
    normalized = re.sub(r"[\s_\-]+", "", normalized)
    return bool(_HEADING_RE.fullmatch(normalized))


def column_count(element: Element, formats: FormatVocabulary) -> int:
    raw = element.get(formats.column_count_attribute)
    declared = 1
    if raw:
        try:
            declared = int(raw)
        except ValueError:
            declared = 1
    if formats.column_child is not None:
        declared = max(declared, sum(1 for child in element if child.tag == formats.column_child))
    return max(1, declared)


class StructuralAnalyzer:
    """Extracts ATS-risk signals from a container using one format's tag table.

    Each ``detect_*`` method reads the parts it needs on its own, so callers
    can run any subset. The main content part is mandatory and a parse failure
    there is fatal; style and auxiliary parts are optional and are treated as
    absent when missing or unreadable.
    """

    def __init__(self, formats: FormatVocabulary, vocabulary: AtsVocabulary | None = None):
        self.formats = formats
        self.vocabulary = vocabulary or get_default_vocabulary()

    def _events(self, package: DocumentPackage, part: str) -> Iterator[tuple[str, Element]]:
        raw = package.read_entry(part)
        required = part == self.formats.main_part
        if raw is None:
            if required:
                raise InvalidFormat(f"Missing main document part '{part}'.")
            return
        try:
            yield from iter_elements(raw, part=part)
        except MarkupError as exc:
            if required:
                raise InvalidFormat(str(exc)) from exc
            logger.warning("ats_optional_part_unreadable part=%s error=%s", part, exc)

    def detect_fonts(self, package: DocumentPackage) -> FontProfile:
        declared: dict[str, str] = {}
        for part in self.formats.font_parts:
            for event, element in self._events(package, part):
                if event != "start":
                    continue
                if self.formats.font_elements is not None and element.tag not in self.formats.font_elements:
                    continue
                for attribute in self.formats.font_attributes:
                    value = element.get(attribute)
                    if not value:
                        continue
                    name = primary_font_name(value)
                    if name:
                        declared.setdefault(name.casefold(), name)
        fonts = list(declared.values())
        non_safe = [font for font in fonts if not self.vocabulary.is_safe_font(font)]
        return FontProfile(declared=fonts, non_safe=non_safe, is_safe=not non_safe)

    def detect_images(self, package: DocumentPackage) -> ImageProfile:
        paths = [
            name
            for name in package.names()
            if not name.endswith("/") and any(name.startswith(prefix) for prefix in self.formats.media_prefixes)
        ]
        return ImageProfile(count=len(paths), paths=paths)

    def detect_tables(self, package: DocumentPackage) -> TableProfile:
        depth = 0
        count = 0
        nested = 0
        for event, element in self._events(package, self.formats.main_part):
            if element.tag != self.formats.table:
                continue
            if event == "start":
                count += 1
                if depth > 0:
                    nested += 1
                depth += 1
            else:
                depth -= 1
        return TableProfile(count=count, nested_count=nested)

    def detect_text_boxes(self, package: DocumentPackage) -> TextBoxProfile:
        count = 0
        skipped = 0
        box_depth = 0
        hosts: list[bool] = []
        for event, element in self._events(package, self.formats.main_part):
            tag = element.tag
            if tag in self.formats.skipped_subtrees:
                skipped += 1 if event == "start" else -1
                continue
            if skipped:
                continue
            if tag in self.formats.frame_hosts:
                if event == "start":
                    hosts.append(False)
                else:
                    hosted = hosts.pop()
                    if not hosts and hosted:
                        count += 1
                continue
            if tag in self.formats.text_boxes:
                if event == "start":
                    if box_depth == 0:
                        if hosts:
                            hosts[0] = True
                        else:
                            count += 1
                    box_depth += 1
                else:
                    box_depth -= 1
        return TextBoxProfile(count=count)

    def detect_columns(self, package: DocumentPackage) -> ColumnProfile:
        max_count = 1
        for part in self.formats.column_parts:
            for event, element in self._events(package, part):
                if event == "end" and element.tag == self.formats.columns:
                    max_count = max(max_count, column_count(element, self.formats))
        return ColumnProfile(present=max_count > 1, max_count=max_count)

    def detect_heading_styles(self, package: DocumentPackage) -> StyleProfile:
        for part in self.formats.style_parts:
            for event, element in self._events(package, part):
                if event != "end" or element.tag != self.formats.style_element:
                    continue
                names = [element.get(attribute) or "" for attribute in self.formats.heading_attributes]
                if self.formats.heading_name_child is not None:
                    child_tag, value_attribute = self.formats.heading_name_child
                    names.extend(child.get(value_attribute) or "" for child in element if child.tag == child_tag)
                if any(is_heading_style_name(name) for name in names if name):
                    return StyleProfile(uses_headings=True)
        return StyleProfile(uses_headings=False)

    def analyze(self, package: DocumentPackage) -> StructuralProfile:
        profile = StructuralProfile(
            format=self.formats.format,
            fonts=self.detect_fonts(package),
            images=self.detect_images(package),
            tables=self.detect_tables(package),
            text_boxes=self.detect_text_boxes(package),
            columns=self.detect_columns(package),
            styles=self.detect_heading_styles(package),
        )
        logger.debug(
            "ats_structure_analyzed format=%s text_boxes=%s tables=%s nested=%s columns=%s non_safe_fonts=%s",
            profile.format.value,
            profile.text_boxes.count,
            profile.tables.count,
            profile.tables.nested_count,
            profile.columns.max_count,
            profile.fonts.non_safe,
        )
        return profile


def analyzer_for(fmt: DocumentFormat, vocabulary: AtsVocabulary | None = None) -> StructuralAnalyzer:
    return StructuralAnalyzer(vocabulary_for(fmt), vocabulary)


def analyze_package(
    package: DocumentPackage,
    fmt: DocumentFormat,
    vocabulary: AtsVocabulary | None = None,
) -> StructuralProfile:
    return analyzer_for(fmt, vocabulary).analyze(package)
