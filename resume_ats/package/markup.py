"""XML helpers shared by the analyzer, the extractor and the transform fixes.

Reading goes through ``defusedxml`` (entity expansion and external
references are refused). Rewriting goes through :class:`MarkupDocument`, a
lossless tokenizer: every token keeps its original text, so a part that is
edited in one place is re-emitted byte-for-byte everywhere else. Element
names are resolved to Clark notation (``{namespace}local``), the same form
``ElementTree`` reports, which keeps detection and rewriting on one
vocabulary regardless of the prefixes a producer chose.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterator
from xml.etree.ElementTree import Element, ParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from resume_ats.core.errors import InvalidFormat

XML_NS = "http://www.w3.org/XML/1998/namespace"

_TOKEN_RE = re.compile(
    r"<!--.*?-->"
    r"|<!\[CDATA\[.*?\]\]>"
    r"|<\?.*?\?>"
    r"|<!DOCTYPE(?:[^>\[]|\[[^\]]*\])*>"
    r"|<(?:[^>\"']|\"[^\"]*\"|'[^']*')*>"
    r"|[^<]+",
    re.DOTALL,
)
_NAME_RE = re.compile(r"</?\s*([^\s/>]+)")
_ATTR_RE = re.compile(r"([^\s=/>]+)\s*=\s*(\"([^\"]*)\"|'([^']*)')")


class MarkupError(ValueError):
    pass


def iter_elements(raw: bytes, *, part: str = "") -> Iterator[tuple[str, Element]]:
    """Stream ``("start" | "end", element)`` pairs from an XML part."""
    try:
        for event, element in ET.iterparse(BytesIO(raw), events=("start", "end")):
            yield event, element
    except (ParseError, DefusedXmlException) as exc:
        raise MarkupError(f"Malformed XML in '{part or 'part'}': {exc}") from exc


def ensure_well_formed(raw: bytes, *, part: str = "") -> None:
    try:
        ET.fromstring(raw)
    except (ParseError, DefusedXmlException) as exc:
        raise InvalidFormat(f"Malformed XML in '{part or 'part'}': {exc}") from exc


def clark(namespace: str, local: str) -> str:
    return f"{{{namespace}}}{local}"


def escape_text(value: str) -> str:
    return html.escape(value, quote=False)


@dataclass
class Token:
    kind: str  # start | end | empty | text | cdata | other
    raw: str
    name: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    attr_names: dict[str, str] = field(default_factory=dict)
    qualified_attrs: dict[str, str] = field(default_factory=dict)


def token_text(token: Token) -> str:
    """Character data of a text or CDATA token, entities decoded."""
    if token.kind == "cdata":
        return token.raw[9:-3]
    return html.unescape(token.raw)


@dataclass
class Node:
    """An element located in a :class:`MarkupDocument` by token span."""

    start: int
    end: int
    name: str
    depth: int
    parent: int | None

    @property
    def empty(self) -> bool:
        return self.start == self.end


class MarkupDocument:
    def __init__(self, text: str):
        self.text = text
        self.tokens: list[Token] = []
        self.nodes: list[Node] = []
        self._node_at: dict[int, int] = {}
        self._edits: dict[int, tuple[int, str]] = {}
        self._scan()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "MarkupDocument":
        try:
            return cls(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise MarkupError(f"Part is not UTF-8 encoded: {exc}") from exc

    def _scan(self) -> None:
        scopes: list[dict[str, str]] = [{"xml": XML_NS}]
        open_nodes: list[int] = []
        position = 0
        for match in _TOKEN_RE.finditer(self.text):
            if match.start() != position:
                raise MarkupError(f"Unexpected markup at offset {position}.")
            position = match.end()
            raw = match.group(0)
            index = len(self.tokens)
            if raw.startswith("<!--") or raw.startswith("<?") or raw.startswith("<!DOCTYPE"):
                self.tokens.append(Token("other", raw))
                continue
            if raw.startswith("<![CDATA["):
                self.tokens.append(Token("cdata", raw))
                continue
            if not raw.startswith("<"):
                self.tokens.append(Token("text", raw))
                continue

            name_match = _NAME_RE.match(raw)
            if name_match is None:
                raise MarkupError(f"Unreadable tag at offset {match.start()}.")
            qname = name_match.group(1)

            if raw.startswith("</"):
                if not open_nodes:
                    raise MarkupError(f"Unbalanced end tag '{qname}'.")
                node_index = open_nodes.pop()
                scopes.pop()
                self.nodes[node_index].end = index
                self.tokens.append(Token("end", raw, name=self.nodes[node_index].name))
                continue

            kind = "empty" if raw.rstrip().endswith("/>") else "start"
            qualified = {m.group(1): html.unescape(m.group(3) if m.group(3) is not None else m.group(4)) for m in _ATTR_RE.finditer(raw, name_match.end())}
            scope = dict(scopes[-1])
            for attr_name, value in qualified.items():
                if attr_name == "xmlns":
                    scope[""] = value
                elif attr_name.startswith("xmlns:"):
                    scope[attr_name[6:]] = value
            name = self._resolve(qname, scope, element=True)
            attrs: dict[str, str] = {}
            attr_names: dict[str, str] = {}
            for attr_name, value in qualified.items():
                if attr_name == "xmlns" or attr_name.startswith("xmlns:"):
                    continue
                resolved = self._resolve(attr_name, scope, element=False)
                attrs[resolved] = value
                attr_names[resolved] = attr_name
            self.tokens.append(
                Token(kind, raw, name=name, attrs=attrs, attr_names=attr_names, qualified_attrs=qualified)
            )
            parent = open_nodes[-1] if open_nodes else None
            node = Node(start=index, end=index, name=name, depth=len(open_nodes), parent=parent)
            self._node_at[index] = len(self.nodes)
            self.nodes.append(node)
            if kind == "start":
                open_nodes.append(len(self.nodes) - 1)
                scopes.append(scope)

        if position != len(self.text):
            raise MarkupError(f"Unexpected markup at offset {position}.")
        if open_nodes:
            raise MarkupError(f"Unclosed element '{self.nodes[open_nodes[-1]].name}'.")

    @staticmethod
    def _resolve(qname: str, scope: dict[str, str], *, element: bool) -> str:
        if ":" in qname:
            prefix, local = qname.split(":", 1)
            namespace = scope.get(prefix)
            if namespace is None:
                return qname
            return clark(namespace, local)
        if element and scope.get(""):
            return clark(scope[""], qname)
        return qname

    # -- queries -------------------------------------------------------

    def find_all(self, name: str) -> list[Node]:
        return [node for node in self.nodes if node.name == name]

    def attrs(self, node: Node) -> dict[str, str]:
        return self.tokens[node.start].attrs

    def children(self, node: Node) -> list[Node]:
        node_index = self._node_at[node.start]
        return [child for child in self.nodes if child.parent == node_index]

    def ancestors(self, node: Node) -> Iterator[Node]:
        current = node.parent
        while current is not None:
            ancestor = self.nodes[current]
            yield ancestor
            current = ancestor.parent

    def descendants(self, node: Node, name: str | None = None) -> list[Node]:
        return [
            other
            for other in self.nodes
            if node.start < other.start and other.end <= node.end and (name is None or other.name == name)
        ]

    def contains(self, outer: Node, inner: Node) -> bool:
        return outer.start < inner.start and inner.end <= outer.end

    # -- edits ---------------------------------------------------------

    def _record(self, start: int, end: int, replacement: str) -> None:
        for other_start, (other_end, _) in self._edits.items():
            if start <= other_end and other_start <= end and not (start == other_start and end == other_end):
                raise MarkupError("Overlapping edits are not supported.")
        self._edits[start] = (end, replacement)

    def replace_node(self, node: Node, replacement: str) -> None:
        self._record(node.start, node.end, replacement)

    def remove_node(self, node: Node) -> None:
        self.replace_node(node, "")

    def insert_before(self, token_index: int, markup: str) -> None:
        end, existing = self._edits.get(token_index, (token_index, self.tokens[token_index].raw))
        self._edits[token_index] = (end, markup + existing)

    def set_attribute(self, node: Node, name: str, value: str) -> bool:
        """Rewrite one attribute value in place, keeping the tag's other bytes.

        ``name`` is the Clark name of the attribute; the prefix actually used
        in the tag is looked up from the scan.
        """
        token = self.tokens[node.start]
        qualified_name = token.attr_names.get(name)
        if qualified_name is None:
            return False
        current = self._edits.get(node.start, (node.start, token.raw))[1]
        pattern = re.compile(r"(\s" + re.escape(qualified_name) + r"\s*=\s*)(\"[^\"]*\"|'[^']*')")
        match = pattern.search(current)
        if match is None:
            return False
        quote = match.group(2)[0]
        updated = current[: match.start(2)] + quote + html.escape(value, quote=True) + quote + current[match.end(2):]
        if updated == current:
            return False
        self._record(node.start, node.start, updated)
        return True

    def prefix_for(self, node: Node, namespace: str) -> str | None:
        """Return the prefix bound to ``namespace`` in scope at ``node``.

        An empty string means ``namespace`` is the default namespace there.
        """
        chain = [node, *self.ancestors(node)]
        for element in chain:
            for attr_name, value in self.tokens[element.start].qualified_attrs.items():
                if value != namespace:
                    continue
                if attr_name.startswith("xmlns:"):
                    return attr_name[6:]
                if attr_name == "xmlns":
                    return ""
        return None

    def qualify(self, node: Node, namespace: str, local: str) -> str | None:
        prefix = self.prefix_for(node, namespace)
        if prefix is None:
            return None
        return f"{prefix}:{local}" if prefix else local

    @property
    def changed(self) -> bool:
        return any(
            replacement != "".join(token.raw for token in self.tokens[start : end + 1])
            for start, (end, replacement) in self._edits.items()
        )

    def render(self) -> str:
        parts: list[str] = []
        index = 0
        total = len(self.tokens)
        while index < total:
            edit = self._edits.get(index)
            if edit is not None:
                end, replacement = edit
                parts.append(replacement)
                index = end + 1
                continue
            parts.append(self.tokens[index].raw)
            index += 1
        return "".join(parts)

    def to_bytes(self) -> bytes:
        return self.render().encode("utf-8")
