from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass, field
from io import BytesIO
from types import MappingProxyType
from typing import Mapping
from zipfile import BadZipFile, LargeZipFile, ZipFile, ZipInfo, ZIP_DEFLATED

from resume_ats.core.errors import InvalidFormat
from resume_ats.schemas.ats import DocumentFormat

logger = logging.getLogger(__name__)

ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06")
PDF_MAGIC = b"%PDF-"

OOXML_MAIN_PART = "word/document.xml"
ODF_MAIN_PART = "content.xml"
ODF_MIMETYPE_PART = "mimetype"
ODF_TEXT_MIMETYPES = {
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.text-template",
}


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _clone_info(info: ZipInfo) -> ZipInfo:
    # ZipFile.writestr mutates the info it is given, so packages never share one.
    clone = ZipInfo(info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.external_attr = info.external_attr
    clone.create_system = info.create_system
    clone.comment = info.comment
    return clone


@dataclass(frozen=True)
class DocumentPackage:
    """Read-only view of a zip container.

    Mutations go through :meth:`with_entry`, which returns a new package. The
    bytes the package was opened from are kept as ``source`` and returned
    unchanged by :meth:`serialize` while nothing has been replaced.
    """

    source: bytes = field(repr=False)
    entries: Mapping[str, bytes] = field(repr=False)
    infos: tuple[ZipInfo, ...] = field(repr=False)
    modified: frozenset[str] = frozenset()

    def names(self) -> list[str]:
        return [info.filename for info in self.infos]

    def has_entry(self, path: str) -> bool:
        return path in self.entries

    def read_entry(self, path: str) -> bytes | None:
        return self.entries.get(path)

    def read_text(self, path: str) -> str | None:
        raw = self.read_entry(path)
        if raw is None:
            return None
        return raw.decode("utf-8", errors="replace")

    @property
    def is_modified(self) -> bool:
        return bool(self.modified)

    def with_entry(self, path: str, data: bytes) -> "DocumentPackage":
        if self.entries.get(path) == data:
            return self
        entries = dict(self.entries)
        entries[path] = bytes(data)
        infos = self.infos
        if path not in self.entries:
            info = ZipInfo(path, date_time=infos[0].date_time if infos else (1980, 1, 1, 0, 0, 0))
            info.compress_type = ZIP_DEFLATED
            infos = (*infos, info)
        return DocumentPackage(
            source=self.source,
            entries=MappingProxyType(entries),
            infos=infos,
            modified=self.modified | {path},
        )

    def with_entries(self, updates: Mapping[str, bytes]) -> "DocumentPackage":
        package = self
        for path, data in updates.items():
            package = package.with_entry(path, data)
        return package

    def serialize(self) -> bytes:
        if not self.modified:
            return self.source
        buffer = BytesIO()
        with ZipFile(buffer, "w") as archive:
            for info in self.infos:
                archive.writestr(_clone_info(info), self.entries[info.filename])
        return buffer.getvalue()


def open_package(data: bytes, *, max_uncompressed_bytes: int | None = None) -> DocumentPackage:
    if not data or not _is_zip_payload(data):
        raise InvalidFormat("Document is not a zip container (signature missing).")

    try:
        with ZipFile(BytesIO(data)) as archive:
            infos = tuple(archive.infolist())
            total = sum(info.file_size for info in infos)
            if max_uncompressed_bytes is not None and total > max_uncompressed_bytes:
                raise InvalidFormat(
                    f"Archive expands to {total} bytes which exceeds the limit of {max_uncompressed_bytes} bytes."
                )
            entries = {info.filename: archive.read(info) for info in infos}
    except InvalidFormat:
        raise
    except (BadZipFile, LargeZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError, OSError) as exc:
        raise InvalidFormat(f"Unable to read zip container: {exc}") from exc

    logger.debug("package_opened entries=%s bytes=%s", len(entries), len(data))
    return DocumentPackage(source=bytes(data), entries=MappingProxyType(entries), infos=infos)


def sniff_format(data: bytes) -> DocumentFormat | None:
    if data.startswith(PDF_MAGIC):
        return DocumentFormat.PDF
    if _is_zip_payload(data):
        return None
    raise InvalidFormat("Unsupported document: expected a .docx, .odt or .pdf payload.")


def detect_format(package: DocumentPackage) -> DocumentFormat:
    if package.has_entry(OOXML_MAIN_PART):
        return DocumentFormat.OOXML
    if package.has_entry(ODF_MAIN_PART):
        mimetype = (package.read_text(ODF_MIMETYPE_PART) or "").strip()
        if mimetype and mimetype not in ODF_TEXT_MIMETYPES:
            raise InvalidFormat(f"Unsupported ODF document type '{mimetype}'. Only text documents are supported.")
        return DocumentFormat.ODF
    raise InvalidFormat(
        f"Missing main document part: expected '{OOXML_MAIN_PART}' (.docx) or '{ODF_MAIN_PART}' (.odt)."
    )
