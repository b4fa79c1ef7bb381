"""XML persistence for retrieved feeds so they can be reopened offline."""
from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, List, Optional, Union

from lxml import etree

from feedkeeper.errors import FormatError, StorageError
from feedkeeper.models import FeedDocument, FeedEntry, ImageData

logger = logging.getLogger(__name__)

ROOT_TAG = "RssFeedData"
ENTRIES_TAG = "Entries"
ENTRY_TAG = "Entry"
UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')

PathTarget = Union[str, "os.PathLike[str]"]
WriteTarget = Union[PathTarget, IO[bytes]]
ReadSource = Union[PathTarget, IO[bytes]]


def _is_path(target: object) -> bool:
    return isinstance(target, (str, os.PathLike))


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_timestamp(raw: str, field_name: str) -> datetime:
    try:
        value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise FormatError(f"Invalid {field_name} timestamp {raw!r}") from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _append_text(parent: etree._Element, tag: str, value: str) -> None:
    child = etree.SubElement(parent, tag)
    child.text = value


def _entry_to_element(parent: etree._Element, entry: FeedEntry) -> None:
    node = etree.SubElement(parent, ENTRY_TAG)
    _append_text(node, "Title", entry.title)
    _append_text(node, "PublishDate", _format_timestamp(entry.publish_date))
    _append_text(node, "Content", entry.content)
    _append_text(node, "InlineContent", entry.inline_content)
    _append_text(node, "Link", entry.link)
    if entry.image is not None:
        _append_text(node, "ImageBase64", entry.image.base64)
        _append_text(node, "ImageMimeType", entry.image.mime_type)


def document_to_xml(document: FeedDocument) -> bytes:
    """Serialize ``document`` into UTF-8 encoded XML bytes."""

    root = etree.Element(ROOT_TAG)
    try:
        _append_text(root, "Title", document.title)
        _append_text(root, "SourceUrl", document.source_url)
        _append_text(root, "RetrievedAt", _format_timestamp(document.retrieved_at))
        entries = etree.SubElement(root, ENTRIES_TAG)
        for entry in document.entries:
            _entry_to_element(entries, entry)
    except ValueError as exc:
        # lxml rejects control characters that XML 1.0 cannot represent.
        raise FormatError(f"Feed contains text that cannot be stored as XML: {exc}") from exc
    return etree.tostring(root, xml_declaration=True, encoding="utf-8", pretty_print=True)


def _text(node: etree._Element, tag: str, *, required: bool = True) -> Optional[str]:
    child = node.find(tag)
    if child is None:
        if required:
            raise FormatError(f"Missing <{tag}> element in <{node.tag}>")
        return None
    return child.text or ""


def _element_to_entry(node: etree._Element) -> FeedEntry:
    image_base64 = _text(node, "ImageBase64", required=False)
    image: Optional[ImageData] = None
    if image_base64 is not None:
        try:
            base64.b64decode(image_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise FormatError("Entry image is not valid base64 data") from exc
        mime_type = _text(node, "ImageMimeType", required=False) or "application/octet-stream"
        image = ImageData(base64=image_base64, mime_type=mime_type)

    return FeedEntry(
        title=_text(node, "Title") or "",
        publish_date=_parse_timestamp(_text(node, "PublishDate") or "", "PublishDate"),
        content=_text(node, "Content", required=False) or "",
        inline_content=_text(node, "InlineContent", required=False) or "",
        link=_text(node, "Link", required=False) or "",
        image=image,
    )


def document_from_xml(payload: bytes) -> FeedDocument:
    """Parse bytes produced by :func:`document_to_xml`."""

    if not payload or not payload.strip():
        raise FormatError("The file did not contain a valid feed: it is empty")

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(payload, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise FormatError(f"The file did not contain a valid feed: {exc}") from exc
    return _root_to_document(root)


def _root_to_document(root: etree._Element) -> FeedDocument:
    if root.tag != ROOT_TAG:
        raise FormatError(f"Expected <{ROOT_TAG}> root element, found <{root.tag}>")

    entries_node = root.find(ENTRIES_TAG)
    entries: List[FeedEntry] = []
    if entries_node is not None:
        entries = [_element_to_entry(node) for node in entries_node.findall(ENTRY_TAG)]

    return FeedDocument(
        title=_text(root, "Title") or "",
        source_url=_text(root, "SourceUrl", required=False) or "",
        retrieved_at=_parse_timestamp(_text(root, "RetrievedAt") or "", "RetrievedAt"),
        entries=tuple(entries),
    )


def _write_atomic(path: Path, payload: bytes) -> None:
    directory = path.parent if str(path.parent) else Path(".")
    handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(payload)
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except OSError:
            logger.debug("Could not remove temporary file %s", temp_name)
        raise


def save_document(document: FeedDocument, target: WriteTarget) -> None:
    """Write ``document`` to a filesystem path or a binary writable stream."""

    payload = document_to_xml(document)
    try:
        if _is_path(target):
            _write_atomic(Path(target), payload)
        else:
            target.write(payload)
            target.flush()
    except (OSError, TypeError, ValueError) as exc:
        # Text-mode streams raise TypeError, closed streams ValueError.
        raise StorageError(f"Unable to save feed: {exc}") from exc

    logger.info(
        "Saved feed %s with %d entries",
        document.title,
        len(document.entries),
        extra={"event": "feed.saved", "entries": len(document.entries)},
    )


def load_document(source: ReadSource) -> FeedDocument:
    """Read a document previously written by :func:`save_document`."""

    try:
        if _is_path(source):
            payload = Path(source).read_bytes()
        else:
            payload = source.read()
    except (OSError, ValueError) as exc:
        raise StorageError(f"Unable to open feed: {exc}") from exc

    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    document = document_from_xml(payload)
    logger.info(
        "Loaded feed %s with %d entries",
        document.title,
        len(document.entries),
        extra={"event": "feed.loaded", "entries": len(document.entries)},
    )
    return document


def suggested_filename(document: FeedDocument) -> str:
    """File name offered when saving ``document``."""

    stem = UNSAFE_FILENAME_RE.sub("_", document.title).strip(" ._") or "feed"
    return f"{stem}-feed.xml"


__all__ = [
    "document_from_xml",
    "document_to_xml",
    "load_document",
    "save_document",
    "suggested_filename",
]
