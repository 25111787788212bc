# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Content-based MIME type detection.

Attachment types are derived from the leading bytes of the payload rather
than from a filename extension or a type declared by the caller. Signatures
are matched in table order; some formats (RIFF containers, ISO media) carry
their discriminating marker at a fixed offset.

Payloads that match no signature are classified as text when they decode as
UTF-8 without control bytes, and as ``application/octet-stream`` otherwise.
Empty payloads are reported as ``application/x-empty``.
"""

from __future__ import annotations

from typing import IO

from .part import DEFAULT_CONTENT_TYPE

SNIFF_LENGTH = 2048
EMPTY_CONTENT_TYPE = "application/x-empty"

# (offset, magic bytes, mime type)
SIGNATURES: tuple[tuple[int, bytes, str], ...] = (
    (0, b"%PDF-", "application/pdf"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (0, b"II*\x00", "image/tiff"),
    (0, b"MM\x00*", "image/tiff"),
    (8, b"WEBP", "image/webp"),
    (8, b"WAVE", "audio/x-wav"),
    (8, b"AVI ", "video/x-msvideo"),
    (4, b"ftyp", "video/mp4"),
    (0, b"ID3", "audio/mpeg"),
    (0, b"OggS", "audio/ogg"),
    (0, b"fLaC", "audio/flac"),
    (0, b"PK\x03\x04", "application/zip"),
    (0, b"PK\x05\x06", "application/zip"),
    (0, b"\x1f\x8b", "application/gzip"),
    (0, b"BZh", "application/x-bzip2"),
    (0, b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (0, b"Rar!\x1a\x07", "application/x-rar"),
    (0, b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "application/x-ole-storage"),
    (0, b"{\\rtf", "text/rtf"),
)

_TEXT_PREFIXES: tuple[tuple[bytes, str], ...] = (
    (b"<!doctype html", "text/html"),
    (b"<html", "text/html"),
    (b"<?xml", "text/xml"),
    (b"<svg", "image/svg+xml"),
)

_ALLOWED_CONTROL = {0x09, 0x0A, 0x0C, 0x0D, 0x1B}


def _looks_like_text(data: bytes) -> bool:
    if any(byte < 0x20 and byte not in _ALLOWED_CONTROL for byte in data):
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multibyte sequence cut at the sniff boundary is still text
        return exc.start >= len(data) - 3 and exc.reason == "unexpected end of data"
    return True


def sniff_bytes(data: bytes) -> str:
    """Return the MIME type of a payload from its leading bytes."""
    head = bytes(data[:SNIFF_LENGTH])
    if not head:
        return EMPTY_CONTENT_TYPE

    for offset, magic, mime_type in SIGNATURES:
        if head[offset:offset + len(magic)] == magic:
            return mime_type

    if not _looks_like_text(head):
        return DEFAULT_CONTENT_TYPE

    lowered = head.lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    for prefix, mime_type in _TEXT_PREFIXES:
        if lowered.startswith(prefix):
            return mime_type
    return "text/plain"


def sniff_stream(stream: IO[bytes]) -> str:
    """Return the MIME type of a seekable stream without moving its position."""
    position = stream.tell()
    try:
        return sniff_bytes(stream.read(SNIFF_LENGTH))
    finally:
        stream.seek(position)
