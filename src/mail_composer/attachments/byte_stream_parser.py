# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parser for in-memory byte buffers and open binary streams.

Accepted inputs:
- ``bytes``, ``bytearray`` or ``memoryview`` buffers
- readable binary streams (open files, ``io.BytesIO``)
- ``ByteStream`` wrappers, which may declare the content type explicitly

Seekable streams are kept as streams and owned by the resulting part.
Non-seekable streams are drained into memory and closed, since sniffing
their type would otherwise lose the leading bytes.
"""

from __future__ import annotations

import io
import os
from typing import IO, Any

from .base import AttachmentParserBase
from .part import ByteStream, Disposition, MimePart, TransferEncoding
from .sniff import sniff_bytes, sniff_stream

BUFFER_TYPES = (bytes, bytearray, memoryview)


def is_binary_stream(value: Any) -> bool:
    return callable(getattr(value, "read", None)) and not isinstance(value, io.TextIOBase)


def stream_name(stream: IO[bytes]) -> str | None:
    name = getattr(stream, "name", None)
    if isinstance(name, (str, os.PathLike)):
        return os.path.basename(os.fspath(name)) or None
    return None


def prepare_payload(value: Any) -> tuple[Any, str] | None:
    """Turn a buffer or binary stream into part content plus its sniffed type.

    Returns:
        ``(content, detected_type)``, or None when ``value`` is neither a
        byte buffer nor a readable binary stream.

    Raises:
        TypeError: If a stream yields text instead of bytes.
    """
    if isinstance(value, BUFFER_TYPES):
        data = bytes(value)
        return data, sniff_bytes(data)
    if not is_binary_stream(value):
        return None

    seekable = getattr(value, "seekable", None)
    if callable(seekable) and seekable():
        return value, sniff_stream(value)
    try:
        data = value.read()
    finally:
        value.close()
    if isinstance(data, str):
        raise TypeError("Attachment stream returned text, a binary stream is required")
    return data, sniff_bytes(data)


class ByteStreamAttachmentParser(AttachmentParserBase):
    """Builds a MimePart from raw bytes or a readable binary stream."""

    expected_type = "byte stream"

    def parse(self, attachment: Any, name: str | None = None) -> MimePart:
        declared_type = None
        if isinstance(attachment, ByteStream):
            declared_type = attachment.content_type
            attachment = attachment.content

        fallback_name = stream_name(attachment) if is_binary_stream(attachment) else None
        payload = prepare_payload(attachment)
        if payload is None:
            raise self.reject()
        content, detected_type = payload

        content_type = declared_type or detected_type
        part = MimePart(
            content,
            type=content_type,
            encoding=TransferEncoding.BASE64,
            disposition=Disposition.ATTACHMENT,
        )
        if name is None:
            name = fallback_name or self.default_filename(content_type)
        return self.apply_name_to_part(part, name)
