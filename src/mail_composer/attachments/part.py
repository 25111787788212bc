# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Canonical MIME part produced by attachment normalization.

A MimePart carries the payload of a single attachment together with the
metadata needed to serialize it into a message: content type, transfer
encoding, disposition and filename.

The payload is either bytes or an open binary stream. When a stream is
wrapped, the part owns it: the stream is closed exactly once, on the first of
an explicit ``close()``, a ``read()`` performed while serializing the message,
or exit from a ``with`` block.

Example:
    Reading a part produced from a file path::

        with normalizer.normalize("/srv/files/report.pdf") as part:
            payload = part.read()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class TransferEncoding(str, Enum):
    """Content-Transfer-Encoding values supported for parts."""

    BASE64 = "base64"
    SEVEN_BIT = "7bit"
    EIGHT_BIT = "8bit"
    QUOTED_PRINTABLE = "quoted-printable"


class Disposition(str, Enum):
    """Content-Disposition values supported for parts."""

    INLINE = "inline"
    ATTACHMENT = "attachment"


@dataclass
class ByteStream:
    """In-memory or streamed binary content with an optional declared type.

    Attributes:
        content: Raw bytes or a readable binary stream.
        content_type: MIME type declared by the caller, or None to sniff it.
    """

    content: bytes | bytearray | memoryview | IO[bytes]
    content_type: str | None = None


@dataclass(eq=False)
class MimePart:
    """A single attachment ready to be added to a message.

    Attributes:
        content: Payload bytes or an open binary stream owned by the part.
        type: MIME content type, e.g. "application/pdf".
        encoding: Transfer encoding used when serializing.
        disposition: Whether the part is shown inline or as an attachment.
        filename: Display name offered to the recipient.
        id: Optional Content-ID, used to reference inline parts.
        charset: Optional charset parameter for textual parts.
        description: Optional Content-Description header.
    """

    content: Any
    type: str = DEFAULT_CONTENT_TYPE
    encoding: TransferEncoding = TransferEncoding.BASE64
    disposition: Disposition = Disposition.ATTACHMENT
    filename: str | None = None
    id: str | None = None
    charset: str | None = None
    description: str | None = None
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def is_stream(self) -> bool:
        return hasattr(self.content, "read")

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self) -> bytes:
        """Return the payload as bytes, consuming and closing a wrapped stream.

        Raises:
            ValueError: If the wrapped stream was already closed.
        """
        if not self.is_stream:
            return bytes(self.content)
        if self._closed:
            raise ValueError(f"Content stream of part {self.filename!r} is already closed")
        try:
            data = self.content.read()
        finally:
            self.close()
        self.content = data
        return data

    def close(self) -> None:
        """Release the wrapped stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self.is_stream:
            self.content.close()

    def __enter__(self) -> MimePart:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
