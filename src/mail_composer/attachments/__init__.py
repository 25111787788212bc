# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Attachment normalization with first-match parser dispatch.

This module provides the AttachmentNormalizer class, which turns the
attachment inputs accepted by the composer into canonical MimePart values.

Supported input shapes, in default registration order:
- file path - ``str`` or ``os.PathLike`` naming an existing readable file
- MimePart - a prebuilt part, passed through
- byte stream - bytes-like buffers, binary streams, ``ByteStream`` wrappers
- attachment descriptor - a mapping with ``content`` and part attributes

Dispatch is first-match, not best-match: parsers are tried in registration
order and the first one that does not raise InvalidAttachmentError wins.
Registration order is therefore part of the public behaviour.

Example:
    Normalizing mixed inputs::

        normalizer = AttachmentNormalizer()
        pdf = normalizer.normalize("/srv/files/invoice.pdf")
        csv = normalizer.normalize({"content": "a,b\\n", "type": "text/csv"}, "data.csv")
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..exceptions import InvalidAttachmentError
from ..logger import get_logger
from .base import AttachmentParserBase
from .byte_stream_parser import ByteStreamAttachmentParser
from .descriptor_parser import DescriptorAttachmentParser
from .file_path_parser import FilePathAttachmentParser
from .mime_part_parser import MimePartAttachmentParser
from .part import ByteStream, Disposition, MimePart, TransferEncoding

__all__ = [
    "AttachmentNormalizer",
    "AttachmentParserBase",
    "ByteStream",
    "ByteStreamAttachmentParser",
    "DescriptorAttachmentParser",
    "Disposition",
    "FilePathAttachmentParser",
    "MimePart",
    "MimePartAttachmentParser",
    "TransferEncoding",
    "default_parsers",
]


def default_parsers() -> list[AttachmentParserBase]:
    """Return a fresh list of the built-in parsers in their dispatch order."""
    return [
        FilePathAttachmentParser(),
        MimePartAttachmentParser(),
        ByteStreamAttachmentParser(),
        DescriptorAttachmentParser(),
    ]


class AttachmentNormalizer:
    """Routes attachment inputs to the first parser that accepts them.

    The normalizer holds no per-call state; the parser list is only changed
    through ``register``. Streams opened while parsing belong to the
    returned parts and are never closed here.

    Attributes:
        _parsers: Registered parsers in dispatch order.
    """

    def __init__(self, parsers: Iterable[AttachmentParserBase] | None = None):
        """Initialize the normalizer.

        Args:
            parsers: Parsers in dispatch order. Defaults to the built-in set
                returned by ``default_parsers()``.
        """
        self._parsers: list[AttachmentParserBase] = (
            list(parsers) if parsers is not None else default_parsers()
        )
        self.logger = get_logger("Attachments")

    @property
    def parsers(self) -> tuple[AttachmentParserBase, ...]:
        return tuple(self._parsers)

    def register(self, parser: AttachmentParserBase, *, first: bool = False) -> None:
        """Add a parser at the end of the dispatch order, or at the front."""
        if first:
            self._parsers.insert(0, parser)
        else:
            self._parsers.append(parser)

    def normalize(self, attachment: Any, name: str | None = None) -> MimePart:
        """Convert one attachment input into a MimePart.

        Args:
            attachment: Any supported attachment input.
            name: Optional display name overriding derived filenames.

        Returns:
            The part produced by the first accepting parser.

        Raises:
            InvalidAttachmentError: If no registered parser accepts the input.
                The ``expected`` attribute lists every kind that was tried.
        """
        rejections: list[InvalidAttachmentError] = []
        for parser in self._parsers:
            try:
                part = parser.parse(attachment, name)
            except InvalidAttachmentError as exc:
                rejections.append(exc)
                continue
            self.logger.debug(
                "Attachment %s normalized by %s as %s",
                part.filename,
                type(parser).__name__,
                part.type,
            )
            return part

        expected = [kind for exc in rejections for kind in exc.expected]
        error = InvalidAttachmentError.from_expected_types(expected)
        if rejections:
            raise error from rejections[-1]
        raise error

    def normalize_all(self, attachments: Iterable[Any]) -> list[MimePart]:
        """Normalize a sequence of inputs or ``(input, name)`` pairs.

        If any input fails, the parts already produced are closed before the
        error propagates, since ownership never reached the caller.
        """
        parts: list[MimePart] = []
        try:
            for item in attachments:
                if isinstance(item, tuple) and len(item) == 2:
                    attachment, name = item
                else:
                    attachment, name = item, None
                parts.append(self.normalize(attachment, name))
        except BaseException:
            for part in parts:
                part.close()
            raise
        return parts
