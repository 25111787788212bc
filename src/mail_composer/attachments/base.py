# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for attachment parsers.

This module defines the interface that all attachment parser implementations
follow. Each parser recognizes exactly one input shape (file path, prebuilt
MimePart, byte stream, descriptor mapping) and turns it into a MimePart.

A parser that does not recognize its input raises InvalidAttachmentError.
The AttachmentNormalizer relies on that signal to fall through to the next
registered parser, so parsers must reject foreign inputs before producing
any side effect such as opening a file.
"""

from __future__ import annotations

import mimetypes
from typing import Any

from ..exceptions import InvalidAttachmentError
from .part import MimePart

DEFAULT_FILENAME_STEM = "attachment"


class AttachmentParserBase:
    """Abstract base class defining the attachment parser interface.

    Attributes:
        expected_type: Human-readable name of the accepted input shape, used
            in InvalidAttachmentError messages.
    """

    expected_type: str = "attachment"

    def parse(self, attachment: Any, name: str | None = None) -> MimePart:
        """Convert an attachment input into a MimePart.

        Args:
            attachment: The raw attachment input.
            name: Optional display name overriding any derived filename.

        Returns:
            The normalized MimePart.

        Raises:
            InvalidAttachmentError: If the input is not the shape handled by
                this parser.
            NotImplementedError: If called on the base class directly.
        """
        raise NotImplementedError

    def reject(self) -> InvalidAttachmentError:
        return InvalidAttachmentError.from_expected_type(self.expected_type)

    @staticmethod
    def apply_name_to_part(part: MimePart, name: str | None) -> MimePart:
        """Set ``name`` as the part filename when one is given.

        An explicit name always wins over a filename the part already
        carries. Without a name the part is returned untouched.
        """
        if name is not None:
            part.filename = name
        return part

    @staticmethod
    def default_filename(content_type: str) -> str:
        """Build a filename for anonymous content from its MIME type."""
        extension = mimetypes.guess_extension(content_type.split(";", 1)[0].strip()) or ".bin"
        return f"{DEFAULT_FILENAME_STEM}{extension}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} expects {self.expected_type!r}>"
