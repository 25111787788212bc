# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parser for attachments given as a path to a local file.

The file is opened as a binary stream whose ownership moves to the returned
MimePart. The content type always comes from the file content, never from
the extension or a type supplied by the caller.

Example:
    Attaching a file under a different name::

        part = FilePathAttachmentParser().parse("/tmp/r-2024.pdf", "report.pdf")
        # part.type == "application/pdf", part.filename == "report.pdf"
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .base import AttachmentParserBase
from .part import Disposition, MimePart, TransferEncoding
from .sniff import sniff_stream


class FilePathAttachmentParser(AttachmentParserBase):
    """Builds a streamed MimePart from an existing, readable file path."""

    expected_type = "file path"

    def parse(self, attachment: Any, name: str | None = None) -> MimePart:
        if not isinstance(attachment, (str, os.PathLike)):
            raise self.reject()

        path = Path(attachment)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise self.reject()

        stream = path.open("rb")
        try:
            content_type = sniff_stream(stream)
        except BaseException:
            stream.close()
            raise

        part = MimePart(
            stream,
            type=content_type,
            encoding=TransferEncoding.BASE64,
            disposition=Disposition.ATTACHMENT,
        )
        return self.apply_name_to_part(part, name if name is not None else path.name)
