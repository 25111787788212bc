# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parser for attachments that are already MimePart instances."""

from __future__ import annotations

from typing import Any

from .base import AttachmentParserBase
from .part import MimePart


class MimePartAttachmentParser(AttachmentParserBase):
    """Passes prebuilt parts through, only applying an explicit name."""

    expected_type = "MimePart"

    def parse(self, attachment: Any, name: str | None = None) -> MimePart:
        if not isinstance(attachment, MimePart):
            raise self.reject()
        return self.apply_name_to_part(attachment, name)
