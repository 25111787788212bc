# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parser for attachments described by a mapping of part attributes.

Example:
    A descriptor with inline text content::

        part = DescriptorAttachmentParser().parse({
            "content": "id,total\\n1,42\\n",
            "filename": "totals.csv",
            "type": "text/csv",
            "charset": "utf-8",
        })

Recognized keys are ``content`` (required), ``filename``, ``type``,
``encoding``, ``disposition``, ``id``, ``charset`` and ``description``.
Text content is encoded with the descriptor charset (utf-8 by default).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..exceptions import InvalidAttachmentError
from .base import AttachmentParserBase
from .byte_stream_parser import prepare_payload
from .part import Disposition, MimePart, TransferEncoding

DESCRIPTOR_KEYS = frozenset(
    {"content", "filename", "type", "encoding", "disposition", "id", "charset", "description"}
)


class DescriptorAttachmentParser(AttachmentParserBase):
    """Builds a MimePart from a ``content`` + attributes mapping."""

    expected_type = "attachment descriptor"

    def parse(self, attachment: Any, name: str | None = None) -> MimePart:
        if not isinstance(attachment, Mapping) or "content" not in attachment:
            raise self.reject()

        unknown = set(attachment) - DESCRIPTOR_KEYS
        if unknown:
            raise InvalidAttachmentError(
                f"Unknown attachment descriptor keys: {', '.join(sorted(map(str, unknown)))}",
                expected=(self.expected_type,),
            )

        try:
            encoding = TransferEncoding(attachment.get("encoding") or TransferEncoding.BASE64)
            disposition = Disposition(attachment.get("disposition") or Disposition.ATTACHMENT)
        except ValueError as exc:
            raise InvalidAttachmentError(str(exc), expected=(self.expected_type,)) from exc

        charset = attachment.get("charset")
        content = attachment["content"]
        if isinstance(content, str):
            content = content.encode(charset or "utf-8")

        payload = prepare_payload(content)
        if payload is None:
            raise InvalidAttachmentError(
                "Attachment descriptor content must be text, bytes or a binary stream",
                expected=(self.expected_type,),
            )
        content, detected_type = payload

        content_type = attachment.get("type") or detected_type
        part = MimePart(
            content,
            type=content_type,
            encoding=encoding,
            disposition=disposition,
            filename=attachment.get("filename"),
            id=attachment.get("id"),
            charset=charset,
            description=attachment.get("description"),
        )
        if name is None and not part.filename:
            name = self.default_filename(content_type)
        return self.apply_name_to_part(part, name)
