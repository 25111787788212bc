"""Tests for the attachment parsers and content sniffing."""

import io

import pytest

from mail_composer.attachments import (
    ByteStream,
    ByteStreamAttachmentParser,
    DescriptorAttachmentParser,
    Disposition,
    FilePathAttachmentParser,
    MimePart,
    MimePartAttachmentParser,
    TransferEncoding,
)
from mail_composer.attachments.sniff import sniff_bytes
from mail_composer.exceptions import InvalidAttachmentError

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 16


class Pipe(io.RawIOBase):
    """Readable, non-seekable binary stream."""

    def __init__(self, data):
        self._buffer = io.BytesIO(data)

    def readable(self):
        return True

    def readinto(self, b):
        chunk = self._buffer.read(len(b))
        b[: len(chunk)] = chunk
        return len(chunk)


class TestSniff:
    """Tests for content-based MIME detection."""

    @pytest.mark.parametrize(
        "data, expected",
        [
            (PDF_BYTES, "application/pdf"),
            (PNG_BYTES, "image/png"),
            (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
            (b"PK\x03\x04\x14\x00", "application/zip"),
            (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"hello, plain text\n", "text/plain"),
            (b"<!DOCTYPE html><html></html>", "text/html"),
            (b"", "application/x-empty"),
            (b"\x00\x01\x02\x03\xfe", "application/octet-stream"),
        ],
    )
    def test_sniff_bytes(self, data, expected):
        assert sniff_bytes(data) == expected

    def test_utf8_text_cut_at_boundary_is_text(self):
        data = ("a" * 2047 + "é").encode("utf-8")
        assert sniff_bytes(data) == "text/plain"


class TestFilePathAttachmentParser:
    """Tests for the FilePathAttachmentParser class."""

    def test_parse_uses_basename_and_defaults(self, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(PDF_BYTES)

        part = FilePathAttachmentParser().parse(str(path))

        assert part.filename == "report.pdf"
        assert part.encoding is TransferEncoding.BASE64
        assert part.disposition is Disposition.ATTACHMENT
        assert part.type == "application/pdf"
        assert part.is_stream
        part.close()

    def test_explicit_name_wins(self, tmp_path):
        path = tmp_path / "r-2024.pdf"
        path.write_bytes(PDF_BYTES)

        with FilePathAttachmentParser().parse(path, "invoice.pdf") as part:
            assert part.filename == "invoice.pdf"

    def test_type_comes_from_content_not_extension(self, tmp_path):
        """A PNG saved with a .txt extension is still reported as PNG."""
        path = tmp_path / "image.txt"
        path.write_bytes(PNG_BYTES)

        with FilePathAttachmentParser().parse(path) as part:
            assert part.type == "image/png"

    def test_stream_is_read_from_start_and_closed(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(PDF_BYTES)
        part = FilePathAttachmentParser().parse(path)
        stream = part.content

        assert part.read() == PDF_BYTES
        assert stream.closed
        assert part.closed

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(InvalidAttachmentError, match="file path") as exc_info:
            FilePathAttachmentParser().parse(str(tmp_path / "missing.pdf"))
        assert exc_info.value.expected == ("file path",)

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(InvalidAttachmentError):
            FilePathAttachmentParser().parse(str(tmp_path))

    @pytest.mark.parametrize("value", [42, b"/etc/hosts", None, {"content": b"x"}])
    def test_non_path_rejected(self, value):
        with pytest.raises(InvalidAttachmentError):
            FilePathAttachmentParser().parse(value)


class TestMimePartAttachmentParser:
    """Tests for the MimePartAttachmentParser class."""

    def test_pass_through_without_name(self):
        part = MimePart(b"data", type="text/csv", filename="original.csv", encoding=TransferEncoding.QUOTED_PRINTABLE)

        result = MimePartAttachmentParser().parse(part)

        assert result is part
        assert result.filename == "original.csv"
        assert result.type == "text/csv"
        assert result.encoding is TransferEncoding.QUOTED_PRINTABLE

    def test_name_overrides_filename_only(self):
        part = MimePart(b"data", type="text/csv", disposition=Disposition.INLINE, filename="a.csv", id="cid-1")

        result = MimePartAttachmentParser().parse(part, "b.csv")

        assert result.filename == "b.csv"
        assert result.type == "text/csv"
        assert result.disposition is Disposition.INLINE
        assert result.id == "cid-1"
        assert result.content == b"data"

    def test_part_without_filename_keeps_none(self):
        part = MimePart(b"data")
        assert MimePartAttachmentParser().parse(part).filename is None

    @pytest.mark.parametrize("value", ["file.txt", b"bytes", {"content": b"x"}])
    def test_non_part_rejected(self, value):
        with pytest.raises(InvalidAttachmentError, match="MimePart"):
            MimePartAttachmentParser().parse(value)


class TestByteStreamAttachmentParser:
    """Tests for the ByteStreamAttachmentParser class."""

    def test_bytes_are_sniffed(self):
        part = ByteStreamAttachmentParser().parse(PDF_BYTES, "doc.pdf")

        assert part.content == PDF_BYTES
        assert part.type == "application/pdf"
        assert part.filename == "doc.pdf"
        assert part.encoding is TransferEncoding.BASE64
        assert part.disposition is Disposition.ATTACHMENT

    def test_anonymous_bytes_get_generated_name(self):
        part = ByteStreamAttachmentParser().parse(bytearray(PDF_BYTES))
        assert part.filename == "attachment.pdf"

    def test_declared_type_is_used(self):
        part = ByteStreamAttachmentParser().parse(ByteStream(b"a;b\n1;2\n", "text/csv"), "data.csv")
        assert part.type == "text/csv"

    def test_seekable_stream_kept_and_rewound(self):
        stream = io.BytesIO(PNG_BYTES)

        part = ByteStreamAttachmentParser().parse(stream)

        assert part.content is stream
        assert part.type == "image/png"
        assert stream.tell() == 0
        assert part.read() == PNG_BYTES
        assert stream.closed

    def test_file_object_name_is_used(self, tmp_path):
        path = tmp_path / "scan.png"
        path.write_bytes(PNG_BYTES)

        part = ByteStreamAttachmentParser().parse(path.open("rb"))

        assert part.filename == "scan.png"
        part.close()

    def test_non_seekable_stream_is_drained(self):
        pipe = Pipe(PDF_BYTES)
        part = ByteStreamAttachmentParser().parse(pipe)

        assert part.content == PDF_BYTES
        assert part.type == "application/pdf"
        assert pipe.closed

    @pytest.mark.parametrize("value", ["text", io.StringIO("text"), 3.14, {"content": b"x"}])
    def test_non_binary_rejected(self, value):
        with pytest.raises(InvalidAttachmentError, match="byte stream"):
            ByteStreamAttachmentParser().parse(value)


class TestDescriptorAttachmentParser:
    """Tests for the DescriptorAttachmentParser class."""

    def test_full_descriptor(self):
        part = DescriptorAttachmentParser().parse({
            "content": "id,total\n1,42\n",
            "filename": "totals.csv",
            "type": "text/csv",
            "encoding": "quoted-printable",
            "disposition": "inline",
            "id": "totals",
            "charset": "utf-8",
            "description": "Monthly totals",
        })

        assert part.content == b"id,total\n1,42\n"
        assert part.filename == "totals.csv"
        assert part.type == "text/csv"
        assert part.encoding is TransferEncoding.QUOTED_PRINTABLE
        assert part.disposition is Disposition.INLINE
        assert part.id == "totals"
        assert part.charset == "utf-8"
        assert part.description == "Monthly totals"

    def test_defaults_and_sniffing(self):
        part = DescriptorAttachmentParser().parse({"content": PDF_BYTES})

        assert part.type == "application/pdf"
        assert part.encoding is TransferEncoding.BASE64
        assert part.disposition is Disposition.ATTACHMENT
        assert part.filename == "attachment.pdf"

    def test_explicit_name_beats_descriptor_filename(self):
        part = DescriptorAttachmentParser().parse({"content": b"x", "filename": "a.txt"}, "b.txt")
        assert part.filename == "b.txt"

    def test_text_encoded_with_charset(self):
        part = DescriptorAttachmentParser().parse({"content": "caffè", "charset": "latin-1"})
        assert part.content == "caffè".encode("latin-1")

    def test_missing_content_rejected(self):
        with pytest.raises(InvalidAttachmentError, match="attachment descriptor"):
            DescriptorAttachmentParser().parse({"filename": "a.txt"})

    def test_unknown_keys_rejected(self):
        with pytest.raises(InvalidAttachmentError, match="Unknown attachment descriptor keys: size"):
            DescriptorAttachmentParser().parse({"content": b"x", "size": 1})

    def test_invalid_encoding_rejected(self):
        with pytest.raises(InvalidAttachmentError):
            DescriptorAttachmentParser().parse({"content": b"x", "encoding": "uuencode"})

    def test_invalid_disposition_leaves_stream_untouched(self):
        pipe = Pipe(PDF_BYTES)

        with pytest.raises(InvalidAttachmentError):
            DescriptorAttachmentParser().parse({"content": pipe, "disposition": "sideways"})

        assert not pipe.closed
        assert pipe.read() == PDF_BYTES

    def test_invalid_content_rejected(self):
        with pytest.raises(InvalidAttachmentError, match="content must be"):
            DescriptorAttachmentParser().parse({"content": 12})


class TestMimePart:
    """Tests for MimePart stream ownership."""

    def test_close_is_idempotent(self):
        stream = io.BytesIO(b"abc")
        part = MimePart(stream)

        part.close()
        part.close()

        assert stream.closed
        assert part.closed

    def test_read_after_close_fails(self):
        part = MimePart(io.BytesIO(b"abc"), filename="a.bin")
        part.close()

        with pytest.raises(ValueError, match="already closed"):
            part.read()

    def test_read_twice_returns_cached_bytes(self):
        part = MimePart(io.BytesIO(b"abc"))
        assert part.read() == b"abc"
        assert part.read() == b"abc"

    def test_context_manager_closes(self):
        stream = io.BytesIO(b"abc")
        with MimePart(stream):
            pass
        assert stream.closed
