"""Tests for AttachmentNormalizer dispatch."""

import io

import pytest

from mail_composer.attachments import (
    AttachmentNormalizer,
    AttachmentParserBase,
    ByteStreamAttachmentParser,
    DescriptorAttachmentParser,
    FilePathAttachmentParser,
    MimePart,
    MimePartAttachmentParser,
    TransferEncoding,
)
from mail_composer.exceptions import InvalidAttachmentError


class AcceptAllParser(AttachmentParserBase):
    expected_type = "anything"

    def __init__(self, label):
        self.label = label

    def parse(self, attachment, name=None):
        return MimePart(b"", filename=self.label)


class RejectAllParser(AttachmentParserBase):
    expected_type = "nothing"

    def parse(self, attachment, name=None):
        raise self.reject()


def test_default_parser_order():
    normalizer = AttachmentNormalizer()
    assert [type(p) for p in normalizer.parsers] == [
        FilePathAttachmentParser,
        MimePartAttachmentParser,
        ByteStreamAttachmentParser,
        DescriptorAttachmentParser,
    ]


def test_file_path_input(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("some notes\n")

    with AttachmentNormalizer().normalize(str(path)) as part:
        assert part.filename == "notes.txt"
        assert part.type == "text/plain"
        assert part.encoding is TransferEncoding.BASE64


def test_raw_part_input_is_passed_through():
    part = MimePart(b"x", type="text/plain", filename="a.txt")
    assert AttachmentNormalizer().normalize(part, "b.txt") is part
    assert part.filename == "b.txt"


def test_bytes_and_descriptor_inputs():
    normalizer = AttachmentNormalizer()

    from_bytes = normalizer.normalize(b"%PDF-1.7\n", "a.pdf")
    from_descriptor = normalizer.normalize({"content": b"x", "type": "text/plain"}, "b.txt")

    assert from_bytes.type == "application/pdf"
    assert from_descriptor.type == "text/plain"
    assert from_descriptor.filename == "b.txt"


def test_first_registered_parser_wins():
    normalizer = AttachmentNormalizer([AcceptAllParser("first"), AcceptAllParser("second")])

    for _ in range(3):
        assert normalizer.normalize(b"data").filename == "first"


def test_register_first_takes_precedence():
    normalizer = AttachmentNormalizer()
    normalizer.register(AcceptAllParser("custom"), first=True)

    assert normalizer.normalize(b"data").filename == "custom"


def test_register_appends_as_fallback():
    normalizer = AttachmentNormalizer()
    normalizer.register(AcceptAllParser("fallback"))

    assert normalizer.normalize(b"%PDF-1.7").type == "application/pdf"
    assert normalizer.normalize(object()).filename == "fallback"


def test_rejected_parsers_fall_through():
    normalizer = AttachmentNormalizer([RejectAllParser(), AcceptAllParser("second")])
    assert normalizer.normalize("x").filename == "second"


def test_no_parser_accepts_lists_every_kind(tmp_path):
    with pytest.raises(InvalidAttachmentError) as exc_info:
        AttachmentNormalizer().normalize(str(tmp_path / "missing.pdf"))

    assert exc_info.value.expected == (
        "file path",
        "MimePart",
        "byte stream",
        "attachment descriptor",
    )
    assert "Expected one of" in str(exc_info.value)


def test_unsupported_type_rejected():
    with pytest.raises(InvalidAttachmentError):
        AttachmentNormalizer().normalize(12345)


def test_empty_registry_rejects_everything():
    with pytest.raises(InvalidAttachmentError):
        AttachmentNormalizer([]).normalize(b"data")


def test_other_errors_propagate():
    class BrokenParser(AttachmentParserBase):
        def parse(self, attachment, name=None):
            raise RuntimeError("boom")

    normalizer = AttachmentNormalizer([BrokenParser(), AcceptAllParser("never")])
    with pytest.raises(RuntimeError, match="boom"):
        normalizer.normalize(b"data")


def test_normalize_all_accepts_pairs():
    parts = AttachmentNormalizer().normalize_all([(b"abc", "a.txt"), b"def"])

    assert parts[0].filename == "a.txt"
    assert parts[1].filename.startswith("attachment.")


def test_normalize_all_closes_parts_on_failure():
    stream = io.BytesIO(b"%PDF-1.7")

    with pytest.raises(InvalidAttachmentError):
        AttachmentNormalizer().normalize_all([stream, 42])

    assert stream.closed


def test_normalizer_never_closes_returned_streams(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"\x00\x01")

    part = AttachmentNormalizer().normalize(path)

    assert not part.content.closed
    part.close()
