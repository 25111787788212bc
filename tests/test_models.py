"""Tests for the Email model and EmailBuilder presets."""

import pytest

from mail_composer.builder import EmailBuilder
from mail_composer.exceptions import ConfigurationError
from mail_composer.models import Email


class TestEmail:
    """Tests for the Email model."""

    def test_comma_separated_addresses_are_split(self):
        email = Email(to="a@example.com, b@example.com ,", cc=("c@example.com",))

        assert email.to == ["a@example.com", "b@example.com"]
        assert email.cc == ["c@example.com"]
        assert email.bcc == []

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValueError):
            Email(recipient="a@example.com")

    def test_add_attachment_with_and_without_name(self):
        email = Email()
        email.add_attachment("/tmp/a.pdf").add_attachment(b"data", "b.bin")

        assert email.attachments == ["/tmp/a.pdf", (b"data", "b.bin")]

    def test_compute_attachments_includes_directory(self, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.txt").write_text("c")

        email = Email(attachments=["/explicit.pdf"], attachments_dir=str(tmp_path))

        assert email.compute_attachments() == [
            "/explicit.pdf",
            str(tmp_path / "a.txt"),
            str(tmp_path / "b.txt"),
        ]

    def test_compute_attachments_recursive(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.txt").write_text("c")

        email = Email(attachments_dir=str(tmp_path), attachments_dir_recursive=True)

        assert email.compute_attachments() == [str(tmp_path / "sub" / "c.txt")]

    def test_missing_directory_is_ignored(self, tmp_path):
        email = Email(attachments_dir=str(tmp_path / "missing"))
        assert email.compute_attachments() == []


class TestEmailBuilder:
    """Tests for preset resolution."""

    @pytest.fixture
    def builder(self):
        return EmailBuilder({
            "base": {
                "from_address": "noreply@example.com",
                "template": "base.html",
                "template_params": {"brand": "Acme", "year": 2024},
            },
            "welcome": {
                "extends": "base",
                "subject": "Welcome",
                "template_params": {"year": 2025},
            },
            "loop_a": {"extends": "loop_b"},
            "loop_b": {"extends": "loop_a"},
            "orphan": {"extends": "missing"},
        })

    def test_build_without_preset(self, builder):
        email = builder.build(to="a@example.com", subject="Ad hoc")
        assert email.subject == "Ad hoc"
        assert email.from_address is None

    def test_extends_chain_is_merged(self, builder):
        email = builder.build("welcome")

        assert email.from_address == "noreply@example.com"
        assert email.subject == "Welcome"
        assert email.template == "base.html"
        assert email.template_params == {"brand": "Acme", "year": 2025}

    def test_overrides_win_and_none_is_ignored(self, builder):
        email = builder.build("welcome", subject="Hello", from_address=None, to=["x@example.com"])

        assert email.subject == "Hello"
        assert email.from_address == "noreply@example.com"
        assert email.to == ["x@example.com"]

    def test_unknown_preset(self, builder):
        with pytest.raises(ConfigurationError, match="'nope' is not defined"):
            builder.build("nope")

    def test_undefined_parent(self, builder):
        with pytest.raises(ConfigurationError, match="extends undefined preset 'missing'"):
            builder.build("orphan")

    def test_circular_inheritance(self, builder):
        with pytest.raises(ConfigurationError, match="Circular"):
            builder.build("loop_a")

    def test_invalid_fields(self):
        builder = EmailBuilder({"bad": {"is_html": "not-a-bool"}})
        with pytest.raises(ConfigurationError, match="Invalid email definition"):
            builder.build("bad")

    def test_preset_names(self, builder):
        assert builder.preset_names == ["base", "loop_a", "loop_b", "orphan", "welcome"]
