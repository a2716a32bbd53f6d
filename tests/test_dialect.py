"""
Tests for format dialects

Author: Logent contributors | 2026-10-16
"""

import pytest

from logent_core.dialect import (
    FORMAT_INSTRUCTION_MARKDOWN,
    FORMAT_INSTRUCTION_ORG,
    MODEL_PROPERTY,
    Dialect,
    augment_system_message,
    embed_metadata,
    metadata_prefix,
    model_of,
    strip_metadata,
    system_suffix,
)


class TestDialectParse:
    """Tests for Dialect.parse."""

    def test_known_formats(self):
        """Test markdown and org map to their members."""
        assert Dialect.parse("markdown") is Dialect.MARKDOWN
        assert Dialect.parse("org") is Dialect.ORG

    def test_unknown_formats(self):
        """Test anything else is unrecognized."""
        assert Dialect.parse("html") is Dialect.UNRECOGNIZED
        assert Dialect.parse("") is Dialect.UNRECOGNIZED
        assert Dialect.parse(None) is Dialect.UNRECOGNIZED

    def test_member_passthrough(self):
        """Test a Dialect is returned unchanged."""
        assert Dialect.parse(Dialect.ORG) is Dialect.ORG


class TestSystemSuffix:
    """Tests for formatting instructions."""

    def test_markdown_suffix(self):
        """Test markdown instructions mention Markdown."""
        assert system_suffix("markdown") == FORMAT_INSTRUCTION_MARKDOWN
        assert "Markdown" in FORMAT_INSTRUCTION_MARKDOWN

    def test_org_suffix(self):
        """Test org instructions mention Org mode."""
        assert system_suffix("org") == FORMAT_INSTRUCTION_ORG
        assert "Org mode" in FORMAT_INSTRUCTION_ORG

    def test_unrecognized_has_no_suffix(self):
        """Test unrecognized dialect adds nothing."""
        assert system_suffix("html") is None
        assert augment_system_message("Be brief.", "html") == "Be brief."

    def test_augment_joins_with_space(self):
        """Test the suffix is appended after one space."""
        assert augment_system_message("Be brief.", "org") == f"Be brief. {FORMAT_INSTRUCTION_ORG}"


class TestMetadata:
    """Tests for provenance embedding and stripping."""

    def test_markdown_prefix(self):
        """Test markdown fragment layout."""
        assert metadata_prefix("markdown", "gpt-4") == f"{MODEL_PROPERTY}:: gpt-4\n"
        assert embed_metadata("markdown", "gpt-4", "Hi") == "chatseq-model:: gpt-4\nHi"

    def test_org_prefix(self):
        """Test org property drawer layout."""
        assert embed_metadata("org", "gpt-4", "Hello") == (
            ":PROPERTIES:\n:chatseq-model: gpt-4\n:END:\nHello"
        )

    def test_unrecognized_is_identity(self):
        """Test unrecognized dialect neither adds nor removes anything."""
        assert embed_metadata("html", "gpt-4", "Hello") == "Hello"
        assert strip_metadata("html", "chatseq-model:: gpt-4\nHello") == "chatseq-model:: gpt-4\nHello"

    @pytest.mark.parametrize("dialect", ["markdown", "org"])
    @pytest.mark.parametrize("body", ["", "Hello", "line 1\nline 2\n", "chatseq-model:: other\nx"])
    def test_strip_inverts_embed(self, dialect, body):
        """Test stripping recovers the original body."""
        assert strip_metadata(dialect, embed_metadata(dialect, "gpt-4-turbo", body)) == body

    def test_strip_without_fragment(self):
        """Test text without a leading fragment is unchanged."""
        assert strip_metadata("markdown", "Just text") == "Just text"
        assert strip_metadata("org", "Just text") == "Just text"

    def test_strip_only_at_start(self):
        """Test a fragment in the middle of the body is kept."""
        body = "Intro\nchatseq-model:: gpt-4\nrest"
        assert strip_metadata("markdown", body) == body

    def test_strip_any_model_name(self):
        """Test fragments naming another model are also stripped."""
        assert strip_metadata("markdown", "chatseq-model:: my-llama-70b\nAnswer") == "Answer"

    def test_multiline_model_rejected(self):
        """Test model names with newlines are refused."""
        with pytest.raises(ValueError):
            embed_metadata("markdown", "bad\nname", "x")


class TestModelOf:
    """Tests for reading the model property."""

    def test_canonical_key(self):
        """Test the dashed key."""
        assert model_of({"chatseq-model": "gpt-4"}) == "gpt-4"

    def test_camel_case_key(self):
        """Test hosts reporting camelCased keys."""
        assert model_of({"chatseqModel": "gpt-4"}) == "gpt-4"

    def test_missing(self):
        """Test notes without the property."""
        assert model_of({}) is None
        assert model_of(None) is None
        assert model_of({"chatseq-model": ""}) is None
