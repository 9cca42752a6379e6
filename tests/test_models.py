"""Tests for the Portable Text document model."""

import json

import pytest
from pydantic import ValidationError

from portabletext.models import (
    BlockData,
    CodeBlock,
    Document,
    MarkDefinition,
    RunAttributes,
    Span,
)
from portabletext.parser import decode


class TestSpan:
    def test_key_is_optional(self):
        span = Span.model_validate({"_type": "span", "text": "hi"})
        assert span.key is None
        assert span.type == "span"

    def test_mark_helpers(self):
        span = Span.model_validate({"_type": "span", "text": "hi", "marks": ["strong", "l1"]})
        assert span.has_marks
        assert span.has_mark("l1")
        assert not span.has_mark("em")

    def test_no_marks(self):
        span = Span.model_validate({"_type": "span", "text": "hi"})
        assert not span.has_marks
        assert not span.has_mark("strong")

    def test_nested_children_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Span.model_validate({"_type": "span", "text": "x", "children": []})
        assert exc_info.value.errors()[0]["type"] == "nested_content_too_deep"

    def test_text_must_be_string(self):
        with pytest.raises(ValidationError):
            Span.model_validate({"_type": "span", "text": 3})

    def test_frozen(self):
        span = Span.model_validate({"_type": "span", "text": "hi"})
        with pytest.raises(ValidationError):
            span.text = "changed"


class TestExtraFields:
    def test_unknown_block_keys_are_kept(self, make_block):
        block = make_block(_type="code", language="swift", lineNumbers=True, meta={"a": [1, 2]})
        assert block.extra_fields == {"language": "swift", "lineNumbers": True, "meta": {"a": [1, 2]}}

    def test_schema_fields_are_not_extra(self, make_block):
        block = make_block(style="normal", markDefs=[], children=[{"_type": "span", "text": "x"}], listItem="bullet")
        assert block.extra_fields == {}
        assert block.list_item == "bullet"

    def test_typed_accessor(self, make_block):
        block = make_block(language="swift", tabSize=4, ratio=0.5, wrap=False)
        assert block.extra_field("language", str) == "swift"
        assert block.extra_field("tabSize", int) == 4
        assert block.extra_field("ratio", float) == 0.5
        assert block.extra_field("wrap", bool) is False

    def test_typed_accessor_mismatch_returns_none(self, make_block):
        block = make_block(language=42, wrap=True)
        assert block.extra_field("language", str) is None
        assert block.extra_field("wrap", int) is None
        assert block.extra_field("missing", str) is None

    def test_mark_definition_extras(self):
        mark_def = MarkDefinition.model_validate(
            {"_type": "link", "_key": "l1", "href": "https://example.com", "blank": True}
        )
        assert mark_def.href == "https://example.com"
        assert mark_def.extra_field("blank", bool) is True


class TestMarkDefinition:
    def test_link_constructor(self):
        mark_def = MarkDefinition.link("l1", "https://example.com")
        assert mark_def.type == "link"
        assert mark_def.key == "l1"
        assert mark_def.href == "https://example.com"

    def test_requires_key(self):
        with pytest.raises(ValidationError):
            MarkDefinition.model_validate({"_type": "link", "href": "https://example.com"})


class TestRoundTrip:
    def test_decode_dump_decode_is_equal(self, rich_document_json):
        document = decode(rich_document_json)
        assert decode(document.to_json()) == document

    def test_extras_survive_round_trip(self, rich_document_json):
        document = decode(rich_document_json)
        again = decode(document.to_json())
        assert again.blocks[1].extra_fields == {"customAlign": "center"}
        assert again.blocks[1].mark_defs[0].extra_fields == {"blank": True}
        assert again.blocks[2].extra_field("language", str) == "python"

    def test_null_extra_survives_round_trip(self):
        raw = '{"blocks": [{"_type": "block", "_key": "a", "annotation": null}]}'
        document = decode(raw)
        assert "annotation" in document.blocks[0].extra_fields
        assert decode(document.to_json()) == document

    def test_wire_names(self, rich_document_json):
        wire = decode(rich_document_json).to_wire()
        block = wire["blocks"][1]
        assert block["_type"] == "block"
        assert block["_key"] == "intro"
        assert "markDefs" in block
        assert block["markDefs"][0]["_key"] == "docs"

    def test_absent_fields_stay_absent(self):
        raw = {"blocks": [{"_type": "block", "_key": "a", "children": [{"_type": "span", "text": "x"}]}]}
        wire = decode(json.dumps(raw)).to_wire()
        assert wire == raw


class TestConcreteBlocks:
    def test_code_block_text(self):
        code = CodeBlock(
            type="code",
            key="c1",
            children=[Span.model_validate({"_type": "span", "text": t}) for t in ("a = 1\n", "b = 2")],
        )
        assert code.code == "a = 1\nb = 2"
        assert code.style_key == "code"
        assert code.mark_defs == []

    def test_children_required(self):
        with pytest.raises(ValidationError):
            CodeBlock(type="code", key="c1", children=[])

    def test_document_can_be_built_empty(self):
        assert Document(blocks=[]).blocks == []

    def test_block_data_is_immutable(self, make_block):
        block = make_block(style="normal")
        with pytest.raises(ValidationError):
            block.style = "h1"


class TestRunAttributes:
    def test_default_is_plain(self):
        assert RunAttributes().is_plain

    def test_styled_is_not_plain(self):
        assert not RunAttributes(bold=True).is_plain
