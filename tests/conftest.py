"""Shared fixtures for Portable Text tests."""

import json

import pytest

from portabletext.models import BlockData


END_TO_END = {
    "blocks": [
        {
            "_type": "block",
            "_key": "k1",
            "style": "h1",
            "children": [{"_type": "span", "text": "Hello", "marks": []}],
        },
        {
            "_type": "block",
            "_key": "k2",
            "style": "normal",
            "children": [
                {"_type": "span", "text": "world ", "marks": []},
                {"_type": "span", "text": "bold", "marks": ["strong"]},
            ],
        },
    ]
}


@pytest.fixture
def end_to_end_json() -> str:
    return json.dumps(END_TO_END)


@pytest.fixture
def rich_document_json() -> str:
    """Document exercising links, code blocks and schema extensions."""
    return json.dumps({
        "blocks": [
            {
                "_type": "block",
                "_key": "title",
                "style": "h2",
                "children": [{"_type": "span", "_key": "t0", "text": "Getting started"}],
            },
            {
                "_type": "block",
                "_key": "intro",
                "style": "normal",
                "customAlign": "center",
                "markDefs": [
                    {"_type": "link", "_key": "docs", "href": "https://example.com/docs", "blank": True},
                ],
                "children": [
                    {"_type": "span", "text": "Read the "},
                    {"_type": "span", "text": "docs", "marks": ["docs", "em"]},
                    {"_type": "span", "text": " first.", "marks": ["strike"]},
                ],
            },
            {
                "_type": "code",
                "_key": "snippet",
                "language": "python",
                "children": [
                    {"_type": "span", "text": "print('hi')\n"},
                    {"_type": "span", "text": "x = 1", "marks": ["strong"]},
                ],
            },
        ]
    })


@pytest.fixture
def make_block():
    """Build a BlockData from wire-format keyword overrides."""
    def _make(**fields) -> BlockData:
        data = {"_type": "block", "_key": "b1"}
        data.update(fields)
        return BlockData.model_validate(data)
    return _make


@pytest.fixture
def span():
    """Build a span dict."""
    def _span(text: str, *marks: str, key: str = None) -> dict:
        data = {"_type": "span", "text": text, "marks": list(marks)}
        if key is not None:
            data["_key"] = key
        return data
    return _span
