"""
Pydantic models for Portable Text documents.

These models define the wire schema of a Portable Text payload (blocks,
spans, mark definitions), the concrete block variants produced by
classification, and the styled runs handed to a renderer.

License: MIT
"""

import json
from typing import Annotated, Any, Dict, List as ListType, Literal, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StrictStr, model_validator
from pydantic_core import PydanticCustomError

T = TypeVar("T")

RGB = Tuple[float, float, float]


class WireModel(BaseModel):
    """Base for records that map one-to-one onto Portable Text JSON objects."""
    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump using wire names, keeping exactly the fields that were provided."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ExtensibleModel(WireModel):
    """
    Wire record that keeps unknown JSON keys.

    Unknown keys are stored verbatim and re-emitted by ``to_wire`` so schema
    extensions survive a decode/encode round trip.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    @property
    def extra_fields(self) -> Dict[str, JsonValue]:
        """Fields not covered by the schema."""
        return dict(self.model_extra or {})

    def extra_field(self, name: str, kind: Type[T]) -> Optional[T]:
        """
        Typed lookup of an extra field.

        Args:
            name: JSON key of the field
            kind: Expected Python type (str, int, float, bool, list, dict)

        Returns:
            The value if present and of the expected type, otherwise None
        """
        value = self.extra_fields.get(name)
        if value is None:
            return None
        # bool is an int subclass; JSON true is not a number
        if isinstance(value, bool) and kind is not bool:
            return None
        if isinstance(value, kind):
            return value
        return None


class Span(WireModel):
    """
    Inline text span.

    ``marks`` holds standard mark names ("strong", "em", ...) or keys of the
    owning block's mark definitions.
    """
    type: StrictStr = Field(..., alias="_type", description="Span type, usually 'span'")
    key: Optional[StrictStr] = Field(default=None, alias="_key", description="Optional span key")
    text: StrictStr = Field(..., description="Text content (may be empty)")
    marks: Optional[ListType[StrictStr]] = Field(default=None, description="Mark references")

    @model_validator(mode="before")
    @classmethod
    def reject_nested_children(cls, data: Any) -> Any:
        """Spans are leaves; a span carrying children is a nested block."""
        if isinstance(data, dict) and "children" in data:
            raise PydanticCustomError(
                "nested_content_too_deep",
                "Span contains nested 'children'; only one level of nesting is supported",
            )
        return data

    def has_mark(self, mark: str) -> bool:
        """Whether the span references ``mark``."""
        return mark in (self.marks or [])

    @property
    def has_marks(self) -> bool:
        return bool(self.marks)


class MarkDefinition(ExtensibleModel):
    """Out-of-band data for a mark, such as a link target."""
    type: StrictStr = Field(..., alias="_type", description="Definition type, e.g. 'link'")
    key: StrictStr = Field(..., alias="_key", description="Key referenced by span marks")
    href: Optional[StrictStr] = Field(default=None, description="Target URL for links")

    @classmethod
    def link(cls, key: str, href: str) -> "MarkDefinition":
        """Create a link mark definition."""
        return cls.model_validate({"_type": "link", "_key": key, "href": href})


class BlockData(ExtensibleModel):
    """
    Generic block record, before classification.

    ``level`` and ``listItem`` are carried for forward compatibility; no
    current block variant reads them.
    """
    type: StrictStr = Field(..., alias="_type", description="Block type, e.g. 'block' or 'code'")
    key: StrictStr = Field(..., alias="_key", description="Block key")
    style: Optional[StrictStr] = Field(default=None, description="Block style ('normal', 'h1'..'h6')")
    mark_defs: Optional[ListType[MarkDefinition]] = Field(default=None, alias="markDefs")
    children: Optional[ListType[Span]] = Field(default=None, description="Inline content")
    level: Optional[int] = Field(default=None, description="Nesting level (reserved)")
    list_item: Optional[StrictStr] = Field(default=None, alias="listItem", description="List type (reserved)")


class Document(WireModel):
    """Root container holding the ordered block records."""
    blocks: ListType[BlockData] = Field(..., description="Content blocks")

    def to_json(self) -> str:
        """Serialize back to Portable Text JSON."""
        return json.dumps(self.to_wire(), ensure_ascii=False)

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "blocks": [
                    {
                        "_type": "block",
                        "_key": "intro",
                        "style": "h1",
                        "children": [{"_type": "span", "text": "Introduction"}],
                    },
                    {
                        "_type": "block",
                        "_key": "body",
                        "style": "normal",
                        "markDefs": [{"_type": "link", "_key": "l1", "href": "https://example.com"}],
                        "children": [
                            {"_type": "span", "text": "This is "},
                            {"_type": "span", "text": "important", "marks": ["strong", "l1"]},
                        ],
                    },
                ]
            }
        },
    )


# Concrete block variants (post-classification)


class BlockBase(BaseModel):
    """Capabilities shared by every classified block."""
    model_config = ConfigDict(frozen=True)

    type: str
    key: str
    mark_defs: ListType[MarkDefinition] = Field(default_factory=list)
    children: ListType[Span] = Field(..., min_length=1)

    @property
    def plain_text(self) -> str:
        return "".join(span.text for span in self.children)


class Paragraph(BlockBase):
    """Paragraph block."""
    kind: Literal["paragraph"] = "paragraph"
    style: str = "normal"

    @property
    def style_key(self) -> str:
        return self.style


class Heading(BlockBase):
    """Heading block (h1..h6)."""
    kind: Literal["heading"] = "heading"
    style: str
    level: int = Field(..., ge=1, le=6)

    @property
    def style_key(self) -> str:
        return self.style


class CodeBlock(BlockBase):
    """Code block; children are raw code text, marks are ignored."""
    kind: Literal["code"] = "code"
    language: Optional[str] = None

    @property
    def style_key(self) -> str:
        return self.type

    @property
    def code(self) -> str:
        return self.plain_text


ConcreteBlock = Annotated[Union[Paragraph, Heading, CodeBlock], Field(discriminator="kind")]


# Styled runs (output of the run builder)


class RunAttributes(BaseModel):
    """Resolved inline style of a run."""
    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    monospace: bool = False
    link: Optional[str] = None
    foreground_color: Optional[RGB] = None

    @property
    def is_plain(self) -> bool:
        return self == RunAttributes()


class StyledRun(BaseModel):
    """One span's text with its resolved attributes."""
    model_config = ConfigDict(frozen=True)

    text: str
    key: str
    attributes: RunAttributes = Field(default_factory=RunAttributes)
