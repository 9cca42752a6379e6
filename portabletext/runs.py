"""
Run builder: turns a block's spans and mark definitions into styled runs.

Each input span yields exactly one run. Marks are applied in the order the
span lists them, so a later mark overwrites an earlier one when both set the
same attribute. A mark reference is looked up in the block's mark definitions
first and only then treated as a standard mark name.

License: MIT
"""

import logging
import re
from typing import Dict, List as ListType, Optional, Sequence
from urllib.parse import urlsplit

from portabletext.models import (
    CodeBlock,
    ConcreteBlock,
    Heading,
    MarkDefinition,
    Paragraph,
    RunAttributes,
    Span,
    StyledRun,
)
from portabletext.styles import colors

logger = logging.getLogger(__name__)

# name -> attribute overlay
STANDARD_MARKS: Dict[str, Dict[str, bool]] = {
    "strong": {"bold": True},
    "em": {"italic": True},
    "underline": {"underline": True},
    "strike": {"strikethrough": True},
    "strikethrough": {"strikethrough": True},
    "code": {"monospace": True},
}

_INVALID_URL_CHARS = re.compile(r"[\s<>\"{}|\\^`\x00-\x1f\x7f]")


def is_valid_url(href: str) -> bool:
    """
    Whether ``href`` is usable as a link target.

    Relative references ("/about", "#top") are accepted; empty strings,
    whitespace, control characters and unparseable authorities are not.
    """
    if not href or _INVALID_URL_CHARS.search(href):
        return False
    try:
        parts = urlsplit(href)
        # port access validates the netloc
        parts.port
    except ValueError:
        return False
    return True


def span_key(span: Span, index: int, block_key: Optional[str] = None) -> str:
    """Run identity: the span's own key, or one derived from its position."""
    if span.key:
        return span.key
    if block_key:
        return f"{block_key}:{index}"
    return f"span-{index}"


def apply_standard_mark(mark: str, attributes: RunAttributes) -> RunAttributes:
    """Apply a standard mark ("strong", "em", ...). Unknown names are ignored."""
    overlay = STANDARD_MARKS.get(mark)
    if overlay is None:
        logger.warning(f"Unknown standard mark: {mark}, ignoring")
        return attributes
    logger.debug(f"Applied standard mark '{mark}'")
    return attributes.model_copy(update=overlay)


def apply_mark_definition(mark_def: MarkDefinition, attributes: RunAttributes) -> RunAttributes:
    """
    Apply a mark definition.

    Only links are understood. A link without a usable href is skipped
    without raising, as are definitions of any other type.
    """
    if mark_def.type != "link":
        logger.warning(f"Unknown mark definition type: {mark_def.type}, ignoring")
        return attributes

    if mark_def.href is None or not is_valid_url(mark_def.href):
        logger.warning(f"Link mark definition missing valid href: {mark_def.key}")
        return attributes

    logger.debug(f"Applied link formatting with URL: {mark_def.href}")
    return attributes.model_copy(update={
        "link": mark_def.href,
        "foreground_color": colors.link,
        "underline": True,
    })


def build_runs(spans: Sequence[Span], mark_defs: Optional[Sequence[MarkDefinition]] = None,
               block_key: Optional[str] = None) -> ListType[StyledRun]:
    """
    Build styled runs from spans.

    Args:
        spans: Spans in document order
        mark_defs: Mark definitions of the owning block
        block_key: Key of the owning block, used to derive run keys

    Returns:
        One run per span; concatenated run text equals concatenated span text
    """
    if not spans:
        logger.debug("No spans provided, returning no runs")
        return []

    definitions: Dict[str, MarkDefinition] = {}
    for mark_def in mark_defs or []:
        # first definition wins for duplicate keys
        definitions.setdefault(mark_def.key, mark_def)

    runs: ListType[StyledRun] = []
    for index, span in enumerate(spans):
        attributes = RunAttributes()
        for mark in span.marks or []:
            mark_def = definitions.get(mark)
            if mark_def is not None:
                attributes = apply_mark_definition(mark_def, attributes)
            else:
                attributes = apply_standard_mark(mark, attributes)

        runs.append(StyledRun(
            text=span.text,
            key=span_key(span, index, block_key),
            attributes=attributes,
        ))

    return runs


def runs_for_block(block: ConcreteBlock) -> ListType[StyledRun]:
    """Render input of a classified block."""
    if isinstance(block, (Paragraph, Heading)):
        return build_runs(block.children, block.mark_defs, block_key=block.key)
    if isinstance(block, CodeBlock):
        code_style = RunAttributes(monospace=True)
        return [
            StyledRun(text=span.text, key=span_key(span, index, block.key), attributes=code_style)
            for index, span in enumerate(block.children)
        ]
    raise TypeError(f"Unknown block variant: {type(block).__name__}")
