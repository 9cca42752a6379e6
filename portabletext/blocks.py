"""
Block classification: maps generic block records onto concrete variants.

``block`` records are dispatched on their style (h1..h6 → Heading,
"normal" or no style → Paragraph); ``code`` records become CodeBlocks.
Every variant requires non-empty children, checked here independently of
the validator.

License: MIT
"""

import logging
from typing import List as ListType, Sequence

from portabletext.errors import (
    MalformedStructureError,
    MissingRequiredFieldError,
    PortableTextError,
    UnsupportedBlockTypeError,
)
from portabletext.models import BlockData, CodeBlock, ConcreteBlock, Heading, Paragraph

logger = logging.getLogger(__name__)


def heading_level(style: str) -> int:
    """
    Extract the heading level from an "h<digit>" style.

    Only the first character after "h" is examined.

    Raises:
        MalformedStructureError: The character is not a digit from 1 to 6
    """
    level_char = style[1:2]
    if level_char and level_char in "123456":
        return int(level_char)
    raise MalformedStructureError(f"Invalid heading level in style: {style}", field="style")


def _require_children(block: BlockData, variant: str):
    if not block.children:
        logger.warning(f"{variant} block missing children: {block.key}")
        raise MissingRequiredFieldError(
            f"{variant} block must have children", key=block.key, field="children"
        )
    return block.children


def create_paragraph(block: BlockData) -> Paragraph:
    children = _require_children(block, "Paragraph")
    return Paragraph(
        type=block.type,
        key=block.key,
        style=block.style or "normal",
        mark_defs=block.mark_defs or [],
        children=children,
    )


def create_heading(block: BlockData, level: int) -> Heading:
    children = _require_children(block, "Heading")
    if block.style is None:
        raise MissingRequiredFieldError("Heading block must have style", key=block.key, field="style")
    return Heading(
        type=block.type,
        key=block.key,
        style=block.style,
        level=level,
        mark_defs=block.mark_defs or [],
        children=children,
    )


def create_code_block(block: BlockData) -> CodeBlock:
    children = _require_children(block, "Code")
    return CodeBlock(
        type=block.type,
        key=block.key,
        language=block.extra_field("language", str),
        mark_defs=block.mark_defs or [],
        children=children,
    )


def classify(block: BlockData) -> ConcreteBlock:
    """
    Classify a block record.

    Args:
        block: Decoded block record

    Returns:
        Paragraph, Heading or CodeBlock

    Raises:
        UnsupportedBlockTypeError: Unknown type, or unknown style on a "block"
        MalformedStructureError: "h" style whose level is not 1-6
        MissingRequiredFieldError: The block has no children
    """
    logger.debug(f"Creating block from data: type={block.type}, key={block.key}")

    if block.type == "block":
        style = block.style
        if style is None:
            logger.debug("No style specified, defaulting to paragraph")
            return create_paragraph(block)

        if style.startswith("h") and len(style) == 2:
            try:
                level = heading_level(style)
            except MalformedStructureError as e:
                logger.warning(f"Invalid heading level in style: {style}")
                raise MalformedStructureError(e.detail, key=block.key, field="style") from e
            logger.debug(f"Creating heading block level {level}")
            return create_heading(block, level)

        if style == "normal":
            logger.debug("Creating paragraph block")
            return create_paragraph(block)

        logger.warning(f"Unsupported block style: {style}")
        raise UnsupportedBlockTypeError(f"Unsupported block style: {style}", key=block.key, field="style")

    if block.type == "code":
        logger.debug("Creating code block")
        return create_code_block(block)

    logger.warning(f"Unsupported block type: {block.type}")
    raise UnsupportedBlockTypeError(f"Block type '{block.type}' is not supported", key=block.key, field="_type")


def classify_all(blocks: Sequence[BlockData]) -> ListType[ConcreteBlock]:
    """
    Classify blocks in order, stopping at the first failure.

    The raised error carries the key of the block that failed; nothing
    classified before it is returned.
    """
    classified: ListType[ConcreteBlock] = []

    for block in blocks:
        try:
            classified.append(classify(block))
        except PortableTextError as e:
            logger.error(f"Failed to convert block with key '{block.key}': {e}")
            if e.key is None:
                e.key = block.key
            raise

    logger.debug(f"Created {len(classified)} blocks")
    return classified
