"""
Decoding and validation of Portable Text JSON.

``decode`` turns JSON text into a ``Document``; ``validate`` and
``validate_block`` check the structural rules decoding alone does not
enforce; ``parse_portable_text`` runs the whole pipeline down to
classified blocks.

License: MIT
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List as ListType, Optional, Sequence, Union

from pydantic import ValidationError

from portabletext.blocks import classify_all
from portabletext.errors import (
    DecodeIssue,
    InvalidInputError,
    MalformedStructureError,
    MissingRequiredFieldError,
    NestedContentTooDeepError,
    PortableTextError,
)
from portabletext.models import BlockData, ConcreteBlock, Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationWarning:
    """Non-fatal finding reported by the validator."""
    block_key: str
    span_index: int
    message: str


WarningSink = Callable[[ValidationWarning], None]


def format_location(loc: Sequence[Union[str, int]]) -> str:
    """Render a pydantic error location as ``blocks[1].children[0].text``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "<document>"


def _describe_error(error: Dict[str, Any], others: int = 0) -> PortableTextError:
    """Translate one pydantic error entry into a taxonomy error."""
    loc = error.get("loc", ())
    path = format_location(loc)
    err_type = error.get("type", "")
    message = error.get("msg", "")
    if others:
        message += f" (and {others} more error(s))"

    if err_type == "nested_content_too_deep":
        return NestedContentTooDeepError(f"{message} (at {path})", field=path)

    if err_type == "missing":
        name = loc[-1] if loc else path
        return InvalidInputError(
            f"Required key '{name}' not found at {path}",
            reason=DecodeIssue.KEY_NOT_FOUND,
            field=path,
        )

    if err_type.startswith("json_"):
        return InvalidInputError(f"Data corrupted: {message}", reason=DecodeIssue.DATA_CORRUPTED, field=path)

    if err_type.endswith("_type"):
        if error.get("input") is None:
            return InvalidInputError(
                f"Required value not found at {path}: {message}",
                reason=DecodeIssue.VALUE_NOT_FOUND,
                field=path,
            )
        return InvalidInputError(
            f"Type mismatch at {path}: {message}",
            reason=DecodeIssue.TYPE_MISMATCH,
            field=path,
        )

    return InvalidInputError(f"Data corrupted at {path}: {message}", reason=DecodeIssue.DATA_CORRUPTED, field=path)


def describe_validation_error(exc: ValidationError) -> PortableTextError:
    """Report the first decoding problem, noting how many others there were."""
    errors = exc.errors()
    return _describe_error(errors[0], others=len(errors) - 1)


def decode(json_text: Union[str, bytes]) -> Document:
    """
    Decode Portable Text JSON into a ``Document``.

    Args:
        json_text: JSON text, as ``str`` or UTF-8 encoded ``bytes``

    Returns:
        Decoded document with at least one block

    Raises:
        InvalidInputError: Not UTF-8, not JSON, missing/mistyped fields, or no blocks
        NestedContentTooDeepError: A span carries nested children
    """
    if isinstance(json_text, (bytes, bytearray)):
        try:
            json_text = bytes(json_text).decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error("Failed to decode JSON bytes as UTF-8")
            raise InvalidInputError(f"Cannot convert JSON text to UTF-8: {e}") from e
    elif isinstance(json_text, str):
        try:
            json_text.encode("utf-8")
        except UnicodeEncodeError as e:
            logger.error("JSON string is not representable as UTF-8")
            raise InvalidInputError(f"Cannot convert JSON text to UTF-8: {e}") from e
    else:
        raise InvalidInputError(
            f"Expected JSON text, got {type(json_text).__name__}",
            reason=DecodeIssue.TYPE_MISMATCH,
        )

    try:
        document = Document.model_validate_json(json_text)
    except ValidationError as e:
        error = describe_validation_error(e)
        logger.error(f"JSON decoding failed: {error.detail}")
        raise error from e

    if not document.blocks:
        logger.error("Decoded document contains no blocks")
        raise InvalidInputError(
            "Portable Text document must contain at least one block",
            reason=DecodeIssue.DATA_CORRUPTED,
            field="blocks",
        )

    logger.debug(f"Successfully decoded document with {len(document.blocks)} blocks")
    return document


def validate_block(block: BlockData, on_warning: Optional[WarningSink] = None) -> None:
    """
    Check a block's structural rules.

    A missing ``children`` field is allowed, an explicitly empty one is not.
    A styled ``block`` record must carry content. Spans with empty text are
    reported as warnings only.

    Raises:
        MalformedStructureError: ``children`` is present but empty
        MissingRequiredFieldError: styled block without children
    """
    children = block.children

    if children is not None:
        if not children:
            raise MalformedStructureError(
                f"Block '{block.key}' has empty children array", key=block.key, field="children"
            )

        for index, child in enumerate(children):
            if not child.text:
                message = f"Block '{block.key}' contains span with empty text"
                logger.warning(message)
                if on_warning is not None:
                    on_warning(ValidationWarning(block.key, index, message))

    if block.type == "block" and block.style is not None and not children:
        raise MissingRequiredFieldError(
            f"Block '{block.key}' of style '{block.style}' must have children",
            key=block.key,
            field="children",
        )


def validate(document: Document, on_warning: Optional[WarningSink] = None) -> None:
    """
    Check document-level rules, then every block.

    Raises:
        MalformedStructureError: The document has no blocks, or a block is malformed
        MissingRequiredFieldError: A styled block has no children
    """
    if not document.blocks:
        raise MalformedStructureError("Document contains no blocks", field="blocks")

    for block in document.blocks:
        validate_block(block, on_warning=on_warning)


def parse_portable_text(json_text: Union[str, bytes],
                        on_warning: Optional[WarningSink] = None) -> ListType[ConcreteBlock]:
    """
    Decode, validate and classify a Portable Text payload.

    Args:
        json_text: Portable Text JSON
        on_warning: Optional receiver for non-fatal validation findings

    Returns:
        Classified blocks in document order
    """
    document = decode(json_text)
    validate(document, on_warning=on_warning)
    return classify_all(document.blocks)
