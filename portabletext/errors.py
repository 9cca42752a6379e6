"""
Error taxonomy for Portable Text parsing and rendering.

Every public entry point either returns its value or raises one of the
exceptions below. Each exception carries a machine-readable ``kind`` so
callers can branch on the failure without string matching.

License: MIT
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""
    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_BLOCK_TYPE = "unsupported_block_type"
    UNSUPPORTED_MARK_TYPE = "unsupported_mark_type"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    MALFORMED_STRUCTURE = "malformed_structure"
    NESTED_CONTENT_TOO_DEEP = "nested_content_too_deep"
    RENDERING_FAILURE = "rendering_failure"


class DecodeIssue(str, Enum):
    """What went wrong while decoding, as reported by ``InvalidInputError``."""
    KEY_NOT_FOUND = "key_not_found"
    VALUE_NOT_FOUND = "value_not_found"
    TYPE_MISMATCH = "type_mismatch"
    DATA_CORRUPTED = "data_corrupted"


class PortableTextError(Exception):
    """
    Base class for all Portable Text failures.

    Args:
        detail: Human-readable description of the failure
        key: Key of the offending block, if known
        field: Path of the offending field, if known
    """
    kind: ErrorKind = ErrorKind.MALFORMED_STRUCTURE
    label: str = "Portable Text error"
    failure_reason: str = "The content could not be processed."
    recovery_suggestion: str = "Check your content against the Portable Text specification."

    def __init__(self, detail: str, key: Optional[str] = None, field: Optional[str] = None):
        self.detail = detail
        self.key = key
        self.field = field
        super().__init__(f"{self.label}: {detail}")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable payload for API responses."""
        return {
            "error": self.kind.value,
            "detail": self.detail,
            "key": self.key,
            "field": self.field,
        }


class InvalidInputError(PortableTextError):
    """Text is not UTF-8, not JSON, or misses a field the schema requires."""
    kind = ErrorKind.INVALID_INPUT
    label = "Invalid JSON"
    failure_reason = (
        "The provided JSON string could not be parsed or does not conform to the Portable Text schema."
    )
    recovery_suggestion = "Verify that the JSON string is valid and follows the Portable Text schema."

    def __init__(self, detail: str, reason: DecodeIssue = DecodeIssue.DATA_CORRUPTED,
                 key: Optional[str] = None, field: Optional[str] = None):
        self.reason = reason
        super().__init__(detail, key=key, field=field)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["reason"] = self.reason.value
        return payload


class UnsupportedBlockTypeError(PortableTextError):
    kind = ErrorKind.UNSUPPORTED_BLOCK_TYPE
    label = "Unsupported block type"
    failure_reason = "The content contains a block type that is not supported by this library."
    recovery_suggestion = "Use a supported block type (block with normal/h1-h6 style, or code)."


class UnsupportedMarkTypeError(PortableTextError):
    """Reserved. Unknown marks are currently ignored rather than rejected."""
    kind = ErrorKind.UNSUPPORTED_MARK_TYPE
    label = "Unsupported mark type"
    failure_reason = "The content contains a mark type that is not supported by this library."
    recovery_suggestion = "Use a supported mark type or a link mark definition."


class MissingRequiredFieldError(PortableTextError):
    kind = ErrorKind.MISSING_REQUIRED_FIELD
    label = "Missing required field"
    failure_reason = "The content is missing a field that is required for rendering."
    recovery_suggestion = "Ensure all required fields are present in your Portable Text content."


class MalformedStructureError(PortableTextError):
    kind = ErrorKind.MALFORMED_STRUCTURE
    label = "Malformed content structure"
    failure_reason = "The structure of the content does not conform to the expected Portable Text schema."
    recovery_suggestion = "Check your content structure against the Portable Text specification."


class NestedContentTooDeepError(MalformedStructureError):
    kind = ErrorKind.NESTED_CONTENT_TOO_DEEP
    label = "Content is nested too deeply"
    failure_reason = "The content contains nested blocks beyond the supported depth of one level."
    recovery_suggestion = "Restructure your content to use only one level of nesting."


class RenderingFailureError(PortableTextError):
    kind = ErrorKind.RENDERING_FAILURE
    label = "Rendering error"
    failure_reason = "An error occurred while rendering the content."
    recovery_suggestion = "Try simplifying the content or check any custom styles that might be causing issues."

    @classmethod
    def wrap(cls, exc: BaseException, key: Optional[str] = None) -> PortableTextError:
        """Return ``exc`` unchanged if it is already a taxonomy error, otherwise wrap it."""
        if isinstance(exc, PortableTextError):
            return exc
        return cls(f"Unexpected error: {exc}", key=key)
