"""
Exception hierarchy for Cover Compare.

Document-model errors are contract violations by the caller (bad index,
wrong lifecycle state) and are never caught by the model itself.
``MalformedImport`` is the one recoverable, user-facing error: the host
reports it and lets the user retry extraction or fall back to manual entry.
"""
from __future__ import annotations


class ComparisonError(Exception):
    """Base class for every error raised by Cover Compare."""


# ---------------------------------------------------------------------------
# Document model
# ---------------------------------------------------------------------------

class DocumentModelError(ComparisonError):
    """Raised by ComparisonDocumentModel when its contract is violated."""


class NotInEditMode(DocumentModelError):
    """A draft operation was requested while the model is viewing."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"'{operation}' requires edit mode; call enter_edit() first.")
        self.operation = operation


class AlreadyEditing(DocumentModelError):
    """enter_edit() was called while a draft is already open."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Comparison {document_id!r} already has an open draft.")
        self.document_id = document_id


class IndexOutOfRange(DocumentModelError, IndexError):
    """A provider, category or row index is outside the current bounds."""

    def __init__(self, kind: str, index: int, size: int) -> None:
        super().__init__(f"{kind} index {index} out of range (size {size}).")
        self.kind = kind
        self.index = index
        self.size = size


class InvalidEnumValue(DocumentModelError, ValueError):
    """A closed-set field was given a value outside its allowed set."""

    def __init__(self, field: str, value: object, allowed: list) -> None:
        super().__init__(
            f"Invalid value {value!r} for '{field}'. Allowed: {', '.join(allowed)}"
        )
        self.field = field
        self.value = value
        self.allowed = allowed


class UnknownField(DocumentModelError, ValueError):
    """A field name that the target record does not have."""

    def __init__(self, target: str, key: str) -> None:
        super().__init__(f"{target} has no editable field {key!r}.")
        self.target = target
        self.key = key


class InvalidFieldValue(DocumentModelError, ValueError):
    """A text field was given something other than a string."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"'{field}' must be text, got {type(value).__name__}.")
        self.field = field
        self.value = value


class InvariantViolation(DocumentModelError):
    """A row's value count does not match the provider count."""


# ---------------------------------------------------------------------------
# Host-level errors
# ---------------------------------------------------------------------------

class MalformedImport(ComparisonError):
    """An extraction fragment does not match the comparison document shape."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class SessionNotFound(ComparisonError, LookupError):
    """No comparison session exists under the requested id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Comparison {session_id!r} not found.")
        self.session_id = session_id


class ExtractionUnavailable(ComparisonError):
    """The LLM extraction backend returned no usable response."""


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------

class AccessControlError(ComparisonError):
    """Base class for admin management failures."""


class PermissionDenied(AccessControlError):
    """The acting admin's role does not allow the operation."""


class AdminNotFound(AccessControlError, LookupError):
    """No admin exists under the requested id."""


class AdminConflict(AccessControlError):
    """The operation conflicts with existing admin state."""
