"""Custom exception hierarchy for the MusicTree genre catalog.

All catalog exceptions inherit from :class:`MusicTreeError`, which carries
an optional ``field_name`` so callers (CLI, HTTP adapters, the batch import
report) can point at the offending input field.

The hierarchy is organized by failure kind, not by caller:

    MusicTreeError  (base -- catch-all for any catalog error)
    +-- CatalogValidationError    (input shape / range / format)
    |   +-- BpmRangeError
    +-- ConflictError             (name already taken in its scope)
    |   +-- GenreAlreadyExistsError
    |   +-- ClusterAlreadyExistsError
    +-- ReferenceResolutionError  (id or name does not resolve in the store)
    |   +-- GenreNotFoundError
    |   +-- ParentNotFoundError
    |   +-- InvalidParentError
    |   +-- ClusterNotFoundError
    |   +-- RelatedGenreNotFoundError
    +-- InvariantViolationError   (store-boundary consistency rule)
    |   +-- InvalidEdgeError
    |   +-- ColorInvariantError
    +-- StorageFaultError         (store unreachable / unexpected failure)

Validation, conflict and reference errors are recoverable by the caller and
are never retried.  Invariant violations indicate a programming error in an
internal caller.  Storage faults are the only errors the batch importer lets
escape a whole batch.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class MusicTreeError(Exception):
    """Base exception for all catalog errors.

    ``__str__`` prefixes the field name in brackets for log scanning,
    e.g. ``[bpm] BPM minimum cannot be greater than maximum``.
    """

    def __init__(
        self,
        message: str = "An unexpected catalog error occurred",
        field_name: str | None = None,
    ) -> None:
        self._message = message
        self._field_name = field_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def field_name(self) -> str | None:
        return self._field_name

    @property
    def kind(self) -> str:
        """Short machine-readable error kind, e.g. ``"conflict"``."""
        return "error"

    def __str__(self) -> str:
        if self._field_name:
            return f"[{self._field_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class CatalogValidationError(MusicTreeError):
    """Raised when a single input field violates a declared constraint."""

    def __init__(
        self,
        message: str = "Invalid input",
        field_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field_name=field_name)

    @property
    def kind(self) -> str:
        return "validation"


class BpmRangeError(CatalogValidationError):
    """Raised when the lower BPM bound exceeds the upper bound."""

    def __init__(
        self,
        message: str = "BPM lower bound cannot be greater than upper bound",
        field_name: str | None = "bpm",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class ConflictError(MusicTreeError):
    """Raised when a name is already taken in its uniqueness scope."""

    def __init__(
        self,
        message: str = "Resource already exists",
        field_name: str | None = "name",
    ) -> None:
        super().__init__(message=message, field_name=field_name)

    @property
    def kind(self) -> str:
        return "conflict"


class GenreAlreadyExistsError(ConflictError):
    """Raised when a main genre, or a subgenre under the same parent, shares a name."""

    def __init__(
        self,
        message: str = "Genre with this name already exists",
        field_name: str | None = "name",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class ClusterAlreadyExistsError(ConflictError):
    """Raised when a cluster name is already taken."""

    def __init__(
        self,
        message: str = "Cluster name already exists",
        field_name: str | None = "name",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------

class ReferenceResolutionError(MusicTreeError):
    """Raised when a referenced id or name does not resolve against the store.

    Kept distinct from :class:`CatalogValidationError` because the outcome
    depends on store state, not only on the shape of the input.
    """

    def __init__(
        self,
        message: str = "Referenced resource not found",
        field_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field_name=field_name)

    @property
    def kind(self) -> str:
        return "reference"


class GenreNotFoundError(ReferenceResolutionError):
    """Raised when a genre id does not exist."""

    def __init__(
        self,
        message: str = "Genre not found",
        field_name: str | None = "id",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class ParentNotFoundError(ReferenceResolutionError):
    """Raised when a subgenre's declared parent does not exist."""

    def __init__(
        self,
        message: str = "Parent genre not found",
        field_name: str | None = "parent_genre_id",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class InvalidParentError(ReferenceResolutionError):
    """Raised when a subgenre's declared parent is itself a subgenre."""

    def __init__(
        self,
        message: str = "Cannot create a subgenre of another subgenre",
        field_name: str | None = "parent_genre_id",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class ClusterNotFoundError(ReferenceResolutionError):
    """Raised when a main genre references an unknown cluster."""

    def __init__(
        self,
        message: str = "Cluster not found",
        field_name: str | None = "cluster_id",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class RelatedGenreNotFoundError(ReferenceResolutionError):
    """Raised when an explicitly requested related genre does not exist."""

    def __init__(
        self,
        message: str = "Related genre not found",
        field_name: str | None = "related_genres",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


# ---------------------------------------------------------------------------
# Store-boundary invariants
# ---------------------------------------------------------------------------

class InvariantViolationError(MusicTreeError):
    """Raised when a write would break an internal consistency rule.

    Internal callers (batch import, MGPC refresh) bypass input DTOs, so the
    store re-checks these rules on every write.  Never silently corrected.
    """

    def __init__(
        self,
        message: str = "Catalog invariant violated",
        field_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field_name=field_name)

    @property
    def kind(self) -> str:
        return "invariant"


class InvalidEdgeError(InvariantViolationError):
    """Raised for self-referencing edges or out-of-range influence / MGPC."""

    def __init__(
        self,
        message: str = "Invalid genre relationship",
        field_name: str | None = "related_genre_id",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


class ColorInvariantError(InvariantViolationError):
    """Raised for partial RGB triples or colour set on a subgenre."""

    def __init__(
        self,
        message: str = "Invalid genre colour",
        field_name: str | None = "color",
    ) -> None:
        super().__init__(message=message, field_name=field_name)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StorageFaultError(MusicTreeError):
    """Raised when the underlying store or archive sink fails unexpectedly."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        field_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field_name=field_name)

    @property
    def kind(self) -> str:
        return "storage"


def validation_error_from(exc: PydanticValidationError) -> CatalogValidationError:
    """Collapse a pydantic ValidationError into the first offending field."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    message = first["msg"]
    if field and first["type"] == "missing":
        message = f"{field} is required"
    return CatalogValidationError(message, field_name=field)
