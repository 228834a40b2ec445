"""Error types for museum-tours.

Three families of failure are distinguished:

- ``InvalidEntityError`` for malformed construction arguments.  These
  are raised by the entity constructors and never reach the store.
- Business-rule violations (``DuplicateKeyError``,
  ``EntityNotFoundError``, ``RegistrationConflictError``) raised by the
  store and the service.  Callers are expected to report them and
  carry on.
- ``PersistenceError`` and its subclasses for load/save failures, which
  abort the operation in progress.

Association methods that are merely no-ops (adding a link that already
exists, removing one that does not) return ``False`` instead of raising.
"""
from __future__ import annotations


class MuseumTourError(Exception):
    """Base class for every error raised by museum-tours."""


class InvalidEntityError(MuseumTourError, ValueError):
    """Raised when an entity is constructed with invalid arguments."""


class DuplicateKeyError(MuseumTourError, ValueError):
    """Raised when an identifier or booking number is already taken.

    Parameters
    ----------
    kind:
        The entity kind, e.g. ``"tour"``.
    key:
        The conflicting value.
    field:
        Which key collided: ``"id"`` or ``"booking number"``.
    """

    def __init__(self, kind: str, key: str, field: str = "id") -> None:
        self.kind = kind
        self.key = key
        self.field = field
        super().__init__(f"A {kind} with {field} {key!r} already exists")


class EntityNotFoundError(MuseumTourError, LookupError):
    """Raised when an operation references an unknown identifier."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} with ID {entity_id!r} not found")


class RegistrationConflictError(MuseumTourError):
    """Raised when a city cannot leave a tour because of a registration.

    A member of the tour is still registered for a museum visit in the
    city, so detaching the city would strand that registration.
    """

    def __init__(self, tour_id: str, city_id: str, member_id: str) -> None:
        self.tour_id = tour_id
        self.city_id = city_id
        self.member_id = member_id
        super().__init__(
            f"Cannot remove city {city_id!r} from tour {tour_id!r}: "
            f"member {member_id!r} has a museum visit scheduled in this city"
        )


class PersistenceError(MuseumTourError):
    """Raised when the data file cannot be read or written."""


class CorruptDataError(PersistenceError):
    """Raised when a data file fails to parse, validate, or rebuild."""


class SchemaViolationError(PersistenceError):
    """Raised when a serialized document does not satisfy its own schema.

    This signals a bug in the codec rather than bad user input.

    Parameters
    ----------
    messages:
        One entry per validation failure reported by the schema.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("Saved document failed schema validation: " + "; ".join(self.messages))


__all__ = [
    "MuseumTourError",
    "InvalidEntityError",
    "DuplicateKeyError",
    "EntityNotFoundError",
    "RegistrationConflictError",
    "PersistenceError",
    "CorruptDataError",
    "SchemaViolationError",
]
