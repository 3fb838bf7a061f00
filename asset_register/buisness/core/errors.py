"""
Domain exceptions for the asset lifecycle engine

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer when a precondition or invariant fails;
failures of collaborators (database, filesystem) are never wrapped in them.
"""


class AssetRegisterError(Exception):
    """Base exception for all asset register domain errors"""

    kind = "error"


class FormatError(AssetRegisterError):
    """Raised when tabular input is structurally malformed (e.g. wrong header)"""

    kind = "format_error"


class ValidationError(AssetRegisterError):
    """Raised when a field or argument violates a business rule"""

    kind = "validation_error"

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class ConflictError(AssetRegisterError):
    """Raised when an operation would violate a single-pending invariant"""

    kind = "conflict"


class StateError(AssetRegisterError):
    """Raised when a transition is attempted from an ineligible state"""

    kind = "state_error"


class NotFoundError(AssetRegisterError):
    """Raised when a referenced entity does not exist"""

    kind = "not_found"

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class AuthorizationError(AssetRegisterError):
    """Raised when the role policy has no grant for (role, operation, entity)"""

    kind = "forbidden"
