"""Domain exceptions raised by services and translated by routes."""


class MarketplaceError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MutationError(MarketplaceError):
    """A remote write failed; local state was left untouched."""


class PermissionDenied(MarketplaceError):
    """The viewer's role or ownership does not allow the operation."""


class PostingValidationError(MarketplaceError):
    """Job posting form failed validation."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Please correct the highlighted fields.")
        self.errors = errors


class RegistrationError(MarketplaceError):
    """Registration or profile edit could not be completed."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class IdentityError(MarketplaceError):
    """The identity provider rejected a request or could not be reached."""

    def __init__(self, message: str, code: str = "server_error", status_code: int | None = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class StorageError(MarketplaceError):
    """Upload to object storage failed."""
