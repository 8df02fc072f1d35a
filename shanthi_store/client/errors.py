from typing import Any, Optional

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


class StorefrontError(Exception):
    """Base class for failures raised inside the storefront client."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


class AuthRequired(StorefrontError):
    def __init__(self, message: str = "Please sign in to continue"):
        super().__init__(message)


class AlreadyExists(StorefrontError):
    """409 from the server. `body` keeps the response so a cart snapshot can be adopted."""

    def __init__(self, message: str = "Item already exists", body: Optional[dict] = None):
        super().__init__(message)
        self.body = body or {}


class NetworkOrServerError(StorefrontError):
    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PaymentVerificationFailure(StorefrontError):
    def __init__(self, message: str = "Payment verification failed. No order was placed."):
        super().__init__(message)


class MigrationItemFailure(StorefrontError):
    def __init__(self, item: Any, cause: Exception):
        super().__init__(f"Could not migrate item: {getattr(cause, 'message', None) or cause}")
        self.item = item
        self.cause = cause


class InvalidItem(StorefrontError):
    def __init__(self, message: str = "Item has no product id"):
        super().__init__(message)
