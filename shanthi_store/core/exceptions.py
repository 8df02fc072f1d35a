from fastapi import HTTPException, status
from typing import Any, List, Optional


class EmailAlreadyExists(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )


class PhoneAlreadyRegistered(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Phone number already registered"
        )


class InactiveAccount(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )


class InvalidCredentials(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )


class ProductNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )


class CartItemNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found in cart"
        )


class WishlistItemNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Wishlist item not found"
        )


class OrderNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found"
        )


class OrderTotalMismatch(HTTPException):
    def __init__(self, expected: float, received: float):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Order total does not match items",
                "errors": [{"code": "TOTAL_MISMATCH", "expected": expected, "received": received}],
            },
        )


class InvalidStatusTransition(HTTPException):
    def __init__(self, current: str, requested: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": f"Cannot change order status from {current} to {requested}",
                "errors": [{"code": "INVALID_STATUS_TRANSITION"}],
            },
        )


class PaymentGatewayError(Exception):
    """Raised by gateway adapters when the provider call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class APIError(Exception):
    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[List[Any]] = None,
        data: Optional[Any] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        self.data = data
