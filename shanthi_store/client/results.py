from dataclasses import dataclass
from typing import Any

OK = "ok"
ALREADY_EXISTS = "already_exists"
AUTH_REQUIRED = "auth_required"
INVALID_ITEM = "invalid_item"
FAILED = "failed"


@dataclass
class OperationResult:
    """Outcome of a store operation. Store calls resolve to one instead of raising."""

    ok: bool
    status: str = OK
    message: str = ""
    data: Any = None

    @classmethod
    def success(cls, message: str = "", data: Any = None) -> "OperationResult":
        return cls(ok=True, status=OK, message=message, data=data)

    @classmethod
    def already_exists(cls, message: str) -> "OperationResult":
        # Informational: the item is where the user wanted it
        return cls(ok=True, status=ALREADY_EXISTS, message=message)

    @classmethod
    def failure(cls, status: str, message: str) -> "OperationResult":
        return cls(ok=False, status=status, message=message)
