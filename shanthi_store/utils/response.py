from datetime import datetime
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Optional[Any] = None, message: str = "Success", meta: Optional[Dict] = None):
    """Success envelope; the storefront client unwraps ``data`` from it."""
    body = {"success": True, "message": message, "data": data, "errors": None}
    if meta is not None:
        body["meta"] = meta
    return jsonable_encoder(body)


def error(
    message: str = "Error",
    status_code: int = 400,
    errors: Optional[Any] = None,
    data: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    # A conflict on cart or wishlist adds carries the current list in ``data``
    body = {
        "success": False,
        "message": message,
        "data": data,
        "errors": errors or [],
        "timestamp": f"{datetime.utcnow().isoformat()}Z",
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
