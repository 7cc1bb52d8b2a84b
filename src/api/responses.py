from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(data: Any, message: str, status_code: int = 200) -> JSONResponse:
    """Success envelope shared by every endpoint."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "data": jsonable_encoder(data),
            "message": message,
            "success": status_code < 400,
        },
    )


def error_response(message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "message": message,
            "success": False,
        },
        headers=headers,
    )
