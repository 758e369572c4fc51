"""Response envelope: {status: "success", data} or {status: "error", message}."""
from typing import Any

from fastapi.responses import JSONResponse


def success(data: Any) -> dict:
    return {"status": "success", "data": data}


def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
        headers=headers
    )
