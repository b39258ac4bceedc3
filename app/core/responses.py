"""
Response envelope shared by every endpoint: {success, data?, message?, ...}
"""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
    success: bool = True,
    **extra: Any,
) -> JSONResponse:
    """Render a successful (or partially successful) result."""
    content = {"success": success}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def batch_envelope(results: list, message: str, **extra: Any) -> JSONResponse:
    """Render per-item batch results; 207 unless every item succeeded."""
    all_succeeded = all(result.get("success") for result in results)
    return envelope(
        message=message,
        status_code=status.HTTP_200_OK if all_succeeded else status.HTTP_207_MULTI_STATUS,
        success=all_succeeded,
        results=results,
        **extra,
    )
