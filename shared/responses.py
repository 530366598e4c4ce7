from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def envelope(data: Any = None, meta: Optional[dict[str, Any]] = None, message: Optional[str] = None) -> dict[str, Any]:
    out: dict[str, Any] = {"success": True, "data": data}
    if message:
        out["message"] = message
    if meta is not None:
        out["meta"] = meta
    return out


def error_response(
    status_code: int,
    error: str,
    message: str,
    *,
    details: Optional[list[dict[str, Any]]] = None,
    path: Optional[str] = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "success": False,
        "error": error,
        "message": message,
        "timestamp": utc_now_iso(),
    }
    if details:
        content["details"] = details
    if path:
        content["path"] = path
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
