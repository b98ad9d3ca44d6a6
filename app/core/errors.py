# app/core/errors.py

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("app.errors")


def _field_errors(errors) -> List[Dict[str, str]]:
    """
    Flatten pydantic errors into [{field, message}] for form display.
    """
    details = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc) or "body", "message": message})
    return details


def _payload(message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Every error leaves the API as {"success": false, "error": ...}.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        status_code = int(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"

        level = logging.ERROR if status_code >= 500 else logging.INFO
        log.log(
            level,
            "HTTPException %s %s -> %s | detail=%r",
            request.method,
            request.url.path,
            status_code,
            exc.detail,
        )
        return JSONResponse(
            status_code=status_code,
            headers=getattr(exc, "headers", None),
            content=_payload(message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        details = _field_errors(exc.errors())
        log.info(
            "ValidationError %s %s -> 400 | fields=%s",
            request.method,
            request.url.path,
            [d["field"] for d in details],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_payload("Invalid input", details),
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        # Full traceback to server logs; generic message to client
        log.exception("Unhandled exception %s %s -> 500", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_payload("Internal server error"),
        )
