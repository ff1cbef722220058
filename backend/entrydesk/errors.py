from __future__ import annotations
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

log = structlog.get_logger()


class EntrydeskError(Exception):
    """Base for failures that are reported to the caller as `{"error": message}`."""
    status_code = 400
    message = "Invalid request"

    def __init__(self, message: str | None = None, reasons: list[str] | None = None):
        self.message = message or self.message
        self.reasons = reasons or []
        super().__init__(self.message)


class InvalidPayload(EntrydeskError):
    message = "Invalid request body"

class InvalidStatus(EntrydeskError):
    message = "Invalid status"

class NothingSelected(EntrydeskError):
    message = "No entries selected"

class InvalidUpload(EntrydeskError):
    message = "The uploaded file was rejected"

class DeadlinePassed(EntrydeskError):
    status_code = 403
    message = "The deadline for this section has passed"

class StageNotOpen(EntrydeskError):
    status_code = 403
    message = "This section is not open yet"

class EntryNotFound(EntrydeskError):
    status_code = 404
    message = "Entry not found"

class EntryConflict(EntrydeskError):
    status_code = 409
    message = "An entry already exists for this account. Please reload the page."

class StorageUnavailable(EntrydeskError):
    status_code = 502
    message = "File storage is unavailable, please try again"

class BulkActionFailed(EntrydeskError):
    status_code = 500
    message = "Failed to update entries"


def _body(message: str, reasons: list[str] | None = None) -> dict:
    body: dict = {"error": message}
    if reasons:
        body["reasons"] = reasons
    return body

def _reason(err: dict) -> str:
    loc = [str(p) for p in err.get("loc", ()) if p != "body"]
    where = ".".join(loc)
    return f"{where}: {err.get('msg')}" if where else str(err.get("msg"))

def describe_validation_errors(errors: list[dict]) -> list[str]:
    return [_reason(e) for e in errors]

def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EntrydeskError)
    async def _domain_error(request: Request, exc: EntrydeskError):
        if exc.status_code >= 500:
            log.error("request_failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.reasons))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_body(str(exc.detail)), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=_body(InvalidPayload.message, describe_validation_errors(list(exc.errors()))),
        )
