import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notekeeper.api import attachments, auth, categories, notes, shares
from notekeeper.config import get_settings
from notekeeper.errors import NoteAppError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, "errors": errors})


async def note_app_error_handler(request: Request, exc: NoteAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _envelope(exc.status_code, exc.message, exc.to_errors())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    field = "auth" if exc.status_code == 401 else "request"
    response = _envelope(exc.status_code, detail, {field: detail})
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.setdefault(loc[-1] if loc else "request", err.get("msg", "Invalid value"))
    return _envelope(422, "Validation failed", errors)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path, exc_info=exc)
    return _envelope(500, "Internal server error", {"server": "Internal server error"})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Shared Notes API")
    app.add_exception_handler(NoteAppError, note_app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(shares.router)
    app.include_router(attachments.router)
    app.include_router(categories.router)
    return app


app = create_app()
