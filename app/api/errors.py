from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.utils.errors import AppError, ErrorKind, InternalError
from app.utils.logging import get_logger


logger = get_logger(__name__)


def _message(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("request failed", path=request.url.path, error=type(exc).__name__, detail=exc.message)
        # Internal detail never reaches the client.
        return _message(InternalError.default_message, int(exc.status_code))
    if exc.kind is ErrorKind.VALIDATION:
        logger.debug("request rejected", path=request.url.path, reason=exc.message)
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("request body rejected", path=request.url.path, errors=len(exc.errors()))
    return _message("invalid request body", 400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _message(str(exc.detail), exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error", path=request.url.path)
    return _message(InternalError.default_message, 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
