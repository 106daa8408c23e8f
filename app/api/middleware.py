import secrets
import time

from fastapi import FastAPI, Request

from app.utils.logging import bind_request_id, clear_context, get_logger


logger = get_logger(__name__)


def configure_request_logging(app: FastAPI) -> None:
    """Log one line per request with a short request id bound for its duration.

    Bodies are never logged: they carry passwords and tokens.
    """

    @app.middleware("http")
    async def _log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        bind_request_id(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request error", method=request.method, path=request.url.path)
            raise
        else:
            logger.info(
                "request completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()
