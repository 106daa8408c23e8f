from contextlib import AsyncExitStack

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.auth import router as auth_router
from app.api.errors import register_error_handlers
from app.api.middleware import configure_request_logging
from app.connections import mongo_lifespan
from app.services.token import get_token_issuer
from app.utils.config import settings
from app.utils.logging import configure_logging, get_logger


configure_logging(settings)
logger = get_logger(__name__)


async def combined_lifespan(app: FastAPI):
    # Fail at startup, not on the first login, when the signing key is missing.
    get_token_issuer()
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(mongo_lifespan(app))
        logger.info("service started", app=settings.app_name, environment=settings.environment)

        yield


app = FastAPI(title="Auth Service (Mongo)", version="0.1.0", lifespan=combined_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
configure_request_logging(app)
register_error_handlers(app)

app.include_router(auth_router, prefix="/api/auth")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug and settings.is_local)


if __name__ == "__main__":
    run()
