from contextlib import asynccontextmanager
from typing import AsyncIterator

import certifi
from fastapi import FastAPI
from mongoengine import connect, disconnect

from app.utils.config import settings
from app.utils.logging import get_logger


logger = get_logger(__name__)


def init_mongo() -> None:
    options = {"tz_aware": True}
    if settings.mongo_tls or settings.mongo_uri.startswith("mongodb+srv://"):
        options["tlsCAFile"] = certifi.where()
    connect(host=settings.mongo_uri, alias="default", **options)
    logger.info("mongo connected", db=settings.mongo_db)


def close_mongo() -> None:
    disconnect(alias="default")
    logger.info("mongo disconnected")


@asynccontextmanager
async def mongo_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_mongo()
    try:
        yield
    finally:
        close_mongo()
