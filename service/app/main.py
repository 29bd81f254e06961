import logging
import logging.config
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import root_router
from app.configs import configs
from app.core.logger import LOGGING_CONFIG

logging.config.dictConfig(LOGGING_CONFIG)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    from app.core.notification.bootstrap import get_push_service

    push_service = get_push_service()
    push_service.start()

    yield

    # Graceful shutdown: stop the delivery timer and flush the registry to disk
    try:
        await push_service.stop()
    except Exception:
        logger.exception("Error while stopping push notifications")


app = FastAPI(
    title=f"{configs.Title} API",
    description="Gold price quotes and Web Push price notifications",
    version=configs.Version,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=configs.CorsOrigins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_router)


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=configs.Host,
        port=configs.Port,
        log_config=LOGGING_CONFIG,
        reload=configs.Debug,
        reload_excludes=["tests"],
    )
