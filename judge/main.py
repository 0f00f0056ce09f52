import logging

from judge.config import get_settings

logging.basicConfig(
    level=get_settings().service.log_level.upper(),
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from judge.controllers.health import router as health_router
from judge.controllers.run import router as run_router
from judge.errors import register_exception_handlers
from judge.lifespan import cleanup_resources, setup_resources
from judge.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="Solution Judge API", version="1.0.0")
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("judge.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)

app.router.lifespan_context = lifespan

app.include_router(health_router)
app.include_router(run_router)
