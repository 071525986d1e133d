from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import settings
from src.api.dependencies import get_post_service, get_storage_adapter
from src.api.routes import (
    auth_router,
    users_router,
    posts_router,
    messages_router,
    payments_router,
    categories_router,
    upload_router,
    health_router,
)
from src.core.responses import register_exception_handlers
from src.middleware.rate_limit import limiter
from src.models.engine import dispose_engine
from src.models.init_db import init_db
from src.tasks.listing_tasks import init_listing_task_manager
from src.utils.logging_config import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()

    task_manager = init_listing_task_manager(get_post_service(), settings)
    result = await task_manager.run_once()
    logger.info("listing maintenance on startup", **result)
    if settings.listing_tasks_enabled:
        task_manager.start()

    logger.info(
        "service started",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )
    yield

    task_manager.stop()
    await get_storage_adapter().close()
    await dispose_engine()
    logger.info("service stopped")


app = FastAPI(
    title=settings.app_name,
    description="Classifieds marketplace API",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan,
)
app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    auth_router,
    users_router,
    posts_router,
    messages_router,
    payments_router,
    categories_router,
    upload_router,
):
    app.include_router(router, prefix=settings.api_prefix)
app.include_router(health_router)


if settings.storage_backend == "local":
    app.mount(
        settings.local_upload_url_prefix,
        StaticFiles(directory=settings.local_upload_dir),
        name="uploads",
    )
