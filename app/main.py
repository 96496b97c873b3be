import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.settings import settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from api.router import api_router
from infra.db.session import init_db

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    init_db()
    logger.info("%s started | env=%s | db=%s", settings.APP_NAME, settings.ENV,
                settings.DATABASE_URL.split("://", 1)[0])
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=_lifespan)

attach_error_handlers(app)
app.include_router(api_router)
