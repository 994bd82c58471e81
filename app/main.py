# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.handlers import register_exception_handlers
from app.api.routes import router
from app.core.config import LOG_LEVEL
from app.services.agent_service import build_chat_handler

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.chat_handler = build_chat_handler()
    logger.info("Guru chat backend ready")
    yield


app = FastAPI(title="Guru Chat Backend", lifespan=lifespan)
register_exception_handlers(app)
app.include_router(router)
