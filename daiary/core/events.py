from contextlib import asynccontextmanager
from fastapi import FastAPI
from daiary.core.logger import logger
from daiary.config import settings
from daiary.memory.database import init_db

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting dAIary API...")
    init_db()

    logger.info("LLM provider: {} ({})", settings.LLM_PROVIDER,
                settings.GEMINI_MODEL if settings.LLM_PROVIDER == "gemini" else settings.OLLAMA_MODEL)
    if settings.LLM_PROVIDER == "gemini" and not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; feedback requests will fail")

    logger.info("dAIary is ready.")
    yield

    # Shutdown
    logger.info("Shutting down dAIary API...")
