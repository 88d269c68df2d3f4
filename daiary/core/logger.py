import sys
from loguru import logger
from daiary.config import settings

def setup_logger():
    # Remove default logger
    logger.remove()

    # Add console sink
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL
    )

    # Add file sink
    if settings.LOG_TO_FILE:
        logger.add(
            settings.DATA_DIR / "daiary.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            level="DEBUG"
        )

setup_logger()
