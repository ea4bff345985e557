import sys
from loguru import logger
from .config import settings

DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> {extra}"
)


def setup_logging(level: str | None = None):
    """Replace loguru's default sink with one configured from settings.

    Dev gets a coloured, human readable line; every other environment
    gets one JSON document per record so the hosting platform can index it.
    """
    logger.remove()
    if settings.app_env == "dev":
        logger.add(sys.stderr, level=level or settings.log_level, format=DEV_FORMAT, backtrace=False)
    else:
        logger.add(sys.stderr, level=level or settings.log_level, serialize=True, backtrace=False)
    return logger.bind(app=settings.app_name)


def describe_endpoint(endpoint: str | None) -> str | None:
    """Endpoint safe for logging (truncated, never the key)."""
    if not endpoint:
        return endpoint
    return endpoint[:50] + "..." if len(endpoint) > 50 else endpoint
