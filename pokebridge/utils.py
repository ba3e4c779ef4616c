import sys

from loguru import logger


def normalize_name(name: str) -> str:
    """Canonical form of a pokemon name used for lookups and cache keys."""
    return name.strip().lower()


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the loguru sink for the service.

    Replaces the default stderr handler so the level follows LOG_LEVEL.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
        ),
        backtrace=False,
        diagnose=False,
    )
