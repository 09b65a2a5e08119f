"""
Logging setup
Structured logging through loguru
"""
import os
import sys
from loguru import logger
from typing import Optional


def setup_logger(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    rotation: str = '10 MB',
    retention: str = '7 days'
) -> None:
    """
    Configure the logging sinks.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        rotation: Rotation size for the file sink
        retention: How long rotated files are kept
    """
    # Drop loguru's default handler
    logger.remove()

    # LOG_LEVEL from the environment wins over the argument
    level = os.environ.get('LOG_LEVEL', log_level).upper()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.configure(extra={'name': 'famly_sync'})

    logger.add(
        sys.stderr,
        format=console_format,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        file_format = (
            "{time:YYYY-MM-DD HH:mm:ss} | "
            "{level: <8} | "
            "{extra[name]}:{function}:{line} | "
            "{message}"
        )
        logger.add(
            log_file,
            format=file_format,
            level=level,
            rotation=rotation,
            retention=retention,
            compression='zip',
            encoding='utf-8',
        )

    logger.debug(f"Logger initialized with level: {level}")


def get_logger(name: str = None):
    """
    Get a logger bound to a component name.

    Args:
        name: Component name shown in every record

    Returns:
        loguru logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


def log_sync_event(event: str, details: dict = None):
    """Log a run-level sync event"""
    msg = f"Sync Event: {event}"
    if details:
        msg += f", details={details}"
    logger.bind(name='sync').info(msg)

