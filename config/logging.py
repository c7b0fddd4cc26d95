"""
Logging configuration for the survey mission engine
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from config.settings import get_settings


def setup_logging(log_file: Optional[str] = None, log_level: Optional[str] = None):
    """
    Configure logging for the application

    Args:
        log_file: Path to log file (overrides settings)
        log_level: Log level (overrides settings)
    """
    settings = get_settings()

    # Use provided parameters or fall back to settings
    log_level = log_level or settings.LOG_LEVEL
    log_file = log_file or settings.LOG_FILE

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=settings.LOG_MAX_SIZE,
                backupCount=settings.LOG_BACKUP_COUNT
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Could not create log file handler: {e}")

    configure_third_party_loggers(numeric_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured - Level: {log_level}, File: {log_file}")


def configure_third_party_loggers(base_level: int):
    """Configure logging levels for third-party libraries"""

    # FastAPI/Uvicorn loggers
    logging.getLogger('uvicorn').setLevel(base_level)
    logging.getLogger('uvicorn.access').setLevel(max(base_level, logging.INFO))
    logging.getLogger('fastapi').setLevel(base_level)

    # Test client traffic
    logging.getLogger('httpx').setLevel(max(base_level, logging.WARNING))

    # Lifecycle transitions must always reach the log
    logging.getLogger('mission_engine.services').setLevel(min(base_level, logging.INFO))

    if base_level > logging.DEBUG:
        logging.getLogger('asyncio').setLevel(logging.WARNING)
