"""
Logging configuration for the QuizCup engine.
"""
import logging
import sys
from pathlib import Path
from typing import Optional
import os

from pythonjsonlogger import jsonlogger


def setup_logging(
    name: str = "quizbracket",
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for the engine's stdlib loggers.
    
    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var LOG_LEVEL
        log_file: Optional file path for log output
        log_format: "json" or "console". Defaults to json in production
    
    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    
    # Remove existing handlers to avoid duplicates
    logger.handlers = []
    
    if log_format is None:
        env = os.getenv("ENVIRONMENT", "development").lower()
        log_format = "json" if env == "production" else "console"
    
    console_handler = logging.StreamHandler(sys.stderr)
    
    if log_format == "json":
        # JSON logging for production (structured logs)
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    return logger
