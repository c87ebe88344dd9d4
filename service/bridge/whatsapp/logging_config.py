"""
Logging configuration for the WhatsApp bot.
"""

import logging
import sys

from bridge.config import get_settings


def setup_logging():
    """Setup logging with proper format and handlers."""

    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)

    # Create logger
    logger = logging.getLogger("whatsapp_bot")
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    # Request-level noise from HTTP clients
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logger

# Global logger instance
bot_logger = setup_logging()
