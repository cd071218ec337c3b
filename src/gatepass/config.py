"""
Runtime configuration for the Gatepass backend.
Values come from the environment, with a local .env file loaded first.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MAX_RECENT_ACTIVITY = 100


def bounded_activity_limit(value, default=10):
    """
    Parses RECENT_ACTIVITY_LIMIT, keeping it within 1..MAX_RECENT_ACTIVITY.
    """
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning("RECENT_ACTIVITY_LIMIT=%r is not a number; using %s", value, default)
        return default
    clamped = min(max(limit, 1), MAX_RECENT_ACTIVITY)
    if clamped != limit:
        logger.warning("RECENT_ACTIVITY_LIMIT=%s is out of range; using %s", limit, clamped)
    return clamped


FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
FACILITY_TIMEZONE = os.getenv("FACILITY_TIMEZONE", "UTC")
RECENT_ACTIVITY_LIMIT = bounded_activity_limit(os.getenv("RECENT_ACTIVITY_LIMIT", 10))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# PUBLIC_INTERFACE
def configure_logging():
    """
    Configures root logging once for the service process.
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
