# logging_config.py
import logging

from config import get_config

DEBUG_MODE = get_config()["DEBUG_MODE"]

# Configure logging once for the entire application.
logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"
)

# Per-request and per-connection chatter from libraries.
for _noisy in ("werkzeug", "urllib3", "PIL"):
    logging.getLogger(_noisy).setLevel(logging.INFO if DEBUG_MODE else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger with the given name.
    """
    return logging.getLogger(name)
