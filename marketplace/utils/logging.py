# marketplace/utils/logging.py
import logging
import sys

from marketplace.utils.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def _configure_root():
    global _configured
    if _configured:
        return

    root = logging.getLogger("marketplace")
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    #avoid duplicate handlers on reload (uvicorn --reload, celery worker forks)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger in the marketplace hierarchy, configured on first use."""
    _configure_root()
    if not name.startswith("marketplace"):
        name = f"marketplace.{name}"
    return logging.getLogger(name)
