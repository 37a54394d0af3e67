"""Logger factory shared by every module."""
import logging
import sys

from config.settings import get_settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False

def _configure_root():
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger("journal")
    root.addHandler(handler)
    root.setLevel(get_settings().LOG_LEVEL.upper())
    root.propagate = False
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``journal`` hierarchy."""
    _configure_root()
    if not name.startswith("journal"):
        name = f"journal.{name}"
    return logging.getLogger(name)
