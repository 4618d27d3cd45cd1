"""
Logging setup for the Newsroom API.

Every module logs through ``logging.getLogger(__name__)``; this module only
installs the root handler once at startup.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    if any(getattr(h, "_newsroom", False) for h in root.handlers):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._newsroom = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQL echo is controlled by DEBUG on the engine, keep the pool quiet.
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
