"""
Console logging setup for the API process.
"""
import logging

LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Attach a console handler to the package logger (idempotent)."""
    logger = logging.getLogger("chaifi")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, "_chaifi_console", False) for h in logger.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._chaifi_console = True
    logger.addHandler(handler)
