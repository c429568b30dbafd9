import logging
import os
from typing import Optional, Union

LOGGER_PREFIX = "partsbox"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED_FLAG = "_partsbox_configured"


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        name = value.strip().upper()
        if name == "WARN":
            name = "WARNING"
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
    return logging.INFO


def _file_handler(path: str) -> Optional[logging.Handler]:
    try:
        return logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None


def get_logger(name: str) -> logging.Logger:
    """Return the `partsbox.<name>` logger, configured on first use.

    LOG_LEVEL picks the level (INFO when unset or unknown); LOG_FILE, when
    set, mirrors every record into that file.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
    if getattr(logger, _CONFIGURED_FLAG, False):
        return logger

    level = _coerce_level(os.environ.get("LOG_LEVEL"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        fh = _file_handler(log_file)
        if fh is None:
            logger.warning("LOG_FILE %s cannot be opened; logging to the console only", log_file)
        else:
            handlers.append(fh)

    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, _CONFIGURED_FLAG, True)
    return logger
