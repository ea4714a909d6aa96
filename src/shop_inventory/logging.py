import logging
import os
from typing import Optional


_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    if isinstance(value, int):
        return value
    return logging.INFO


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    # INVENTORY_* wins over the generic variable shared with other tools.
    return os.environ.get(f"INVENTORY_{name}") or os.environ.get(name) or default


def get_logger(name: str) -> logging.Logger:
    """Return a configured stdout logger with consistent formatting.

    - Honors INVENTORY_LOG_LEVEL or LOG_LEVEL (default INFO) and
      INVENTORY_LOG_FILE or LOG_FILE (optional path).
    - Names are nested under "shop_inventory".
    - Safe to call repeatedly for the same name; handlers are attached once.
    """
    if not name.startswith("shop_inventory"):
        name = f"shop_inventory.{name}"
    logger = logging.getLogger(name)
    if getattr(logger, "_inventory_configured", False):
        return logger

    level = _coerce_level(_env("LOG_LEVEL", "INFO"))
    logger.setLevel(level)

    fmt = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    # Optional log file (appends)
    log_file = _env("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(formatter)
            logger.addHandler(fh)
        except OSError:
            logger.warning("LOG_FILE could not be opened; continuing without file logging")

    logger.propagate = False
    setattr(logger, "_inventory_configured", True)
    return logger
