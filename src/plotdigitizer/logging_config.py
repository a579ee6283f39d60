"""
Logging Configuration
=====================
Console (and optionally file) logging for the `plotdigitizer` namespace.

The REST backend goes through `requests`, whose `urllib3` logger reports every
connection at DEBUG; it is held at WARNING so `--debug` output stays about
plots and calibration.
"""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
NOISY_LOGGERS = ("urllib3", "h5py")


def _level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level '{level}'.")
        return value
    return level


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach handlers to the package logger. Safe to call again; previous
    handlers are replaced.

    Args:
        level: A logging level or its name ("debug", "INFO", ...).
        log_file: Also append the log to this file.

    Returns:
        The configured `plotdigitizer` logger.
    """
    level = _level(level)
    logger = logging.getLogger("plotdigitizer")
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}"
                 + (f", writing to '{log_file}'." if log_file else "."))
    return logger
