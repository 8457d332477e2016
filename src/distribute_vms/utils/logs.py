"""Logger set-up for the command line tool."""

import logging

levels = [
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
]

LOG_FORMAT = "%(levelname)s [%(name)s]: %(message)s"


def init_logger(verbose: int = 0, name: str = "distribute_vms") -> logging.Logger:
    """
    Configure the package logger with a stderr handler.

    Args:
        verbose: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
        name:    Logger to configure; module loggers propagate to it.
    """
    verbose = min(max(verbose, 0), len(levels) - 1)

    logger = logging.getLogger(name)
    logger.setLevel(levels[verbose])
    logger.handlers.clear()

    ch = logging.StreamHandler()
    ch.setLevel(levels[verbose])
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(ch)

    return logger
