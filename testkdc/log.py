"""Logging setup shared by the library and the command line tool."""

import logging

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name, level=logging.INFO):
    """Return a logger writing to stderr.

    Args:
        name (str): Name of the logger
        level (int): Logging level

    Returns:
        log (obj): Logger object
    """
    log = logging.getLogger(name)
    log.propagate = False
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT))
        log.addHandler(handler)
    log.setLevel(level)
    for handler in log.handlers:
        handler.setLevel(level)
    return log
