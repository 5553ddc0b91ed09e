import logging
import os
import sys

LOGGER_NAME = "gaslighting"
LOG_FORMAT = "[SyntaxGaslighting] %(asctime)s %(name)s %(levelname)s %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(debug: bool = False, log_file: str = "") -> logging.Logger:
    """Attach a single handler to the package logger.

    Logs go to ``log_file`` when set, otherwise stderr. stdout is never used:
    it carries the editor protocol.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    path = os.path.expanduser(str(log_file or "").strip())
    if path:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False
    return logger
