# logging_setup.py
import logging
from logging.handlers import RotatingFileHandler

import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level=None, log_file=None):
    """Console logging, plus a rotating file when LOG_FILE is set. Safe to call twice."""
    root = logging.getLogger()
    if getattr(root, "_inventory_configured", False):
        return root

    root.setLevel((level or config.LOG_LEVEL).upper())
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = log_file or config.LOG_FILE
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root._inventory_configured = True
    return root
