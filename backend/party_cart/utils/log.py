import logging
import sys


def get_logger(name: str, level: int = logging.DEBUG) -> logging.Logger:
    """
    Return the named logger, attaching a stdout handler tagged with the
    upper-cased name (e.g. "[STORAGE] ...") the first time it is requested.
    """
    log = logging.getLogger(name)
    log.setLevel(level)
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(message)s"))
        log.addHandler(h)
    return log
