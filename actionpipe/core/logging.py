import logging


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"actionpipe.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def snippet(text: str | None, n: int = 200) -> str:
    """Single-line, truncated preview of free text for log lines."""
    return (text or "")[:n].replace("\n", "\\n").replace("\r", "\\r")


"""
Logging setup and it configures:
- Log format
- Log level
- Output destination
- Safe one-line snippets of user / model text

The main purpose:
Standardized application logging.
"""
