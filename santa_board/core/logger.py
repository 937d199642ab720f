import logging
from pathlib import Path

from santa_board.core.environs import LOG_FILE, LOG_LEVEL


def configure_logging() -> logging.Logger:
    level = getattr(logging, (LOG_LEVEL or "INFO").upper(), logging.INFO)
    root = logging.getLogger()

    handlers = []
    if not root.handlers:
        handlers.append(logging.StreamHandler())
    if LOG_FILE:
        log_path = Path(LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        has_file_handler = any(
            isinstance(handler, logging.FileHandler)
            and getattr(handler, "baseFilename", None) == str(log_path.resolve())
            for handler in root.handlers
        )
        if not has_file_handler:
            handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    logger = logging.getLogger("santa_board")
    logger.setLevel(level)
    return logger
