"""
Design (logging_config.py)
- Purpose: Send the engine's log records (job added/updated/processed/removed) to stderr,
           and to a file when ICARUS_LOG_FILE is set.
- Inputs: level name and optional file path (config.LOG_LEVEL / config.LOG_FILE).
- Outputs: None.
- Side effects: Adds handlers to the root logger on the first call only.
- Thread-safety: Call once from main() before the UI starts.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """
    Purpose: Attach console (and optional file) handlers to the root logger.
    Inputs: level ("DEBUG", "info", ...; unknown names mean INFO), logfile path or None.
    Side effects: Does nothing if the root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
