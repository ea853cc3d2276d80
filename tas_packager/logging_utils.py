from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
) -> Optional[str]:
    """Configure logging for a single packaging or install run.

    Console output is always on so operators see each step. A log file is
    only written when requested; if the requested path is not writable we
    fall back to a file in the working directory.

    Returns the actual file path being used, or None for console only.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    if getattr(logger, "_tas_configured", False):
        return getattr(logger, "_tas_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / "tas-packager.log")
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_tas_configured", True)
    setattr(logger, "_tas_log_path", chosen_path)

    if log_path:
        logging.getLogger(__name__).info(
            "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
        )
    return chosen_path
