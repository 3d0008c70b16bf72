from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a console handler on the root logger once.

    Env vars:
      - LOG_LEVEL: logging level name (default INFO)
    """

    root = logging.getLogger()
    if root.handlers:
        return

    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    resolved = getattr(logging, name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root.addHandler(handler)
    root.setLevel(resolved)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
