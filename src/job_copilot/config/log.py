from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", logs_dir: Optional[Path] = None) -> None:
    """Console logging, plus a file in logs_dir when given."""
    root = logging.getLogger()
    root.setLevel(level)

    # Calling twice (CLI + backend reload) must not duplicate handlers.
    for handler in list(root.handlers):
        if getattr(handler, "_job_copilot", False):
            root.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logs_dir / "job_copilot.log", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._job_copilot = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # googleapiclient logs every discovery cache miss at WARNING.
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
