# travel_quote/utils/logging.py
from __future__ import annotations

import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Install one stream handler on the root logger.

    Safe to call more than once (API startup, Lambda cold start, scripts):
    an existing handler is reused and only the level changes.
    """
    if level is None:
        from travel_quote.utils.config import get_engine_config

        level = get_engine_config().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not any(getattr(h, "_travel_quote", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._travel_quote = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)
