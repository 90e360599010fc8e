from __future__ import annotations

import logging

from .config import get_settings

_configured = False


def configure_logging(level: str | int | None = None) -> None:
    """Configura logging de proceso una sola vez (nivel desde LOG_LEVEL)."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    # paho es muy verboso en DEBUG
    logging.getLogger("paho").setLevel(logging.WARNING)

    _configured = True
