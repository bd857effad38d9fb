from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(levelname)s %(name)s - %(message)s"


def configure_library_logging(
    level: int = logging.INFO, format: str = DEFAULT_FORMAT, **kwargs
) -> bool:
    """Configure a basic logging setup for the library if none is present.

    Returns True when a configuration was installed, False when the root
    logger already had handlers and was left alone.
    """

    root_logger = logging.getLogger()
    if root_logger.handlers:
        return False

    logging.basicConfig(level=level, format=format, **kwargs)
    return True
