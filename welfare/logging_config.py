from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for everything under the `welfare` logger.

    Uvicorn normally installs the handlers. When nothing has (scripts, `python -m`),
    a plain stderr handler is added so scope decisions are still visible. Allow/deny
    decisions are logged at DEBUG by `welfare.scope.authorizer`, so
    `WELFARE_LOG_LEVEL=DEBUG` shows every one of them.
    """

    normalized = level.upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(format=LOG_FORMAT)

    logger = logging.getLogger("welfare")
    logger.setLevel(normalized)
    logger.propagate = True
