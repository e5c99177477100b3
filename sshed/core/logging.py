import logging
import sys
from typing import Optional
from sshed.core.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "watchdog", "apscheduler")


def setup_logging(level: Optional[int] = None):
    """
    Configures the root logger once for the server and the CLI.

    ``level`` overrides the DEBUG setting, e.g. for ``run.py --verbose``.
    """
    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Avoid duplicate handlers if setup is called multiple times
    if not root_logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"{settings.APP_NAME} logging initialized with level: {logging.getLevelName(level)}"
    )
