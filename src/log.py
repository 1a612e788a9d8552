import logging
import os
from logging.handlers import RotatingFileHandler

import seqlog

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DIR = "logs"


def setup_logging_to_console(level=logging.INFO):
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root_logger.handlers
    ):
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def setup_logging_to_file(app: str, level=logging.INFO, logger=None):
    logger = logger or logging.getLogger()
    os.makedirs(LOG_DIR, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, f"{app}.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(level)

    # Seq is optional, only wired when a server is configured
    if settings.SEQ_SERVER_URL:
        seqlog.log_to_seq(
            server_url=settings.SEQ_SERVER_URL,
            api_key=settings.SEQ_SERVER_API_KEY,
            level=level,
            batch_size=10,
            auto_flush_timeout=10,
            override_root_logger=False,
        )
        seqlog.set_global_log_properties(application=app)
