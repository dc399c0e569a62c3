import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# 第三方库的 INFO 太吵（每封邮件一条连接日志、每次 SQL），统一压到 WARNING
QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine", "celery.redirected", "kombu")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    API 进程和 Celery worker 共用一套日志格式。
    uvicorn 启动时已经挂好 handler，此时只调整级别；worker / 脚本里没有 handler 才补一个 stdout。
    """
    resolved_level = (level or DEFAULT_LEVEL).upper()
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(resolved_level)
    else:
        logging.basicConfig(
            level=resolved_level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return logging.getLogger("travelsmart")


logger = configure_logging()
