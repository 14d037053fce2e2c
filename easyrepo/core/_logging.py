"""EasyRepo 로거 설정."""
import logging
import os

from uvicorn.logging import DefaultFormatter

LOG_FORMAT = "%(levelprefix)s [%(name)s] %(message)s"


def get_logger(name: str, log_level: int = None) -> logging.Logger:
    """``uvicorn`` 포맷터를 쓰는 로거를 리턴합니다.

    로그 레벨을 지정하지 않으면 ``EASYREPO_LOG_LEVEL`` 환경변수(기본 ``INFO``)를
    따릅니다. 핸들러는 처음 한 번만 추가됩니다.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        if log_level is None:
            log_level = logging.getLevelName(
                os.environ.get("EASYREPO_LOG_LEVEL", "INFO").upper()
            )
        logger.setLevel(log_level)
        ch = logging.StreamHandler()
        ch.setFormatter(DefaultFormatter(fmt=LOG_FORMAT))
        logger.addHandler(ch)

    return logger
