"""日志配置：统一 ``app`` 日志器的输出格式，并为每条记录附加请求 ID。

业务日志写成 ``事件名 key=value ...``（如 ``file.upload path=/team/a.txt version=2``），
JSON 模式下事件名单独输出为 ``event`` 字段，便于按操作检索上传、授权与审批记录。
"""

import json
import logging
import logging.config
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """把当前请求的 ID 写入日志记录，请求之外的日志记为 ``-``。"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get() or "-"
        return True


class VaultFormatter(logging.Formatter):
    """按配置时区渲染时间；``as_json`` 为真时每条记录输出为一行 JSON。"""

    def __init__(self, as_json: bool = False) -> None:
        super().__init__(fmt=LOG_FORMAT)
        self.as_json = as_json

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return stamp.strftime(datefmt)
        return stamp.isoformat(sep=" ", timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        if not self.as_json:
            return super().format(record)
        message = record.getMessage()
        head = message.split(" ", 1)[0]
        payload = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "event": head if "." in head and "=" not in head else None,
            "msg": message,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging() -> None:
    """配置控制台与按天滚动的文件输出，``app`` 与 uvicorn 日志共用同一组处理器。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)

    handler_names = ["console", "file"]
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "vault": {
                    "()": "app.packages.documents.core.logger.VaultFormatter",
                    "as_json": settings.log_json,
                },
            },
            "filters": {
                "request_id": {"()": "app.packages.documents.core.logger.RequestIdFilter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "vault",
                    "filters": ["request_id"],
                },
                "file": {
                    "class": "logging.handlers.TimedRotatingFileHandler",
                    "formatter": "vault",
                    "filters": ["request_id"],
                    "filename": str(settings.log_file_path),
                    "when": "midnight",
                    "backupCount": 14,
                    "encoding": "utf-8",
                    "delay": True,
                },
            },
            "loggers": {
                "app": {"handlers": handler_names, "level": settings.log_level, "propagate": False},
                "uvicorn": {"handlers": handler_names, "level": settings.log_level, "propagate": False},
            },
            "root": {"handlers": handler_names, "level": settings.log_level},
        }
    )


logger = logging.getLogger("app")


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
