"""时间工具：业务时间戳按配置时区生成，并以统一格式输出给接口。"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.packages.documents.core.config import get_settings

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


def now() -> datetime:
    """返回配置时区下的当前时间，用于写入审批记录的决定时间。"""
    return datetime.now(get_settings().timezone_info)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """将目录、文件、版本与授权记录的时间格式化为 ``YYYY-MM-DD HH:MM:SS``。

    SQLite 读回的时间不带时区信息，此时按配置时区解释；带时区的值先换算到配置时区。
    """
    if value is None:
        return None
    zone = get_settings().timezone_info
    local = value.replace(tzinfo=zone) if value.tzinfo is None else value.astimezone(zone)
    return local.strftime(DISPLAY_FORMAT)
