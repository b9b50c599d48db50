"""
时间格式化工具。

参考时间与有效时间统一使用 UTC，格式为 YYYY-MM-DDTHH:MM:SSZ。
"""

from datetime import datetime, timedelta, timezone
from typing import Union

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_time(value: datetime) -> str:
    """格式化为 UTC ISO 字符串。"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(ISO_FORMAT)


def parse_reference_time(value: Union[str, datetime]) -> datetime:
    """
    解析外部传入的参考时间。

    Args:
        value: ISO-8601 字符串（允许 Z 后缀）或 datetime，无时区时按 UTC 处理

    Raises:
        ValueError: 字符串无法解析
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def grib_reference_time(data_date: int, data_time: int) -> datetime:
    """
    由 GRIB 的 dataDate/dataTime 构造参考时间。

    Args:
        data_date: YYYYMMDD
        data_time: HHMM（如 600 表示 06:00）
    """
    stamp = f"{int(data_date):08d}{int(data_time):04d}"
    return datetime.strptime(stamp, "%Y%m%d%H%M").replace(tzinfo=timezone.utc)


def valid_time(reference: datetime, forecast_hour: int) -> datetime:
    """有效时间 = 参考时间 + 预报时效。"""
    return reference + timedelta(hours=forecast_hour)
