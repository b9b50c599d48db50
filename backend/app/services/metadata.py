"""
GRIB 元数据解析服务。

解析 grib_ls -j 输出的 JSON 文档，得到消息列表。
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

from app.core.errors import DecodeFailure
from app.models.grib import GridMessage

logger = logging.getLogger(__name__)

# grib_ls -p 请求的键
METADATA_KEYS = (
    "shortName",
    "level",
    "typeOfLevel",
    "Ni",
    "Nj",
    "latitudeOfFirstGridPointInDegrees",
    "longitudeOfFirstGridPointInDegrees",
    "latitudeOfLastGridPointInDegrees",
    "longitudeOfLastGridPointInDegrees",
    "iDirectionIncrementInDegrees",
    "jDirectionIncrementInDegrees",
    "dataDate",
    "dataTime",
    "stepRange",
)


def parse_step_range(step_range: Any) -> int:
    """
    解析预报时效。

    stepRange 可能是整数，也可能是 "0-6" 这样的区间字符串（取区间终点）。
    无法解析时返回 0。
    """
    if isinstance(step_range, bool):
        return 0
    if isinstance(step_range, int):
        return step_range
    if isinstance(step_range, float):
        return int(step_range) if math.isfinite(step_range) else 0
    if isinstance(step_range, str):
        last = step_range.strip().split("-")[-1].strip()
        try:
            return int(last)
        except ValueError:
            try:
                return int(float(last))
            except ValueError:
                return 0
    return 0


def _number(value: Any) -> Optional[float]:
    """把 JSON 值转换为浮点数，MISSING 等非数值返回 None。"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _required(msg: Dict[str, Any], key: str, position: int) -> float:
    number = _number(msg.get(key))
    if number is None:
        raise DecodeFailure(
            "Failed to parse grib_ls output",
            f"message {position} has no numeric {key!r} (got {msg.get(key)!r})",
        )
    return number


def _build_message(msg: Dict[str, Any], position: int) -> GridMessage:
    if not isinstance(msg, dict):
        raise DecodeFailure(
            "Failed to parse grib_ls output", f"message {position} is not an object"
        )

    level = _number(msg.get("level"))
    data_date = _number(msg.get("dataDate"))
    data_time = _number(msg.get("dataTime"))

    return GridMessage(
        short_name=str(msg.get("shortName", "")),
        level=level if level is not None else 0.0,
        type_of_level=str(msg.get("typeOfLevel", "")),
        nx=int(_required(msg, "Ni", position)),
        ny=int(_required(msg, "Nj", position)),
        lat_first=_required(msg, "latitudeOfFirstGridPointInDegrees", position),
        lon_first=_required(msg, "longitudeOfFirstGridPointInDegrees", position),
        lat_last=_required(msg, "latitudeOfLastGridPointInDegrees", position),
        lon_last=_required(msg, "longitudeOfLastGridPointInDegrees", position),
        dx=_number(msg.get("iDirectionIncrementInDegrees")),
        dy=_number(msg.get("jDirectionIncrementInDegrees")),
        data_date=int(data_date) if data_date is not None else 0,
        data_time=int(data_time) if data_time is not None else 0,
        forecast_hour=parse_step_range(msg.get("stepRange")),
        index=position,
    )


def parse_message_list(output: str) -> List[GridMessage]:
    """
    解析 grib_ls -j 输出。

    Args:
        output: grib_ls 标准输出，形如 {"messages": [{...}, ...]}

    Returns:
        按解码器输出顺序编号（1..N）的消息列表

    Raises:
        DecodeFailure: 输出不是预期结构
    """
    try:
        document = json.loads(output)
    except ValueError as e:
        raise DecodeFailure("Failed to parse grib_ls output", str(e)) from e

    if not isinstance(document, dict) or not isinstance(
        document.get("messages"), list
    ):
        raise DecodeFailure(
            "Failed to parse grib_ls output", "missing 'messages' list"
        )

    messages = [
        _build_message(msg, position)
        for position, msg in enumerate(document["messages"], start=1)
    ]
    logger.debug("grib_ls reported %d messages", len(messages))
    return messages
