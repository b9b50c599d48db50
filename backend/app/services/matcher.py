"""
风分量匹配服务。

从消息列表中挑选各预报时次的 U（东向）/V（北向）风分量消息。
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from app.core.errors import ComponentNotFound
from app.models.grib import GridMessage

# 10 米风专用简称与通用风分量简称
EASTWARD_NAMES = ("10u", "u")
NORTHWARD_NAMES = ("10v", "v")


@dataclass
class ComponentMatch:
    """匹配到的 U/V 候选消息（跨所有预报时次）。"""

    eastward: List[GridMessage] = field(default_factory=list)
    northward: List[GridMessage] = field(default_factory=list)

    def forecast_hours(self) -> List[int]:
        """U 分量中出现的预报时次，升序去重。"""
        return sorted({m.forecast_hour for m in self.eastward})

    def pair_for_hour(
        self, forecast_hour: int
    ) -> Tuple[Optional[GridMessage], Optional[GridMessage]]:
        """返回指定时次的第一条 U 和第一条 V 消息，缺失时为 None。"""
        u = next((m for m in self.eastward if m.forecast_hour == forecast_hour), None)
        v = next((m for m in self.northward if m.forecast_hour == forecast_hour), None)
        return u, v


def _is_10m_wind(message: GridMessage, names: Tuple[str, ...]) -> bool:
    if message.short_name not in names:
        return False
    return (
        (message.type_of_level == "heightAboveGround" and message.level == 10)
        or message.type_of_level == "surface"
        # 10u/10v 本身就是 10 米风
        or message.short_name == names[0]
    )


def _available_variables(messages: List[GridMessage]) -> List[str]:
    seen: List[str] = []
    for message in messages:
        if message.short_name not in seen:
            seen.append(message.short_name)
    return seen


def match_components(messages: List[GridMessage]) -> ComponentMatch:
    """
    匹配 U/V 风分量。

    优先选择 10 米高度或地面层的风；任一分量没有匹配时，退化为
    任意层次的同名变量。

    Args:
        messages: 全部消息

    Returns:
        U/V 候选集合

    Raises:
        ComponentNotFound: 退化后仍缺少 U 或 V
    """
    eastward = [m for m in messages if _is_10m_wind(m, EASTWARD_NAMES)]
    northward = [m for m in messages if _is_10m_wind(m, NORTHWARD_NAMES)]

    if not eastward or not northward:
        eastward_any = [m for m in messages if m.short_name in EASTWARD_NAMES]
        northward_any = [m for m in messages if m.short_name in NORTHWARD_NAMES]

        if not eastward_any or not northward_any:
            raise ComponentNotFound(_available_variables(messages))

        eastward.extend(m for m in eastward_any if m not in eastward)
        northward.extend(m for m in northward_any if m not in northward)

    return ComponentMatch(eastward=eastward, northward=northward)
