"""
GRIB 消息与散点数据模型。

每次解析时根据解码器输出新建，不可变，不单独持久化。
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional


@dataclass(frozen=True)
class GridMessage:
    """GRIB 文件中的一条消息（某变量某层次的切片）。"""

    short_name: str  # 变量简称，如 10u / u
    level: float  # 层次值
    type_of_level: str  # 层次类型，如 heightAboveGround / surface
    nx: int  # 经向格点数（Ni）
    ny: int  # 纬向格点数（Nj）
    lat_first: float  # 第一个格点纬度（度，原始值）
    lon_first: float  # 第一个格点经度（度，原始值）
    lat_last: float  # 最后一个格点纬度（度，原始值）
    lon_last: float  # 最后一个格点经度（度，原始值）
    dx: Optional[float]  # 经向间隔（度），缺失时为 None
    dy: Optional[float]  # 纬向间隔（度），缺失时为 None
    data_date: int  # 参考日期 YYYYMMDD
    data_time: int  # 参考时间 HHMM
    forecast_hour: int  # 预报时效（小时）
    index: int  # 消息序号（从 1 开始）


class ScatteredPoint(NamedTuple):
    """散点数据，经度已规范到 [-180, 180]。"""

    lat: float
    lon: float
    value: float


@dataclass(frozen=True)
class GridStats:
    """网格重建诊断计数。"""

    points_used: int
    points_discarded: int
    cells_unfilled: int
