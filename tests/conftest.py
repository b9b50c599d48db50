"""
Pytest 配置文件。

提供全局的测试配置和 fixture，包括不依赖 ecCodes 的固定输出解码器。
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# 获取项目根目录
project_root = Path(__file__).parent.parent

# 添加 backend 目录到 Python 路径（让测试可以导入 app 模块）
backend_path = project_root / "backend"
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from app.core.errors import DecodeFailure  # noqa: E402
from app.models.grib import GridMessage, ScatteredPoint  # noqa: E402
from app.services.decoder import GribDecoder  # noqa: E402


class FixtureDecoder(GribDecoder):
    """返回预置消息与散点的解码器。"""

    def __init__(
        self,
        messages: List[GridMessage],
        points: Dict[int, List[ScatteredPoint]],
        available: bool = True,
        delay: float = 0.0,
    ):
        self.messages = messages
        self.points = points
        self.available = available
        self.delay = delay
        self.list_calls = 0
        self.dump_calls: List[int] = []

    async def is_available(self) -> bool:
        return self.available

    async def list_messages(self, grib_path) -> List[GridMessage]:
        self.list_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.messages)

    async def dump_points(self, grib_path, message_index: int) -> List[ScatteredPoint]:
        self.dump_calls.append(message_index)
        if message_index not in self.points:
            raise DecodeFailure("grib_get_data failed", f"no message {message_index}")
        return list(self.points[message_index])


def make_message(
    index: int,
    short_name: str = "10u",
    forecast_hour: int = 0,
    type_of_level: str = "heightAboveGround",
    level: float = 10.0,
    nx: int = 2,
    ny: int = 2,
    lat_first: float = 10.0,
    lon_first: float = 0.0,
    lat_last: float = 0.0,
    lon_last: float = 10.0,
    dx: Optional[float] = 10.0,
    dy: Optional[float] = 10.0,
    data_date: int = 20240101,
    data_time: int = 0,
) -> GridMessage:
    return GridMessage(
        short_name=short_name,
        level=level,
        type_of_level=type_of_level,
        nx=nx,
        ny=ny,
        lat_first=lat_first,
        lon_first=lon_first,
        lat_last=lat_last,
        lon_last=lon_last,
        dx=dx,
        dy=dy,
        data_date=data_date,
        data_time=data_time,
        forecast_hour=forecast_hour,
        index=index,
    )


def grid_points(
    values: Sequence[float],
    lats: Sequence[float] = (10.0, 0.0),
    lons: Sequence[float] = (0.0, 10.0),
) -> List[ScatteredPoint]:
    """按北在前、西到东的顺序生成规则网格散点。"""
    points = []
    k = 0
    for lat in lats:
        for lon in lons:
            points.append(ScatteredPoint(lat, lon, float(values[k])))
            k += 1
    return points


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def wind_decoder():
    """两个预报时次（0、6 小时）的 10 米 U/V 风。"""
    messages = [
        make_message(1, "10u", forecast_hour=0),
        make_message(2, "10v", forecast_hour=0),
        make_message(3, "10u", forecast_hour=6),
        make_message(4, "10v", forecast_hour=6),
    ]
    points = {
        1: grid_points([1, 2, 3, 4]),
        2: grid_points([5, 6, 7, 8]),
        3: grid_points([9, 10, 11, 12]),
        4: grid_points([13, 14, 15, 16]),
    }
    return FixtureDecoder(messages, points)
