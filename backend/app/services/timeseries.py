"""
多时次风场组装服务。

按预报时效顺序，为每个时次提取并重建 U/V 网格，生成渲染端所需的
描述头与数据。
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from app.core.errors import DecodeFailure, EmptySeries
from app.models.grib import GridMessage
from app.schemas.velocity import (
    MultiTimeVelocityData,
    TimeStep,
    VelocityComponent,
    VelocityData,
    VelocityHeader,
)
from app.services.decoder import GribDecoder
from app.services.matcher import ComponentMatch
from app.services.reconstruction import ReconstructedGrid, reconstruct_grid
from app.utils.coordinate import normalize_corners
from app.utils.timefmt import (
    format_time,
    grib_reference_time,
    parse_reference_time,
    valid_time,
)

logger = logging.getLogger(__name__)

# 层次类型 -> (surface1Type, surface1TypeName)
SURFACE_TYPES: Dict[str, Tuple[int, str]] = {
    "heightAboveGround": (103, "Specified height level above ground"),
    "surface": (1, "Ground or water surface"),
    "isobaricInhPa": (100, "Isobaric surface"),
    "meanSea": (101, "Mean sea level"),
}
DEFAULT_SURFACE = SURFACE_TYPES["heightAboveGround"]

EASTWARD_PARAMETER = (2, "U-component_of_wind")
NORTHWARD_PARAMETER = (3, "V-component_of_wind")


def resolve_reference_time(
    messages: List[GridMessage], override: Optional[Union[str, datetime]] = None
) -> datetime:
    """
    确定参考时间：优先使用外部传入值，否则取第一条消息的 dataDate/dataTime。

    Raises:
        ValueError: 外部传入值无法解析
        DecodeFailure: 消息中的日期时间无效
    """
    if override is not None:
        return parse_reference_time(override)

    first = messages[0]
    try:
        return grib_reference_time(first.data_date, first.data_time)
    except ValueError as e:
        raise DecodeFailure(
            "Invalid reference date/time in GRIB metadata",
            f"dataDate={first.data_date} dataTime={first.data_time}",
        ) from e


def _grid_bounds(
    message: GridMessage, grid: ReconstructedGrid
) -> Tuple[float, float, float, float]:
    """计算描述头的 (la1, lo1, la2, lo2)。"""
    la1, lo1, la2, lo2 = normalize_corners(
        message.lat_first, message.lon_first, message.lat_last, message.lon_last
    )

    extent = grid.extent
    if extent is None:
        return la1, lo1, la2, lo2

    # 跨越 180 度经线时（如 0..359.5 的全球网格），角点规范化后的范围
    # 与散点实际范围不一致，此时以散点范围为准，保证描述头与数据对齐
    tolerance = message.dx if message.dx else 1e-6
    if abs((lo2 - lo1) - (extent.max_lon - extent.min_lon)) > tolerance:
        logger.debug(
            "Message %d: corner longitudes [%g, %g] disagree with data extent [%g, %g]",
            message.index,
            lo1,
            lo2,
            extent.min_lon,
            extent.max_lon,
        )
        lo1, lo2 = extent.min_lon, extent.max_lon

    return la1, lo1, la2, lo2


def _increment(declared: Optional[float], span: float, count: int) -> float:
    if declared:
        return abs(declared)
    if count > 1:
        return abs(span) / (count - 1)
    return 1.0


def build_header(
    message: GridMessage,
    parameter: Tuple[int, str],
    bounds: Tuple[float, float, float, float],
    ref_time: str,
) -> VelocityHeader:
    """构建单个分量的描述头。"""
    la1, lo1, la2, lo2 = bounds
    surface_type, surface_name = SURFACE_TYPES.get(
        message.type_of_level, DEFAULT_SURFACE
    )
    return VelocityHeader(
        refTime=ref_time,
        parameterNumber=parameter[0],
        parameterNumberName=parameter[1],
        forecastTime=message.forecast_hour,
        surface1Type=surface_type,
        surface1TypeName=surface_name,
        surface1Value=float(message.level),
        nx=message.nx,
        ny=message.ny,
        numberPoints=message.nx * message.ny,
        lo1=lo1,
        la1=la1,
        lo2=lo2,
        la2=la2,
        dx=_increment(message.dx, lo2 - lo1, message.nx),
        dy=_increment(message.dy, la1 - la2, message.ny),
    )


async def _extract_component(
    decoder: GribDecoder,
    grib_path: Union[str, Path],
    message: GridMessage,
    nx: int,
    ny: int,
) -> ReconstructedGrid:
    points = await decoder.dump_points(grib_path, message.index)
    grid = reconstruct_grid(points, nx, ny)
    stats = grid.stats
    log = logger.info if (stats.points_discarded or stats.cells_unfilled) else logger.debug
    log(
        "Message %d (%s, +%dh): %d points used, %d discarded, %d cells unfilled",
        message.index,
        message.short_name,
        message.forecast_hour,
        stats.points_used,
        stats.points_discarded,
        stats.cells_unfilled,
    )
    return grid


async def build_time_step(
    decoder: GribDecoder,
    grib_path: Union[str, Path],
    u_message: GridMessage,
    v_message: GridMessage,
    ref_time: str,
) -> VelocityData:
    """
    解析单个时次的 U/V 分量。

    两个分量的提取互不依赖，并发执行。网格尺寸与边界以 U 分量为准。
    """
    nx, ny = u_message.nx, u_message.ny
    u_grid, v_grid = await asyncio.gather(
        _extract_component(decoder, grib_path, u_message, nx, ny),
        _extract_component(decoder, grib_path, v_message, nx, ny),
    )

    bounds = _grid_bounds(u_message, u_grid)
    u_header = build_header(u_message, EASTWARD_PARAMETER, bounds, ref_time)
    v_header = build_header(u_message, NORTHWARD_PARAMETER, bounds, ref_time)

    return (
        VelocityComponent(header=u_header, data=u_grid.values.tolist()),
        VelocityComponent(header=v_header, data=v_grid.values.tolist()),
    )


async def assemble_time_series(
    decoder: GribDecoder,
    grib_path: Union[str, Path],
    messages: List[GridMessage],
    match: ComponentMatch,
    ref_time: Optional[Union[str, datetime]] = None,
) -> MultiTimeVelocityData:
    """
    组装多时次风场。

    Args:
        decoder: 解码器
        grib_path: GRIB 文件路径
        messages: 全部消息
        match: U/V 匹配结果
        ref_time: 可选的参考时间（覆盖消息中的 dataDate/dataTime）

    Returns:
        按预报时效升序排列的多时次风场

    Raises:
        EmptySeries: 没有任何时次同时具备 U 和 V
    """
    reference = resolve_reference_time(messages, ref_time)
    ref_time_str = format_time(reference)

    time_steps: List[TimeStep] = []
    for forecast_hour in match.forecast_hours():
        u_message, v_message = match.pair_for_hour(forecast_hour)
        if u_message is None or v_message is None:
            logger.warning(
                "Skipping forecast hour %d: missing U or V component", forecast_hour
            )
            continue

        data = await build_time_step(
            decoder, grib_path, u_message, v_message, ref_time_str
        )
        time_steps.append(
            TimeStep(
                forecastHour=forecast_hour,
                validTime=format_time(valid_time(reference, forecast_hour)),
                data=data,
            )
        )

    if not time_steps:
        raise EmptySeries()

    logger.info(
        "Assembled %d time steps from %s (ref %s)",
        len(time_steps),
        Path(grib_path).name,
        ref_time_str,
    )
    return MultiTimeVelocityData(timeSteps=time_steps, refTime=ref_time_str)
