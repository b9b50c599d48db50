"""
已保存 GRIB 文件的风场查询路由。

源文件位于数据目录中，解析结果缓存在源文件旁边，重复查看同一文件
不会再次解码。
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.config import settings
from app.schemas.api import ErrorResponse
from app.schemas.velocity import MultiTimeVelocityData, VelocityData
from app.services.cache import default_cache_path, result_cache
from app.services.decoder import GribDecoder, get_decoder
from app.utils.timefmt import parse_reference_time

router = APIRouter(prefix="/gribs", tags=["gribs"])


def _resolve_source(name: str) -> Path:
    """在数据目录中定位源文件。"""
    data_dir = Path(settings.data_dir).resolve()
    source = (data_dir / name).resolve()
    if data_dir not in source.parents:
        raise HTTPException(status_code=400, detail=f"Invalid GRIB name: {name}")
    if not source.is_file():
        raise HTTPException(status_code=404, detail=f"GRIB {name} not found")
    return source


async def _load_series(
    name: str, ref_time: Optional[str], decoder: GribDecoder
) -> MultiTimeVelocityData:
    source = _resolve_source(name)
    if ref_time is not None:
        try:
            parse_reference_time(ref_time)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid ref_time: {e}")
    return await result_cache.get_or_compute(
        source, default_cache_path(source), ref_time, decoder
    )


@router.get(
    "/{name}/velocity",
    response_model=MultiTimeVelocityData,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="获取 GRIB 文件的多时次风场",
)
async def get_velocity(
    name: str,
    ref_time: Optional[str] = Query(
        default=None, description="参考时间（ISO-8601），不传则使用文件中的时间"
    ),
    decoder: GribDecoder = Depends(get_decoder),
) -> MultiTimeVelocityData:
    """首次请求时解析并缓存，之后直接返回缓存结果。"""
    return await _load_series(name, ref_time, decoder)


@router.get(
    "/{name}/velocity/first",
    response_model=VelocityData,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="获取 GRIB 文件第一个时次的风场",
)
async def get_first_velocity(
    name: str,
    ref_time: Optional[str] = Query(default=None, description="参考时间（ISO-8601）"),
    decoder: GribDecoder = Depends(get_decoder),
) -> VelocityData:
    """单时次接口，返回 [U, V]。"""
    series = await _load_series(name, ref_time, decoder)
    return series.timeSteps[0].data
