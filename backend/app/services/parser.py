"""
GRIB 解析入口。

把 GRIB 文件转换为 leaflet-velocity 所需的多时次风场 JSON，支持单文件
多预报时次（如 Saildocs 下载的文件）。
"""

import asyncio
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from app.core.config import settings
from app.core.errors import DecodeFailure, DecoderUnavailable
from app.core.governor import ConcurrencyGovernor, parse_governor
from app.schemas.velocity import MultiTimeVelocityData, VelocityData
from app.services.decoder import GribDecoder, get_decoder
from app.services.matcher import match_components
from app.services.timeseries import assemble_time_series

logger = logging.getLogger(__name__)

RefTime = Optional[Union[str, datetime]]


async def parse_grib_file(
    grib_path: Union[str, Path],
    ref_time: RefTime = None,
    decoder: Optional[GribDecoder] = None,
) -> MultiTimeVelocityData:
    """
    解析 GRIB 文件为多时次风场。

    Args:
        grib_path: GRIB 文件路径
        ref_time: 可选的参考时间，覆盖文件中的 dataDate/dataTime
        decoder: 解码器，默认使用全局 ecCodes 解码器

    Returns:
        多时次风场
    """
    decoder = decoder or get_decoder()
    if not await decoder.is_available():
        raise DecoderUnavailable()

    messages = await decoder.list_messages(grib_path)
    if not messages:
        raise DecodeFailure("No messages found in GRIB file")
    logger.info("Found %d messages in %s", len(messages), Path(grib_path).name)

    match = match_components(messages)
    return await assemble_time_series(decoder, grib_path, messages, match, ref_time)


async def parse_grib_first_step(
    grib_path: Union[str, Path],
    ref_time: RefTime = None,
    decoder: Optional[GribDecoder] = None,
) -> VelocityData:
    """解析 GRIB 文件，只返回第一个（或唯一的）时次。"""
    series = await parse_grib_file(grib_path, ref_time, decoder)
    return series.timeSteps[0].data


def _staging_path(filename: str) -> Path:
    staging_dir = Path(settings.temp_dir) / "gribwind"
    staging_dir.mkdir(parents=True, exist_ok=True)
    # 只保留文件名部分，防止路径穿越
    safe_name = Path(filename).name or "upload.grib2"
    return staging_dir / f"{time.time_ns()}_{safe_name}"


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Failed to remove temp file %s: %s", path, e)


async def parse_grib_buffer(
    content: bytes,
    filename: str,
    decoder: Optional[GribDecoder] = None,
    governor: Optional[ConcurrencyGovernor] = None,
) -> MultiTimeVelocityData:
    """
    解析内存中的 GRIB 数据（上传文件）。

    先占用限流槽位，再写入临时文件交给解码器，结束后无论成功与否都归还
    槽位并删除临时文件。

    Raises:
        ServerBusy: 并发解析数量已达上限
    """
    governor = governor or parse_governor

    with governor.acquire():
        temp_path = _staging_path(filename)
        try:
            await asyncio.to_thread(temp_path.write_bytes, content)
            return await parse_grib_file(temp_path, decoder=decoder)
        finally:
            _remove_quietly(temp_path)
