"""
解析结果缓存服务。

每个源文件对应一个缓存文件：首次解析成功后写入，之后直接读取，
不检查源文件修改时间，也不会自动失效。

同一缓存路径的并发请求共享一次计算（single-flight）。
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from app.schemas.velocity import MultiTimeVelocityData
from app.services.decoder import GribDecoder
from app.services.parser import RefTime, parse_grib_file

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".velocity.json"


def default_cache_path(source_path: Union[str, Path]) -> Path:
    """源文件旁边的缓存路径：<源文件名>.velocity.json。"""
    source_path = Path(source_path)
    return source_path.with_name(source_path.name + CACHE_SUFFIX)


def read_cached(cache_path: Union[str, Path]) -> MultiTimeVelocityData:
    """读取缓存文件。"""
    text = Path(cache_path).read_text(encoding="utf-8")
    return MultiTimeVelocityData.model_validate_json(text)


def write_cached(cache_path: Union[str, Path], result: MultiTimeVelocityData) -> None:
    """整体写入缓存文件（先写临时文件再替换，不会留下半个文件）。"""
    cache_path = Path(cache_path)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = cache_path.with_name(f".{cache_path.name}.{os.getpid()}.tmp")
    try:
        tmp_path.write_text(result.model_dump_json(), encoding="utf-8")
        os.replace(tmp_path, cache_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class ResultCache:
    """按缓存路径记忆解析结果。"""

    def __init__(self):
        self._inflight: Dict[str, asyncio.Future] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def get_or_compute(
        self,
        source_path: Union[str, Path],
        cache_path: Union[str, Path],
        ref_time: RefTime = None,
        decoder: Optional[GribDecoder] = None,
    ) -> MultiTimeVelocityData:
        """
        读取缓存；缓存不存在时解析源文件并写入缓存。

        Args:
            source_path: GRIB 源文件路径
            cache_path: 缓存文件路径
            ref_time: 可选的参考时间
            decoder: 解码器

        Returns:
            多时次风场
        """
        cache_path = Path(cache_path)
        if cache_path.exists():
            logger.debug("Cache hit: %s", cache_path)
            return await asyncio.to_thread(read_cached, cache_path)

        key = str(cache_path.resolve())
        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Joining in-flight parse for %s", cache_path)
            return await asyncio.shield(pending)

        logger.info("Cache miss: parsing %s", source_path)
        future = asyncio.ensure_future(
            self._compute(source_path, cache_path, ref_time, decoder)
        )
        self._inflight[key] = future
        future.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(future)

    async def _compute(
        self,
        source_path: Union[str, Path],
        cache_path: Path,
        ref_time: RefTime,
        decoder: Optional[GribDecoder],
    ) -> MultiTimeVelocityData:
        result = await parse_grib_file(source_path, ref_time, decoder)
        await asyncio.to_thread(write_cached, cache_path, result)
        return result


# 全局结果缓存
result_cache = ResultCache()
