"""
GRIB 解码器服务。

GRIB 二进制格式的解码交给 ecCodes 命令行工具完成：
- grib_ls -j 列出全部消息的元数据
- grib_get_data 按消息序号输出 "lat lon value" 散点

GribDecoder 是抽象能力接口，测试中可以用固定输出的实现替换。
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from app.core.config import settings
from app.core.errors import DecodeFailure
from app.models.grib import GridMessage, ScatteredPoint
from app.services.extraction import parse_point_dump
from app.services.metadata import METADATA_KEYS, parse_message_list

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GribDecoder(ABC):
    """GRIB 解码能力接口。"""

    @abstractmethod
    async def is_available(self) -> bool:
        """解码器是否可用。"""

    @abstractmethod
    async def list_messages(self, grib_path: PathLike) -> List[GridMessage]:
        """列出文件中的全部消息。"""

    @abstractmethod
    async def dump_points(
        self, grib_path: PathLike, message_index: int
    ) -> List[ScatteredPoint]:
        """输出指定消息（序号从 1 开始）的全部散点。"""


class EccodesDecoder(GribDecoder):
    """基于 ecCodes 命令行工具的解码器。"""

    def __init__(
        self,
        grib_ls_bin: Optional[str] = None,
        grib_get_data_bin: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.grib_ls_bin = grib_ls_bin or settings.grib_ls_bin
        self.grib_get_data_bin = grib_get_data_bin or settings.grib_get_data_bin
        self.timeout = timeout if timeout is not None else settings.decoder_timeout_seconds
        # 可用性探测结果，进程生命周期内只探测一次
        self._available: Optional[bool] = None

    async def is_available(self) -> bool:
        """
        探测 ecCodes 是否安装（结果缓存）。

        只要 grib_ls -V 能启动即视为可用，不关心退出码。
        """
        if self._available is not None:
            return self._available

        try:
            proc = await asyncio.create_subprocess_exec(
                self.grib_ls_bin,
                "-V",
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await asyncio.wait_for(proc.wait(), timeout=self.timeout)
            self._available = True
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            self._available = True
        except OSError as e:
            logger.warning("ecCodes availability check failed (%s): %s", self.grib_ls_bin, e)
            self._available = False

        logger.info("ecCodes available: %s", self._available)
        return self._available

    async def _run(self, tool: str, args: Sequence[str]) -> Tuple[str, str]:
        """
        运行外部工具并返回 (stdout, stderr)。

        Raises:
            DecodeFailure: 工具无法启动、超时或退出码非 0
        """
        name = Path(tool).name
        try:
            proc = await asyncio.create_subprocess_exec(
                tool,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DecodeFailure(f"Failed to start {name}", str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            # 强制结束子进程，避免占用限流槽位
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise DecodeFailure(
                f"{name} timed out after {self.timeout:g}s"
            ) from e

        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise DecodeFailure(f"{name} failed (exit {proc.returncode})", err)
        return out, err

    async def list_messages(self, grib_path: PathLike) -> List[GridMessage]:
        output, _ = await self._run(
            self.grib_ls_bin,
            ["-p", ",".join(METADATA_KEYS), "-j", str(grib_path)],
        )
        return parse_message_list(output)

    async def dump_points(
        self, grib_path: PathLike, message_index: int
    ) -> List[ScatteredPoint]:
        output, _ = await self._run(
            self.grib_get_data_bin,
            ["-w", f"count={message_index}", str(grib_path)],
        )
        points, skipped = parse_point_dump(output)
        if skipped:
            logger.debug(
                "Message %d: skipped %d malformed lines", message_index, skipped
            )
        return points


# 默认解码器实例
_default_decoder: Optional[GribDecoder] = None


def get_decoder() -> GribDecoder:
    """获取全局解码器（首次调用时创建）。"""
    global _default_decoder
    if _default_decoder is None:
        _default_decoder = EccodesDecoder()
    return _default_decoder
