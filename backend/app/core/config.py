"""
全局配置模块。

集中管理：
- ecCodes 命令行工具路径与调用超时
- 并发解析上限
- 上传文件大小与扩展名限制
- 临时目录、数据目录与日志级别
"""

import tempfile
from pathlib import Path
from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置，可通过 GRIBWIND_ 前缀的环境变量覆盖。"""

    model_config = SettingsConfigDict(env_prefix="GRIBWIND_")

    app_name: str = "GribWind Backend"

    grib_ls_bin: str = Field(default="grib_ls", description="grib_ls 可执行文件")
    grib_get_data_bin: str = Field(
        default="grib_get_data", description="grib_get_data 可执行文件"
    )
    decoder_timeout_seconds: float = Field(
        default=120.0, gt=0, description="单次解码进程的最长运行时间（秒）"
    )

    max_concurrent_parses: int = Field(
        default=2, ge=1, description="同时进行的上传解析数量上限"
    )

    max_upload_bytes: int = Field(
        default=50 * 1024 * 1024, gt=0, description="上传文件大小上限（字节）"
    )
    allowed_extensions: Tuple[str, ...] = (".grb", ".grb2", ".grib", ".grib2")

    temp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="上传文件暂存目录",
    )
    data_dir: Path = Field(
        default=Path("data") / "gribs", description="已下载/上传的 GRIB 文件目录"
    )

    log_level: str = "INFO"


settings = Settings()
