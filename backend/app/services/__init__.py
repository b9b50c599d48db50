"""
业务服务模块。

包含 GRIB 解码、元数据解析、散点提取、网格重建、风分量匹配、
多时次组装与结果缓存等服务。
"""

from app.services.cache import ResultCache, default_cache_path, result_cache
from app.services.decoder import EccodesDecoder, GribDecoder, get_decoder
from app.services.matcher import ComponentMatch, match_components
from app.services.parser import (
    parse_grib_buffer,
    parse_grib_file,
    parse_grib_first_step,
)
from app.services.reconstruction import reconstruct_grid
from app.services.timeseries import assemble_time_series

__all__ = [
    "GribDecoder",
    "EccodesDecoder",
    "get_decoder",
    "ComponentMatch",
    "match_components",
    "reconstruct_grid",
    "assemble_time_series",
    "parse_grib_file",
    "parse_grib_first_step",
    "parse_grib_buffer",
    "ResultCache",
    "result_cache",
    "default_cache_path",
]
