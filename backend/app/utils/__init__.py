"""
通用工具函数模块。
"""

from app.utils.coordinate import normalize_corners, normalize_longitude
from app.utils.timefmt import (
    format_time,
    grib_reference_time,
    parse_reference_time,
    valid_time,
)

__all__ = [
    "normalize_longitude",
    "normalize_corners",
    "format_time",
    "parse_reference_time",
    "grib_reference_time",
    "valid_time",
]
