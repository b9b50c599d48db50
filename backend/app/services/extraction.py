"""
散点数据解析服务。

解析 grib_get_data 的逐行 "lat lon value" 文本输出。
"""

import math
from typing import List, Tuple

from app.models.grib import ScatteredPoint
from app.utils.coordinate import normalize_longitude


def parse_point_dump(output: str) -> Tuple[List[ScatteredPoint], int]:
    """
    解析 grib_get_data 输出。

    空行与 "Latitude" 开头的表头行直接忽略；字段不足三个或不是有限数值的行
    跳过并计数，不视为错误。

    Args:
        output: grib_get_data 标准输出

    Returns:
        (散点列表, 跳过的行数)
    """
    points: List[ScatteredPoint] = []
    skipped = 0

    for line in output.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("Latitude"):
            continue

        parts = trimmed.split()
        if len(parts) < 3:
            skipped += 1
            continue

        try:
            lat = float(parts[0])
            lon = float(parts[1])
            value = float(parts[2])
        except ValueError:
            skipped += 1
            continue

        if not (math.isfinite(lat) and math.isfinite(lon) and math.isfinite(value)):
            skipped += 1
            continue

        points.append(ScatteredPoint(lat, normalize_longitude(lon), value))

    return points, skipped
