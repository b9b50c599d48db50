"""
坐标工具。

提供经度规范化与网格角点的北/南/西/东规范化。
"""

from typing import Tuple


def normalize_longitude(lon: float) -> float:
    """
    将经度规范到 [-180, 180]。

    只有超出该范围的经度才会平移，0-360 表示的经度（如 350）转换为负值
    （-10），而 180 保持不变，东边界在 180 度的区域网格不会被拆开。
    多次调用结果不变。
    """
    if -180.0 <= lon <= 180.0:
        return lon
    # 结果落在 [-180, 180) 内
    return (lon + 180.0) % 360.0 - 180.0


def normalize_corners(
    lat_first: float, lon_first: float, lat_last: float, lon_last: float
) -> Tuple[float, float, float, float]:
    """
    规范化网格角点。

    渲染端要求 la1 为北边界、la2 为南边界、lo1 为西边界、lo2 为东边界，
    与消息声明的扫描方向无关。

    Returns:
        (la1, lo1, la2, lo2)
    """
    lon_first = normalize_longitude(lon_first)
    lon_last = normalize_longitude(lon_last)

    la1 = max(lat_first, lat_last)
    la2 = min(lat_first, lat_last)
    lo1 = min(lon_first, lon_last)
    lo2 = max(lon_first, lon_last)
    return la1, lo1, la2, lo2
