"""
网格重建服务。

把一条消息的散点数据还原为 nx*ny 的行优先稠密数组，第 0 行为最北一行。
每个格点最多取一个原始样本，不做插值；未被覆盖的格点保持 0。
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence

import numpy as np

from app.models.grib import GridStats, ScatteredPoint


class GridExtent(NamedTuple):
    """散点覆盖的经纬度范围。"""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


@dataclass
class ReconstructedGrid:
    """重建结果。"""

    values: np.ndarray  # float32，shape: (nx * ny,)
    stats: GridStats
    extent: Optional[GridExtent]  # 无散点时为 None


def _cell_size(span: float, count: int) -> float:
    if count <= 1 or span <= 0:
        return 1.0
    return span / (count - 1)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    # np.rint 是四舍六入五成双，这里需要 0.5 一律进位
    return np.floor(values + 0.5).astype(np.int64)


def _align_antimeridian(lons: np.ndarray) -> np.ndarray:
    """
    西边界在 180 度经线上的网格（0-360 表示的 180..200 等），规范化后
    第一列仍为 180，其余列为负值。此时把 180 列移到 -180，保证整列连续。
    """
    at_dateline = lons == 180.0
    if not at_dateline.any() or not (lons < 0).any():
        return lons
    if ((lons > 0) & ~at_dateline).any():
        return lons
    return np.where(at_dateline, -180.0, lons)


def reconstruct_grid(
    points: Sequence[ScatteredPoint], nx: int, ny: int
) -> ReconstructedGrid:
    """
    根据散点重建稠密网格。

    Args:
        points: 散点列表（经度已规范化）
        nx: 经向格点数
        ny: 纬向格点数

    Returns:
        重建结果，values 长度恒为 nx * ny
    """
    nx = max(int(nx), 0)
    ny = max(int(ny), 0)
    grid = np.zeros(nx * ny, dtype=np.float32)

    if len(points) == 0 or grid.size == 0:
        return ReconstructedGrid(
            values=grid,
            stats=GridStats(
                points_used=0,
                points_discarded=len(points),
                cells_unfilled=int(grid.size),
            ),
            extent=None,
        )

    samples = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    lats = samples[:, 0]
    lons = _align_antimeridian(samples[:, 1])
    vals = samples[:, 2]

    # 1. 散点包围盒
    extent = GridExtent(
        min_lat=float(lats.min()),
        max_lat=float(lats.max()),
        min_lon=float(lons.min()),
        max_lon=float(lons.max()),
    )

    # 2. 格距
    d_lat = _cell_size(extent.max_lat - extent.min_lat, ny)
    d_lon = _cell_size(extent.max_lon - extent.min_lon, nx)

    # 3. 格点索引，j 从最大纬度向下计数，保证北在前
    i = _round_half_up((lons - extent.min_lon) / d_lon)
    j = _round_half_up((extent.max_lat - lats) / d_lat)

    # 4. 越界点直接丢弃
    inside = (i >= 0) & (i < nx) & (j >= 0) & (j < ny)
    flat = j[inside] * nx + i[inside]
    grid[flat] = vals[inside]

    # 5. 未覆盖的格点保持 0
    filled = np.zeros(grid.size, dtype=bool)
    filled[flat] = True

    stats = GridStats(
        points_used=int(inside.sum()),
        points_discarded=int((~inside).sum()),
        cells_unfilled=int(grid.size - filled.sum()),
    )
    return ReconstructedGrid(values=grid, stats=stats, extent=extent)
