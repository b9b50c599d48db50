"""
内部数据模型模块。

包含 GRIB 消息、散点、网格重建统计等内部数据结构。
"""

from app.models.grib import GridMessage, GridStats, ScatteredPoint

__all__ = [
    "GridMessage",
    "ScatteredPoint",
    "GridStats",
]
