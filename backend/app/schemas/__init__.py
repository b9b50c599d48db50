"""
Pydantic Schema 模块。

包含渲染端风场格式与 API 请求/响应模型。
"""

from app.schemas.api import ErrorResponse, HealthResponse, ParseResponse
from app.schemas.velocity import (
    MultiTimeVelocityData,
    TimeStep,
    VelocityComponent,
    VelocityData,
    VelocityHeader,
)

__all__ = [
    # 风场数据
    "VelocityHeader",
    "VelocityComponent",
    "VelocityData",
    "TimeStep",
    "MultiTimeVelocityData",
    # API 请求/响应
    "ParseResponse",
    "HealthResponse",
    "ErrorResponse",
]
