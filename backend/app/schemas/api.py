"""
API 请求/响应 Schema 定义。
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from app.schemas.velocity import MultiTimeVelocityData


class ParseResponse(BaseModel):
    """上传解析的响应。"""

    success: bool = Field(default=True, description="是否解析成功")
    data: MultiTimeVelocityData = Field(..., description="多时次风场")


class HealthResponse(BaseModel):
    """健康检查响应。"""

    status: str = Field(..., description="服务状态")
    decoder_available: bool = Field(..., description="ecCodes 是否可用")


class ErrorResponse(BaseModel):
    """通用错误响应。"""

    code: str = Field(..., description="错误码")
    message: str = Field(..., description="错误描述")
    details: Optional[Dict] = Field(
        default=None, description="可选的详细错误信息"
    )
