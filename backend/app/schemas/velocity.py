"""
风速场数据 Schema 定义。

字段名与 leaflet-velocity 渲染端的 JSON 格式保持一致（驼峰命名），
不要随意修改。
"""

from typing import List, Tuple

from pydantic import BaseModel, Field, validator


class VelocityHeader(BaseModel):
    """单个风分量网格的描述头。"""

    discipline: int = 0
    disciplineName: str = "Meteorological products"
    gribEdition: int = 2
    center: int = 7
    centerName: str = "US National Weather Service - NCEP(WMC)"
    refTime: str = Field(..., description="参考时间（UTC，ISO-8601）")
    parameterCategory: int = 2
    parameterCategoryName: str = "Momentum"
    parameterNumber: int = Field(..., description="2 = U 分量，3 = V 分量")
    parameterNumberName: str
    parameterUnit: str = "m.s-1"
    forecastTime: int = Field(..., description="预报时效（小时）")
    surface1Type: int = 103
    surface1TypeName: str = "Specified height level above ground"
    surface1Value: float = 10.0
    gridDefinitionTemplate: int = 0
    gridDefinitionTemplateName: str = "Latitude_Longitude"
    shape: int = 6
    nx: int = Field(..., ge=1, description="经向格点数")
    ny: int = Field(..., ge=1, description="纬向格点数")
    numberPoints: int = Field(..., description="格点总数，等于 nx * ny")
    lo1: float = Field(..., description="西边界经度（度）")
    la1: float = Field(..., description="北边界纬度（度）")
    lo2: float = Field(..., description="东边界经度（度）")
    la2: float = Field(..., description="南边界纬度（度）")
    dx: float = Field(..., description="经向格距（度）")
    dy: float = Field(..., description="纬向格距（度）")

    @validator("numberPoints")
    def validate_number_points(cls, v, values):
        """验证格点总数与网格尺寸一致。"""
        if "nx" in values and "ny" in values and v != values["nx"] * values["ny"]:
            raise ValueError("numberPoints must equal nx * ny")
        return v

    @validator("lo2")
    def validate_lon_order(cls, v, values):
        """验证 lo1 <= lo2。"""
        if "lo1" in values and v < values["lo1"]:
            raise ValueError("lo2 must not be less than lo1")
        return v

    @validator("la2")
    def validate_lat_order(cls, v, values):
        """验证 la1 >= la2。"""
        if "la1" in values and v > values["la1"]:
            raise ValueError("la2 must not be greater than la1")
        return v


class VelocityComponent(BaseModel):
    """单个风分量：描述头 + 行优先数据（第 0 行为最北一行）。"""

    header: VelocityHeader
    data: List[float]

    @validator("data")
    def validate_data_length(cls, v, values):
        """验证数据长度等于格点总数。"""
        header = values.get("header")
        if header is not None and len(v) != header.numberPoints:
            raise ValueError(
                f"data has {len(v)} values, expected {header.numberPoints}"
            )
        return v


# 单个时刻的风场：[U, V]
VelocityData = Tuple[VelocityComponent, VelocityComponent]


class TimeStep(BaseModel):
    """某一预报时次的风场。"""

    forecastHour: int = Field(..., description="预报时效（小时）")
    validTime: str = Field(..., description="有效时间 = 参考时间 + 预报时效")
    data: VelocityData


class MultiTimeVelocityData(BaseModel):
    """按预报时效排序的多时次风场。"""

    timeSteps: List[TimeStep] = Field(..., min_length=1)
    refTime: str = Field(..., description="所有时次共享的参考时间")

    @validator("timeSteps")
    def validate_forecast_order(cls, v):
        """验证预报时效严格递增。"""
        hours = [step.forecastHour for step in v]
        if any(b <= a for a, b in zip(hours, hours[1:])):
            raise ValueError("forecast hours must be strictly increasing")
        return v
