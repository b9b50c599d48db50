"""
基础功能测试。

测试元数据解析、散点解析、坐标与时间工具。
"""

import json
from datetime import datetime, timezone

import pytest

from app.core.errors import DecodeFailure
from app.services.extraction import parse_point_dump
from app.services.metadata import parse_message_list, parse_step_range
from app.utils.coordinate import normalize_corners, normalize_longitude
from app.utils.timefmt import (
    format_time,
    grib_reference_time,
    parse_reference_time,
    valid_time,
)


def _grib_ls_message(**overrides):
    msg = {
        "shortName": "10u",
        "level": 10,
        "typeOfLevel": "heightAboveGround",
        "Ni": 3,
        "Nj": 2,
        "latitudeOfFirstGridPointInDegrees": 50.0,
        "longitudeOfFirstGridPointInDegrees": 350.0,
        "latitudeOfLastGridPointInDegrees": 49.0,
        "longitudeOfLastGridPointInDegrees": 352.0,
        "iDirectionIncrementInDegrees": 1.0,
        "jDirectionIncrementInDegrees": 1.0,
        "dataDate": 20240101,
        "dataTime": 600,
        "stepRange": "0-6",
    }
    msg.update(overrides)
    return msg


def test_step_range_parsing():
    """测试预报时效解析。"""
    assert parse_step_range(12) == 12
    assert parse_step_range("24") == 24
    assert parse_step_range("0-6") == 6
    assert parse_step_range("6-12") == 12
    assert parse_step_range(3.0) == 3
    assert parse_step_range("abc") == 0
    assert parse_step_range(None) == 0


def test_message_list_parsing():
    """测试 grib_ls -j 输出解析。"""
    output = json.dumps(
        {
            "messages": [
                _grib_ls_message(),
                _grib_ls_message(shortName="10v", stepRange=12),
            ]
        }
    )
    messages = parse_message_list(output)

    assert [m.index for m in messages] == [1, 2]
    first = messages[0]
    assert first.short_name == "10u"
    assert first.type_of_level == "heightAboveGround"
    assert first.level == 10
    assert (first.nx, first.ny) == (3, 2)
    assert first.lon_first == 350.0  # 原始值，不做规范化
    assert first.forecast_hour == 6
    assert first.data_date == 20240101
    assert first.data_time == 600
    assert messages[1].forecast_hour == 12


def test_message_list_missing_increment():
    """测试缺失的格距解析为 None。"""
    output = json.dumps(
        {"messages": [_grib_ls_message(iDirectionIncrementInDegrees="MISSING")]}
    )
    messages = parse_message_list(output)
    assert messages[0].dx is None
    assert messages[0].dy == 1.0


@pytest.mark.parametrize(
    "output",
    [
        "not json",
        json.dumps({"nothing": []}),
        json.dumps({"messages": [_grib_ls_message(Ni="MISSING")]}),
        json.dumps({"messages": ["oops"]}),
    ],
)
def test_message_list_invalid_output(output):
    """测试无法解析的输出抛出 DecodeFailure。"""
    with pytest.raises(DecodeFailure) as exc_info:
        parse_message_list(output)
    assert "grib_ls" in str(exc_info.value)


def test_point_dump_parsing():
    """测试 grib_get_data 输出解析。"""
    output = "\n".join(
        [
            "Latitude Longitude Value",
            "   50.000  350.000  3.5",
            "   50.000  10.000  -1.25",
            "",
            "garbage line",
            "49.000 351.000 nan",
            "49.000 abc 1.0",
            "49.000 180.000 2.0",
        ]
    )
    points, skipped = parse_point_dump(output)

    assert [(p.lat, p.lon, p.value) for p in points] == [
        (50.0, -10.0, 3.5),
        (50.0, 10.0, -1.25),
        (49.0, 180.0, 2.0),
    ]
    assert skipped == 3


def test_longitude_normalization():
    """测试经度规范化到 [-180, 180] 且多次调用结果不变。"""
    for lon in [-540.0, -181.0, -180.0, -0.5, 0.0, 1e-20, 179.75, 180.0, 180.5, 270.0, 359.5, 720.25]:
        once = normalize_longitude(lon)
        assert -180.0 <= once <= 180.0
        assert normalize_longitude(once) == once

    assert normalize_longitude(350.0) == -10.0
    assert normalize_longitude(180.5) == -179.5
    assert normalize_longitude(-181.0) == 179.0
    assert normalize_longitude(-10.0) == -10.0


def test_dateline_longitudes_are_kept():
    """测试 180 与 -180 原样保留，不互相转换。"""
    assert normalize_longitude(180.0) == 180.0
    assert normalize_longitude(-180.0) == -180.0
    # 东边界在 180 度的区域网格
    assert normalize_corners(10.0, 160.0, 0.0, 180.0) == (10.0, 160.0, 0.0, 180.0)


def test_corner_normalization():
    """测试角点规范化：la1 为北，lo1 为西，与扫描方向无关。"""
    # 南到北扫描
    assert normalize_corners(0.0, 0.0, 10.0, 10.0) == (10.0, 0.0, 0.0, 10.0)
    # 北到南扫描，经度 0-360 表示
    assert normalize_corners(50.0, 352.0, 40.0, 350.0) == (50.0, -10.0, 40.0, -8.0)


def test_time_helpers():
    """测试参考时间与有效时间。"""
    reference = grib_reference_time(20240101, 600)
    assert format_time(reference) == "2024-01-01T06:00:00Z"

    reference = parse_reference_time("2024-01-01T00:00:00Z")
    assert format_time(valid_time(reference, 6)) == "2024-01-01T06:00:00Z"
    assert format_time(valid_time(reference, 30)) == "2024-01-02T06:00:00Z"

    naive = parse_reference_time(datetime(2024, 3, 1, 12))
    assert naive.tzinfo == timezone.utc

    with pytest.raises(ValueError):
        parse_reference_time("yesterday")
