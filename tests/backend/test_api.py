"""
API 端点测试。

使用 httpx 测试 FastAPI 端点，解码器与限流器通过依赖覆盖替换。
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.governor import ConcurrencyGovernor, get_governor
from app.main import app
from app.services.cache import default_cache_path
from app.services.decoder import get_decoder

from conftest import FixtureDecoder, make_message

GRIB_BYTES = b"GRIB\x00\x00\x00\x02" + b"\x00" * 64


@pytest.fixture
def governor():
    return ConcurrencyGovernor(capacity=2)


@pytest.fixture
def override(wind_decoder, governor, tmp_path, monkeypatch):
    """替换解码器、限流器与临时目录。"""
    monkeypatch.setattr(settings, "temp_dir", tmp_path / "tmp")
    app.dependency_overrides[get_decoder] = lambda: wind_decoder
    app.dependency_overrides[get_governor] = lambda: governor
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(override):
    """异步测试客户端。"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _upload(name="wind.grb2", content=GRIB_BYTES):
    return {"file": (name, content, "application/octet-stream")}


@pytest.mark.anyio
async def test_root(async_client):
    response = await async_client.get("/")
    assert response.status_code == 200
    assert "version" in response.json()


@pytest.mark.anyio
async def test_health(async_client):
    """测试健康检查报告解码器状态。"""
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "decoder_available": True}


@pytest.mark.anyio
async def test_parse_upload(async_client, wind_decoder):
    """测试上传解析返回多时次风场。"""
    response = await async_client.post("/api/parse", files=_upload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["refTime"] == "2024-01-01T00:00:00Z"
    assert [s["forecastHour"] for s in data["timeSteps"]] == [0, 6]

    u, v = data["timeSteps"][0]["data"]
    assert u["header"]["parameterNumber"] == 2
    assert v["header"]["parameterNumber"] == 3
    assert u["header"]["numberPoints"] == len(u["data"]) == 4
    assert u["header"]["lo1"] == 0.0
    assert u["header"]["la1"] == 10.0
    assert u["data"] == [1.0, 2.0, 3.0, 4.0]
    assert wind_decoder.list_calls == 1


@pytest.mark.anyio
@pytest.mark.parametrize("name", ["wind.txt", "wind", "grb2.json"])
async def test_parse_rejects_extension(async_client, wind_decoder, name):
    """测试非 GRIB 扩展名被拒绝。"""
    response = await async_client.post("/api/parse", files=_upload(name=name))

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]
    assert wind_decoder.list_calls == 0


@pytest.mark.anyio
async def test_parse_accepts_uppercase_extension(async_client):
    response = await async_client.post("/api/parse", files=_upload(name="GFS.GRIB2"))
    assert response.status_code == 200


@pytest.mark.anyio
async def test_parse_rejects_empty_file(async_client):
    response = await async_client.post("/api/parse", files=_upload(content=b""))
    assert response.status_code == 400


@pytest.mark.anyio
async def test_parse_rejects_large_file(async_client, monkeypatch, wind_decoder):
    """测试超过大小上限的上传返回 413。"""
    monkeypatch.setattr(settings, "max_upload_bytes", 16)

    response = await async_client.post("/api/parse", files=_upload())

    assert response.status_code == 413
    assert wind_decoder.list_calls == 0


@pytest.mark.anyio
async def test_parse_component_not_found(async_client, override):
    """测试缺少风分量时返回 422 与可用变量列表。"""
    decoder = FixtureDecoder(
        [make_message(1, "prmsl", type_of_level="meanSea", level=0), make_message(2, "t2m")],
        {},
    )
    override[get_decoder] = lambda: decoder

    response = await async_client.post("/api/parse", files=_upload())

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "component_not_found"
    assert body["details"] == {"available_variables": ["prmsl", "t2m"]}
    assert "Could not find U/V wind components" in body["message"]


@pytest.mark.anyio
async def test_parse_server_busy(async_client, governor):
    """测试限流槽位占满时返回 503。"""
    slots = [governor.acquire() for _ in range(governor.capacity)]
    try:
        response = await async_client.post("/api/parse", files=_upload())
    finally:
        for slot in slots:
            slot.release()

    assert response.status_code == 503
    assert response.json()["code"] == "server_busy"
    assert response.headers["Retry-After"] == "5"


@pytest.mark.anyio
async def test_parse_decoder_unavailable(async_client, override):
    """测试未安装 ecCodes 时返回 500。"""
    decoder = FixtureDecoder([], {}, available=False)
    override[get_decoder] = lambda: decoder

    response = await async_client.post("/api/parse", files=_upload())

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "decoder_unavailable"
    assert "install eccodes" in body["message"]


@pytest.mark.anyio
async def test_saved_grib_velocity_is_cached(async_client, wind_decoder, tmp_path, monkeypatch):
    """测试已保存文件的风场首次解析后写入缓存。"""
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    source = tmp_path / "gfs.grb2"
    source.write_bytes(GRIB_BYTES)

    response = await async_client.get("/api/gribs/gfs.grb2/velocity")
    assert response.status_code == 200
    assert len(response.json()["timeSteps"]) == 2
    assert default_cache_path(source).exists()

    response = await async_client.get("/api/gribs/gfs.grb2/velocity")
    assert response.status_code == 200
    assert wind_decoder.list_calls == 1


@pytest.mark.anyio
async def test_saved_grib_first_step(async_client, tmp_path, monkeypatch):
    """测试单时次接口返回 [U, V]。"""
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    (tmp_path / "gfs.grb2").write_bytes(GRIB_BYTES)

    response = await async_client.get("/api/gribs/gfs.grb2/velocity/first")

    assert response.status_code == 200
    u, v = response.json()
    assert u["header"]["forecastTime"] == 0
    assert v["data"] == [5.0, 6.0, 7.0, 8.0]


@pytest.mark.anyio
async def test_saved_grib_not_found(async_client, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)

    response = await async_client.get("/api/gribs/missing.grb2/velocity")

    assert response.status_code == 404


@pytest.mark.anyio
async def test_saved_grib_invalid_ref_time(async_client, wind_decoder, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    (tmp_path / "gfs.grb2").write_bytes(GRIB_BYTES)

    response = await async_client.get(
        "/api/gribs/gfs.grb2/velocity", params={"ref_time": "yesterday"}
    )

    assert response.status_code == 400
    assert wind_decoder.list_calls == 0
