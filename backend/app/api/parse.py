"""
上传解析 API 路由。

POST /api/parse：接收 multipart 表单中的 file 字段，在内存中解析并直接
返回风场 JSON，不落盘保存。
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.core.config import settings
from app.core.errors import DecoderUnavailable
from app.core.governor import ConcurrencyGovernor, get_governor
from app.schemas.api import ErrorResponse, ParseResponse
from app.services.decoder import GribDecoder, get_decoder
from app.services.parser import parse_grib_buffer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])


def _has_valid_extension(filename: str) -> bool:
    name = filename.lower()
    return any(name.endswith(ext) for ext in settings.allowed_extensions)


@router.post(
    "/parse",
    response_model=ParseResponse,
    responses={
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="解析上传的 GRIB 文件",
)
async def parse_upload(
    file: UploadFile = File(...),
    decoder: GribDecoder = Depends(get_decoder),
    governor: ConcurrencyGovernor = Depends(get_governor),
) -> ParseResponse:
    """
    解析上传的 GRIB 文件。

    返回按预报时效排列的 U/V 风场，格式与 leaflet-velocity 一致。
    """
    if not await decoder.is_available():
        raise DecoderUnavailable(
            "Server not configured for GRIB parsing. Please install eccodes."
        )

    filename = file.filename or ""
    if not _has_valid_extension(filename):
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Please select a GRIB file ("
            + ", ".join(settings.allowed_extensions)
            + ")",
        )

    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    logger.info("Parsing upload %s (%d bytes)", filename, len(content))
    result = await parse_grib_buffer(
        content, filename, decoder=decoder, governor=governor
    )
    return ParseResponse(success=True, data=result)
