"""
FastAPI 应用入口。
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.api import api_router
from app.core.config import settings
from app.core.errors import GribPipelineError
from app.schemas.api import ErrorResponse, HealthResponse
from app.services.decoder import GribDecoder, get_decoder

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """配置 app 命名空间下的日志输出。"""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root = logging.getLogger("app")
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理器。

    启动时探测一次 ecCodes 是否可用，结果在进程生命周期内缓存。
    """
    logger.info("Starting backend server...")

    available = await get_decoder().is_available()
    if not available:
        logger.warning("ecCodes not found; GRIB parsing requests will fail")

    yield

    logger.info("Backend server shutdown complete.")


async def pipeline_error_handler(request: Request, exc: GribPipelineError):
    """把解析管线异常转换为统一的错误响应。"""
    if exc.status_code >= 500 and exc.status_code != 503:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)

    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details)
    headers = {"Retry-After": "5"} if exc.status_code == 503 else None
    return JSONResponse(
        status_code=exc.status_code, content=body.model_dump(), headers=headers
    )


def create_app() -> FastAPI:
    """创建并配置 FastAPI 应用实例。"""
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="GRIB 风场解析服务，输出 leaflet-velocity 格式",
        lifespan=lifespan,
    )

    # 配置 CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GribPipelineError, pipeline_error_handler)

    # 挂载 API 路由
    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["root"])
    async def root():
        """根路径。"""
        return {
            "message": "GribWind Backend API",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(decoder: GribDecoder = Depends(get_decoder)):
        """健康检查。"""
        available = await decoder.is_available()
        return HealthResponse(status="healthy", decoder_available=available)

    return app


app = create_app()
