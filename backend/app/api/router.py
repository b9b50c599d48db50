"""
API 路由主文件。

统一管理所有 API 路由。
"""

from fastapi import APIRouter

from app.api import gribs, parse

api_router = APIRouter()

# 挂载子路由
api_router.include_router(parse.router)
api_router.include_router(gribs.router)  # 已保存文件的风场查询
