"""
API 路由模块。
"""

from app.api.router import api_router

__all__ = ["api_router"]
