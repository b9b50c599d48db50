"""
GribWind 后端：GRIB 风场解析服务。
"""

__version__ = "0.1.0"
