"""
核心模块：配置、异常、并发限流。
"""
