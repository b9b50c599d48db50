"""
解析管线异常定义。

所有异常都原样传递到请求边界，由 API 层统一转换为错误响应，不自动重试。
"""

from typing import Dict, List, Optional


class GribPipelineError(Exception):
    """解析管线异常基类。"""

    code = "pipeline_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> Optional[Dict]:
        return None


class DecoderUnavailable(GribPipelineError):
    """ecCodes 工具未安装或无法启动。"""

    code = "decoder_unavailable"
    status_code = 500

    def __init__(self, message: str = "eccodes is not installed. Install with: apt-get install libeccodes-tools"):
        super().__init__(message)


class DecodeFailure(GribPipelineError):
    """外部工具运行失败或输出无法解析。"""

    code = "decode_failure"
    status_code = 422

    def __init__(self, message: str, diagnostic: str = ""):
        diagnostic = (diagnostic or "").strip()
        if diagnostic:
            message = f"{message}: {diagnostic}"
        super().__init__(message)
        self.diagnostic = diagnostic


class ComponentNotFound(GribPipelineError):
    """文件中没有可用的 U/V 风分量。"""

    code = "component_not_found"
    status_code = 422

    def __init__(self, available_variables: List[str]):
        self.available_variables = list(available_variables)
        super().__init__(
            "Could not find U/V wind components. Available variables: "
            + ", ".join(self.available_variables)
        )

    @property
    def details(self) -> Optional[Dict]:
        return {"available_variables": self.available_variables}


class EmptySeries(GribPipelineError):
    """没有任何预报时次同时具备 U 和 V 分量。"""

    code = "empty_series"
    status_code = 422

    def __init__(self, message: str = "No valid time steps found in GRIB file"):
        super().__init__(message)


class ServerBusy(GribPipelineError):
    """并发解析数量已达上限。"""

    code = "server_busy"
    status_code = 503

    def __init__(self, message: str = "Server busy processing other files. Please try again in a moment."):
        super().__init__(message)
