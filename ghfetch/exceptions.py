"""
ghfetch 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional
import aiohttp


class GhFetchError(Exception):
    """ghfetch 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(GhFetchError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class ProtocolError(GhFetchError):
    """远端返回的数据无法按预期解析，或发布版本没有可用的压缩包"""

    def _get_default_code(self) -> str:
        return "E200"


class TransferError(GhFetchError):
    """HTTP 传输错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    @property
    def status(self) -> Optional[int]:
        return self.context.get("status_code")

    def _get_default_code(self) -> str:
        return "E300"


class TransferTooLargeError(TransferError):
    """响应体超过大小限制"""

    def _get_default_code(self) -> str:
        return "E301"


class TransportError(GhFetchError):
    """git 传输（ls-remote）失败"""

    # git 在仓库不存在时写入 stderr 的标记
    NOT_FOUND_MARKER = "Repository not found"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        stderr: str = "",
    ):
        super().__init__(message, code, context)
        self.stderr = stderr
        if stderr:
            self.context.setdefault("stderr", stderr.strip())

    @property
    def repository_missing(self) -> bool:
        """stderr 中是否包含仓库不存在的标记"""
        return self.NOT_FOUND_MARKER in self.stderr

    def _get_default_code(self) -> str:
        return "E302"


class FileOperationError(GhFetchError):
    """文件系统操作错误"""

    def _get_default_code(self) -> str:
        return "E400"


class ExtractionError(FileOperationError):
    """压缩包解压错误"""

    def _get_default_code(self) -> str:
        return "E401"


class PlatformUnsupportedError(GhFetchError):
    """当前平台不支持该操作"""

    def _get_default_code(self) -> str:
        return "E500"


__all__ = [
    # 基础异常
    "GhFetchError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 协议异常
    "ProtocolError",
    # 传输异常
    "TransferError",
    "TransferTooLargeError",
    "TransportError",
    # 文件异常
    "FileOperationError",
    "ExtractionError",
    # 平台异常
    "PlatformUnsupportedError",
]
