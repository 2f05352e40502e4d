"""
ghfetch 数据模型包

包含配置模型和 API 模型定义。
"""

from ghfetch.models.config import (
    SourceConfig,
    DEFAULT_REGISTRY_REMOTE,
    RELEASE_SIZE_LIMIT,
    ARCHIVE_SIZE_LIMIT,
)
from ghfetch.models.api import (
    ArchiveKind,
    ReleaseDescriptor,
    Versions,
    Redirect,
    NotFound,
    LookupResult,
    ParsedName,
)

__all__ = [
    # 配置模型
    "SourceConfig",
    "DEFAULT_REGISTRY_REMOTE",
    "RELEASE_SIZE_LIMIT",
    "ARCHIVE_SIZE_LIMIT",
    # API 模型
    "ArchiveKind",
    "ReleaseDescriptor",
    "Versions",
    "Redirect",
    "NotFound",
    "LookupResult",
    "ParsedName",
]
