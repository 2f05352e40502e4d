"""
ghfetch - GitHub 包源

解析托管在 GitHub 上的包版本，并把指定版本的内容下载到本地目录。
"""

from ghfetch.models import (
    SourceConfig,
    ArchiveKind,
    ReleaseDescriptor,
    Versions,
    Redirect,
    NotFound,
    LookupResult,
    ParsedName,
)
from ghfetch.source import GitHubSource

__version__ = "0.1.0"

__all__ = [
    "GitHubSource",
    "SourceConfig",
    "ArchiveKind",
    "ReleaseDescriptor",
    "Versions",
    "Redirect",
    "NotFound",
    "LookupResult",
    "ParsedName",
    "__version__",
]
