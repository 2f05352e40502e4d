"""
ghfetch 服务层

包含业务逻辑服务：API 客户端、发布探测、git 传输、版本解析。
"""

from ghfetch.services.api_client import GitHubClient
from ghfetch.services.release_probe import ReleaseProbe
from ghfetch.services.transport import GitTransport, RefTransport
from ghfetch.services.version_resolver import VersionResolver, parse_refs

__all__ = [
    "GitHubClient",
    "ReleaseProbe",
    "GitTransport",
    "RefTransport",
    "VersionResolver",
    "parse_refs",
]
