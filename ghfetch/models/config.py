"""
配置模型

定义 GitHub 包源的不可变配置。
"""

import tempfile
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

from ghfetch.exceptions import ConfigValidationError


DEFAULT_REGISTRY_REMOTE = "https://github.jspm.io"
GITHUB_URL = "https://github.com"
GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"

# 发布资源与源码包的大小上限（字节）
RELEASE_SIZE_LIMIT = 100_000_000
ARCHIVE_SIZE_LIMIT = 10_000_000


@dataclass(frozen=True)
class SourceConfig:
    """
    GitHub 包源配置

    在构造时确定，之后每个操作都只读取它，不存在模块级的全局状态。
    """

    username: Optional[str] = None
    password: Optional[str] = None
    tmp_dir: str = field(default_factory=tempfile.gettempdir)
    timeout: float = 120
    remote: str = DEFAULT_REGISTRY_REMOTE
    github_url: str = GITHUB_URL
    api_url: str = GITHUB_API_URL
    raw_url: str = GITHUB_RAW_URL
    user_agent: str = "ghfetch"
    verify_ssl: bool = True
    release_size_limit: int = RELEASE_SIZE_LIMIT
    archive_size_limit: int = ARCHIVE_SIZE_LIMIT
    package_file: str = "package.json"

    def __post_init__(self):
        if self.password and not self.username:
            raise ConfigValidationError("设置了 password 但缺少 username")
        if self.timeout is None or self.timeout <= 0:
            raise ConfigValidationError(
                "timeout 必须为正数", context={"timeout": self.timeout}
            )
        for name in ("release_size_limit", "archive_size_limit"):
            if getattr(self, name) <= 0:
                raise ConfigValidationError(
                    f"{name} 必须为正数", context={name: getattr(self, name)}
                )
        # 统一去掉结尾的斜杠，方便拼接 URL
        for name in ("github_url", "api_url", "raw_url"):
            object.__setattr__(self, name, getattr(self, name).rstrip("/"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceConfig":
        """从字典创建配置，忽略未知字段"""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        if "timeout" in values:
            try:
                values["timeout"] = float(values["timeout"])
            except (TypeError, ValueError):
                raise ConfigValidationError(
                    "timeout 必须为数字", context={"timeout": data["timeout"]}
                )
        return cls(**values)

    @property
    def auth(self) -> Optional[aiohttp.BasicAuth]:
        """HTTP Basic 认证信息，未配置用户名时为 None"""
        if not self.username:
            return None
        return aiohttp.BasicAuth(self.username, self.password or "")

    @property
    def ssl(self) -> Optional[bool]:
        """传给 aiohttp 的 ssl 参数"""
        return None if self.verify_ssl else False

    def git_remote(self, repo: str) -> str:
        """
        构造 git 传输使用的仓库地址

        配置了凭据时将其嵌入 URL 中。
        """
        base = self.github_url
        if self.username:
            scheme, _, host = base.partition("://")
            credentials = quote(self.username, safe="")
            if self.password:
                credentials += ":" + quote(self.password, safe="")
            base = f"{scheme}://{credentials}@{host}"
        return f"{base}/{repo}.git"
