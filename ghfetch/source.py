"""
GitHub 包源

对外暴露 configure / parse / lookup / get_package_config / download 五个操作，
整合客户端、版本解析与下载组件。
"""

from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from ghfetch.download import ArchiveDownloader, UnzipRunner
from ghfetch.models import (
    DEFAULT_REGISTRY_REMOTE,
    LookupResult,
    ParsedName,
    SourceConfig,
)
from ghfetch.services import (
    GitHubClient,
    GitTransport,
    RefTransport,
    ReleaseProbe,
    VersionResolver,
)

SOURCE_NAME = "github"


class GitHubSource:
    """
    GitHub 包源

    Example:
        async with GitHubSource(SourceConfig()) as source:
            result = await source.lookup("owner/repo")
            if isinstance(result, Versions):
                await source.download("owner/repo", "v1.0.0", result.versions["v1.0.0"], "out")
    """

    def __init__(
        self,
        config: Optional[SourceConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        transport: Optional[RefTransport] = None,
        unzip: Optional[UnzipRunner] = None,
    ):
        self.config = config or SourceConfig()
        self.remote = self.config.remote
        self.client = GitHubClient(self.config, session=session)
        self.transport = transport or GitTransport(
            timeout=self.config.timeout, cwd=self.config.tmp_dir
        )
        self.probe = ReleaseProbe(self.client)
        self.resolver = VersionResolver(self.client, self.transport, self.config)
        self.downloader = ArchiveDownloader(
            self.client, self.config, probe=self.probe, unzip=unzip
        )

    @staticmethod
    def configure(config: Dict[str, Any]) -> Dict[str, Any]:
        """返回补充了包源名称与默认远端地址的新配置，不修改传入的字典"""
        return {**config, "name": SOURCE_NAME, "remote": DEFAULT_REGISTRY_REMOTE}

    @staticmethod
    def parse(name: str) -> ParsedName:
        """
        将 "owner/repo/sub/path" 拆分为仓库与子路径

        Args:
            name: 完整包名

        Returns:
            ParsedName(package="owner/repo", path="sub/path")
        """
        parts = name.split("/")
        return ParsedName(package="/".join(parts[:2]), path="/".join(parts[2:]))

    async def lookup(self, repo: str) -> LookupResult:
        """查询仓库的所有版本，见 VersionResolver.lookup"""
        return await self.resolver.lookup(repo)

    async def get_package_config(
        self, repo: str, version: str, hash: str
    ) -> Dict[str, Any]:
        """获取指定提交下的包描述文件，不需要完整下载"""
        return await self.client.get_package_config(repo, version, hash)

    async def download(
        self, repo: str, version: str, hash: str, target_dir: str
    ) -> None:
        """下载并解压指定版本，见 ArchiveDownloader.download"""
        await self.downloader.download(repo, version, hash, target_dir)

    async def close(self):
        """关闭包源"""
        logger.debug("[停止] 关闭 GitHub 包源")
        await self.client.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
