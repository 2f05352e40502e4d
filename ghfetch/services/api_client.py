"""
API 客户端

封装对 GitHub REST API、源码归档和原始文件地址的访问。
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import toml
from loguru import logger

from ghfetch.exceptions import ProtocolError, TransferError
from ghfetch.models import SourceConfig


class GitHubClient:
    """GitHub API 客户端"""

    def __init__(
        self,
        config: SourceConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.config.user_agent},
                timeout=aiohttp.ClientTimeout(
                    total=None,
                    sock_connect=self.config.timeout,
                    sock_read=self.config.timeout,
                ),
            )
            self._owned_session = True
        return self._session

    def repo_url(self, repo: str) -> str:
        return f"{self.config.api_url}/repos/{repo}"

    def releases_url(self, repo: str) -> str:
        return f"{self.config.api_url}/repos/{repo}/releases"

    def archive_url(self, repo: str, version: str) -> str:
        return f"{self.config.github_url}/{repo}/archive/{version}.tar.gz"

    def raw_url(self, repo: str, ref: str, path: str) -> str:
        return f"{self.config.raw_url}/{repo}/{ref}/{path}"

    def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        allow_redirects: bool = True,
    ):
        """
        发起带认证的 GET 请求

        返回 aiohttp 的请求上下文管理器，调用方负责读取响应体。
        """
        return self.session.get(
            url,
            headers=headers,
            auth=self.config.auth,
            allow_redirects=allow_redirects,
            ssl=self.config.ssl,
        )

    async def get_repository_status(self, repo: str) -> Tuple[int, Optional[str]]:
        """
        查询仓库元数据接口（不跟随重定向）

        Returns:
            tuple: (状态码, Location 头)
        """
        url = self.repo_url(repo)
        logger.debug(f"[查询] 仓库元数据: {url}")
        try:
            async with self.get(url, allow_redirects=False) as response:
                return response.status, response.headers.get("Location")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(
                f"请求仓库元数据失败: {e}", context={"repo": repo, "url": url}
            ) from e

    async def get_releases(self, repo: str) -> Optional[List[Dict[str, Any]]]:
        """
        获取仓库的发布列表

        Returns:
            发布列表；仓库没有可访问的发布接口（404）时返回 None
        """
        url = self.releases_url(repo)
        logger.debug(f"[查询] 发布列表: {url}")
        try:
            async with self.get(url, allow_redirects=False) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    raise TransferError(
                        f"获取发布列表失败 (状态码: {response.status})",
                        context={"repo": repo},
                        response=response,
                    )
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(
                f"获取发布列表失败: {e}", context={"repo": repo, "url": url}
            ) from e

        try:
            releases = json.loads(body)
        except ValueError as e:
            raise ProtocolError(
                "无法解析 GitHub API 响应", context={"repo": repo, "url": url}
            ) from e
        if not isinstance(releases, list):
            raise ProtocolError(
                "无法解析 GitHub API 响应: 发布列表格式错误",
                context={"repo": repo, "url": url},
            )
        return releases

    async def get_package_config(
        self, repo: str, version: str, hash: str
    ) -> Dict[str, Any]:
        """
        获取指定提交下的包描述文件

        描述文件不存在（404）时返回空字典。

        Args:
            repo: 仓库 (owner/name)
            version: 版本名，仅用于错误上下文
            hash: 提交哈希
        """
        filename = self.config.package_file
        url = self.raw_url(repo, hash, filename)
        context = {"repo": repo, "version": version, "hash": hash, "file": filename}
        try:
            async with self.get(url) as response:
                if response.status == 404:
                    logger.debug(f"[跳过] {repo}@{version} 没有 {filename}")
                    return {}
                if response.status != 200:
                    raise TransferError(
                        f"无法获取 {filename} (状态码: {response.status})",
                        context=context,
                        response=response,
                    )
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(f"无法获取 {filename}: {e}", context=context) from e

        try:
            if filename.endswith(".toml"):
                data = toml.loads(body)
            else:
                data = json.loads(body)
        except (ValueError, toml.TomlDecodeError) as e:
            raise ProtocolError(f"解析 {filename} 失败", context=context) from e
        if not isinstance(data, dict):
            raise ProtocolError(f"{filename} 格式错误", context=context)
        return data

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
