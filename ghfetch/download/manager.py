"""
下载管理器

先尝试发布资源，没有可用资源时退回到仓库源码归档；流式下载后交给对应的解压器。
"""

import asyncio
import os
import tempfile
from typing import Dict, Optional

import aiofiles
import aiohttp
from loguru import logger

from ghfetch.download.extractors import (
    ArchiveExtractor,
    SystemUnzip,
    TarExtractor,
    UnzipRunner,
    ZipExtractor,
)
from ghfetch.exceptions import (
    FileOperationError,
    ProtocolError,
    TransferError,
    TransferTooLargeError,
)
from ghfetch.models import ArchiveKind, ReleaseDescriptor, SourceConfig
from ghfetch.services.api_client import GitHubClient
from ghfetch.services.release_probe import ReleaseProbe

CHUNK_SIZE = 8192
OCTET_STREAM = {"Accept": "application/octet-stream"}


class ArchiveDownloader:
    """压缩包下载器"""

    def __init__(
        self,
        client: GitHubClient,
        config: SourceConfig,
        probe: Optional[ReleaseProbe] = None,
        unzip: Optional[UnzipRunner] = None,
        extractors: Optional[Dict[ArchiveKind, ArchiveExtractor]] = None,
    ):
        self.client = client
        self.config = config
        self.probe = probe or ReleaseProbe(client)
        if extractors is None:
            extractors = {
                ArchiveKind.TAR: TarExtractor(strip=1),
                ArchiveKind.ZIP: ZipExtractor(
                    unzip or SystemUnzip(timeout=config.timeout),
                    tmp_dir=config.tmp_dir,
                ),
            }
        self.extractors = extractors
        self.source_extractor = TarExtractor(strip=1)

    async def download(
        self, repo: str, version: str, hash: str, target_dir: str
    ) -> None:
        """
        下载并解压指定版本到 target_dir

        调用前应已通过 lookup 确认仓库与版本存在。失败时 target_dir 的状态不确定，
        重试前需要重新准备目录。

        Args:
            repo: 仓库 (owner/name)
            version: 版本名（标签或分支）
            hash: 版本对应的提交哈希
            target_dir: 输出目录
        """
        logger.info(f"[开始] 下载: {repo}@{version} ({hash[:7] or '-'})")

        release = await self.probe.check_releases(repo, version)
        if release is not None:
            await self._download_release(repo, version, release, target_dir)
        else:
            await self._download_source(repo, version, target_dir)

        logger.success(f"[完成] {repo}@{version} -> {target_dir}")

    async def _download_release(
        self,
        repo: str,
        version: str,
        release: ReleaseDescriptor,
        target_dir: str,
    ) -> None:
        """从发布资源下载"""
        context = {"repo": repo, "version": version, "asset": release.name}
        extractor = self.extractors.get(release.kind)
        if extractor is None:
            raise ProtocolError("找到了 GitHub 发布，但没有可用的压缩包", context=context)
        extractor.check()

        suffix = ".zip" if release.kind is ArchiveKind.ZIP else ".tar.gz"
        archive_path = await self._fetch(
            release.url,
            self.config.release_size_limit,
            self._temp_prefix("release", repo, version),
            suffix,
            context,
        )
        try:
            await extractor.extract(archive_path, target_dir)
        finally:
            self._remove_quietly(archive_path)

    async def _download_source(
        self, repo: str, version: str, target_dir: str
    ) -> None:
        """从仓库源码归档下载"""
        logger.info(f"[回退] {repo}@{version} 使用源码归档")
        context = {"repo": repo, "version": version}
        archive_path = await self._fetch(
            self.client.archive_url(repo, version),
            self.config.archive_size_limit,
            self._temp_prefix("archive", repo, version),
            ".tar.gz",
            context,
        )
        try:
            await self.source_extractor.extract(archive_path, target_dir)
        finally:
            self._remove_quietly(archive_path)

    async def _fetch(
        self,
        url: str,
        limit: int,
        prefix: str,
        suffix: str,
        context: dict,
    ) -> str:
        """
        流式下载到临时文件

        同时检查声明的 Content-Length 和实际收到的字节数。

        Returns:
            临时文件路径
        """
        archive_path = self._temp_file(prefix, suffix)
        try:
            async with self.client.get(url, headers=OCTET_STREAM) as response:
                if response.status != 200:
                    raise TransferError(
                        f"错误的响应码 {response.status}",
                        context=dict(context),
                        response=response,
                    )

                declared = response.content_length
                if declared is not None and declared > limit:
                    raise TransferTooLargeError(
                        f"响应过大 ({declared} > {limit} 字节)",
                        context=dict(context, limit=limit, declared=declared),
                    )
                if declared:
                    logger.info(f"[信息] 文件大小: {declared / (1024 * 1024):.2f} MB")

                received = 0
                async with aiofiles.open(archive_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        received += len(chunk)
                        if received > limit:
                            raise TransferTooLargeError(
                                f"响应过大 (超过 {limit} 字节)",
                                context=dict(context, limit=limit),
                            )
                        await f.write(chunk)
            logger.debug(f"[下载] {received} 字节 -> {archive_path}")
            return archive_path

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._remove_quietly(archive_path)
            raise TransferError(
                f"下载失败: {e}", context=dict(context, url=url)
            ) from e
        except BaseException:
            self._remove_quietly(archive_path)
            raise

    @staticmethod
    def _temp_prefix(kind: str, repo: str, version: str) -> str:
        slug = f"{repo.replace('/', '#')}-{version}".replace("/", "_")
        return f"{kind}-{slug}-"

    def _temp_file(self, prefix: str, suffix: str) -> str:
        try:
            os.makedirs(self.config.tmp_dir, exist_ok=True)
            fd, path = tempfile.mkstemp(
                prefix=prefix, suffix=suffix, dir=self.config.tmp_dir
            )
            os.close(fd)
        except OSError as e:
            raise FileOperationError(
                f"创建临时文件失败: {e}", context={"tmp_dir": self.config.tmp_dir}
            ) from e
        return path

    @staticmethod
    def _remove_quietly(path: str) -> None:
        """清理临时文件"""
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError:
                pass
