"""
版本解析服务

同时查询仓库元数据与 git 引用列表，合并为统一的版本映射。
"""

import asyncio
from typing import Dict, Optional
from urllib.parse import urlparse

from loguru import logger

from ghfetch.exceptions import ProtocolError, TransferError, TransportError
from ghfetch.models import LookupResult, NotFound, Redirect, SourceConfig, Versions
from ghfetch.services.api_client import GitHubClient
from ghfetch.services.transport import RefTransport

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"
PEELED_SUFFIX = "^{}"


def parse_refs(output: str) -> Dict[str, str]:
    """
    解析 `git ls-remote` 输出

    分支与标签都以去掉 refs/ 前缀后的名称为键。附注标签的解引用项（^{}）
    指向实际提交，总是覆盖标签对象本身的哈希。

    Args:
        output: 以换行分隔的 `<hash>\\t<refname>` 文本

    Returns:
        版本名 -> 提交哈希
    """
    versions: Dict[str, str] = {}
    peeled: Dict[str, str] = {}

    for line in output.splitlines():
        line = line.strip()
        if not line or "\t" not in line:
            continue
        hash, ref_name = line.split("\t", 1)

        if ref_name.startswith(HEADS_PREFIX):
            versions[ref_name[len(HEADS_PREFIX):]] = hash
        elif ref_name.startswith(TAGS_PREFIX):
            tag = ref_name[len(TAGS_PREFIX):]
            if tag.endswith(PEELED_SUFFIX):
                peeled[tag[: -len(PEELED_SUFFIX)]] = hash
            else:
                versions[tag] = hash

    versions.update(peeled)
    return versions


def redirect_target(location: str) -> list[str]:
    """从 Location 头中去掉协议与主机部分，返回路径分段"""
    path = urlparse(location).path.strip("/")
    return [segment for segment in path.split("/") if segment]


class VersionResolver:
    """版本解析器"""

    def __init__(
        self,
        client: GitHubClient,
        transport: RefTransport,
        config: SourceConfig,
    ):
        self.client = client
        self.transport = transport
        self.config = config

    async def lookup(self, repo: str) -> LookupResult:
        """
        查询仓库的所有版本

        元数据查询与引用列表并发执行。任意一方给出重定向、不存在或错误时
        立即返回并取消另一方；两者都成功时返回版本映射。

        Args:
            repo: 仓库 (owner/name)

        Returns:
            Versions / Redirect / NotFound
        """
        probe = asyncio.create_task(
            self._probe_metadata(repo), name=f"metadata-{repo}"
        )
        listing = asyncio.create_task(self._list_refs(repo), name=f"refs-{repo}")

        versions: Optional[Dict[str, str]] = None
        pending = {probe, listing}
        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                # 同时完成时优先处理元数据的结果
                for task in sorted(done, key=lambda t: t is not probe):
                    result = task.result()
                    if task is probe:
                        if result is not None:
                            logger.info(f"[查询] {repo}: {result}")
                            return result
                    else:
                        versions = result
        finally:
            for task in (probe, listing):
                if not task.done():
                    task.cancel()
            await asyncio.gather(probe, listing, return_exceptions=True)

        if versions is None:
            # 元数据可访问但 git 报告仓库不存在
            logger.warning(f"[查询] {repo} 的 git 引用不可访问，视为不存在")
            return NotFound()

        logger.info(f"[查询] {repo} 共 {len(versions)} 个版本")
        return Versions(versions)

    async def _probe_metadata(self, repo: str) -> Optional[LookupResult]:
        """元数据查询；返回 None 表示仓库正常存在"""
        status, location = await self.client.get_repository_status(repo)

        if status == 301:
            if not location:
                raise ProtocolError(
                    "仓库重定向缺少 Location 头", context={"repo": repo}
                )
            return Redirect(redirect_target(location))
        if status == 404:
            return NotFound()
        if status != 200:
            raise TransferError(
                f"无效的状态码 {status}",
                context={"repo": repo, "status_code": status},
            )
        return None

    async def _list_refs(self, repo: str) -> Optional[Dict[str, str]]:
        """引用列表；仓库不存在时返回 None"""
        try:
            output = await self.transport.ls_remote(self.config.git_remote(repo))
        except TransportError as e:
            if e.repository_missing:
                logger.debug(f"[git] {repo}: {e.NOT_FOUND_MARKER}")
                return None
            raise
        return parse_refs(output)
