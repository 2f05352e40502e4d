"""
发布版本探测服务

在仓库的发布列表中查找与版本号匹配的发布，并识别其第一个资源的压缩包类型。
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from ghfetch.exceptions import ProtocolError
from ghfetch.models import ArchiveKind, ReleaseDescriptor
from ghfetch.services.api_client import GitHubClient


def _malformed(reason: str, context: Optional[Dict[str, Any]]) -> ProtocolError:
    return ProtocolError(f"发布列表格式错误: {reason}", context=context)


def select_release(
    releases: List[Dict[str, Any]],
    version: str,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """按服务端返回顺序查找第一个 tag_name 匹配的发布"""
    for release in releases:
        if not isinstance(release, dict):
            raise _malformed("发布条目不是对象", context)
        tag_name = release.get("tag_name") or ""
        if not isinstance(tag_name, str):
            raise _malformed("tag_name 不是字符串", context)
        if tag_name.strip() == version:
            return release
    return None


def describe_asset(
    release: Dict[str, Any], context: Optional[Dict[str, Any]] = None
) -> Optional[ReleaseDescriptor]:
    """
    根据发布的第一个资源生成描述

    只检查第一个资源；没有资源或后缀不受支持时返回 None。
    资源字段类型不符时抛出 ProtocolError。
    """
    assets = release.get("assets") or []
    if not isinstance(assets, list):
        raise _malformed("assets 不是数组", context)
    if not assets:
        return None

    first_asset = assets[0]
    if not isinstance(first_asset, dict):
        raise _malformed("资源条目不是对象", context)
    name = first_asset.get("name") or ""
    url = first_asset.get("url") or ""
    if not isinstance(name, str) or not isinstance(url, str):
        raise _malformed("资源的 name 或 url 不是字符串", context)

    kind = ArchiveKind.from_filename(name)
    if kind is None or not url:
        return None

    return ReleaseDescriptor(url=url, kind=kind, name=name)


class ReleaseProbe:
    """发布版本探测器"""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def check_releases(
        self, repo: str, version: str
    ) -> Optional[ReleaseDescriptor]:
        """
        检查指定版本是否存在可下载的发布资源

        Args:
            repo: 仓库 (owner/name)
            version: 版本名

        Returns:
            ReleaseDescriptor；没有可用的发布资源时返回 None
        """
        releases = await self.client.get_releases(repo)
        if not releases:
            logger.debug(f"[发布] {repo} 没有发布")
            return None

        context = {"repo": repo, "version": version}
        release = select_release(releases, version, context)
        if release is None:
            logger.debug(f"[发布] {repo} 没有版本 {version} 的发布")
            return None

        descriptor = describe_asset(release, context)
        if descriptor is None:
            logger.info(f"[发布] {repo}@{version} 的发布没有可用的压缩包资源")
            return None

        logger.info(
            f"[发布] {repo}@{version} 使用发布资源 {descriptor.name} "
            f"({descriptor.kind.value})"
        )
        return descriptor
