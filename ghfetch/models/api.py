"""
API 数据模型

定义查询结果、发布资源描述等数据类。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


class ArchiveKind(Enum):
    """压缩包类型"""

    TAR = "tar"
    ZIP = "zip"

    @classmethod
    def from_filename(cls, filename: str) -> Optional["ArchiveKind"]:
        """
        根据文件名后缀判断压缩包类型。

        不支持的后缀返回 None。
        """
        if filename.endswith(".tar.gz") or filename.endswith(".tgz"):
            return cls.TAR
        if filename.endswith(".zip"):
            return cls.ZIP
        return None


@dataclass(frozen=True)
class ReleaseDescriptor:
    """发布资源描述"""

    url: str
    kind: ArchiveKind
    name: str = ""


@dataclass(frozen=True)
class Versions:
    """仓库存在，附带 版本名 -> 提交哈希 的映射"""

    versions: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Redirect:
    """仓库已迁移"""

    target: List[str]

    @property
    def repository(self) -> str:
        return "/".join(self.target)


@dataclass(frozen=True)
class NotFound:
    """仓库不存在"""


LookupResult = Union[Versions, Redirect, NotFound]


@dataclass(frozen=True)
class ParsedName:
    """
    包名解析结果。
    """

    package: str
    path: str
