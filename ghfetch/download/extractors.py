"""
压缩包解压器

tar.gz 与 zip 两种格式各自实现 extract(archive_path, target_dir)，
由发布资源的类型选择。
"""

import asyncio
import os
import shutil
import sys
import tarfile
import tempfile
import zlib
from abc import ABC, abstractmethod
from typing import Optional

from loguru import logger

from ghfetch.download.staging import DirectoryStager
from ghfetch.exceptions import (
    ExtractionError,
    FileOperationError,
    PlatformUnsupportedError,
)


def strip_components(name: str, strip: int) -> str:
    """去掉归档成员路径的前 strip 段，剩余为空时返回空字符串"""
    parts = [part for part in name.split("/") if part and part != "."]
    if len(parts) <= strip:
        return ""
    return "/".join(parts[strip:])


class ArchiveExtractor(ABC):
    def check(self) -> None:
        """下载前检查当前环境能否解压该格式，不能时抛出 PlatformUnsupportedError"""

    @abstractmethod
    async def extract(self, archive_path: str, target_dir: str) -> None:
        """将压缩包解压到 target_dir，结果中不包含外层包裹目录"""
        pass


class TarExtractor(ArchiveExtractor):
    """gzip 压缩的 tar 包解压器"""

    def __init__(self, strip: int = 1):
        self.strip = strip

    async def extract(self, archive_path: str, target_dir: str) -> None:
        await asyncio.to_thread(self._extract, archive_path, target_dir)

    def _extract(self, archive_path: str, target_dir: str) -> None:
        DirectoryStager.prepare_dir(target_dir)
        count = 0
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                for member in tar:
                    name = strip_components(member.name, self.strip)
                    if not name:
                        continue
                    member.name = name
                    if member.islnk():
                        # 硬链接指向归档内路径，需要同样去掉前缀
                        linkname = strip_components(member.linkname, self.strip)
                        if not linkname:
                            continue
                        member.linkname = linkname
                    tar.extract(member, target_dir, filter="data")
                    count += 1
        except (tarfile.TarError, zlib.error, EOFError, OSError) as e:
            # gzip 数据损坏时以 OSError 的形式抛出
            raise ExtractionError(
                f"解压 tar 包失败: {e}",
                context={"archive": archive_path, "target": target_dir},
            ) from e
        logger.debug(f"[解压] {count} 个条目 -> {target_dir}")


class UnzipRunner(ABC):
    def check(self) -> None:
        pass

    @abstractmethod
    async def run(self, archive_path: str, dest_dir: str) -> None:
        """将 zip 文件解压到 dest_dir"""
        pass


class SystemUnzip(UnzipRunner):
    """调用系统 unzip 命令"""

    def __init__(
        self,
        timeout: float = 120,
        executable: str = "unzip",
        platform: str = sys.platform,
    ):
        self.timeout = timeout
        self.executable = executable
        self.platform = platform

    def check(self) -> str:
        if self.platform.startswith("win"):
            raise PlatformUnsupportedError(
                "Windows 暂不支持解压 zip 格式的发布资源，"
                "请改用 tar.gz 格式的发布资源或在类 Unix 系统上运行",
                context={"platform": self.platform},
            )
        executable = shutil.which(self.executable)
        if executable is None:
            raise PlatformUnsupportedError(
                f"未找到 {self.executable} 命令，请安装 unzip 后重试",
                context={"platform": self.platform},
            )
        return executable

    async def run(self, archive_path: str, dest_dir: str) -> None:
        executable = self.check()
        process = await asyncio.create_subprocess_exec(
            executable,
            "-o",
            "-q",
            archive_path,
            "-d",
            dest_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExtractionError(
                f"unzip 超时 ({self.timeout}s)", context={"archive": archive_path}
            )

        if process.returncode != 0:
            raise ExtractionError(
                f"unzip 失败 (退出码: {process.returncode})",
                context={
                    "archive": archive_path,
                    "stderr": stderr.decode("utf-8", errors="replace").strip(),
                },
            )


class ZipExtractor(ArchiveExtractor):
    """zip 包解压器"""

    def __init__(self, runner: UnzipRunner, tmp_dir: Optional[str] = None):
        self.runner = runner
        self.tmp_dir = tmp_dir

    def check(self) -> None:
        self.runner.check()

    async def extract(self, archive_path: str, target_dir: str) -> None:
        prefix = os.path.basename(archive_path)
        if prefix.endswith(".zip"):
            prefix = prefix[: -len(".zip")]
        tmp_dir = self.tmp_dir or os.path.dirname(archive_path)
        work_dir = tempfile.mkdtemp(prefix=f"{prefix}-", dir=tmp_dir)

        try:
            await self.runner.run(archive_path, work_dir)
            await asyncio.to_thread(self._install, work_dir, target_dir)
        except BaseException:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise

    def _install(self, work_dir: str, target_dir: str) -> None:
        """将解压结果移动到目标目录"""
        DirectoryStager.make_writable(work_dir)
        root = DirectoryStager.detect_strip_root(work_dir)

        DirectoryStager.prepare_dir(target_dir)
        try:
            # 目标是空目录时 rename 会直接替换它
            os.replace(root, target_dir)
        except OSError:
            # 跨文件系统时退回到复制
            DirectoryStager.clear_dir(target_dir)
            try:
                shutil.move(root, target_dir)
            except OSError as e:
                raise FileOperationError(
                    f"移动解压目录失败: {e}",
                    context={"source": root, "target": target_dir},
                ) from e

        if root != work_dir:
            DirectoryStager.clear_dir(work_dir)
        logger.debug(f"[解压] zip -> {target_dir}")
