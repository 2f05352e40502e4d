"""
git 传输

通过 `git ls-remote` 列出远端仓库的标签与分支。
"""

import asyncio
import os
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from loguru import logger

from ghfetch.exceptions import TransportError
from ghfetch.logger import redact

REF_PATTERNS = ("refs/tags/*", "refs/heads/*")


class RefTransport(ABC):
    @abstractmethod
    async def ls_remote(
        self, url: str, patterns: Sequence[str] = REF_PATTERNS
    ) -> str:
        """
        列出远端引用。

        Returns:
            以换行分隔的 `<hash>\\t<refname>` 文本

        Raises:
            TransportError: 命令失败；仓库不存在时 repository_missing 为 True
        """
        pass


class GitTransport(RefTransport):
    """调用系统 git 的传输实现"""

    def __init__(
        self,
        timeout: float = 120,
        cwd: Optional[str] = None,
        executable: str = "git",
    ):
        self.timeout = timeout
        self.cwd = cwd
        self.executable = executable

    async def ls_remote(
        self, url: str, patterns: Sequence[str] = REF_PATTERNS
    ) -> str:
        safe_url = redact(url)
        logger.debug(f"[git] ls-remote {safe_url}")

        env = dict(os.environ)
        # 私有仓库缺少凭据时不要等待终端输入
        env["GIT_TERMINAL_PROMPT"] = "0"

        cwd = self.cwd if self.cwd and os.path.isdir(self.cwd) else None
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                "ls-remote",
                url,
                *patterns,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
        except OSError as e:
            raise TransportError(
                f"无法启动 git: {e}", context={"url": safe_url}
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise TransportError(
                f"git ls-remote 超时 ({self.timeout}s)", context={"url": safe_url}
            )
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        if process.returncode != 0:
            error = redact(stderr.decode("utf-8", errors="replace"))
            raise TransportError(
                f"git ls-remote 失败 (退出码: {process.returncode})",
                context={"url": safe_url},
                stderr=error,
            )

        return stdout.decode("utf-8", errors="replace")
