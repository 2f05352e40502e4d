"""
目录准备

实现目录清理、重建，以及解压后单层包裹目录的检测。
"""

import os
import shutil

from ghfetch.exceptions import FileOperationError


class DirectoryStager:
    """目录准备工具"""

    @staticmethod
    def clear_dir(path: str) -> None:
        """
        删除目录（或文件），不存在时什么也不做

        Args:
            path: 目标路径
        """
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            elif os.path.lexists(path):
                os.remove(path)
        except OSError as e:
            raise FileOperationError(
                f"清理目录失败: {e}", context={"path": path}
            ) from e

    @staticmethod
    def prepare_dir(path: str) -> None:
        """
        清理并重新创建目录（包括父目录）

        Args:
            path: 目标路径
        """
        DirectoryStager.clear_dir(path)
        try:
            os.makedirs(path)
        except OSError as e:
            raise FileOperationError(
                f"创建目录失败: {e}", context={"path": path}
            ) from e

    @staticmethod
    def detect_strip_root(path: str) -> str:
        """
        检测目录是否只包含一个子目录

        Args:
            path: 解压目录

        Returns:
            唯一子目录的路径；否则返回原路径
        """
        try:
            entries = os.listdir(path)
        except OSError as e:
            raise FileOperationError(
                f"读取目录失败: {e}", context={"path": path}
            ) from e

        if len(entries) != 1:
            return path

        inner = os.path.join(path, entries[0])
        if os.path.isdir(inner) and not os.path.islink(inner):
            return inner
        return path

    @staticmethod
    def make_writable(path: str) -> None:
        """递归为目录树中的所有条目添加属主写权限"""
        try:
            for root, dirs, files in os.walk(path):
                for name in dirs + files:
                    entry = os.path.join(root, name)
                    if os.path.islink(entry):
                        continue
                    mode = os.stat(entry).st_mode
                    os.chmod(entry, mode | 0o200)
            os.chmod(path, os.stat(path).st_mode | 0o200)
        except OSError as e:
            raise FileOperationError(
                f"恢复写权限失败: {e}", context={"path": path}
            ) from e

    @staticmethod
    def remove_file(path: str) -> None:
        """删除文件，不存在时忽略"""
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise FileOperationError(
                f"删除文件失败: {e}", context={"path": path}
            ) from e
