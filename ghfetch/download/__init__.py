"""
ghfetch 下载层

包含目录准备、压缩包解压、下载管理等功能。
"""

from ghfetch.download.manager import ArchiveDownloader
from ghfetch.download.extractors import (
    ArchiveExtractor,
    TarExtractor,
    ZipExtractor,
    UnzipRunner,
    SystemUnzip,
)
from ghfetch.download.staging import DirectoryStager

__all__ = [
    "ArchiveDownloader",
    "ArchiveExtractor",
    "TarExtractor",
    "ZipExtractor",
    "UnzipRunner",
    "SystemUnzip",
    "DirectoryStager",
]
