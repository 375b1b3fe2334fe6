"""
CovidSpread Data Loaders

从压缩包读取输入表
"""

from .archive_loader import ArchiveLoader, read_archive_table

__all__ = [
    "ArchiveLoader",
    "read_archive_table",
]
