"""书签注册表."""

from typing import Dict

from loguru import logger


class BookmarkRegistry:
    """书签ID -> 是否已写入本次输出文档.

    由提供书签ID的文档收集方创建ID，由内容写入方在类（或表格行）真正写入文档时标记为可用，
    超链接处理时只为可用的书签生成超链接。生命周期为一次完整生成过程。
    """

    PREFIX = "UML"

    def __init__(self) -> None:
        self._ids_by_key: Dict[str, str] = {}
        self._available: Dict[str, bool] = {}
        self._counter = 0

    def get_or_create_bookmark_id(self, key: str) -> str:
        """返回对象对应的书签ID，不存在时创建新的ID（尚不可用）."""
        bookmark_id = self._ids_by_key.get(key)
        if bookmark_id is None:
            self._counter += 1
            bookmark_id = f"{self.PREFIX}{self._counter}"
            self._ids_by_key[key] = bookmark_id
            self._available[bookmark_id] = False
        return bookmark_id

    def mark_as_available_in_document(self, bookmark_id: str) -> None:
        self._available[bookmark_id] = True
        logger.debug(f"书签 '{bookmark_id}' 已写入文档")

    def is_available_in_document(self, bookmark_id: str) -> bool:
        return self._available.get(bookmark_id, False)

    @property
    def available_count(self) -> int:
        return sum(1 for flag in self._available.values() if flag)

    def __len__(self) -> int:
        return len(self._available)
