"""超链接占位符检测器."""

from typing import Pattern

from uml_docgen.data.placeholder.base_detector import PlaceholderDetector
from uml_docgen.data.placeholder.grammar import HYPERLINK_PATTERN


class HyperlinkPlaceholderDetector(PlaceholderDetector):
    """超链接占位符检测器，只在内容写入之后的第二遍扫描中使用."""

    @property
    def pattern(self) -> Pattern:
        return HYPERLINK_PATTERN
