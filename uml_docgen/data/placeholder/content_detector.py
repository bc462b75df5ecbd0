"""内容占位符检测器."""

from typing import Pattern

from docx.text.paragraph import Paragraph

from uml_docgen.data.placeholder.base_detector import PlaceholderDetector
from uml_docgen.data.placeholder.grammar import CONTENT_PATTERN
from uml_docgen.data.styles import StyleResolver


class ContentPlaceholderDetector(PlaceholderDetector):
    """内容占位符检测器，目录段落中的匹配不作为内容替换."""

    def __init__(self, styles: StyleResolver):
        self.styles = styles

    @property
    def pattern(self) -> Pattern:
        return CONTENT_PATTERN

    def skip_paragraph(self, paragraph: Paragraph) -> bool:
        style_name = paragraph.style.name if paragraph.style is not None else None
        return self.styles.is_toc(style_name)
