"""占位符检测器基类."""

from abc import ABC, abstractmethod
from typing import List, Pattern

from docx import Document
from docx.text.paragraph import Paragraph
from loguru import logger

from uml_docgen.data.ranges import direct_runs_text, iter_paragraphs


class PlaceholderMatch:
    """模板文本中匹配到的一个占位符."""

    def __init__(
        self,
        text: str,
        paragraph: Paragraph,
        para_start: int,
        para_end: int,
        start: int,
        end: int,
    ):
        self.text = text  # 匹配到的文本
        self.paragraph = paragraph  # 所在段落
        self.para_start = para_start  # 段内起始位置
        self.para_end = para_end  # 段内结束位置
        self.start = start  # 全文起始偏移
        self.end = end  # 全文结束偏移

    def __repr__(self) -> str:
        return f"PlaceholderMatch(text='{self.text}', start={self.start}, end={self.end})"


class PlaceholderDetector(ABC):
    """占位符检测器基类.

    按文档顺序遍历所有段落（包括表格中的段落），在段落直接子 run 的拼接文本中查找模式。
    """

    @property
    @abstractmethod
    def pattern(self) -> Pattern:
        """占位符正则表达式."""

    def skip_paragraph(self, paragraph: Paragraph) -> bool:
        """是否跳过该段落中的所有匹配."""
        return False

    def detect(self, doc: Document) -> List[PlaceholderMatch]:
        """检测文档中的占位符.

        Args:
            doc: Document对象

        Returns:
            按文档顺序排列的匹配列表
        """
        matches = []
        for paragraph, offset in iter_paragraphs(doc):
            text = direct_runs_text(paragraph)
            found = list(self.pattern.finditer(text))
            if not found:
                continue
            if self.skip_paragraph(paragraph):
                logger.info(f"跳过目录段落中的占位符: {text}")
                continue
            for m in found:
                matches.append(PlaceholderMatch(
                    text=m.group(0),
                    paragraph=paragraph,
                    para_start=m.start(),
                    para_end=m.end(),
                    start=offset + m.start(),
                    end=offset + m.end(),
                ))
        return matches
