"""占位符游标与图表编号跟踪."""

from typing import Callable, Dict, Iterator, List, Optional, Sequence

from docx import Document
from loguru import logger

from uml_docgen.data.captions import Caption, CaptionKind
from uml_docgen.data.placeholder.base_detector import PlaceholderMatch
from uml_docgen.data.placeholder.grammar import Placeholder, parse
from uml_docgen.data.ranges import DocRange, isolate_span


class Cursor:
    """绑定到文档区间的占位符，以及它之前已有的图、表数量."""

    def __init__(
        self,
        placeholder: Placeholder,
        doc_range: DocRange,
        figure_count_before: int = 0,
        table_count_before: int = 0,
    ):
        self.placeholder = placeholder
        self.range = doc_range
        self.figure_count_before = figure_count_before
        self.table_count_before = table_count_before
        self.figures_added = 0
        self.tables_added = 0
        self.index = -1

    @property
    def figure_count(self) -> int:
        """写完本占位符的内容后，文档中到此为止的图数量."""
        return self.figure_count_before + self.figures_added

    @property
    def table_count(self) -> int:
        return self.table_count_before + self.tables_added

    def __str__(self) -> str:
        return (
            f"'{self.placeholder.text}' {self.placeholder} "
            f"figures ({self.figure_count_before} before {self.figures_added} mine), "
            f"tables ({self.table_count_before} before {self.tables_added} mine)"
        )


class CursorList:
    """按文档顺序排列的游标列表，是内容写入的唯一处理队列."""

    def __init__(self) -> None:
        self._cursors: List[Cursor] = []

    def append(self, cursor: Cursor) -> None:
        cursor.index = len(self._cursors)
        self._cursors.append(cursor)

    def __len__(self) -> int:
        return len(self._cursors)

    def __iter__(self) -> Iterator[Cursor]:
        return iter(self._cursors)

    def __getitem__(self, index: int) -> Cursor:
        return self._cursors[index]

    def caption_added(self, kind: CaptionKind, cursor: Cursor) -> int:
        """为当前游标新增一个图或表，后续游标的基数随之后移.

        Args:
            kind: 题注类型
            cursor: 当前正在处理的游标

        Returns:
            新增图/表的序号
        """
        if not 0 <= cursor.index < len(self._cursors) or self._cursors[cursor.index] is not cursor:
            raise ValueError(f"游标不在列表中: {cursor}")
        later = self._cursors[cursor.index + 1:]
        if kind == CaptionKind.FIGURE:
            cursor.figures_added += 1
            for c in later:
                c.figure_count_before += 1
            return cursor.figure_count
        cursor.tables_added += 1
        for c in later:
            c.table_count_before += 1
        return cursor.table_count

    def get_replacement_failures(self) -> List[str]:
        """所有带诊断文本的占位符."""
        return [c.placeholder.error_text for c in self._cursors if c.placeholder.error_text is not None]

    def snapshot(self) -> List[tuple]:
        """记录所有游标的锚点路径，用于关闭并重新打开文档."""
        return [c.range.snapshot() for c in self._cursors]

    def restore(self, doc: Document, snapshots: List[tuple]) -> None:
        for cursor, snap in zip(self._cursors, snapshots):
            cursor.range.restore(doc, snap)


def _count_captions(captions: Sequence[Caption], after: Optional[int], before: int) -> int:
    # 区间为左闭右开：题注结束位置不超过占位符起点即位于其前
    return sum(
        1 for cap in captions
        if cap.end <= before and (after is None or cap.start >= after)
    )


def _isolate(match: PlaceholderMatch) -> DocRange:
    run = isolate_span(match.paragraph, match.para_start, match.para_end)
    return DocRange(match.paragraph, run, match.start, match.end)


def scan_placeholder_ranges(
    matches: Sequence[PlaceholderMatch],
    captions: Dict[CaptionKind, List[Caption]],
    make_range: Callable[[PlaceholderMatch], DocRange] = _isolate,
    parser: Callable[[str], Placeholder] = parse,
) -> CursorList:
    """为每个占位符匹配建立游标，并计算它之前已有的图、表数量.

    第一个占位符统计结束于其起点之前的题注；之后每个占位符在前一个游标计数的基础上，
    加上位于前一个占位符结束与本占位符开始之间的题注。

    Args:
        matches: 按文档顺序排列的占位符匹配
        captions: 模板中已有的题注
        make_range: 由匹配创建（独立的）区间锚点
        parser: 占位符解析函数

    Returns:
        游标列表
    """
    figures = captions.get(CaptionKind.FIGURE, [])
    tables = captions.get(CaptionKind.TABLE, [])
    result = CursorList()
    prev_end: Optional[int] = None
    for match in matches:
        if len(result) == 0:
            fig_before = _count_captions(figures, None, match.start)
            tab_before = _count_captions(tables, None, match.start)
        else:
            prev = result[len(result) - 1]
            fig_before = prev.figure_count + _count_captions(figures, prev_end, match.start)
            tab_before = prev.table_count + _count_captions(tables, prev_end, match.start)

        placeholder = parser(match.text)
        cursor = Cursor(placeholder, make_range(match).duplicate(), fig_before, tab_before)
        result.append(cursor)
        prev_end = match.end
        logger.info(f"   保存占位符 {cursor}")

    logger.info(f"共找到 {len(result)} 个占位符")
    return result
