"""文档区间锚点.

区间 ``[start, end)`` 以全文偏移表示：按文档顺序拼接所有段落文本，每个段落标记额外占一个位置。
偏移只在扫描时有效，写入内容后仅用于排序和日志；真正的定位依靠段落元素与占位符所在的 run 元素。
"""

import copy
from typing import List, Optional, Tuple

from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.text.paragraph import Paragraph
from docx.text.run import Run


def paragraph_full_text(p) -> str:
    """段落中全部 w:t 的文本（包括域结果和超链接中的文本）."""
    return "".join(t.text or "" for t in p.iter(qn("w:t")))


def iter_paragraphs(doc: Document) -> List[Tuple[Paragraph, int]]:
    """按文档顺序列出所有段落（包括表格中的段落）及其起始偏移.

    Args:
        doc: Document对象

    Returns:
        (段落, 全文起始偏移) 列表
    """
    result = []
    offset = 0
    for p in list(doc.element.body.iter(qn("w:p"))):
        result.append((Paragraph(p, doc.part), offset))
        offset += len(paragraph_full_text(p)) + 1
    return result


def direct_runs_text(paragraph: Paragraph) -> str:
    """段落直接子 run 的拼接文本，占位符匹配基于此文本."""
    return "".join(run.text for run in paragraph.runs)


def _split_run(r, at: int):
    """在 run 文本的 at 处拆分，返回后半部分的新 run 元素."""
    run = Run(r, None)
    text = run.text
    tail = copy.deepcopy(r)
    r.addnext(tail)
    run.text = text[:at]
    Run(tail, None).text = text[at:]
    return tail


def isolate_span(paragraph: Paragraph, start: int, end: int):
    """把段落内 [start, end) 的文本归并到唯一一个 run 中.

    跨多个 run 的占位符会被合并到第一个 run（保留其格式），其余 run 中被覆盖的文本删除。

    Args:
        paragraph: 段落
        start: 段内起始位置（基于直接子 run 文本）
        end: 段内结束位置

    Returns:
        仅包含该区间文本的 run 元素
    """
    # 先在 start 处拆分
    pos = 0
    first = None
    for r in list(paragraph._p.r_lst):
        length = len(Run(r, None).text)
        if pos <= start < pos + length:
            first = r if start == pos else _split_run(r, start - pos)
            break
        pos += length
    if first is None:
        raise ValueError(f"区间 [{start}, {end}) 超出段落文本范围")

    # 从 first 开始收集，直到覆盖 end
    remaining = end - start
    collected = []
    r = first
    while r is not None and remaining > 0:
        if r.tag != qn("w:r"):
            r = r.getnext()
            continue
        length = len(Run(r, None).text)
        if length > remaining:
            _split_run(r, remaining)
            length = remaining
        collected.append(r)
        remaining -= length
        r = r.getnext()

    text = "".join(Run(el, None).text for el in collected)
    for el in collected[1:]:
        el.getparent().remove(el)
    Run(first, None).text = text
    return first


def element_path(element) -> List[int]:
    """元素相对于 w:body 的子元素下标路径."""
    path = []
    node = element
    while node is not None and node.tag != qn("w:body"):
        parent = node.getparent()
        if parent is None:
            raise ValueError("元素不在文档正文中")
        path.append(parent.index(node))
        node = parent
    return list(reversed(path))


def resolve_path(doc: Document, path: List[int]):
    """按下标路径在正文中查找元素."""
    node = doc.element.body
    for index in path:
        node = node[index]
    return node


class DocRange:
    """文档区间锚点.

    持有所在段落、占位符 run 以及写入尾部（后续新增块元素插在其后）。
    写入只能按文档顺序向前推进。
    """

    def __init__(
        self,
        paragraph: Paragraph,
        run=None,
        start: int = 0,
        end: int = 0,
        tail=None,
    ):
        self.paragraph = paragraph
        self.run = run
        self.start = start
        self.end = end
        self.tail = tail if tail is not None else paragraph._p

    def get_text(self) -> str:
        if self.run is None:
            return self.paragraph.text
        return Run(self.run, self.paragraph).text

    def set_text(self, text: str) -> None:
        if self.run is None:
            self.paragraph.text = text
            return
        Run(self.run, self.paragraph).text = text

    def duplicate(self) -> "DocRange":
        """独立副本：修改副本的边界不影响原锚点."""
        return DocRange(self.paragraph, self.run, self.start, self.end, self.tail)

    def _new_run(self):
        r = OxmlElement("w:r")
        if self.run is not None and self.run.rPr is not None:
            r.append(copy.deepcopy(self.run.rPr))
        return r

    def collapse_to_start(self) -> None:
        """折叠到起点：之后的 set_text 写在原内容之前."""
        r = self._new_run()
        if self.run is not None:
            self.run.addprevious(r)
        else:
            self.paragraph._p.insert(1 if self.paragraph._p.pPr is not None else 0, r)
        self.run = r
        self.end = self.start

    def collapse_to_end(self) -> None:
        """折叠到终点：之后的 set_text 写在原内容之后."""
        r = self._new_run()
        if self.run is not None:
            self.run.addnext(r)
        else:
            self.paragraph._p.append(r)
        self.run = r
        self.start = self.end

    def snapshot(self) -> Tuple[List[int], Optional[List[int]], List[int]]:
        """以下标路径记录锚点，用于文档关闭并重新打开后恢复."""
        run_path = element_path(self.run) if self.run is not None else None
        return element_path(self.paragraph._p), run_path, element_path(self.tail)

    def restore(self, doc: Document, snapshot: Tuple[List[int], Optional[List[int]], List[int]]) -> None:
        """在重新打开的文档中按快照重新绑定锚点."""
        p_path, run_path, tail_path = snapshot
        self.paragraph = Paragraph(resolve_path(doc, p_path), doc.part)
        self.run = resolve_path(doc, run_path) if run_path is not None else None
        self.tail = resolve_path(doc, tail_path)

    def __repr__(self) -> str:
        return f"DocRange([{self.start}, {self.end}), text='{self.get_text()}')"
