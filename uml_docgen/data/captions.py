"""模板中已有的图题和表题."""

import re
from enum import Enum
from typing import Dict, List

from docx import Document
from docx.oxml.ns import qn
from loguru import logger

from uml_docgen.data.ranges import DocRange, iter_paragraphs, paragraph_full_text
from uml_docgen.data.styles import StyleResolver

# 图/表题中编号与题注文本之间的分隔符（短破折号）
SEP_AFTER_CAPTION_NUM = " – "

_SEQ_LABEL = re.compile(r"(SEQ\s+)(\S+)")
_TOC_LABEL = re.compile(r'(\\c\s+")([^"]+)(")')


class CaptionKind(Enum):
    """题注类型."""

    FIGURE = "Figure"
    TABLE = "Table"

    @property
    def label(self) -> str:
        return self.value

    def looks_like_caption(self, first_token: str) -> bool:
        return first_token.startswith(self.label)


class Caption:
    """模板中已有的题注，只用于扫描占位符时计数."""

    def __init__(self, kind: CaptionKind, doc_range: DocRange):
        self.kind = kind
        self.range = doc_range

    @property
    def start(self) -> int:
        return self.range.start

    @property
    def end(self) -> int:
        return self.range.end

    def __repr__(self) -> str:
        return f"Caption({self.kind.label}, [{self.start}, {self.end}))"


def _canonical_label(label: str) -> str:
    for kind in CaptionKind:
        if label.lower() == kind.label.lower():
            return kind.label
    return label


def _fix_instruction(instr: str) -> str:
    instr = _SEQ_LABEL.sub(lambda m: m.group(1) + _canonical_label(m.group(2)), instr)
    return _TOC_LABEL.sub(lambda m: m.group(1) + _canonical_label(m.group(2)) + m.group(3), instr)


def fix_caption_labels(doc: Document) -> int:
    """把 SEQ 域和目录域 ``\\c`` 开关中的题注标签统一为 Figure/Table.

    目录（图表目录）中的标签必须与正文题注一致，否则更新域后目录条目丢失。

    Args:
        doc: Document对象

    Returns:
        修正的域指令个数
    """
    fixed = 0
    body = doc.element.body
    for instr_text in body.iter(qn("w:instrText")):
        new_instr = _fix_instruction(instr_text.text or "")
        if new_instr != (instr_text.text or ""):
            instr_text.text = new_instr
            fixed += 1
    for fld in body.iter(qn("w:fldSimple")):
        instr = fld.get(qn("w:instr")) or ""
        new_instr = _fix_instruction(instr)
        if new_instr != instr:
            fld.set(qn("w:instr"), new_instr)
            fixed += 1
    if fixed:
        logger.info(f"已修正 {fixed} 个题注标签（包括目录中的标签）")
    return fixed


def collect_captions(doc: Document, styles: StyleResolver) -> Dict[CaptionKind, List[Caption]]:
    """收集模板中已有的图题和表题.

    只考虑使用图题/表题样式、且首个词以 Figure 或 Table 开头的段落。

    Args:
        doc: Document对象
        styles: 已初始化的样式解析器

    Returns:
        题注类型 -> 按文档顺序排列的题注
    """
    fix_caption_labels(doc)
    result: Dict[CaptionKind, List[Caption]] = {kind: [] for kind in CaptionKind}
    for paragraph, offset in iter_paragraphs(doc):
        style_name = paragraph.style.name if paragraph.style is not None else None
        if not styles.is_caption_style(style_name):
            continue

        text = paragraph_full_text(paragraph._p)
        tokens = text.split()
        if len(tokens) < 2:
            logger.error(f"段落 [{text}] 使用了题注样式 [{style_name}]，但文本过短，不是有效的题注；请在模板中改用非题注样式")
            continue

        label = tokens[0]
        kind = next((k for k in CaptionKind if k.looks_like_caption(label)), None)
        if kind is None:
            logger.warning(f"段落 [{text}] 使用了题注样式 [{style_name}]，但标签 [{label}] 无法识别")
            continue

        doc_range = DocRange(paragraph, None, offset, offset + len(text))
        result[kind].append(Caption(kind, doc_range))
        logger.debug(f"找到已有题注: {text}")

    logger.info(
        f"模板中已有 {len(result[CaptionKind.FIGURE])} 个图题，{len(result[CaptionKind.TABLE])} 个表题"
    )
    return result
