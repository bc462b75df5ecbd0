"""文档写入器：在 python-docx 文档中插入段落、表格、图片、题注、书签和超链接."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from docx import Document
from docx.enum.style import WD_STYLE_TYPE
from docx.opc.constants import CONTENT_TYPE as CT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.opc.part import Part
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph
from docx.text.run import Run
from loguru import logger
from lxml import etree
from lxml import html as lxml_html

from uml_docgen.data.bookmarks import BookmarkRegistry
from uml_docgen.data.captions import SEP_AFTER_CAPTION_NUM, CaptionKind
from uml_docgen.data.models import EntryKind, PropertiesDoc, TextDescription, TextKind
from uml_docgen.data.ranges import DocRange
from uml_docgen.data.styles import StyleResolver, StyleRole

CUSTOM_PROPS_NS = "http://schemas.openxmlformats.org/officeDocument/2006/custom-properties"
VT_NS = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"
CUSTOM_PROPS_FMTID = "{D5CDD505-2E9C-101B-9397-08002B2CF9AE}"

# settings.xml 中位于 w:updateFields 之后的元素
_UPDATE_FIELDS_SUCCESSORS = (
    "w:hdrShapeDefaults", "w:footnotePr", "w:endnotePr", "w:compat", "w:docVars", "w:rsids",
    "m:mathPr", "w:attachedSchema", "w:themeFontLang", "w:clrSchemeMapping",
    "w:doNotIncludeSubdocsInStats", "w:doNotAutoCompressPictures", "w:forceUpgrade",
    "w:captions", "w:readModeInkLockDown", "w:smartTagType", "sl:schemaLibrary",
    "w:shapeDefaults", "w:doNotEmbedSmartTags", "w:decimalSymbol", "w:listSeparator",
)

_HTML_BLOCKS = ("p", "li", "div", "h1", "h2", "h3", "h4", "h5", "h6", "pre", "tr")

_SHADING = {
    EntryKind.TABLE_NAME: "BFBFBF",
    EntryKind.GROUP_SUBHEAD: "E6E6E6",
}


def html_blocks(markup: str) -> List[str]:
    """把 HTML 片段拆分为块级文本."""
    if not markup.strip():
        return []
    root = lxml_html.fragment_fromstring(markup, create_parent="div")
    blocks = [el.text_content().strip() for el in root.iter(*_HTML_BLOCKS) if el is not root]
    blocks = [b for b in blocks if b]
    if not blocks:
        text = root.text_content().strip()
        return [text] if text else []
    return blocks


class DocumentWriter:
    """文档写入器.

    所有追加操作都在区间的写入尾部之后进行，并把尾部推进到新写入的块元素。
    """

    def __init__(self, doc: Document, styles: StyleResolver):
        self.styles = styles
        self._ref_counter = 0
        self.attach(doc)

    def attach(self, doc: Document) -> None:
        """绑定（重新打开后的）文档."""
        self.doc = doc
        ids = [int(el.get(qn("w:id"))) for el in doc.element.body.iter(qn("w:bookmarkStart"))
               if (el.get(qn("w:id")) or "").isdigit()]
        self._next_bookmark_id = max(ids, default=0) + 1
        names = [el.get(qn("w:name")) or "" for el in doc.element.body.iter(qn("w:bookmarkStart"))]
        self._ref_counter = max(
            [self._ref_counter] + [int(n[7:]) for n in names if n.startswith("_RefUml") and n[7:].isdigit()]
        )

    # ------------------------------ 样式 ------------------------------

    def existing_style_names(self) -> List[str]:
        return [s.name for s in self.doc.styles if s.type == WD_STYLE_TYPE.PARAGRAPH and s.name]

    def ensure_style(self, name: str) -> None:
        """样式不存在时在文档中创建（用于解析器回退到的默认样式）."""
        try:
            self.doc.styles[name]
            return
        except KeyError:
            pass
        style = self.doc.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
        level = self.styles.heading_level(name)
        if level:
            lvl = OxmlElement("w:outlineLvl")
            lvl.set(qn("w:val"), str(level - 1))
            style.element.get_or_add_pPr().append(lvl)
        logger.info(f"文档中不存在样式 '{name}'，已创建")

    def apply_style(self, paragraph: Paragraph, name: Optional[str]) -> None:
        if not name:
            return
        self.ensure_style(name)
        paragraph.style = name

    def outline_level(self, paragraph: Paragraph) -> int:
        """段落的大纲级别；正文段落视为 1 级."""
        level = _outline_lvl(paragraph._p.pPr)
        if level:
            return level
        style = paragraph.style
        while style is not None:
            level = self.styles.heading_level(style.name) or _outline_lvl(style.element.pPr)
            if level:
                return level
            style = style.base_style
        return 1

    # ------------------------------ 段落 ------------------------------

    def new_paragraph_after(self, element, text: str = "", style: Optional[str] = None) -> Paragraph:
        p = OxmlElement("w:p")
        element.addnext(p)
        paragraph = Paragraph(p, self.doc.part)
        if text:
            paragraph.add_run(text)
        self.apply_style(paragraph, style)
        return paragraph

    def new_paragraph_before(self, element, text: str = "", style: Optional[str] = None) -> Paragraph:
        p = OxmlElement("w:p")
        element.addprevious(p)
        paragraph = Paragraph(p, self.doc.part)
        if text:
            paragraph.add_run(text)
        self.apply_style(paragraph, style)
        return paragraph

    def append_raw_text(self, doc_range: DocRange, text: str, style: Optional[str]) -> Paragraph:
        """在区间尾部之后追加一个段落."""
        paragraph = self.new_paragraph_after(doc_range.tail, text, style)
        doc_range.tail = paragraph._p
        return paragraph

    def append_paragraphs(
        self, doc_range: DocRange, description: TextDescription, style: Optional[str]
    ) -> List[Paragraph]:
        """按文本类型在区间尾部之后追加段落，返回追加的全部段落（HTML 片段为空时为空列表）."""
        if description.kind == TextKind.HTML_SNIPPET:
            lines = html_blocks(description.text)
        elif description.kind == TextKind.TEXT_WITH_NL:
            lines = description.text.splitlines() or [""]
        else:
            lines = [description.text]
        return [self.append_raw_text(doc_range, line, style) for line in lines]

    def append_text(self, doc_range: DocRange, description: TextDescription, style: Optional[str]) -> Optional[Paragraph]:
        """按文本类型在区间尾部之后追加段落.

        Returns:
            最后追加的段落；HTML 片段为空时不追加，返回 None
        """
        paragraphs = self.append_paragraphs(doc_range, description, style)
        return paragraphs[-1] if paragraphs else None

    # ------------------------------ 图片 ------------------------------

    def insert_picture(self, paragraph: Paragraph, image_path: Union[str, Path], run=None) -> None:
        """在段落（或其指定 run）中插入图片，宽度不超过版心宽度."""
        target = Run(run, paragraph) if run is not None else paragraph.add_run()
        target.text = ""
        shape = target.add_picture(str(image_path))
        section = self.doc.sections[-1]
        if section.page_width and section.left_margin is not None and section.right_margin is not None:
            max_width = section.page_width - section.left_margin - section.right_margin
            if max_width > 0 and shape.width > max_width:
                shape.height = int(shape.height * max_width / shape.width)
                shape.width = max_width
        logger.debug(f"已插入图片: {image_path}")

    # ------------------------------ 题注 ------------------------------

    def _caption_content(self, paragraph: Paragraph, kind: CaptionKind, number: int, text: str) -> str:
        self._ref_counter += 1
        ref_name = f"_RefUml{self._ref_counter}"
        bm_id = self._next_bookmark_id
        self._next_bookmark_id += 1

        paragraph._p.append(_bookmark_start(bm_id, ref_name))
        paragraph.add_run(kind.label + " ")
        paragraph._p.append(_simple_field(f" SEQ {kind.label} \\* ARABIC ", str(number)))
        paragraph._p.append(_bookmark_end(bm_id))
        paragraph.add_run(SEP_AFTER_CAPTION_NUM + text)
        return ref_name

    def insert_caption_after(self, element, kind: CaptionKind, number: int, text: str, style: str) -> Tuple[Paragraph, str]:
        """在元素之后插入题注段落，返回段落和包裹“标签 编号”的书签名."""
        paragraph = self.new_paragraph_after(element, style=style)
        return paragraph, self._caption_content(paragraph, kind, number, text)

    def insert_caption_before(self, element, kind: CaptionKind, number: int, text: str, style: str) -> Tuple[Paragraph, str]:
        paragraph = self.new_paragraph_before(element, style=style)
        return paragraph, self._caption_content(paragraph, kind, number, text)

    def insert_caption_ref(self, paragraph: Paragraph, kind: CaptionKind, number: int, ref_name: str, separator: str) -> None:
        """在段落开头插入对题注的交叉引用（“标签 编号”），后接分隔符."""
        doc_range = DocRange(paragraph, paragraph.runs[0]._r if paragraph.runs else None)
        doc_range.collapse_to_start()
        doc_range.set_text(separator)
        doc_range.run.addprevious(_simple_field(f" REF {ref_name} \\h ", f"{kind.label} {number}"))

    # ------------------------------ 表格 ------------------------------

    def insert_table_after(
        self,
        element,
        doc: PropertiesDoc,
        bookmarks: Optional[BookmarkRegistry] = None,
    ) -> Table:
        """在元素之后插入属性表格.

        表名行与列标题行作为重复表头；表名行与分组行合并单元格；非数据行使用表头样式。
        传入书签注册表时，为带书签ID的行在首个非空单元格中插入书签并标记为可用。
        """
        rows, cols = doc.row_count, max(doc.column_count, 1)
        table = self.doc.add_table(rows=rows, cols=cols)
        element.addnext(table._tbl)
        if element.getparent() is not None and element.getparent().tag == qn("w:tc") and table._tbl.getnext() is None:
            # 单元格必须以段落结束
            table._tbl.addnext(OxmlElement("w:p"))
        if "Table Grid" in [s.name for s in self.doc.styles]:
            table.style = self.doc.styles["Table Grid"]

        head_style = self.styles.get(StyleRole.TABHEAD)
        cell_style = self.styles.get(StyleRole.TABCELL)
        values = doc.cell_values
        for i, kind in enumerate(doc.row_kinds):
            row = table.rows[i]
            if kind in (EntryKind.TABLE_NAME, EntryKind.GROUP_SUBHEAD) and cols > 1:
                merged = row.cells[0].merge(row.cells[-1])
                merged.text = " ".join(v for v in values[i] if v)
                cells = [merged]
            else:
                cells = list(row.cells)
                for j, value in enumerate(values[i]):
                    cells[j].text = value
            if kind in (EntryKind.TABLE_NAME, EntryKind.COLUMN_LABELS):
                row._tr.get_or_add_trPr().append(OxmlElement("w:tblHeader"))
            if kind in _SHADING:
                for cell in cells:
                    cell._tc.get_or_add_tcPr().append(_shading(_SHADING[kind]))
            style = cell_style if kind == EntryKind.DATA else head_style
            for cell in cells:
                for paragraph in cell.paragraphs:
                    self.apply_style(paragraph, style)

            bookmark_id = doc.bookmark_ids[i]
            if bookmarks is not None and bookmark_id:
                target = next((c for c in cells if c.text), None)
                if target is not None:
                    self.insert_bookmark(target.paragraphs[0], bookmark_id)
                    bookmarks.mark_as_available_in_document(bookmark_id)
        logger.debug(f"已插入表格: {rows} 行 x {cols} 列，{doc.caption_text}")
        return table

    # ------------------------------ 书签与超链接 ------------------------------

    def insert_bookmark(self, paragraph: Paragraph, name: str, run=None) -> None:
        """插入书签，包裹指定 run；未指定时包裹整个段落内容."""
        bm_id = self._next_bookmark_id
        self._next_bookmark_id += 1
        start, end = _bookmark_start(bm_id, name), _bookmark_end(bm_id)
        if run is not None:
            run.addprevious(start)
            run.addnext(end)
            return
        p = paragraph._p
        p.insert(1 if p.pPr is not None else 0, start)
        p.append(end)

    def insert_hyperlink(self, paragraph: Paragraph, run, bookmark_id: str) -> None:
        """把 run 包裹为指向文档内书签的超链接."""
        hyperlink = OxmlElement("w:hyperlink")
        hyperlink.set(qn("w:anchor"), bookmark_id)
        hyperlink.set(qn("w:history"), "1")
        run.addprevious(hyperlink)
        hyperlink.append(run)
        try:
            Run(run, paragraph).style = self.doc.styles["Hyperlink"]
        except KeyError:
            pass

    # ------------------------------ 文档属性与域 ------------------------------

    def set_custom_properties(self, properties: Dict[str, str]) -> None:
        """创建或更新自定义文档属性（docProps/custom.xml）."""
        package = self.doc.part.package
        part = next(
            (rel.target_part for rel in package.rels.values()
             if rel.reltype == RT.CUSTOM_PROPERTIES and not rel.is_external),
            None,
        )
        if part is not None:
            root = etree.fromstring(part.blob)
        else:
            root = etree.Element(f"{{{CUSTOM_PROPS_NS}}}Properties", nsmap={None: CUSTOM_PROPS_NS, "vt": VT_NS})

        pids = [int(p.get("pid")) for p in root if (p.get("pid") or "").isdigit()]
        next_pid = max(pids, default=1) + 1
        for name, value in properties.items():
            prop = next((p for p in root if p.get("name") == name), None)
            if prop is None:
                prop = etree.SubElement(root, f"{{{CUSTOM_PROPS_NS}}}property")
                prop.set("fmtid", CUSTOM_PROPS_FMTID)
                prop.set("pid", str(next_pid))
                prop.set("name", name)
                next_pid += 1
            for child in list(prop):
                prop.remove(child)
            etree.SubElement(prop, f"{{{VT_NS}}}lpwstr").text = value or ""

        blob = etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)
        if part is not None:
            part._blob = blob
        else:
            part = Part(PackURI("/docProps/custom.xml"), CT.OFC_CUSTOM_PROPERTIES, blob, package)
            package.relate_to(part, RT.CUSTOM_PROPERTIES)
        logger.info(f"已设置文档属性: {properties}")

    def request_field_update(self) -> None:
        """标记文档在打开时更新全部域（目录、图表目录、题注编号和交叉引用）."""
        settings = self.doc.settings.element
        if settings.find(qn("w:updateFields")) is not None:
            return
        update = OxmlElement("w:updateFields")
        update.set(qn("w:val"), "true")
        successor = next(
            (el for el in settings if el.tag in {qn(tag) for tag in _UPDATE_FIELDS_SUCCESSORS}),
            None,
        )
        if successor is not None:
            successor.addprevious(update)
        else:
            settings.append(update)
        logger.info("已设置打开文档时更新域")


def _outline_lvl(pPr) -> int:
    if pPr is None:
        return 0
    lvl = pPr.find(qn("w:outlineLvl"))
    if lvl is None:
        return 0
    value = int(lvl.get(qn("w:val"), "9"))
    return value + 1 if value < 9 else 0


def _simple_field(instr: str, result: str):
    fld = OxmlElement("w:fldSimple")
    fld.set(qn("w:instr"), instr)
    r = OxmlElement("w:r")
    t = OxmlElement("w:t")
    t.text = result
    r.append(t)
    fld.append(r)
    return fld


def _bookmark_start(bm_id: int, name: str):
    el = OxmlElement("w:bookmarkStart")
    el.set(qn("w:id"), str(bm_id))
    el.set(qn("w:name"), name)
    return el


def _bookmark_end(bm_id: int):
    el = OxmlElement("w:bookmarkEnd")
    el.set(qn("w:id"), str(bm_id))
    return el


def _shading(fill: str):
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    return shd
