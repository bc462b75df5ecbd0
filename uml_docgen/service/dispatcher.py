"""内容分发服务：按占位符类型解析模型内容并写入文档."""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loguru import logger

from uml_docgen.config.settings import DocgenConfig
from uml_docgen.data.bookmarks import BookmarkRegistry
from uml_docgen.data.captions import CaptionKind
from uml_docgen.data.cursors import Cursor, CursorList
from uml_docgen.data.document_io import DocumentSession
from uml_docgen.data.document_writer import DocumentWriter
from uml_docgen.data.models import (
    ClassDoc,
    FigureDoc,
    PackageDoc,
    PropertiesDoc,
    SclDoc,
    TextDescription,
    TextKind,
)
from uml_docgen.data.placeholder import PlaceholderKind, supported_formats
from uml_docgen.data.styles import StyleResolver, StyleRole
from uml_docgen.service.model_finder import ModelFinder
from uml_docgen.utils.logger import log_subtitle

ContentWriter = Callable[[Cursor], None]


@dataclass
class ReplacementResult:
    """单个占位符的解析结果.

    ``replaced_text`` 写入占位符位置；``diagnostic`` 不为空表示解析失败；
    ``content`` 为随后执行的内容写入（图片、包、类等）。
    """

    replaced_text: str
    diagnostic: Optional[str] = None
    content: Optional[ContentWriter] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


class ContentDispatcher:
    """内容分发器.

    按文档顺序处理游标列表中的每个占位符。模型中找不到的目标写入诊断文本；
    写入内容时抛出的异常只放弃当前占位符的内容，处理继续进行。
    """

    def __init__(
        self,
        session: DocumentSession,
        writer: DocumentWriter,
        styles: StyleResolver,
        finder: ModelFinder,
        bookmarks: BookmarkRegistry,
        config: DocgenConfig,
    ):
        self.session = session
        self.writer = writer
        self.styles = styles
        self.finder = finder
        self.bookmarks = bookmarks
        self.config = config
        self.cursors = CursorList()
        self.deep_write_errors = 0
        self.tables_written = 0
        self.tables_since_reopen = 0
        self.handlers: Dict[PlaceholderKind, Callable[[Cursor], ReplacementResult]] = {
            PlaceholderKind.FILE: self._resolve_file,
            PlaceholderKind.ATTRIBUTE: self._resolve_attribute,
            PlaceholderKind.IEC_NSNAME: self._resolve_ns_name,
            PlaceholderKind.DIAGRAM: self._resolve_diagram,
            PlaceholderKind.DIAG_NOTE: self._resolve_diag_note,
            PlaceholderKind.PRES_CONDITIONS: self._resolve_package,
            PlaceholderKind.FCS: self._resolve_package,
            PlaceholderKind.TRGOPS: self._resolve_package,
            PlaceholderKind.ABBREVIATIONS: self._resolve_package,
            PlaceholderKind.SCL_ENUMS: self._resolve_package,
            PlaceholderKind.PACKAGE: self._resolve_package,
            PlaceholderKind.LNMAP_PACKAGE: self._resolve_package,
            PlaceholderKind.DATA_INDEX: self._resolve_package,
            PlaceholderKind.CLASS: self._resolve_class,
            PlaceholderKind.HYPERLINK: self._resolve_verbatim,
            PlaceholderKind.UNSUPPORTED: self._resolve_verbatim,
        }
        self._package_writers: Dict[PlaceholderKind, Callable[[Cursor, PackageDoc], None]] = {
            PlaceholderKind.PACKAGE: self._write_root_package,
            PlaceholderKind.DATA_INDEX: self._sub_doc_writer("data_index_doc"),
            PlaceholderKind.LNMAP_PACKAGE: self._sub_doc_writer("ln_map_package_doc"),
            PlaceholderKind.PRES_CONDITIONS: self._sub_doc_writer("pres_cond_package_doc"),
            PlaceholderKind.FCS: self._sub_doc_writer("fc_package_doc"),
            PlaceholderKind.TRGOPS: self._sub_doc_writer("trg_op_package_doc"),
            PlaceholderKind.ABBREVIATIONS: self._write_abbreviations,
            PlaceholderKind.SCL_ENUMS: self._write_scl_enums,
        }

    # ------------------------------ 主流程 ------------------------------

    def write_all(self, cursors: CursorList) -> None:
        """处理全部游标，最后汇总替换失败."""
        self.cursors = cursors
        log_subtitle("写入内容")
        total = len(cursors)
        previous = None
        for cursor in cursors:
            logger.info(f"[{cursor.index + 1}/{total}] 处理占位符 {cursor}")
            # 同一段落中的后一个占位符接在前一个占位符已写入的内容之后
            if previous is not None and cursor.range.paragraph._p is previous.range.paragraph._p:
                cursor.range.tail = previous.range.tail
            self.dispatch(cursor)
            previous = cursor
        self.log_replacement_failures()

    def dispatch(self, cursor: Cursor) -> ReplacementResult:
        """解析并写入单个占位符."""
        placeholder = cursor.placeholder
        if placeholder.error_text is not None:
            result = ReplacementResult(placeholder.error_text, placeholder.error_text)
        else:
            result = self.handlers[placeholder.kind](cursor)

        cursor.range.set_text(result.replaced_text)
        placeholder.replaced_text = result.replaced_text
        if not result.ok:
            logger.warning(f"占位符替换失败: {result.diagnostic}")

        if result.content is not None:
            try:
                result.content(cursor)
            except Exception as e:
                self.deep_write_errors += 1
                logger.exception(f"写入 {placeholder} 的内容时出错，跳过该占位符: {e}")
        return result

    def log_replacement_failures(self) -> None:
        failures = self.cursors.get_replacement_failures()
        if failures:
            logger.error(f"共 {len(failures)} 个占位符替换失败:")
            for failure in failures:
                logger.error(f"   {failure}")
            logger.info("支持的占位符格式:")
            for fmt in supported_formats():
                logger.info(f"   {fmt}")
        if self.deep_write_errors:
            logger.error(f"共 {self.deep_write_errors} 个占位符的内容写入出错")

    # ------------------------------ 解析 ------------------------------

    def _miss(self, cursor: Cursor) -> ReplacementResult:
        diagnostic = cursor.placeholder.update_model_error_text()
        return ReplacementResult(diagnostic, diagnostic)

    def _resolve_verbatim(self, cursor: Cursor) -> ReplacementResult:
        return ReplacementResult(cursor.placeholder.text)

    def _resolve_file(self, cursor: Cursor) -> ReplacementResult:
        return ReplacementResult(self.finder.model_file_name)

    def _resolve_attribute(self, cursor: Cursor) -> ReplacementResult:
        p = cursor.placeholder
        value = self.finder.find_attribute_value(p.first_token, p.second_token)
        return self._miss(cursor) if value is None else ReplacementResult(value)

    def _resolve_ns_name(self, cursor: Cursor) -> ReplacementResult:
        value = self.finder.find_iec61850_ns_name(cursor.placeholder.first_token)
        return self._miss(cursor) if value is None else ReplacementResult(value)

    def _resolve_diag_note(self, cursor: Cursor) -> ReplacementResult:
        p = cursor.placeholder
        note = self.finder.find_diagram_note(p.first_token, p.second_token)
        if note is None:
            return self._miss(cursor)
        if note.kind == TextKind.TEXT_NO_NL:
            return ReplacementResult(note.text)
        return ReplacementResult("", content=lambda c: self._write_note(c, note))

    def _resolve_diagram(self, cursor: Cursor) -> ReplacementResult:
        p = cursor.placeholder
        owner, name = p.first_token, p.second_token
        path = self.finder.find_diagram_file(owner, name)
        if path is None:
            return self._miss(cursor)
        note = self.finder.find_diagram_note(owner, name) or TextDescription()
        figure = FigureDoc(intro_text=f"shows {name}.", figure_file=path, caption_text=name, description=note)
        return ReplacementResult(name, content=lambda c: self._write_figure(c, figure, in_place=True))

    def _resolve_package(self, cursor: Cursor) -> ReplacementResult:
        p = cursor.placeholder
        package_doc = self.finder.find_package_doc(p.first_token)
        if package_doc is None:
            return self._miss(cursor)
        if not self.config.deep:
            return ReplacementResult(package_doc.package_name)
        writer = self._package_writers[p.kind]
        return ReplacementResult(package_doc.package_name, content=lambda c: writer(c, package_doc))

    def _resolve_class(self, cursor: Cursor) -> ReplacementResult:
        p = cursor.placeholder
        class_doc = self.finder.find_class_doc(p.first_token, p.second_token)
        if class_doc is None:
            return self._miss(cursor)
        if not self.config.deep:
            return ReplacementResult(class_doc.heading_text)
        level = self.writer.outline_level(cursor.range.paragraph)
        return ReplacementResult(
            class_doc.heading_text,
            content=lambda c: self._write_class(c, class_doc, level, overwrite=True),
        )

    # ------------------------------ 写入 ------------------------------

    @property
    def _para_style(self) -> str:
        return self.styles.get(StyleRole.PARA)

    def _append_description(self, cursor: Cursor, description: TextDescription) -> None:
        if not description.is_empty():
            self.writer.append_text(cursor.range, description, self._para_style)

    def _write_note(self, cursor: Cursor, note: TextDescription) -> None:
        style = cursor.range.paragraph.style.name if cursor.range.paragraph.style is not None else self._para_style
        self.writer.append_text(cursor.range, note, style)

    def _write_figure(self, cursor: Cursor, figure: FigureDoc, in_place: bool = False) -> None:
        """写入图片、图题和对图题的引用.

        图片文件不存在时不写入，也不占用图编号。

        Args:
            cursor: 当前游标
            figure: 图片文档
            in_place: 图片写入占位符所在的 run（顶层 DIAGRAM 占位符）
        """
        if figure.figure_file is None or not figure.figure_file.is_file():
            logger.warning(f"图片文件不存在，跳过: {figure.figure_file}")
            return
        rng = cursor.range
        intro = None
        if self.config.intro_to_figure_before:
            if in_place:
                intro = self.writer.new_paragraph_before(rng.paragraph._p, figure.intro_text, self._para_style)
            else:
                intro = self.writer.append_raw_text(rng, figure.intro_text, self._para_style)

        if in_place:
            self.writer.insert_picture(rng.paragraph, figure.figure_file, run=rng.run)
            self.writer.apply_style(rng.paragraph, self.styles.get(StyleRole.FIG))
        else:
            picture = self.writer.append_raw_text(rng, "", self.styles.get(StyleRole.FIG))
            self.writer.insert_picture(picture, figure.figure_file)

        number = self.cursors.caption_added(CaptionKind.FIGURE, cursor)
        caption, ref_name = self.writer.insert_caption_after(
            rng.tail, CaptionKind.FIGURE, number, figure.caption_text, self.styles.get(StyleRole.FIGCAPT)
        )
        rng.tail = caption._p

        if intro is not None:
            self.writer.insert_caption_ref(intro, CaptionKind.FIGURE, number, ref_name, " ")
            self._append_description(cursor, figure.description)
            return
        description = figure.description
        if description.is_empty():
            description = TextDescription(text=figure.intro_text)
        paragraphs = self.writer.append_paragraphs(rng, description, self._para_style)
        if not paragraphs:
            paragraphs = [self.writer.append_raw_text(rng, figure.intro_text, self._para_style)]
        self.writer.insert_caption_ref(paragraphs[0], CaptionKind.FIGURE, number, ref_name, ": ")

    def _maybe_reopen(self) -> None:
        threshold = self.config.save_reopen_every
        if threshold > 0 and self.tables_since_reopen == threshold:
            self.tables_since_reopen = 0
            self.writer.attach(self.session.close_and_reopen(self.cursors))

    def _write_table(self, cursor: Cursor, doc: PropertiesDoc) -> None:
        """写入引言、表题和表格；达到阈值时先关闭并重新打开文档."""
        self._maybe_reopen()
        rng = cursor.range
        intro = self.writer.append_raw_text(rng, doc.intro_text, self._para_style)
        registry = self.bookmarks if self.config.use_hyperlinks else None
        table = self.writer.insert_table_after(rng.tail, doc, registry)
        number = self.cursors.caption_added(CaptionKind.TABLE, cursor)
        _, ref_name = self.writer.insert_caption_before(
            table._tbl, CaptionKind.TABLE, number, doc.caption_text, self.styles.get(StyleRole.TABCAPT)
        )
        self.writer.insert_caption_ref(intro, CaptionKind.TABLE, number, ref_name, " ")
        rng.tail = table._tbl
        self.tables_written += 1
        self.tables_since_reopen += 1

    def _write_properties(self, cursor: Cursor, doc: PropertiesDoc) -> None:
        self._append_description(cursor, doc.description)
        if doc.not_empty():
            self._write_table(cursor, doc)

    def _overwrite_heading(self, cursor: Cursor, text: str) -> None:
        if text:
            cursor.range.set_text(text)
            cursor.placeholder.replaced_text = text

    def _sub_doc_writer(self, attr: str) -> Callable[[Cursor, PackageDoc], None]:
        def write(cursor: Cursor, package_doc: PackageDoc) -> None:
            doc: Optional[PropertiesDoc] = getattr(package_doc, attr)
            if doc is None:
                logger.error(f"包 {package_doc.package_name} 中没有 {cursor.placeholder.kind.name} 文档")
                return
            self._overwrite_heading(cursor, doc.heading_text)
            self._write_properties(cursor, doc)
        return write

    def _write_abbreviations(self, cursor: Cursor, package_doc: PackageDoc) -> None:
        doc = package_doc.abbr_package_doc
        if doc is None:
            logger.error(f"包 {package_doc.package_name} 中没有缩略语文档")
            return
        cursor.range.set_text("")
        cursor.placeholder.replaced_text = ""
        self._write_properties(cursor, doc)

    def _write_scl_enums(self, cursor: Cursor, package_doc: PackageDoc) -> None:
        doc: Optional[SclDoc] = package_doc.enums_scl
        if doc is None:
            logger.error(f"包 {package_doc.package_name} 中没有 SCL 枚举文档")
            return
        self._overwrite_heading(cursor, doc.heading_text)
        xml = TextDescription(text=doc.xml_text, kind=TextKind.TEXT_WITH_NL)
        self.writer.append_text(cursor.range, xml, self.styles.get(StyleRole.TABCELL))

    def _write_root_package(self, cursor: Cursor, package_doc: PackageDoc) -> None:
        level = self.writer.outline_level(cursor.range.paragraph)
        self._write_package(cursor, package_doc, level, overwrite=True)

    def _write_package(self, cursor: Cursor, doc: PackageDoc, level: int, overwrite: bool) -> None:
        """递归写入包：标题、概述、命名空间、说明、包图、类和子包."""
        rng = cursor.range
        if overwrite:
            self._overwrite_heading(cursor, doc.heading_text)
        else:
            self.writer.append_raw_text(rng, doc.heading_text, self.styles.heading(level))
        logger.debug(f"写入包 {doc.package_name}（级别 {level}）")

        gen_level = level + 1
        if doc.class_docs or doc.child_package_docs:
            self.writer.append_raw_text(rng, doc.gen_heading_text, self.styles.heading(gen_level))
        if doc.package_name in self.config.show_namespace_packages:
            self._append_description(cursor, doc.ns_uri_and_prefix)
        self._append_description(cursor, doc.description)
        for figure in doc.figure_docs:
            self._write_figure(cursor, figure)
        for class_doc in doc.class_docs:
            self._write_class(cursor, class_doc, gen_level, overwrite=False)
        for child in doc.child_package_docs:
            self._write_package(cursor, child, gen_level, overwrite=False)

    def _write_class(self, cursor: Cursor, doc: ClassDoc, level: int, overwrite: bool) -> None:
        """写入类：标题（可带书签）、继承路径、说明、类图和属性/关联端/操作表."""
        rng = cursor.range
        if overwrite:
            self._overwrite_heading(cursor, doc.heading_text)
            heading, run = rng.paragraph, rng.run
        else:
            heading = self.writer.append_raw_text(rng, doc.heading_text, self.styles.heading(level))
            run = heading.runs[0]._r if heading.runs else None

        if self.config.use_hyperlinks and doc.bookmark_id:
            self.writer.insert_bookmark(heading, doc.bookmark_id, run=run)
            self.bookmarks.mark_as_available_in_document(doc.bookmark_id)

        if self.config.include_inheritance_path:
            self._append_description(cursor, doc.inheritance_path)
        self._append_description(cursor, doc.description)
        for figure in doc.diagram_docs:
            self._write_figure(cursor, figure)
        for table_doc in (doc.attributes_doc, doc.assoc_ends_doc, doc.operations_doc):
            if table_doc.not_empty():
                self._write_table(cursor, table_doc)
