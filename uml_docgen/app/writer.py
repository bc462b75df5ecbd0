"""Word 文档生成器：负责一次完整生成过程的生命周期."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from uml_docgen import __version__
from uml_docgen.config.settings import DocgenConfig, StyleConfig, settings
from uml_docgen.data.bookmarks import BookmarkRegistry
from uml_docgen.data.captions import collect_captions
from uml_docgen.data.cursors import CursorList, scan_placeholder_ranges
from uml_docgen.data.document_io import DocumentIO, DocumentSession
from uml_docgen.data.document_writer import DocumentWriter
from uml_docgen.data.placeholder import ContentPlaceholderDetector
from uml_docgen.data.styles import StyleResolver
from uml_docgen.service.dispatcher import ContentDispatcher
from uml_docgen.service.hyperlinks import HyperlinkResolver
from uml_docgen.service.model_finder import ModelFinder
from uml_docgen.utils.logger import log_subtitle


class WriterState(Enum):
    """生成过程的状态，严格按顺序转换."""

    CREATED = "created"
    TEMPLATE_COPIED = "template_copied"
    APP_OPEN = "app_open"
    DOC_OPEN = "doc_open"
    STYLES_DISCOVERED = "styles_discovered"
    CAPTIONS_SCANNED = "captions_scanned"
    PLACEHOLDERS_SCANNED = "placeholders_scanned"
    CONTENT_WRITTEN = "content_written"
    HYPERLINKS_WRITTEN = "hyperlinks_written"
    FIELDS_UPDATED = "fields_updated"
    CLOSED = "closed"


@dataclass
class WriterInput:
    """一次生成过程的输入."""

    template_path: Path
    output_path: Path
    finder: ModelFinder
    config: DocgenConfig = field(default_factory=lambda: settings.docgen.model_copy())
    style_config: StyleConfig = field(default_factory=lambda: settings.styles.model_copy())
    bookmarks: BookmarkRegistry = field(default_factory=BookmarkRegistry)


class WordWriter:
    """Word 文档生成器.

    复制模板后只修改输出文件：发现样式、扫描已有题注和占位符、写入内容、
    写入超链接、设置更新域，最后保存并关闭。内容写入阶段出现异常时仍会保存已写入的部分。
    """

    def __init__(self, writer_input: WriterInput):
        self.input = writer_input
        self.state = WriterState.CREATED
        self.history: List[WriterState] = [self.state]
        self.styles = StyleResolver()
        self.cursors = CursorList()
        self.hyperlink_cursors = CursorList()
        self.session: Optional[DocumentSession] = None
        self.writer: Optional[DocumentWriter] = None
        self.dispatcher: Optional[ContentDispatcher] = None

    def _enter(self, state: WriterState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(f"状态 -> {state.name}")

    def write(self) -> CursorList:
        """生成输出文档.

        Returns:
            内容占位符的游标列表

        Raises:
            FileNotFoundError: 模板不存在
            UnsupportedInputFormatError: 模板格式不受支持或无法作为 docx 打开
            UnsupportedOutputFormatError: 输出格式不受支持
        """
        return self._run(test_mode=False)

    def write_by_test(self, post_processor: Optional[Callable[["WordWriter"], None]] = None) -> CursorList:
        """只扫描不保存，供测试使用；扫描后调用 post_processor，异常直接抛出."""
        return self._run(test_mode=True, post_processor=post_processor)

    def _run(self, test_mode: bool, post_processor: Optional[Callable[["WordWriter"], None]] = None) -> CursorList:
        template, output = Path(self.input.template_path), Path(self.input.output_path)
        DocumentIO.check_formats(template, output)
        DocumentIO.copy_template(template, output)
        self._enter(WriterState.TEMPLATE_COPIED)

        self.session = DocumentSession(output)
        self._enter(WriterState.APP_OPEN)
        try:
            self._open()
        except Exception as e:
            logger.error(f"无法打开文档 {output}: {e}")
            self._close(save=False)
            raise
        try:
            self._scan()
            if test_mode:
                if post_processor is not None:
                    post_processor(self)
                return self.cursors
            self._write_content()
            self._write_hyperlinks()
            self.writer.request_field_update()
            self._enter(WriterState.FIELDS_UPDATED)
        except Exception as e:
            logger.exception(f"生成文档 {output} 时出错: {e}")
            if test_mode:
                raise
        finally:
            self._close(save=not test_mode)
        return self.cursors

    def _open(self) -> None:
        log_subtitle("打开文档")
        doc = self.session.open()
        self._enter(WriterState.DOC_OPEN)
        self.writer = DocumentWriter(doc, self.styles)
        self.writer.set_custom_properties({
            "uml": self.input.finder.model_file_name,
            "tool": f"{settings.document.app_name} {__version__}",
        })

    def _scan(self) -> None:
        doc = self.session.doc
        self.styles.init_preferred(self.input.style_config)
        self.styles.init_usable(self.writer.existing_style_names())
        self._enter(WriterState.STYLES_DISCOVERED)

        log_subtitle("扫描题注")
        captions = collect_captions(doc, self.styles)
        self._enter(WriterState.CAPTIONS_SCANNED)

        log_subtitle("扫描占位符")
        matches = ContentPlaceholderDetector(self.styles).detect(doc)
        self.cursors = scan_placeholder_ranges(matches, captions)
        self._enter(WriterState.PLACEHOLDERS_SCANNED)

    def _write_content(self) -> None:
        self.dispatcher = ContentDispatcher(
            self.session,
            self.writer,
            self.styles,
            self.input.finder,
            self.input.bookmarks,
            self.input.config,
        )
        self.dispatcher.write_all(self.cursors)
        self._enter(WriterState.CONTENT_WRITTEN)

    def _write_hyperlinks(self) -> None:
        if not self.input.config.use_hyperlinks:
            return
        resolver = HyperlinkResolver(self.writer, self.input.bookmarks)
        self.hyperlink_cursors = resolver.resolve(self.session.doc)
        self._enter(WriterState.HYPERLINKS_WRITTEN)

    def _close(self, save: bool) -> None:
        try:
            if self.session is not None and self.session.is_open:
                self.session.close(save=save)
        finally:
            self.styles.reset()
            self._enter(WriterState.CLOSED)
            logger.info(f"文档已关闭: {self.input.output_path}")

    @property
    def replacement_failures(self) -> List[str]:
        return self.cursors.get_replacement_failures() + self.hyperlink_cursors.get_replacement_failures()

    @property
    def deep_write_errors(self) -> int:
        return self.dispatcher.deep_write_errors if self.dispatcher is not None else 0

    @property
    def reopen_count(self) -> int:
        return self.session.reopen_count if self.session is not None else 0
