"""超链接服务：把内容写入时产生的超链接占位符替换为文档内超链接."""

from docx import Document
from loguru import logger

from uml_docgen.data.bookmarks import BookmarkRegistry
from uml_docgen.data.cursors import CursorList, scan_placeholder_ranges
from uml_docgen.data.document_writer import DocumentWriter
from uml_docgen.data.placeholder import HyperlinkPlaceholderDetector
from uml_docgen.utils.logger import log_subtitle


class HyperlinkResolver:
    """超链接解析器.

    占位符总是替换为显示文本；只有目标书签已写入本次输出文档时才生成超链接，
    否则保留纯文本，避免产生悬空引用。
    """

    def __init__(self, writer: DocumentWriter, bookmarks: BookmarkRegistry):
        self.writer = writer
        self.bookmarks = bookmarks
        self.detector = HyperlinkPlaceholderDetector()
        self.linked = 0
        self.unlinked = 0

    def resolve(self, doc: Document) -> CursorList:
        """扫描文档中的超链接占位符并逐个替换.

        Args:
            doc: 已写入内容的Document对象

        Returns:
            超链接占位符的游标列表
        """
        log_subtitle("写入超链接")
        cursors = scan_placeholder_ranges(self.detector.detect(doc), {})
        for cursor in cursors:
            placeholder = cursor.placeholder
            if placeholder.error_text is not None:
                cursor.range.set_text(placeholder.error_text)
                placeholder.replaced_text = placeholder.error_text
                logger.warning(f"超链接占位符无效: {placeholder.error_text}")
                continue

            display_text, bookmark_id = placeholder.tokens
            cursor.range.set_text(display_text)
            placeholder.replaced_text = display_text
            if self.bookmarks.is_available_in_document(bookmark_id):
                self.writer.insert_hyperlink(cursor.range.paragraph, cursor.range.run, bookmark_id)
                self.linked += 1
            else:
                self.unlinked += 1
                logger.debug(f"书签 '{bookmark_id}' 未写入本文档，'{display_text}' 保留为纯文本")

        logger.info(f"超链接处理完成：{self.linked} 个超链接，{self.unlinked} 个纯文本")
        return cursors
