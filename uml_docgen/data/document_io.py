"""文档读写操作."""

import shutil
from pathlib import Path
from typing import List, Optional, Union

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from loguru import logger

from uml_docgen.config.settings import settings
from uml_docgen.data.cursors import CursorList


class UnsupportedInputFormatError(ValueError):
    """模板文件格式不受支持."""


class UnsupportedOutputFormatError(ValueError):
    """输出文件格式不受支持."""


def supported_formats() -> List[str]:
    return [ext.lower() for ext in settings.document.supported_formats]


class DocumentIO:
    """文档读写操作类."""

    @staticmethod
    def check_formats(template_path: Union[str, Path], output_path: Union[str, Path]) -> None:
        """检查模板是否存在，以及模板和输出文件的格式.

        Raises:
            FileNotFoundError: 模板不存在
            UnsupportedInputFormatError: 模板格式不受支持
            UnsupportedOutputFormatError: 输出格式不受支持
        """
        template_path, output_path = Path(template_path), Path(output_path)
        if not template_path.is_file():
            raise FileNotFoundError(f"模板文件不存在: {template_path}")
        formats = supported_formats()
        if template_path.suffix.lower() not in formats:
            raise UnsupportedInputFormatError(f"不支持的模板格式: {template_path.suffix}，支持: {formats}")
        if output_path.suffix.lower() not in formats:
            raise UnsupportedOutputFormatError(f"不支持的输出格式: {output_path.suffix}，支持: {formats}")

    @staticmethod
    def copy_template(template_path: Union[str, Path], output_path: Union[str, Path]) -> Path:
        """把模板复制为输出文件，后续所有修改都在副本上进行.

        Returns:
            输出文件路径
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(template_path, output_path)
        logger.info(f"已复制模板 {template_path} -> {output_path}")
        return output_path

    @staticmethod
    def load_document(file_path: Union[str, Path]) -> Document:
        """加载Word文档.

        Args:
            file_path: 文档路径

        Returns:
            加载的Document对象

        Raises:
            FileNotFoundError: 文件不存在
            UnsupportedInputFormatError: 文件不是有效的 docx 包
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"文件不存在: {file_path}")

        try:
            doc = Document(str(file_path))
        except (PackageNotFoundError, ValueError) as e:
            logger.error(f"加载文档失败: {e}")
            raise UnsupportedInputFormatError(f"加载文档失败: {e}") from e
        logger.info(f"已加载文档: {file_path}")
        return doc

    @staticmethod
    def save_document(doc: Document, output_path: Union[str, Path]) -> None:
        """保存Word文档.

        Args:
            doc: Document对象
            output_path: 输出文件路径
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        doc.save(str(output_path))
        logger.info(f"已保存文档: {output_path}")


class DocumentSession:
    """输出文档的打开会话.

    持有当前打开的 Document；大文档写入过程中可以保存后重新打开，
    游标锚点按快照在新文档中重新绑定。
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.doc: Optional[Document] = None
        self.reopen_count = 0

    @property
    def is_open(self) -> bool:
        return self.doc is not None

    def open(self) -> Document:
        self.doc = DocumentIO.load_document(self.path)
        return self.doc

    def save(self) -> None:
        DocumentIO.save_document(self.doc, self.path)

    def close(self, save: bool = True) -> None:
        """关闭文档；save 为 False 时丢弃未保存的修改."""
        if self.doc is None:
            return
        if save:
            self.save()
        self.doc = None

    def close_and_reopen(self, cursors: CursorList) -> Document:
        """保存并重新打开文档，释放累积的编辑状态.

        Args:
            cursors: 需要在新文档中重新绑定的游标

        Returns:
            重新打开的Document对象
        """
        snapshots = cursors.snapshot()
        self.save()
        self.doc = DocumentIO.load_document(self.path)
        cursors.restore(self.doc, snapshots)
        self.reopen_count += 1
        logger.info(f"已关闭并重新打开文档（第 {self.reopen_count} 次）")
        return self.doc
