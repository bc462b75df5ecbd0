"""测试公共夹具."""

import struct
import zlib
from pathlib import Path
from typing import List, Tuple, Union

import pytest
from docx import Document
from docx.enum.style import WD_STYLE_TYPE

from uml_docgen.config.settings import DocgenConfig, StyleConfig
from uml_docgen.data.models import DocumentationModel
from uml_docgen.service.model_finder import DocumentationModelFinder


def _png_bytes(width: int = 4, height: int = 3) -> bytes:
    def chunk(tag: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(tag + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)

    raw = b"".join(b"\x00" + b"\xff\x00\x00" * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))
        + chunk(b"IDAT", zlib.compress(raw))
        + chunk(b"IEND", b"")
    )


def ensure_style(doc, name: str) -> None:
    """模板中没有该段落样式时创建."""
    try:
        doc.styles[name]
    except KeyError:
        doc.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)


Item = Union[str, Tuple[str, str]]


@pytest.fixture
def png_file(tmp_path) -> Path:
    """一个真实的 PNG 图片文件."""
    path = tmp_path / "diagram.png"
    path.write_bytes(_png_bytes())
    return path


@pytest.fixture
def make_template(tmp_path):
    """按 (文本, 样式) 列表创建 docx 模板."""

    def _make(items: List[Item], name: str = "template.docx") -> Path:
        doc = Document()
        for item in items:
            text, style = (item, None) if isinstance(item, str) else item
            if style:
                ensure_style(doc, style)
            doc.add_paragraph(text, style=style)
        path = tmp_path / name
        doc.save(str(path))
        return path

    return _make


@pytest.fixture
def style_config() -> StyleConfig:
    return StyleConfig(
        toc_prefixes=["TOC"],
        heading_prefixes=["Heading"],
        para=["PARAGRAPH"],
        fig=["FIGURE"],
        tabhead=["TABLE-col-heading"],
        tabcell=["TABLE-cell"],
        figcapt=["FIGURE-title"],
        tabcapt=["TABLE-title"],
    )


@pytest.fixture
def make_config():
    """生成配置，不受环境变量影响."""

    def _make(**overrides) -> DocgenConfig:
        values = dict(
            analyse_placeholders=False,
            use_hyperlinks=True,
            intro_to_figure_before=True,
            save_reopen_every=-1,
            include_inheritance_path=True,
            show_namespace_packages=[],
        )
        values.update(overrides)
        return DocgenConfig(**values)

    return _make


@pytest.fixture
def make_finder():
    def _make(**fields) -> DocumentationModelFinder:
        fields.setdefault("model_file_name", "model.eap")
        return DocumentationModelFinder(DocumentationModel(**fields))

    return _make
