"""文档模型：由模型构建流程产生、供文档生成只读使用的数据."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TextKind(str, Enum):
    """文本类型."""

    TEXT_NO_NL = "textNoNL"
    TEXT_WITH_NL = "textWithNL"
    HTML_SNIPPET = "htmlSnippet"


class TextDescription(BaseModel):
    """带格式说明的文本."""

    text: str = Field(default="", description="文本内容")
    kind: TextKind = Field(default=TextKind.TEXT_NO_NL, description="文本类型")

    def is_empty(self) -> bool:
        return not self.text.strip()


class FigureDoc(BaseModel):
    """图片文档."""

    intro_text: str = Field(default="", description="引出图片的文本，如 'shows class diagram X.'")
    figure_file: Optional[Path] = Field(default=None, description="图片文件")
    caption_text: str = Field(default="", description="图题文本")
    description: TextDescription = Field(default_factory=TextDescription, description="图片说明")


class EntryKind(str, Enum):
    """表格行类型."""

    TABLE_NAME = "tableName"
    COLUMN_LABELS = "columnLabels"
    GROUP_SUBHEAD = "groupSubhead"
    DATA = "data"


class EntryDoc(BaseModel):
    """表格中的一行."""

    values: List[str] = Field(default_factory=list, description="单元格值")
    kind: EntryKind = Field(default=EntryKind.DATA, description="行类型")
    bookmark_id: Optional[str] = Field(default=None, description="该行对应的书签ID")


class PropertiesDoc(BaseModel):
    """属性表格文档（属性、关联端、操作、数据索引等）."""

    heading_text: str = Field(default="", description="标题文本")
    description: TextDescription = Field(default_factory=TextDescription, description="说明")
    intro_text: str = Field(default="", description="引出表格的文本")
    caption_text: str = Field(default="", description="表题文本")
    entries: List[EntryDoc] = Field(default_factory=list, description="表格行")

    @property
    def row_count(self) -> int:
        return len(self.entries)

    @property
    def column_count(self) -> int:
        return max((len(entry.values) for entry in self.entries), default=0)

    @property
    def cell_values(self) -> List[List[str]]:
        """补齐为矩形的单元格值."""
        cols = self.column_count
        return [entry.values + [""] * (cols - len(entry.values)) for entry in self.entries]

    @property
    def row_kinds(self) -> List[EntryKind]:
        return [entry.kind for entry in self.entries]

    @property
    def bookmark_ids(self) -> List[Optional[str]]:
        return [entry.bookmark_id for entry in self.entries]

    def not_empty(self) -> bool:
        """是否存在数据行."""
        return any(entry.kind == EntryKind.DATA for entry in self.entries)


class SclDoc(BaseModel):
    """SCL 枚举 XML 文档."""

    heading_text: str = Field(default="", description="标题文本")
    xml_text: str = Field(default="", description="XML 内容")


class ClassDoc(BaseModel):
    """类文档."""

    heading_text: str = Field(..., description="标题文本")
    bookmark_id: Optional[str] = Field(default=None, description="超链接目标书签ID")
    inheritance_path: TextDescription = Field(default_factory=TextDescription, description="继承路径")
    description: TextDescription = Field(default_factory=TextDescription, description="说明")
    diagram_docs: List[FigureDoc] = Field(default_factory=list, description="类图")
    attributes_doc: PropertiesDoc = Field(default_factory=PropertiesDoc, description="属性表")
    assoc_ends_doc: PropertiesDoc = Field(default_factory=PropertiesDoc, description="关联端表")
    operations_doc: PropertiesDoc = Field(default_factory=PropertiesDoc, description="操作表")


class PackageDoc(BaseModel):
    """包文档."""

    package_name: str = Field(..., description="包名")
    heading_text: str = Field(default="", description="标题文本")
    gen_heading_text: str = Field(default="General", description="概述小节标题")
    ns_uri_and_prefix: TextDescription = Field(default_factory=TextDescription, description="命名空间信息")
    description: TextDescription = Field(default_factory=TextDescription, description="说明")
    figure_docs: List[FigureDoc] = Field(default_factory=list, description="包图")
    class_docs: List[ClassDoc] = Field(default_factory=list, description="包内的类")
    child_package_docs: List["PackageDoc"] = Field(default_factory=list, description="子包")

    data_index_doc: Optional[PropertiesDoc] = None
    ln_map_package_doc: Optional[PropertiesDoc] = None
    pres_cond_package_doc: Optional[PropertiesDoc] = None
    fc_package_doc: Optional[PropertiesDoc] = None
    trg_op_package_doc: Optional[PropertiesDoc] = None
    abbr_package_doc: Optional[PropertiesDoc] = None
    enums_scl: Optional[SclDoc] = None

    def model_post_init(self, __context) -> None:
        if not self.heading_text:
            self.heading_text = self.package_name


PackageDoc.model_rebuild()


class DocumentationModel(BaseModel):
    """完整的文档模型，可从 JSON 文件加载."""

    model_config = ConfigDict(protected_namespaces=())

    model_file_name: str = Field(default="", description="源模型文件名")
    attribute_values: Dict[str, str] = Field(default_factory=dict, description="'类名.属性名' -> 属性值")
    iec61850_ns_names: Dict[str, str] = Field(default_factory=dict, description="类名 -> 命名空间名称")
    diagram_files: Dict[str, Path] = Field(default_factory=dict, description="'所有者.图名' -> 图片文件")
    diagram_notes: Dict[str, TextDescription] = Field(default_factory=dict, description="'所有者.图名' -> 图注")
    package_docs: Dict[str, PackageDoc] = Field(default_factory=dict, description="包名 -> 包文档")
    class_docs: Dict[str, ClassDoc] = Field(default_factory=dict, description="'包名.类名' -> 类文档")

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> "DocumentationModel":
        """从 JSON 文件加载文档模型.

        Args:
            file_path: JSON 文件路径

        Returns:
            文档模型

        Raises:
            FileNotFoundError: 文件不存在
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"模型文件不存在: {file_path}")
        model = cls.model_validate_json(file_path.read_text(encoding="utf-8"))
        # 相对路径的图片以模型文件所在目录为基准
        base = file_path.parent
        model.diagram_files = {
            key: (path if path.is_absolute() else base / path)
            for key, path in model.diagram_files.items()
        }
        for package_doc in model.package_docs.values():
            _resolve_package_figures(package_doc, base)
        for class_doc in model.class_docs.values():
            _resolve_figures(class_doc.diagram_docs, base)
        if not model.model_file_name:
            model.model_file_name = file_path.name
        return model


def _resolve_figures(figure_docs: List[FigureDoc], base: Path) -> None:
    for figure_doc in figure_docs:
        if figure_doc.figure_file is not None and not figure_doc.figure_file.is_absolute():
            figure_doc.figure_file = base / figure_doc.figure_file


def _resolve_package_figures(package_doc: PackageDoc, base: Path) -> None:
    _resolve_figures(package_doc.figure_docs, base)
    for class_doc in package_doc.class_docs:
        _resolve_figures(class_doc.diagram_docs, base)
    for child in package_doc.child_package_docs:
        _resolve_package_figures(child, base)
