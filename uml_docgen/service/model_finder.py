"""模型查找服务：按占位符令牌在文档模型中查找内容."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from uml_docgen.data.models import ClassDoc, DocumentationModel, PackageDoc, TextDescription
from uml_docgen.data.placeholder.grammar import SEPARATOR


class ModelFinder(ABC):
    """模型查找接口.

    查找不到时返回 None，由调用方设置占位符的诊断文本。
    """

    @property
    @abstractmethod
    def model_file_name(self) -> str:
        """源模型文件名."""

    @abstractmethod
    def find_attribute_value(self, class_name: str, attr_name: str) -> Optional[str]:
        pass

    @abstractmethod
    def find_iec61850_ns_name(self, class_name: str) -> Optional[str]:
        pass

    @abstractmethod
    def find_diagram_file(self, owner_name: str, diagram_name: str) -> Optional[Path]:
        pass

    @abstractmethod
    def find_diagram_note(self, owner_name: str, diagram_name: str) -> Optional[TextDescription]:
        pass

    @abstractmethod
    def find_package_doc(self, package_name: str) -> Optional[PackageDoc]:
        pass

    @abstractmethod
    def find_class_doc(self, package_name: str, class_name: str) -> Optional[ClassDoc]:
        pass


class DocumentationModelFinder(ModelFinder):
    """基于已加载的文档模型的查找实现."""

    def __init__(self, model: DocumentationModel):
        self.model = model

    @property
    def model_file_name(self) -> str:
        return self.model.model_file_name

    def find_attribute_value(self, class_name: str, attr_name: str) -> Optional[str]:
        return self.model.attribute_values.get(_key(class_name, attr_name))

    def find_iec61850_ns_name(self, class_name: str) -> Optional[str]:
        return self.model.iec61850_ns_names.get(class_name)

    def find_diagram_file(self, owner_name: str, diagram_name: str) -> Optional[Path]:
        path = self.model.diagram_files.get(_key(owner_name, diagram_name))
        # 图片文件必须真实存在，否则视为模型中没有该图
        if path is None or not path.is_file():
            return None
        return path

    def find_diagram_note(self, owner_name: str, diagram_name: str) -> Optional[TextDescription]:
        return self.model.diagram_notes.get(_key(owner_name, diagram_name))

    def find_package_doc(self, package_name: str) -> Optional[PackageDoc]:
        return self.model.package_docs.get(package_name)

    def find_class_doc(self, package_name: str, class_name: str) -> Optional[ClassDoc]:
        return self.model.class_docs.get(_key(package_name, class_name))


def _key(first: str, second: str) -> str:
    return f"{first}{SEPARATOR}{second}"
