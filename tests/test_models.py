"""文档模型测试."""

import json

import pytest

from uml_docgen.data.models import (
    DocumentationModel,
    EntryDoc,
    EntryKind,
    PackageDoc,
    PropertiesDoc,
)


def test_load_resolves_relative_paths(tmp_path):
    model_path = tmp_path / "model.json"
    model_path.write_text(json.dumps({
        "diagram_files": {"Core.Overview": "img/overview.png"},
        "package_docs": {
            "Core": {
                "package_name": "Core",
                "figure_docs": [{"figure_file": "img/core.png", "caption_text": "Core"}],
                "class_docs": [{"heading_text": "Terminal"}],
            }
        },
    }), encoding="utf-8")

    model = DocumentationModel.load(model_path)

    assert model.model_file_name == "model.json"
    assert model.diagram_files["Core.Overview"] == tmp_path / "img/overview.png"
    package = model.package_docs["Core"]
    assert package.figure_docs[0].figure_file == tmp_path / "img/core.png"
    assert package.heading_text == "Core"
    assert package.gen_heading_text == "General"


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DocumentationModel.load(tmp_path / "missing.json")


def test_properties_doc_shape():
    doc = PropertiesDoc(entries=[
        EntryDoc(values=["Attributes of Terminal"], kind=EntryKind.TABLE_NAME),
        EntryDoc(values=["name", "type", "description"], kind=EntryKind.COLUMN_LABELS),
        EntryDoc(values=["connected", "boolean"], bookmark_id="UML3"),
    ])

    assert doc.row_count == 3
    assert doc.column_count == 3
    assert doc.cell_values[2] == ["connected", "boolean", ""]
    assert doc.row_kinds[0] == EntryKind.TABLE_NAME
    assert doc.bookmark_ids == [None, None, "UML3"]
    assert doc.not_empty()
    assert not PropertiesDoc(entries=doc.entries[:2]).not_empty()


def test_nested_packages():
    doc = PackageDoc(package_name="Root", child_package_docs=[{"package_name": "Child"}])

    assert doc.child_package_docs[0].heading_text == "Child"
