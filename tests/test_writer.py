"""文档生成器生命周期测试."""

from unittest.mock import patch

import pytest
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml.ns import qn
from lxml import etree

from uml_docgen.app.writer import WordWriter, WriterInput, WriterState
from uml_docgen.data.document_io import UnsupportedInputFormatError, UnsupportedOutputFormatError
from uml_docgen.service.dispatcher import ContentDispatcher


@pytest.fixture
def make_writer(tmp_path, make_finder, make_config, style_config):
    def _make(template, output_name="out.docx", **config):
        return WordWriter(WriterInput(
            template_path=template,
            output_path=tmp_path / output_name,
            finder=make_finder(attribute_values={"Terminal.name": "T1"}),
            config=make_config(**config),
            style_config=style_config,
        ))

    return _make


def _custom_properties(doc) -> dict:
    part = next(
        rel.target_part for rel in doc.part.package.rels.values() if rel.reltype == RT.CUSTOM_PROPERTIES
    )
    return {prop.get("name"): prop[0].text for prop in etree.fromstring(part.blob)}


def test_missing_template(tmp_path, make_writer):
    writer = make_writer(tmp_path / "missing.docx")

    with pytest.raises(FileNotFoundError):
        writer.write()

    assert writer.state == WriterState.CREATED
    assert not (tmp_path / "out.docx").exists()


def test_unsupported_input_format(tmp_path, make_writer):
    template = tmp_path / "legacy.doc"
    template.write_bytes(b"\xd0\xcf\x11\xe0")

    with pytest.raises(UnsupportedInputFormatError):
        make_writer(template).write()
    assert not (tmp_path / "out.docx").exists()


def test_template_that_is_not_a_docx_package(tmp_path, make_writer):
    template = tmp_path / "broken.docx"
    template.write_bytes(b"not a zip at all")
    writer = make_writer(template)

    with pytest.raises(UnsupportedInputFormatError):
        writer.write()

    assert WriterState.DOC_OPEN not in writer.history
    assert writer.state == WriterState.CLOSED


def test_unsupported_output_format(make_template, make_writer):
    writer = make_writer(make_template(["text"]), output_name="out.pdf")

    with pytest.raises(UnsupportedOutputFormatError):
        writer.write()
    assert writer.state == WriterState.CREATED


def test_lifecycle_order(make_template, make_writer):
    writer = make_writer(make_template(["Name: startUmlAttribute.Terminal.name.endUml"]))

    writer.write()

    assert writer.history == [
        WriterState.CREATED,
        WriterState.TEMPLATE_COPIED,
        WriterState.APP_OPEN,
        WriterState.DOC_OPEN,
        WriterState.STYLES_DISCOVERED,
        WriterState.CAPTIONS_SCANNED,
        WriterState.PLACEHOLDERS_SCANNED,
        WriterState.CONTENT_WRITTEN,
        WriterState.HYPERLINKS_WRITTEN,
        WriterState.FIELDS_UPDATED,
        WriterState.CLOSED,
    ]
    assert not writer.styles.is_initialised


def test_lifecycle_without_hyperlinks(make_template, make_writer):
    writer = make_writer(make_template(["text"]), use_hyperlinks=False)

    writer.write()

    assert WriterState.HYPERLINKS_WRITTEN not in writer.history
    assert writer.history[-2:] == [WriterState.FIELDS_UPDATED, WriterState.CLOSED]


def test_zero_placeholders_keep_body(tmp_path, make_template, make_writer):
    template = make_template(["First paragraph", ("Heading", "Heading 1"), "Last paragraph"])
    writer = make_writer(template)

    cursors = writer.write()

    assert len(cursors) == 0
    before = etree.tostring(Document(str(template)).element.body)
    output = Document(str(tmp_path / "out.docx"))
    assert etree.tostring(output.element.body) == before
    assert _custom_properties(output) == {"uml": "model.eap", "tool": "uml-docgen 0.1.0"}
    assert len(output.settings.element.findall(qn("w:updateFields"))) == 1


def test_failure_during_content_still_saves(tmp_path, make_template, make_writer):
    writer = make_writer(make_template(["Name: startUmlAttribute.Terminal.name.endUml"]))

    with patch.object(ContentDispatcher, "write_all", side_effect=RuntimeError("boom")):
        cursors = writer.write()

    assert len(cursors) == 1
    assert writer.state == WriterState.CLOSED
    assert WriterState.FIELDS_UPDATED not in writer.history
    assert not writer.styles.is_initialised
    output = Document(str(tmp_path / "out.docx"))
    assert _custom_properties(output)["uml"] == "model.eap"


def test_write_by_test_is_read_only(tmp_path, make_template, make_writer):
    template = make_template(["Name: startUmlAttribute.Terminal.name.endUml"])
    writer = make_writer(template)
    seen = []

    cursors = writer.write_by_test(lambda w: seen.append(len(w.cursors)))

    assert seen == [1]
    assert cursors[0].placeholder.first_token == "Terminal"
    assert writer.state == WriterState.CLOSED
    assert (tmp_path / "out.docx").read_bytes() == template.read_bytes()


def test_write_by_test_reraises(make_template, make_writer):
    writer = make_writer(make_template(["text"]))

    def fail(_):
        raise RuntimeError("post processing failed")

    with pytest.raises(RuntimeError, match="post processing failed"):
        writer.write_by_test(fail)

    assert writer.state == WriterState.CLOSED
    assert not writer.styles.is_initialised
