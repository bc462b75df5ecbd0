"""文档写入器测试."""

import pytest
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from lxml import etree

from uml_docgen.data.bookmarks import BookmarkRegistry
from uml_docgen.data.captions import CaptionKind
from uml_docgen.data.document_writer import DocumentWriter, html_blocks
from uml_docgen.data.models import EntryDoc, EntryKind, PropertiesDoc, TextDescription, TextKind
from uml_docgen.data.ranges import DocRange, paragraph_full_text
from uml_docgen.data.styles import StyleResolver, StyleRole


@pytest.fixture
def doc():
    return Document()


@pytest.fixture
def writer(doc, style_config):
    styles = StyleResolver()
    styles.init_preferred(style_config)
    writer = DocumentWriter(doc, styles)
    styles.init_usable(writer.existing_style_names())
    return writer


def _custom_properties(doc) -> dict:
    part = next(
        rel.target_part for rel in doc.part.package.rels.values() if rel.reltype == RT.CUSTOM_PROPERTIES
    )
    root = etree.fromstring(part.blob)
    return {prop.get("name"): prop[0].text for prop in root}


def test_html_blocks():
    assert html_blocks("<p>One</p><p>Two <b>bold</b></p>") == ["One", "Two bold"]
    assert html_blocks("<ul><li>a</li><li>b</li></ul>") == ["a", "b"]
    assert html_blocks("plain text") == ["plain text"]
    assert html_blocks("   ") == []


def test_append_text_by_kind(doc, writer):
    anchor = doc.add_paragraph("anchor")
    rng = DocRange(anchor)

    writer.append_text(rng, TextDescription(text="one\ntwo", kind=TextKind.TEXT_WITH_NL), "PARAGRAPH")
    writer.append_text(rng, TextDescription(text="<p>html</p>", kind=TextKind.HTML_SNIPPET), "PARAGRAPH")
    last = writer.append_text(rng, TextDescription(text="", kind=TextKind.HTML_SNIPPET), "PARAGRAPH")

    assert last is None
    paragraphs = doc.paragraphs[-4:]
    assert [p.text for p in paragraphs] == ["anchor", "one", "two", "html"]
    assert paragraphs[1].style.name == "PARAGRAPH"
    assert rng.tail is paragraphs[3]._p


def test_outline_level(doc, writer):
    heading = doc.add_paragraph("H", style="Heading 2")
    body = doc.add_paragraph("body")
    explicit = doc.add_paragraph("explicit")
    lvl = OxmlElement("w:outlineLvl")
    lvl.set(qn("w:val"), "2")
    explicit._p.get_or_add_pPr().append(lvl)

    assert writer.outline_level(heading) == 2
    assert writer.outline_level(body) == 1
    assert writer.outline_level(explicit) == 3


def test_missing_heading_style_is_created(doc, style_config):
    styles = StyleResolver()
    styles.init_preferred(style_config.model_copy(update={"heading_prefixes": ["Level"]}))
    writer = DocumentWriter(doc, styles)

    paragraph = doc.add_paragraph("deep")
    writer.apply_style(paragraph, "Level 4")

    lvl = doc.styles["Level 4"].element.pPr.find(qn("w:outlineLvl"))
    assert lvl.get(qn("w:val")) == "3"
    assert writer.outline_level(paragraph) == 4


def test_caption_and_reference(doc, writer):
    intro = doc.add_paragraph("shows the overview.")
    picture = doc.add_paragraph("")

    caption, ref_name = writer.insert_caption_after(picture._p, CaptionKind.FIGURE, 3, "Overview", "FIGURE-title")
    writer.insert_caption_ref(intro, CaptionKind.FIGURE, 3, ref_name, " ")

    assert paragraph_full_text(caption._p) == "Figure 3 – Overview"
    assert caption.style.name == "FIGURE-title"
    assert paragraph_full_text(intro._p) == "Figure 3 shows the overview."
    instructions = [el.get(qn("w:instr")) for el in doc.element.body.iter(qn("w:fldSimple"))]
    assert f" REF {ref_name} \\h " in instructions
    assert " SEQ Figure \\* ARABIC " in instructions
    names = [el.get(qn("w:name")) for el in doc.element.body.iter(qn("w:bookmarkStart"))]
    assert names == [ref_name]


def test_insert_table_after(doc, writer):
    anchor = doc.add_paragraph("intro")
    registry = BookmarkRegistry()
    props = PropertiesDoc(caption_text="Attributes", entries=[
        EntryDoc(values=["Attributes of Terminal"], kind=EntryKind.TABLE_NAME),
        EntryDoc(values=["name", "type"], kind=EntryKind.COLUMN_LABELS),
        EntryDoc(values=["Inherited from IdentifiedObject"], kind=EntryKind.GROUP_SUBHEAD),
        EntryDoc(values=["connected", "boolean"], bookmark_id="UML7"),
    ])

    table = writer.insert_table_after(anchor._p, props, registry)

    assert anchor._p.getnext() is table._tbl
    assert len(table.rows) == 4
    assert table.rows[0].cells[0]._tc is table.rows[0].cells[1]._tc
    assert table.rows[0].cells[0].text == "Attributes of Terminal"
    assert table.rows[3].cells[1].text == "boolean"
    headers = [row._tr.trPr is not None and row._tr.trPr.find(qn("w:tblHeader")) is not None for row in table.rows]
    assert headers == [True, True, False, False]
    assert table.rows[1].cells[0].paragraphs[0].style.name == writer.styles.get(StyleRole.TABHEAD)
    assert table.rows[3].cells[0].paragraphs[0].style.name == writer.styles.get(StyleRole.TABCELL)
    assert registry.is_available_in_document("UML7")
    names = [el.get(qn("w:name")) for el in table._tbl.iter(qn("w:bookmarkStart"))]
    assert names == ["UML7"]


def test_insert_hyperlink(doc, writer):
    paragraph = doc.add_paragraph("see ")
    run = paragraph.add_run("Terminal")._r

    writer.insert_hyperlink(paragraph, run, "UML1")

    hyperlinks = list(doc.element.body.iter(qn("w:hyperlink")))
    assert len(hyperlinks) == 1
    assert hyperlinks[0].get(qn("w:anchor")) == "UML1"
    assert run.getparent() is hyperlinks[0]
    assert paragraph_full_text(paragraph._p) == "see Terminal"


def test_custom_properties_created_and_updated(doc, writer, tmp_path):
    writer.set_custom_properties({"uml": "model.eap", "tool": "uml-docgen 0.1.0"})
    writer.set_custom_properties({"uml": "other.eap"})

    assert _custom_properties(doc) == {"uml": "other.eap", "tool": "uml-docgen 0.1.0"}

    path = tmp_path / "props.docx"
    doc.save(str(path))
    assert _custom_properties(Document(str(path)))["uml"] == "other.eap"


def test_request_field_update_once(doc, writer):
    writer.request_field_update()
    writer.request_field_update()

    settings = doc.settings.element
    updates = settings.findall(qn("w:updateFields"))
    assert len(updates) == 1
    assert updates[0].get(qn("w:val")) == "true"
    compat = settings.find(qn("w:compat"))
    if compat is not None:
        assert list(settings).index(updates[0]) < list(settings).index(compat)


def test_append_paragraphs_returns_all(doc, writer):
    rng = DocRange(doc.add_paragraph("anchor"))

    paragraphs = writer.append_paragraphs(rng, TextDescription(text="one\ntwo", kind=TextKind.TEXT_WITH_NL), "PARAGRAPH")
    empty = writer.append_paragraphs(rng, TextDescription(text="<p></p>", kind=TextKind.HTML_SNIPPET), "PARAGRAPH")

    assert [p.text for p in paragraphs] == ["one", "two"]
    assert empty == []
    assert rng.tail is paragraphs[1]._p
