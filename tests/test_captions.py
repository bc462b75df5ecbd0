"""已有题注扫描测试."""

import pytest
from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from uml_docgen.data.captions import CaptionKind, collect_captions, fix_caption_labels
from uml_docgen.data.styles import StyleResolver


@pytest.fixture
def styles(style_config):
    resolver = StyleResolver()
    resolver.init_preferred(style_config)
    return resolver


def _simple_field(paragraph, instr: str, result: str) -> None:
    fld = OxmlElement("w:fldSimple")
    fld.set(qn("w:instr"), instr)
    r = OxmlElement("w:r")
    t = OxmlElement("w:t")
    t.text = result
    r.append(t)
    fld.append(r)
    paragraph._p.append(fld)


def test_fix_caption_labels_in_seq_and_toc_fields():
    doc = Document()
    caption = doc.add_paragraph("figure ")
    _simple_field(caption, " SEQ figure \\* ARABIC ", "1")
    tof = doc.add_paragraph()
    _simple_field(tof, ' TOC \\h \\z \\c "TABLE" ', "")
    normal = doc.add_paragraph()
    _simple_field(normal, " SEQ Figure \\* ARABIC ", "2")

    fixed = fix_caption_labels(doc)

    instructions = [el.get(qn("w:instr")) for el in doc.element.body.iter(qn("w:fldSimple"))]
    assert fixed == 2
    assert instructions == [
        " SEQ Figure \\* ARABIC ",
        ' TOC \\h \\z \\c "Table" ',
        " SEQ Figure \\* ARABIC ",
    ]


def test_collect_captions(make_template, styles):
    path = make_template([
        "Intro",
        ("Figure 1 – Existing figure", "FIGURE-title"),
        ("Table 1 – Existing table", "Caption"),
        ("Figure", "FIGURE-title"),
        ("Diagram 3 – unknown label", "Caption"),
        ("Figure 2 – not a caption style", "Normal"),
    ])

    captions = collect_captions(Document(str(path)), styles)

    assert len(captions[CaptionKind.FIGURE]) == 1
    assert len(captions[CaptionKind.TABLE]) == 1
    figure = captions[CaptionKind.FIGURE][0]
    assert figure.end == figure.start + len("Figure 1 – Existing figure")
    assert captions[CaptionKind.TABLE][0].start == figure.end + 1


def test_caption_kind_label():
    assert CaptionKind.FIGURE.looks_like_caption("Figure")
    assert not CaptionKind.TABLE.looks_like_caption("Figure")
