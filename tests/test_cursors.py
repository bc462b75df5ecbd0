"""题注计数与游标测试."""

from unittest.mock import MagicMock

import pytest
from docx import Document
from docx.enum.style import WD_STYLE_TYPE

from uml_docgen.data.captions import Caption, CaptionKind
from uml_docgen.data.cursors import CursorList, scan_placeholder_ranges
from uml_docgen.data.placeholder import ContentPlaceholderDetector
from uml_docgen.data.placeholder.base_detector import PlaceholderMatch
from uml_docgen.data.placeholder.grammar import parse
from uml_docgen.data.ranges import DocRange, paragraph_full_text
from uml_docgen.data.styles import StyleResolver


def _range(start: int, end: int) -> DocRange:
    return DocRange(MagicMock(), None, start, end)


def _caption(kind: CaptionKind, start: int, end: int) -> Caption:
    return Caption(kind, _range(start, end))


def _match(start: int, end: int) -> PlaceholderMatch:
    return PlaceholderMatch("startUmlFile..endUml", None, 0, 0, start, end)


def _scan(matches, captions):
    return scan_placeholder_ranges(matches, captions, make_range=lambda m: _range(m.start, m.end))


def test_counts_between_placeholders():
    """每个占位符之前的图表数 = 前一个占位符的计数 + 两者之间的题注."""
    captions = {
        CaptionKind.FIGURE: [
            _caption(CaptionKind.FIGURE, 0, 5),
            _caption(CaptionKind.FIGURE, 30, 40),
            _caption(CaptionKind.FIGURE, 100, 110),
        ],
        CaptionKind.TABLE: [_caption(CaptionKind.TABLE, 50, 60)],
    }
    cursors = _scan([_match(20, 25), _match(70, 80), _match(90, 95)], captions)

    assert [c.figure_count_before for c in cursors] == [1, 2, 2]
    assert [c.table_count_before for c in cursors] == [0, 1, 1]


def test_caption_touching_boundaries_is_counted():
    """题注恰好结束于占位符起点、或恰好开始于前一占位符终点时都计入."""
    captions = {
        CaptionKind.FIGURE: [
            _caption(CaptionKind.FIGURE, 10, 20),
            _caption(CaptionKind.FIGURE, 30, 35),
        ],
    }
    cursors = _scan([_match(20, 30), _match(40, 50)], captions)

    assert cursors[0].figure_count_before == 1
    assert cursors[1].figure_count_before == 2


def test_overlapping_caption_is_not_counted():
    captions = {CaptionKind.TABLE: [_caption(CaptionKind.TABLE, 15, 25)]}

    cursors = _scan([_match(20, 30)], captions)

    assert cursors[0].table_count_before == 0


def test_no_captions_no_matches():
    cursors = _scan([], {})

    assert len(cursors) == 0
    assert cursors.get_replacement_failures() == []


def test_caption_added_shifts_later_cursors():
    cursors = _scan([_match(0, 5), _match(10, 15), _match(20, 25)], {})

    first = cursors.caption_added(CaptionKind.FIGURE, cursors[1])
    second = cursors.caption_added(CaptionKind.FIGURE, cursors[1])
    table = cursors.caption_added(CaptionKind.TABLE, cursors[0])

    assert (first, second, table) == (1, 2, 1)
    assert cursors[0].figure_count_before == 0
    assert cursors[1].figures_added == 2
    assert cursors[2].figure_count_before == 2
    assert cursors[2].table_count_before == 1
    assert cursors[2].figure_count == 2


def test_caption_added_rejects_foreign_cursor():
    cursors = _scan([_match(0, 5)], {})
    other = _scan([_match(0, 5)], {})

    with pytest.raises(ValueError):
        cursors.caption_added(CaptionKind.FIGURE, other[0])
    with pytest.raises(ValueError):
        CursorList().caption_added(CaptionKind.FIGURE, other[0])


def test_replacement_failures_collects_diagnostics():
    cursors = scan_placeholder_ranges(
        [_match(0, 5), _match(10, 15)],
        {},
        make_range=lambda m: _range(m.start, m.end),
        parser=lambda text: parse("startUmlFoo.x.endUml"),
    )

    assert len(cursors.get_replacement_failures()) == 2


def test_scan_isolates_placeholder_runs(style_config):
    """跨多个 run 的占位符被合并到一个 run 中，且 TOC 段落中的占位符被跳过."""
    doc = Document()
    paragraph = doc.add_paragraph()
    paragraph.add_run("Value: startUml")
    paragraph.add_run("Attribute.Terminal.")
    paragraph.add_run("name.endUml done")
    toc = doc.add_paragraph()
    toc.add_run("startUmlFile..endUml")
    try:
        toc.style = doc.styles["TOC 1"]
    except KeyError:
        toc.style = doc.styles.add_style("TOC 1", WD_STYLE_TYPE.PARAGRAPH)

    styles = StyleResolver()
    styles.init_preferred(style_config)
    matches = ContentPlaceholderDetector(styles).detect(doc)
    cursors = scan_placeholder_ranges(matches, {})

    assert len(cursors) == 1
    cursor = cursors[0]
    assert cursor.range.get_text() == "startUmlAttribute.Terminal.name.endUml"
    assert cursor.range.end - cursor.range.start == len(cursor.range.get_text())

    cursor.range.set_text("T1")
    assert paragraph_full_text(paragraph._p) == "Value: T1 done"
