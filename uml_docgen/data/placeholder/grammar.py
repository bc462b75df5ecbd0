"""占位符语法.

内容占位符由模板作者书写，形如 ``startUml<Kind>.<tok1>[.<tok2>].endUml``；
超链接占位符只由生成过程本身写入，形如 ``aaù<显示文本>ù<书签ID>ùdd``，
在第二遍扫描中被替换。
"""

import re
from enum import Enum
from typing import List, Optional, Tuple

START_UML = "startUml"
END_UML = "endUml"
SEPARATOR = "."

HL_START = "aa"
HL_SEP = "ù"
HL_END = "dd"

# 与 Word 通配符 startUml[ACDFILTPS]*.*.endUml 等价的正则
CONTENT_PATTERN = re.compile(r"startUml[ACDFILTPS].*?\..*?\.endUml")
HYPERLINK_PATTERN = re.compile(r"aaù[^ù]*ù[^ù]*ùdd")

TOKEN_ERROR_TEXT = "Null or empty token"
PLACEHOLDER_ERROR_TEXT = "Unrecognised placeholder"
NOT_IN_MODEL_ERROR_TEXT = " not found in model"


class PlaceholderKind(Enum):
    """占位符类型，值为 (名称, 令牌个数)."""

    FILE = ("File", 0)
    ATTRIBUTE = ("Attribute", 2)
    IEC_NSNAME = ("Iec61850NsName", 1)
    DIAGRAM = ("Diagram", 2)
    DIAG_NOTE = ("DiagNote", 2)
    PRES_CONDITIONS = ("PresenceConditions", 1)
    FCS = ("FCs", 1)
    TRGOPS = ("TrgOps", 1)
    ABBREVIATIONS = ("Abbreviations", 1)
    SCL_ENUMS = ("SclEnums", 1)
    PACKAGE = ("Package", 1)
    CLASS = ("Class", 2)
    LNMAP_PACKAGE = ("LNMapPackage", 1)
    DATA_INDEX = ("DataIndex", 1)
    HYPERLINK = ("", 2)
    UNSUPPORTED = ("", 0)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def token_count(self) -> int:
        return self.value[1]

    @property
    def prefix(self) -> str:
        return START_UML + self.label

    @property
    def is_for_heading(self) -> bool:
        """该类占位符所在段落是否为标题."""
        return self in HEADING_KINDS

    @property
    def is_package_kind(self) -> bool:
        """是否按包名解析."""
        return self in PACKAGE_KINDS


HEADING_KINDS = frozenset([
    PlaceholderKind.PACKAGE,
    PlaceholderKind.CLASS,
    PlaceholderKind.PRES_CONDITIONS,
    PlaceholderKind.FCS,
    PlaceholderKind.TRGOPS,
    PlaceholderKind.SCL_ENUMS,
    PlaceholderKind.LNMAP_PACKAGE,
    PlaceholderKind.DATA_INDEX,
])

PACKAGE_KINDS = frozenset([
    PlaceholderKind.PRES_CONDITIONS,
    PlaceholderKind.FCS,
    PlaceholderKind.TRGOPS,
    PlaceholderKind.ABBREVIATIONS,
    PlaceholderKind.SCL_ENUMS,
    PlaceholderKind.PACKAGE,
    PlaceholderKind.LNMAP_PACKAGE,
    PlaceholderKind.DATA_INDEX,
])

# 作者可书写的内容占位符类型
CONTENT_KINDS = [
    kind for kind in PlaceholderKind
    if kind not in (PlaceholderKind.HYPERLINK, PlaceholderKind.UNSUPPORTED)
]
_KINDS_BY_PREFIX = {kind.prefix: kind for kind in CONTENT_KINDS}


class Placeholder:
    """解析后的占位符.

    解析后类型和令牌不再变化；``error_text`` 在解析失败时立即设置，
    或在模型中查找不到目标时延迟设置；``replaced_text`` 记录实际写入的文本。
    """

    def __init__(
        self,
        text: str,
        kind: PlaceholderKind,
        tokens: Tuple[str, ...] = (),
        error_text: Optional[str] = None,
    ):
        self.text = text
        self.kind = kind
        self.tokens = tokens
        self.error_text = error_text
        self.replaced_text: Optional[str] = None

    @property
    def first_token(self) -> Optional[str]:
        return self.tokens[0] if len(self.tokens) > 0 else None

    @property
    def second_token(self) -> Optional[str]:
        return self.tokens[1] if len(self.tokens) > 1 else None

    @property
    def qualified_name(self) -> str:
        """令牌以点号连接，如 'Terminal.name'."""
        return SEPARATOR.join(self.tokens)

    def update_model_error_text(self) -> str:
        """标记模型中未找到目标，返回诊断文本."""
        self.error_text = f"$ERROR {self}{NOT_IN_MODEL_ERROR_TEXT}$"
        return self.error_text

    def __str__(self) -> str:
        if self.tokens:
            return f"{self.kind.name} {self.qualified_name}"
        return self.kind.name

    def __repr__(self) -> str:
        return (
            f"Placeholder(text='{self.text}', kind={self.kind.name}, "
            f"tokens={list(self.tokens)}, error_text={self.error_text!r})"
        )


def _is_null_or_empty(token: Optional[str]) -> bool:
    return token is None or token == "null" or token == ""


def _format_error(text: str, error: str) -> str:
    return f"$ERROR {text}: {error}$"


def _split_tokens(text: str, separator: str) -> List[str]:
    parts = text.split(separator)
    return parts[1:-1]


def parse(text: str) -> Placeholder:
    """解析内容占位符或超链接占位符文本.

    Args:
        text: 在模板中匹配到的文本

    Returns:
        占位符；无法识别时类型为 UNSUPPORTED 并带有诊断文本
    """
    if text.startswith(HL_START + HL_SEP):
        return parse_hyperlink(text)

    head = text.split(SEPARATOR, 1)[0]
    kind = _KINDS_BY_PREFIX.get(head)
    if kind is None or not text.endswith(SEPARATOR + END_UML):
        return Placeholder(text, PlaceholderKind.UNSUPPORTED, (), _format_error(text, PLACEHOLDER_ERROR_TEXT))

    if kind == PlaceholderKind.FILE:
        return Placeholder(text, kind)

    tokens = _split_tokens(text, SEPARATOR)
    if len(tokens) != kind.token_count or any(_is_null_or_empty(t) for t in tokens):
        return Placeholder(text, kind, tuple(tokens), _format_error(text, TOKEN_ERROR_TEXT))
    return Placeholder(text, kind, tuple(tokens))


def parse_hyperlink(text: str) -> Placeholder:
    """解析超链接占位符（显示文本 + 书签ID）."""
    tokens = _split_tokens(text, HL_SEP)
    kind = PlaceholderKind.HYPERLINK
    if len(tokens) != 2 or any(_is_null_or_empty(t) for t in tokens):
        return Placeholder(text, kind, tuple(tokens), _format_error(text, TOKEN_ERROR_TEXT))
    return Placeholder(text, kind, tuple(tokens))


def construct(kind: PlaceholderKind, *tokens: str) -> str:
    """构造内容占位符文本."""
    if kind == PlaceholderKind.FILE:
        return kind.prefix + SEPARATOR + SEPARATOR + END_UML
    return SEPARATOR.join([kind.prefix, *tokens, END_UML])


def construct_hyperlink(display_text: str, bookmark_id: str) -> str:
    """构造内部超链接占位符文本."""
    return HL_SEP.join([HL_START, display_text, bookmark_id, HL_END])


def supported_formats() -> List[str]:
    """返回全部支持的占位符格式示例."""
    return [
        construct(PlaceholderKind.FILE),
        construct(PlaceholderKind.ATTRIBUTE, "className", "attrName"),
        construct(PlaceholderKind.IEC_NSNAME, "className"),
        construct(PlaceholderKind.DIAGRAM, "containerName", "diagName"),
        construct(PlaceholderKind.DIAG_NOTE, "containerName", "diagName"),
        construct(PlaceholderKind.PRES_CONDITIONS, "pckName"),
        construct(PlaceholderKind.FCS, "pckName"),
        construct(PlaceholderKind.TRGOPS, "pckName"),
        construct(PlaceholderKind.ABBREVIATIONS, "pckName"),
        construct(PlaceholderKind.SCL_ENUMS, "pckName"),
        construct(PlaceholderKind.PACKAGE, "pckName"),
        construct(PlaceholderKind.CLASS, "pckName", "className"),
        construct(PlaceholderKind.LNMAP_PACKAGE, "pckName"),
        construct(PlaceholderKind.DATA_INDEX, "pckName"),
        construct_hyperlink("umlObjectName", "bookmarkID"),
    ]
