"""样式解析.

每个样式角色有一个按优先级排列的候选样式名列表，最后一项为默认样式。
文档打开后，按文档中实际存在的样式为每个角色选出可用样式；默认样式若不存在则加入可用集合，
由调用方在文档中创建。解析器是一次生成过程的上下文对象，不是全局单例。
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from loguru import logger

from uml_docgen.config.settings import StyleConfig

MAX_LEVEL = 9

BUILTIN_NORMAL = "Normal"
BUILTIN_CAPTION = "Caption"
BUILTIN_HEADING = "Heading"
BUILTIN_TOC = "TOC"


class StyleRole(str, Enum):
    """样式角色."""

    PARA = "para"
    FIG = "fig"
    TABHEAD = "tabhead"
    TABCELL = "tabcell"
    FIGCAPT = "figcapt"
    TABCAPT = "tabcapt"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    H7 = "h7"
    H8 = "h8"
    H9 = "h9"
    TOC1 = "toc1"
    TOC2 = "toc2"
    TOC3 = "toc3"
    TOC4 = "toc4"
    TOC5 = "toc5"
    TOC6 = "toc6"
    TOC7 = "toc7"
    TOC8 = "toc8"
    TOC9 = "toc9"

    @classmethod
    def heading(cls, level: int) -> "StyleRole":
        return cls(f"h{min(max(level, 1), MAX_LEVEL)}")

    @classmethod
    def toc(cls, level: int) -> "StyleRole":
        return cls(f"toc{min(max(level, 1), MAX_LEVEL)}")

    @property
    def level(self) -> int:
        """标题或目录角色的级别，其他角色为 0."""
        digits = self.value[-1]
        return int(digits) if digits.isdigit() else 0


def _unique(names: Iterable[str]) -> List[str]:
    result = []
    for name in names:
        if name and name not in result:
            result.append(name)
    return result


class StyleResolver:
    """样式解析器."""

    def __init__(self) -> None:
        self._preferred: Dict[StyleRole, List[str]] = {}
        self._toc_prefixes: List[str] = []
        self._heading_prefixes: List[str] = []
        self._usable: Dict[StyleRole, str] = {}
        self.added_defaults: List[str] = []

    def init_preferred(self, config: StyleConfig) -> None:
        """记录每个角色的候选样式列表，内置样式追加为最后的默认项.

        Args:
            config: 样式配置
        """
        self._toc_prefixes = _unique(config.toc_prefixes + [BUILTIN_TOC])
        self._heading_prefixes = _unique(config.heading_prefixes + [BUILTIN_HEADING])
        self._preferred = {
            StyleRole.PARA: _unique(config.para + [BUILTIN_NORMAL]),
            StyleRole.FIG: _unique(config.fig + [BUILTIN_NORMAL]),
            StyleRole.TABHEAD: _unique(config.tabhead + [BUILTIN_NORMAL]),
            StyleRole.TABCELL: _unique(config.tabcell + [BUILTIN_NORMAL]),
            StyleRole.FIGCAPT: _unique(config.figcapt + [BUILTIN_CAPTION]),
            StyleRole.TABCAPT: _unique(config.tabcapt + [BUILTIN_CAPTION]),
        }
        for level in range(1, MAX_LEVEL + 1):
            self._preferred[StyleRole.heading(level)] = [f"{p} {level}" for p in self._heading_prefixes]
            self._preferred[StyleRole.toc(level)] = [f"{p} {level}" for p in self._toc_prefixes]

    def candidates(self, role: StyleRole) -> List[str]:
        return list(self._preferred.get(role, []))

    def init_usable(self, existing: Iterable[str]) -> Dict[StyleRole, str]:
        """按文档中已有的样式为每个角色选出可用样式.

        必须在文档打开之后调用。比较时忽略大小写，返回文档中的实际样式名。
        未找到任何候选时使用默认样式（候选列表最后一项），并记录到 ``added_defaults``。

        Args:
            existing: 文档中已有的段落样式名

        Returns:
            角色 -> 样式名
        """
        if not self._preferred:
            raise RuntimeError("必须先调用 init_preferred()")
        usable = {name.lower(): name for name in existing}
        resolved: Dict[StyleRole, str] = {}
        added: List[str] = []
        for role, names in self._preferred.items():
            match = next((usable[n.lower()] for n in names if n.lower() in usable), None)
            if match is None:
                match = names[-1]
                usable[match.lower()] = match
                added.append(match)
                logger.warning(f"样式角色 {role.value} 的候选样式 {names} 均不存在，使用默认样式 '{match}'")
            resolved[role] = match
        self._usable = resolved
        self.added_defaults = added
        return dict(resolved)

    def reset(self) -> None:
        """清除本次生成的样式状态."""
        self._usable = {}
        self.added_defaults = []

    @property
    def is_initialised(self) -> bool:
        return bool(self._usable)

    def get(self, role: StyleRole) -> str:
        if not self._usable:
            raise RuntimeError("样式尚未初始化，必须在文档打开后调用 init_usable()")
        return self._usable[role]

    def heading(self, level: int) -> str:
        return self.get(StyleRole.heading(level))

    def is_toc(self, style_name: Optional[str]) -> bool:
        """样式名是否属于目录样式."""
        if not style_name:
            return False
        name = style_name.lower()
        return any(name.startswith(prefix.lower()) for prefix in self._toc_prefixes)

    def heading_level(self, style_name: Optional[str]) -> int:
        """由 "<标题前缀> N" 形式的样式名得到标题级别，不是标题样式时返回 0."""
        if not style_name:
            return 0
        name = style_name.lower()
        for prefix in self._heading_prefixes:
            head = prefix.lower() + " "
            if name.startswith(head) and name[len(head):].isdigit():
                return int(name[len(head):])
        return 0

    def is_caption_style(self, style_name: Optional[str]) -> bool:
        """样式名是否为可识别的图题或表题样式."""
        if not style_name:
            return False
        name = style_name.lower()
        names = self._preferred.get(StyleRole.FIGCAPT, []) + self._preferred.get(StyleRole.TABCAPT, [])
        return any(name == n.lower() for n in names)

    def mapping(self) -> Dict[StyleRole, str]:
        return dict(self._usable)
