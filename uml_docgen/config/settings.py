"""项目配置设置."""

from dotenv import load_dotenv
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

# 先加载.env.example（最低优先级），再加载.env（覆盖前者），最后环境变量最高
load_dotenv(dotenv_path=Path(__file__).parent.parent.parent / '.env.example', override=False)
load_dotenv(dotenv_path=Path(__file__).parent.parent.parent / '.env', override=True)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class DocgenConfig(BaseModel):
    """文档生成配置."""

    analyse_placeholders: bool = Field(default_factory=lambda: _env_bool("DOCGEN_ANALYSE_PLACEHOLDERS", "false"))  # 仅分析占位符，不写入深层内容
    use_hyperlinks: bool = Field(default_factory=lambda: _env_bool("DOCGEN_USE_HYPERLINKS", "true"))  # 是否生成书签与超链接
    intro_to_figure_before: bool = Field(default_factory=lambda: _env_bool("DOCGEN_INTRO_TO_FIGURE_BEFORE", "true"))  # 图片引言放在图片之前
    save_reopen_every: int = Field(default_factory=lambda: int(os.environ.get("DOCGEN_SAVE_REOPEN_EVERY", "-1")))  # 每写入N个表格关闭并重新打开文档，<=0 表示禁用
    include_inheritance_path: bool = Field(default_factory=lambda: _env_bool("DOCGEN_INCLUDE_INHERITANCE_PATH", "true"))  # 类文档中是否输出继承路径
    show_namespace_packages: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_SHOW_NAMESPACE_PACKAGES", ""))  # 输出命名空间信息的包

    @property
    def deep(self) -> bool:
        """是否写入完整（递归）内容."""
        return not self.analyse_placeholders


class StyleConfig(BaseModel):
    """样式候选配置.

    每个角色一个按优先级排列的样式名列表，内置默认样式由样式解析器追加在最后。
    """

    toc_prefixes: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_TOC_PREFIXES", "TOC"))  # 目录样式前缀
    heading_prefixes: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_HEADING_PREFIXES", "Heading"))  # 标题样式前缀
    para: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_PARA", "PARAGRAPH"))  # 正文段落样式
    fig: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_FIG", "FIGURE"))  # 图片段落样式
    tabhead: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_TABHEAD", "TABLE-col-heading"))  # 表头样式
    tabcell: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_TABCELL", "TABLE-cell"))  # 表格单元格样式
    figcapt: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_FIGCAPT", "FIGURE-title"))  # 图题样式
    tabcapt: List[str] = Field(default_factory=lambda: _env_list("DOCGEN_STYLE_TABCAPT", "TABLE-title"))  # 表题样式


class DocumentConfig(BaseModel):
    """文档处理配置."""

    supported_formats: List[str] = Field(default_factory=lambda: _env_list("SUPPORTED_FORMATS", ".docx"))  # 支持的模板/输出格式
    app_name: str = Field(default_factory=lambda: os.environ.get("APP_NAME", "uml-docgen"))  # 写入文档属性的工具名称


class LogConfig(BaseModel):
    """日志配置."""

    level: str = Field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))  # 日志级别
    # 精简日志格式
    format: str = Field(default_factory=lambda: os.environ.get("LOG_FORMAT", "<level>{level: <8}</level>| - <level>{message}</level>"))
    log_file: Optional[str] = Field(default_factory=lambda: os.environ.get("LOG_FILE") or None)  # 日志文件名，为空时使用 <APP_NAME>.log
    rotation: str = Field(default_factory=lambda: os.environ.get("LOG_ROTATION", "10 MB"))  # 日志轮转大小
    retention: str = Field(default_factory=lambda: os.environ.get("LOG_RETENTION", "1 week"))  # 日志保留时间


class Settings(BaseModel):
    """项目全局设置."""

    docgen: DocgenConfig = Field(default_factory=DocgenConfig)  # 文档生成相关配置
    styles: StyleConfig = Field(default_factory=StyleConfig)  # 样式相关配置
    document: DocumentConfig = Field(default_factory=DocumentConfig)  # 文档处理相关配置
    log: LogConfig = Field(default_factory=LogConfig)  # 日志相关配置

    # 项目路径配置
    project_dir: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)  # 项目根目录
    output_dir: Path = Field(default_factory=lambda: Path(os.environ.get("OUTPUT_DIR", str(Path(__file__).parent.parent.parent / "output"))))  # 输出目录


# 单例模式，避免多次实例化
_settings = None
def get_settings():
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

settings = get_settings()

# 确保输出目录存在
settings.output_dir.mkdir(exist_ok=True, parents=True)
