"""UML文档生成应用."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from uml_docgen.app.writer import WordWriter, WriterInput
from uml_docgen.config.settings import DocgenConfig, settings
from uml_docgen.data.models import DocumentationModel
from uml_docgen.data.placeholder import supported_formats
from uml_docgen.data.report_generator import ReportGenerator
from uml_docgen.service.model_finder import DocumentationModelFinder


@dataclass
class ProcessResult:
    """处理结果."""

    output_path: str
    report_path: str
    placeholder_count: int
    success: bool
    failure_count: int = 0
    error_message: Optional[str] = None

    @property
    def report(self) -> str:
        """生成结果报告.

        Returns:
            结果报告字符串
        """
        if not self.success:
            return f"处理失败: {self.error_message}"

        return (
            f"处理成功!\n"
            f"- 总共处理了 {self.placeholder_count} 个占位符\n"
            f"- 替换失败 {self.failure_count} 个\n"
            f"- 输出文件: {self.output_path}\n"
            f"- 报告文件: {self.report_path}"
        )


class DocumentProcessor:
    """UML文档处理器."""

    def __init__(self, config: Optional[DocgenConfig] = None) -> None:
        """初始化UML文档处理器.

        Args:
            config: 文档生成配置，默认使用全局设置
        """
        self.config = config if config is not None else settings.docgen.model_copy()
        self.report_generator = ReportGenerator()
        logger.info("文档处理器已初始化")

    def process(self, template_path: str, model_path: str, output_path: str) -> ProcessResult:
        """由模板和文档模型生成Word文档.

        Args:
            template_path: 模板文件路径
            model_path: 文档模型 JSON 文件路径
            output_path: 输出文件路径

        Returns:
            处理结果
        """
        try:
            logger.info(f"开始生成文档: {template_path} + {model_path}")
            model = DocumentationModel.load(model_path)
            writer = WordWriter(WriterInput(
                template_path=Path(template_path),
                output_path=Path(output_path),
                finder=DocumentationModelFinder(model),
                config=self.config,
            ))
            cursors = writer.write()
            failures = writer.replacement_failures

            report_path = Path(output_path).with_suffix(".md")
            self.report_generator.generate_report(cursors, report_path, output_path, failures)

            if not cursors:
                logger.warning("模板中未找到任何占位符")
            logger.info("文档生成完成")
            return ProcessResult(
                output_path=output_path,
                report_path=str(report_path),
                placeholder_count=len(cursors),
                failure_count=len(failures),
                success=True,
            )

        except (OSError, ValueError) as e:
            logger.error(f"生成文档时发生错误: {e}")
            return ProcessResult(
                output_path=output_path,
                report_path="",
                placeholder_count=0,
                success=False,
                error_message=str(e),
            )


# 命令行接口
app = typer.Typer()


@app.command()
def generate(
    template_path: str = typer.Argument(..., help="Word模板路径"),
    model_path: str = typer.Argument(..., help="文档模型 JSON 文件路径"),
    output: str = typer.Option(None, help="输出Word文档路径，默认为'<模板名>_generated.docx'"),
    analyse: bool = typer.Option(False, "--analyse", help="只分析占位符，不写入包和类的完整内容"),
    hyperlinks: bool = typer.Option(True, "--hyperlinks/--no-hyperlinks", help="是否生成书签和超链接"),
    save_reopen_every: Optional[int] = typer.Option(None, help="每写入N个表格关闭并重新打开文档，<=0 表示禁用"),
) -> None:
    """用文档模型替换模板中的占位符，生成Word文档."""
    # 如果未指定输出路径，则使用默认路径
    if not output:
        template_file = Path(template_path)
        output = str(settings.output_dir / f"{template_file.stem}_generated{template_file.suffix}")

    config = settings.docgen.model_copy()
    config.analyse_placeholders = analyse
    config.use_hyperlinks = hyperlinks
    if save_reopen_every is not None:
        config.save_reopen_every = save_reopen_every

    processor = DocumentProcessor(config)
    result = processor.process(template_path, model_path, output)

    if result.success:
        typer.echo(typer.style(result.report, fg=typer.colors.GREEN))
    else:
        typer.echo(typer.style(result.report, fg=typer.colors.RED))
        raise typer.Exit(code=1)


@app.command()
def formats() -> None:
    """列出支持的占位符格式."""
    for fmt in supported_formats():
        typer.echo(fmt)


if __name__ == "__main__":
    app()
