"""报告生成器."""

from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from uml_docgen.data.cursors import CursorList
from uml_docgen.data.placeholder import supported_formats


class ReportGenerator:
    """报告生成器."""

    def generate_report(
        self,
        cursors: CursorList,
        output_path: Union[str, Path],
        document_path: Optional[Union[str, Path]] = None,
        failures: Optional[List[str]] = None,
    ) -> None:
        """生成处理报告.

        Args:
            cursors: 内容占位符游标列表
            output_path: 报告文件路径
            document_path: 生成的文档路径
            failures: 替换失败列表，默认取自游标列表
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        failures = cursors.get_replacement_failures() if failures is None else failures

        with open(output_path, "w", encoding="utf-8") as f:
            f.write("# UML文档生成报告\n\n")
            if document_path is not None:
                f.write(f"输出文档: {document_path}\n\n")
            f.write(f"总共处理 {len(cursors)} 个占位符，{len(failures)} 个替换失败\n\n")

            for cursor in cursors:
                ph = cursor.placeholder
                f.write(f"## 占位符 {cursor.index + 1}: {ph.text}\n\n")
                f.write(f"- 类型: {ph.kind.name}\n")
                if ph.tokens:
                    f.write(f"- 令牌: {ph.qualified_name}\n")
                f.write(f"- 替换文本: {ph.replaced_text if ph.replaced_text is not None else '未替换'}\n")
                f.write(f"- 图: 之前 {cursor.figure_count_before} 个，新增 {cursor.figures_added} 个\n")
                f.write(f"- 表: 之前 {cursor.table_count_before} 个，新增 {cursor.tables_added} 个\n")
                if ph.error_text:
                    f.write(f"- 诊断: `{ph.error_text}`\n")
                f.write("\n")

            if failures:
                f.write("## 替换失败\n\n")
                for failure in failures:
                    f.write(f"- `{failure}`\n")
                f.write("\n")

            f.write("## 支持的占位符格式\n\n")
            for fmt in supported_formats():
                f.write(f"- `{fmt}`\n")

        logger.info(f"已生成处理报告: {output_path}")
