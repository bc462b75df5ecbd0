"""文档数据模块.

uml_docgen/data/
├── __init__.py
├── models.py              # 文档模型定义
├── placeholder/           # 占位符语法与检测
├── ranges.py              # 段落与文本区间
├── styles.py              # 样式解析
├── captions.py            # 已有题注扫描
├── cursors.py             # 占位符游标
├── bookmarks.py           # 书签登记
├── document_io.py         # 文档读写与会话
├── document_writer.py     # 底层文档写入
└── report_generator.py    # 报告生成
"""
