"""日志配置模块."""

import sys
from pathlib import Path

from loguru import logger

from uml_docgen.config.settings import settings


def log_file_path() -> Path:
    """日志文件路径，未配置 LOG_FILE 时以应用名命名."""
    name = settings.log.log_file or f"{settings.document.app_name}.log"
    return settings.output_dir / name


def setup_logger() -> None:
    """配置日志系统.

    控制台输出生成进度；文件日志按应用名写入输出目录，便于和生成的文档、报告放在一起查看。
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=settings.log.format,
        level=settings.log.level,
        colorize=True,
    )

    log_path = log_file_path()
    logger.add(
        log_path,
        format=settings.log.format,
        level=settings.log.level,
        rotation=settings.log.rotation,
        retention=settings.log.retention,
        encoding="utf-8",
    )

    logger.info(f"{settings.document.app_name} 日志已初始化，级别：{settings.log.level}，日志文件：{log_path}")


def log_subtitle(title: str) -> None:
    """输出处理阶段分隔标题."""
    logger.info("-" * 20 + f" {title} " + "-" * 20)
