"""
CovidSpread 日志系统

基于 loguru 的统一日志管理
- 控制台：彩色输出，级别由配置或命令行 --verbose 决定
- 文件：按天轮转的运行日志 + 单独的错误日志（LOG_TO_FILE=false 时关闭）
"""

import sys
from typing import Optional

from loguru import logger

from .config import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"

# 全局标记，避免重复初始化
_logging_initialized = False


def setup_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    配置日志系统

    Args:
        level: 覆盖配置中的日志级别
        force: 已初始化时也重新配置（命令行调整级别时使用）
    """
    global _logging_initialized

    if _logging_initialized and not force:
        return

    config = get_config()
    level = (level or config.log_level).upper()

    logger.remove()
    # 未通过 get_logger 绑定名称的日志使用模块名
    logger.configure(patcher=lambda record: record["extra"].setdefault("name", record["name"]))

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=config.is_development,
    )

    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            config.log_dir / "covidspread_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level=level,
            rotation="00:00",
            retention="30 days",
            compression="zip",
        )

        # 错误日志单独记录，包含异常堆栈
        logger.add(
            config.log_dir / "covidspread_error_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT + "\n{exception}",
            level="ERROR",
            rotation="00:00",
            retention="90 days",
            compression="zip",
            backtrace=True,
        )

    _logging_initialized = True
    logger.debug(f"Logging ready - level {level}, log files {'on' if config.log_to_file else 'off'}")


def get_logger(name: str):
    """
    获取logger实例

    Args:
        name: logger名称，通常使用 __name__

    Returns:
        绑定了名称的logger实例
    """
    if not _logging_initialized:
        setup_logging()
    return logger.bind(name=name)
