#!/usr/bin/env python3
"""
日志配置模块

所有模块的 logger 都挂在 "keykey_userdb" 之下, 由 CLI 在启动时统一设定。
stdout 留给 dump 的结果, 控制台日志一律写到 stderr。
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = 'keykey_userdb'

LOG_FORMAT = '[%(asctime)s] %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


def _has_file_handler(logger: logging.Logger, log_file: str) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in logger.handlers
    )


def setup_logger(
        name: str = ROOT_LOGGER_NAME,
        log_file: Optional[str] = None,
        level: int = logging.INFO,
        console: bool = True
) -> logging.Logger:
    """
    设定 logger 的级别与输出

    重复调用时只调整已有 handler 的级别, 同一个日志文件不会挂两次。

    Args:
        name: logger 名称, 默认为套件根 logger
        log_file: 另外写入的日志文件, 目录不存在时自动建立
        level: 日志级别
        console: 是否输出到 stderr (只在第一次设定时生效)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    first_setup = not logger.handlers
    for handler in logger.handlers:
        handler.setLevel(level)

    new_handlers = []
    if first_setup and console:
        new_handlers.append(logging.StreamHandler(sys.stderr))
    if log_file and not _has_file_handler(logger, log_file):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        new_handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in new_handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """模块内使用: get_logger(__name__)"""
    return logging.getLogger(name)


def parse_log_level(value, default: int = logging.INFO) -> int:
    """
    将配置中的日志级别 (字符串或数字) 转换为 logging 常量, 无法辨识时返回 default

    Example:
        >>> parse_log_level('debug')
        10
    """
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return LOG_LEVELS.get(value.upper(), default)
    return default
