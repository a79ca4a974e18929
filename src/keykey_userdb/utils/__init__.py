"""
工具函数模块
"""

from .logger import setup_logger, get_logger, parse_log_level, LOG_LEVELS
from .config_loader import Config

__all__ = [
    'setup_logger',
    'get_logger',
    'parse_log_level',
    'LOG_LEVELS',
    'Config',
]
