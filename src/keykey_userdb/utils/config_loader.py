#!/usr/bin/env python3
"""
配置加载模块

从 YAML 文件读取 kkdecrypt 的配置, 可用的配置项见 config.example.yaml
"""

import yaml
from pathlib import Path
from typing import Any, Optional

# 没有配置文件时使用的默认值
DEFAULTS = {
    'logging': {
        'level': 'WARNING',
        'file': None,
    },
    'decrypt': {
        'key_hex': None,
    },
    'dump': {
        'bigram_limit': None,
        'key_separator': ',',
    },
}


class Config:
    """
    配置管理类

    用法:
        config = Config('config.yaml')
        log_level = config.get('logging.level', 'INFO')
        limit = config.get('dump.bigram_limit')
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        初始化配置

        Args:
            config_file: 配置文件路径, 为 None 时只使用默认值

        Raises:
            FileNotFoundError: 配置文件不存在
            yaml.YAMLError: YAML 格式错误
        """
        self.config_file = Path(config_file) if config_file else None
        self.data = {}

        if self.config_file is None:
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"配置文件不存在: {config_file}")

        with open(self.config_file, 'r', encoding='utf-8') as f:
            self.data = yaml.safe_load(f) or {}

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        获取配置项 (支持点号路径)

        依序查找配置文件与默认值, 都没有时返回 default。

        Example:
            >>> Config().get('dump.key_separator')
            ','
            >>> Config().get('non.existent.key', 'default_value')
            'default_value'
        """
        for source in (self.data, DEFAULTS):
            value = _lookup(source, key_path.split('.'))
            if value is not None:
                return value
        return default

    def get_path(self, key_path: str, default: Any = None) -> Optional[Path]:
        """
        获取配置项并转换为 Path 对象

        Returns:
            Path 对象或 None
        """
        value = self.get(key_path, default)
        if value is None:
            return None
        return Path(value)

    def __repr__(self) -> str:
        return f"Config(file='{self.config_file}')"

    def __str__(self) -> str:
        return yaml.dump(self.data, allow_unicode=True, default_flow_style=False)


def _lookup(data: Any, keys: list) -> Any:
    value = data
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return None
    return value
