#!/usr/bin/env python3
"""
错误类型定义

读音解码失败不属于错误: 单个音节或 qstring 解不出来时直接回退为原字串,
不会抛出任何异常。文件读写失败沿用内建的 OSError。
"""


class KeyKeyError(Exception):
    """所有 KeyKey 使用者词库错误的基类"""


class FormatError(KeyKeyError):
    """MJSR 汇出档格式错误 (缺少 header 等)"""


class InvalidDatabaseBlockError(FormatError):
    """<database> 区块内容无效 (hex 长度为奇数、含非 hex 字元、页大小不对)"""


class InvalidSizeError(KeyKeyError, ValueError):
    """加密数据长度不是页大小的整数倍"""


class DatabaseOpenError(KeyKeyError):
    """解密后的数据无法以 SQLite 开启"""
