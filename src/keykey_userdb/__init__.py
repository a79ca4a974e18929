"""
Yahoo! 奇摩输入法 (KeyKey) 使用者词库工具

解密 SmartMandarinUserData.db 与 MJSR 汇出档, 并把注音读音解码为可读字串。
"""

__version__ = '1.0.0'

from .core import (
    SEEDecryptor,
    UserDatabase,
    UserPhraseTextFile,
    PhonaSet,
    Gram,
    KeyKeyError,
    FormatError,
    InvalidDatabaseBlockError,
    InvalidSizeError,
    DatabaseOpenError,
    decode_query_string,
    decode_query_string_as_key_array,
    is_encrypted_db,
)

__all__ = [
    '__version__',
    'SEEDecryptor',
    'UserDatabase',
    'UserPhraseTextFile',
    'PhonaSet',
    'Gram',
    'KeyKeyError',
    'FormatError',
    'InvalidDatabaseBlockError',
    'InvalidSizeError',
    'DatabaseOpenError',
    'decode_query_string',
    'decode_query_string_as_key_array',
    'is_encrypted_db',
]
