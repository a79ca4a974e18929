"""
KeyKey 使用者词库工具 - 核心模块
"""

from .crypto import (
    PAGE_SIZE,
    KEY_SIZE,
    RESERVE,
    DATA_AREA_SIZE,
    DEFAULT_KEY,
    EXPORT_KEY,
    SQLITE_HEADER,
    is_encrypted_db,
)

from .errors import (
    KeyKeyError,
    FormatError,
    InvalidDatabaseBlockError,
    InvalidSizeError,
    DatabaseOpenError,
)

from .decryptor import SEEDecryptor, decrypt_database
from .phonaset import (
    PhonaSet,
    Consonant,
    Semivowel,
    Vowel,
    Intonation,
    decode_query_string,
    decode_query_string_as_key_array,
)
from .records import (
    CANDIDATE_OVERRIDE_PROBABILITY,
    Gram,
    GramKind,
    GramIterator,
    UserPhraseDataSource,
)
from .user_database import UserDatabase
from .text_file import UserPhraseTextFile

__all__ = [
    'PAGE_SIZE',
    'KEY_SIZE',
    'RESERVE',
    'DATA_AREA_SIZE',
    'DEFAULT_KEY',
    'EXPORT_KEY',
    'SQLITE_HEADER',
    'is_encrypted_db',
    'KeyKeyError',
    'FormatError',
    'InvalidDatabaseBlockError',
    'InvalidSizeError',
    'DatabaseOpenError',
    'SEEDecryptor',
    'decrypt_database',
    'PhonaSet',
    'Consonant',
    'Semivowel',
    'Vowel',
    'Intonation',
    'decode_query_string',
    'decode_query_string_as_key_array',
    'CANDIDATE_OVERRIDE_PROBABILITY',
    'Gram',
    'GramKind',
    'GramIterator',
    'UserPhraseDataSource',
    'UserDatabase',
    'UserPhraseTextFile',
]
