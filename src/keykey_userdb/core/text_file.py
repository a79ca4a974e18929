#!/usr/bin/env python3
"""
MJSR 汇出档解析器

解析 KeyKey 汇出的使用者词库文字档:
    - Header: "MJSR version 1.0.0"
    - 使用者单字词: 每行一笔 (word\\treading\\tprobability\\tbackoff)
    - 注解行: 以 # 开头
    - <database> 区块: hex 编码的加密 SQLite 数据库
      (user_bigram_cache + user_candidate_override_cache), 密钥为 "mjsrexportmjsrex"
"""

import binascii
import os
import tempfile
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from .crypto import EXPORT_KEY, RESERVED_BYTES_OFFSET
from .decryptor import SEEDecryptor
from .errors import FormatError, InvalidDatabaseBlockError, InvalidSizeError
from .records import Gram, GramKind, UserPhraseDataSource
from .user_database import EXPORT_BIGRAM_SQL, UserDatabase
from ..utils.logger import get_logger

logger = get_logger(__name__)

VERSION_PREFIX = "MJSR version"
DATABASE_START_TAG = "<database>"
DATABASE_END_TAG = "</database>"


# ==============================================================================
# <database> 区块
# ==============================================================================

def extract_database_hex(content: str) -> Optional[str]:
    """
    取出 <database> 区块内的 hex 字串

    Returns:
        去掉换行后的 hex 字串, 没有区块时返回 None
    """
    start_idx = content.find(DATABASE_START_TAG)
    end_idx = content.find(DATABASE_END_TAG)
    if start_idx < 0 or end_idx < 0:
        return None

    hex_string = content[start_idx + len(DATABASE_START_TAG):end_idx]
    return hex_string.replace('\n', '').replace('\r', '').strip()


def decrypt_database_block(encrypted_data: bytes) -> bytes:
    """
    以汇出密钥解密 <database> 区块

    第一页 bytes 16-23 保持明文, 规则与数据库文件相同。解密后清除 SQLite header
    中的保留字节设定 (offset 20)。

    Raises:
        InvalidDatabaseBlockError: 数据长度不是页大小的整数倍
    """
    try:
        decrypted = bytearray(SEEDecryptor(EXPORT_KEY).decrypt(encrypted_data))
    except InvalidSizeError as e:
        raise InvalidDatabaseBlockError(str(e)) from e

    if len(decrypted) > RESERVED_BYTES_OFFSET:
        decrypted[RESERVED_BYTES_OFFSET] = 0

    return bytes(decrypted)


@contextmanager
def transient_database(data: bytes) -> Iterator[str]:
    """
    将数据写到临时 .db 文件, 离开 with 区块时一定删除

    Yields:
        临时文件路径
    """
    fd, temp_path = tempfile.mkstemp(suffix='.db')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        yield temp_path
    finally:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass


def parse_database_block(content: str) -> Tuple[List[Gram], List[Gram]]:
    """
    解析汇出档中的 <database> 区块

    Returns:
        (bigrams, candidate_overrides) 元组; 没有区块时两者皆为空列表

    Raises:
        InvalidDatabaseBlockError: hex 数据无效或长度不对
        DatabaseOpenError: 解密后的数据无法以 SQLite 读取
    """
    hex_string = extract_database_hex(content)
    if not hex_string:
        logger.debug("没有 <database> 区块")
        return [], []

    if len(hex_string) % 2 != 0:
        raise InvalidDatabaseBlockError(f"hex 长度必须是偶数, 实际: {len(hex_string)}")
    try:
        encrypted_data = binascii.unhexlify(hex_string)
    except binascii.Error as e:
        raise InvalidDatabaseBlockError(f"无效的 hex 数据: {e}") from e

    logger.debug(f"<database> 区块: {len(encrypted_data):,} bytes")
    decrypted_data = decrypt_database_block(encrypted_data)

    with transient_database(decrypted_data) as temp_path:
        with UserDatabase(temp_path, bigram_sql=EXPORT_BIGRAM_SQL) as db:
            return db.fetch_bigrams(), db.fetch_candidate_overrides()


# ==============================================================================
# 汇出档
# ==============================================================================

def _parse_probability(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


class UserPhraseTextFile(UserPhraseDataSource):
    """
    MJSR 汇出档

    用法:
        text_file = UserPhraseTextFile.from_path("export.txt")
        for gram in text_file:
            print(gram)
    """

    def __init__(self, content: str):
        """
        从文字内容初始化

        Args:
            content: MJSR 汇出档的文字内容

        Raises:
            FormatError: 缺少 MJSR header
            InvalidDatabaseBlockError: <database> 区块无效
            DatabaseOpenError: <database> 区块无法以 SQLite 读取
        """
        lines = [line for line in content.replace('\r', '\n').split('\n') if line]

        if not lines or not lines[0].startswith(VERSION_PREFIX):
            raise FormatError("缺少 MJSR header")
        self.version = lines[0]

        # 逐行解析单字词, 直到 # 或 < 开头的行
        unigrams = []
        for line in lines[1:]:
            if line.startswith('#') or line.startswith('<'):
                break
            if not line.strip():
                continue

            parts = line.split('\t')
            if len(parts) < 4:
                logger.debug(f"略过栏位不足的行: {line!r}")
                continue

            word, reading, probability = parts[0], parts[1], parts[2]
            # backoff 目前不使用

            # reading 是逗号分隔的注音字串, 例如 "ㄔㄨㄣ,ㄒㄧ"
            key_array = [key for key in reading.split(',') if key]
            unigrams.append(Gram.create_unigram(key_array, word, _parse_probability(probability)))

        self.unigrams = tuple(unigrams)

        bigrams, candidate_overrides = parse_database_block(content)
        self.bigrams = tuple(bigrams)
        self.candidate_overrides = tuple(candidate_overrides)

        logger.debug(f"{self.version}: {len(self.unigrams)} 单元图, "
                     f"{len(self.bigrams)} 双元图, {len(self.candidate_overrides)} 候选字覆盖")

    @classmethod
    def from_path(cls, path: str) -> 'UserPhraseTextFile':
        """
        从文件载入

        Raises:
            OSError: 文件读取失败
        """
        with open(path, 'r', encoding='utf-8-sig') as f:
            return cls(f.read())

    @staticmethod
    def is_text_file(path: str) -> bool:
        """文件是否以 MJSR header 开头"""
        try:
            with open(path, 'rb') as f:
                head = f.read(64)
        except OSError:
            return False
        text = head.decode('utf-8-sig', errors='ignore')
        return text.lstrip().startswith(VERSION_PREFIX)

    def _iter_grams(self, kind: GramKind) -> Iterator[Gram]:
        if kind is GramKind.UNIGRAM:
            return iter(self.unigrams)
        if kind is GramKind.BIGRAM:
            return iter(self.bigrams)
        return iter(self.candidate_overrides)
