#!/usr/bin/env python3
"""
KeyKey 使用者数据库读取器

读取已解密的 SmartMandarinUserData.db:
    - user_unigrams: 使用者单字词
    - user_bigram_cache: 使用者双字词快取
    - user_candidate_override_cache: 候选字覆盖快取
"""

import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional

from .errors import DatabaseOpenError
from .records import (
    ROW_MAPPERS,
    Gram,
    GramKind,
    UserPhraseDataSource,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

UNIGRAM_SQL = "SELECT qstring, current, probability FROM user_unigrams"
BIGRAM_SQL = "SELECT qstring, previous, current FROM user_bigram_cache"
CANDIDATE_OVERRIDE_SQL = "SELECT qstring, current FROM user_candidate_override_cache"

# 汇出档内的 user_bigram_cache 多一个 probability 栏位
EXPORT_BIGRAM_SQL = "SELECT qstring, previous, current, probability FROM user_bigram_cache"


class UserDatabase(UserPhraseDataSource):
    """
    使用者数据库读取器 (只读)

    用法:
        with UserDatabase("decrypted.db") as db:
            for gram in db:
                print(gram)
    """

    def __init__(self, db_path: str, bigram_sql: str = BIGRAM_SQL):
        """
        开启解密后的数据库

        Args:
            db_path: 解密后的数据库文件路径
            bigram_sql: 读取双元图的 SQL

        Raises:
            DatabaseOpenError: 数据库不存在或不是有效的 SQLite 文件
        """
        self.db_path = str(db_path)
        self._queries = {
            GramKind.UNIGRAM: UNIGRAM_SQL,
            GramKind.BIGRAM: bigram_sql,
            GramKind.CANDIDATE_OVERRIDE: CANDIDATE_OVERRIDE_SQL,
        }
        self.conn = None

        uri = Path(self.db_path).resolve().as_uri() + '?mode=ro'
        try:
            self.conn = sqlite3.connect(uri, uri=True)
            # 连接是延迟开启的, 先读一次 schema 确认文件有效
            self.conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchall()
        except sqlite3.Error as e:
            self.close()
            raise DatabaseOpenError(f"无法开启数据库 {self.db_path}: {e}") from e

        logger.debug(f"已开启数据库: {self.db_path}")

    def close(self) -> None:
        """关闭数据库连接"""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> 'UserDatabase':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self.conn is None:
            raise DatabaseOpenError(f"数据库已关闭: {self.db_path}")
        # 每次读取都用新的游标, 多个迭代器可以同时存在
        return self.conn.cursor().execute(sql, params)

    def _iter_grams(self, kind: GramKind) -> Iterator[Gram]:
        return map(ROW_MAPPERS[kind], self._execute(self._queries[kind]))

    def fetch_bigrams(self, limit: Optional[int] = None) -> List[Gram]:
        """
        读取使用者双字词快取

        Args:
            limit: 限制返回笔数 (None 表示全部)
        """
        if limit is None:
            return super().fetch_bigrams()
        if limit < 0:
            raise ValueError(f"limit 不能为负数: {limit}")

        cursor = self._execute(f"{self._queries[GramKind.BIGRAM]} LIMIT ?", (limit,))
        return [ROW_MAPPERS[GramKind.BIGRAM](row) for row in cursor]

    def get_table_counts(self) -> dict:
        """各表的记录数"""
        return {
            kind.value: self._execute(f"SELECT COUNT(*) FROM ({sql})").fetchone()[0]
            for kind, sql in self._queries.items()
        }
