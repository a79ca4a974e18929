#!/usr/bin/env python3
"""
使用者词库记录

Gram 是从数据库或汇出档读出的一笔词条, 分为三种:
    - 单元图 (Unigram): previous 为 None
    - 双元图 (Bigram): 带有前一个候选字
    - 候选字覆盖 (CandidateOverride): 权重固定为 114.514
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .phonaset import decode_query_string_as_key_array

# 候选字覆盖记录的固定权重
CANDIDATE_OVERRIDE_PROBABILITY = 114.514


def _format_probability(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass(frozen=True)
class Gram:
    """
    一笔使用者词条

    Attributes:
        key_array: 注音键阵列, 每个音节一个
        current: 当前候选字
        previous: 前一个候选字 (双元图时使用)
        probability: 机率权重
        is_candidate_override: 是否为候选字覆盖
    """

    key_array: tuple
    current: str
    previous: Optional[str] = None
    probability: float = 0.0
    is_candidate_override: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'key_array', tuple(self.key_array))

    # ==========================================================================
    # 工厂方法
    # ==========================================================================

    @classmethod
    def create_unigram(cls, key_array: Iterable[str], current: str,
                       probability: float = 0.0) -> 'Gram':
        return cls(tuple(key_array), current, None, float(probability), False)

    @classmethod
    def create_bigram(cls, key_array: Iterable[str], current: str, previous: Optional[str],
                      probability: float = 0.0) -> 'Gram':
        """建立双元图, previous 为空字串时视为单元图"""
        return cls(tuple(key_array), current, previous or None, float(probability), False)

    @classmethod
    def create_candidate_override(cls, key_array: Iterable[str], current: str,
                                  probability: float = CANDIDATE_OVERRIDE_PROBABILITY) -> 'Gram':
        return cls(tuple(key_array), current, None, float(probability), True)

    # ==========================================================================
    # 属性
    # ==========================================================================

    @property
    def is_unigram(self) -> bool:
        return self.previous is None

    @property
    def is_reading_mismatched(self) -> bool:
        """读音数量与候选字字数不一致"""
        return len(self.key_array) != len(self.current)

    @property
    def seg_length(self) -> int:
        return len(self.key_array)

    @property
    def as_tuple(self) -> tuple:
        """(key_array, current, probability, previous)"""
        return self.key_array, self.current, self.probability, self.previous

    @property
    def description_sans_reading(self) -> str:
        if self.is_candidate_override:
            return f"P({self.current})"
        probability = _format_probability(self.probability)
        if self.previous is None:
            return f"P({self.current})={probability}"
        return f"P({self.current}|{self.previous})={probability}"

    def describe(self, key_separator: str = '-') -> str:
        """
        描述 Gram 的完整信息

        Example:
            >>> Gram.create_unigram(['ㄋㄧˇ'], '你', 0.5).describe()
            "[Unigram] 'ㄋㄧˇ', P(你)=0.5"
        """
        if self.is_candidate_override:
            header = '[CndOvrw]'
        else:
            header = '[Unigram]' if self.is_unigram else '[Bigram]'
        return f"{header} '{key_separator.join(self.key_array)}', {self.description_sans_reading}"

    def to_dict(self) -> Dict[str, Any]:
        """转换为可 JSON 序列化的字典"""
        return {
            'keys': list(self.key_array),
            'curr': self.current,
            'prev': self.previous,
            'prob': self.probability,
            'ovrw': self.is_candidate_override,
        }

    def __str__(self) -> str:
        return self.describe()


# ==============================================================================
# 行映射
# ==============================================================================

class GramKind(Enum):
    UNIGRAM = 'unigram'
    BIGRAM = 'bigram'
    CANDIDATE_OVERRIDE = 'candidate_override'


def map_unigram_row(row: Sequence) -> Gram:
    """(qstring, current, probability) -> 单元图"""
    qstring, current, probability = row[0], row[1], row[2]
    return Gram.create_unigram(
        decode_query_string_as_key_array(qstring), current, probability or 0.0
    )


def map_bigram_row(row: Sequence) -> Gram:
    """(qstring, previous, current[, probability]) -> 双元图"""
    qstring, previous, current = row[0], row[1], row[2]
    probability = row[3] if len(row) > 3 and row[3] is not None else 0.0
    return Gram.create_bigram(
        decode_query_string_as_key_array(qstring), current, previous, probability
    )


def map_candidate_override_row(row: Sequence) -> Gram:
    """(qstring, current) -> 候选字覆盖"""
    qstring, current = row[0], row[1]
    return Gram.create_candidate_override(decode_query_string_as_key_array(qstring), current)


ROW_MAPPERS = {
    GramKind.UNIGRAM: map_unigram_row,
    GramKind.BIGRAM: map_bigram_row,
    GramKind.CANDIDATE_OVERRIDE: map_candidate_override_row,
}


# ==============================================================================
# 数据来源
# ==============================================================================

class UserPhraseDataSource(ABC):
    """
    使用者词库数据来源

    子类只需实现 _iter_grams(kind), 每次调用都要重新读取, 返回新的迭代器。
    迭代顺序固定为 单元图 -> 双元图 -> 候选字覆盖。
    """

    @abstractmethod
    def _iter_grams(self, kind: GramKind) -> Iterator[Gram]:
        """返回指定种类词条的新迭代器"""

    def fetch_unigrams(self) -> List[Gram]:
        return list(self._iter_grams(GramKind.UNIGRAM))

    def fetch_bigrams(self, limit: Optional[int] = None) -> List[Gram]:
        """
        读取双元图

        Args:
            limit: 限制返回笔数 (None 表示全部)
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit 不能为负数: {limit}")
        return list(islice(self._iter_grams(GramKind.BIGRAM), limit))

    def fetch_candidate_overrides(self) -> List[Gram]:
        return list(self._iter_grams(GramKind.CANDIDATE_OVERRIDE))

    def fetch_all_grams(self) -> List[Gram]:
        """读取所有资料: 单元图、双元图、候选字覆盖依序合并"""
        return self.fetch_unigrams() + self.fetch_bigrams() + self.fetch_candidate_overrides()

    def __iter__(self) -> 'GramIterator':
        return GramIterator(self)


class GramIterator:
    """
    逐笔读取三种词条的迭代器

    以阶段 (Phase) 推进: UNIGRAMS -> BIGRAMS -> CANDIDATE_OVERRIDES -> DONE。
    每进入一个阶段才向数据来源要一个新的读取游标。
    """

    class Phase(Enum):
        UNIGRAMS = GramKind.UNIGRAM
        BIGRAMS = GramKind.BIGRAM
        CANDIDATE_OVERRIDES = GramKind.CANDIDATE_OVERRIDE
        DONE = None

    _NEXT_PHASE = {
        Phase.UNIGRAMS: Phase.BIGRAMS,
        Phase.BIGRAMS: Phase.CANDIDATE_OVERRIDES,
        Phase.CANDIDATE_OVERRIDES: Phase.DONE,
        Phase.DONE: Phase.DONE,
    }

    def __init__(self, source: UserPhraseDataSource):
        self._source = source
        self.reset()

    def reset(self) -> None:
        """回到第一笔单元图"""
        self._phase = self.Phase.UNIGRAMS
        self._rows = None

    @property
    def phase(self) -> 'GramIterator.Phase':
        return self._phase

    def __iter__(self) -> 'GramIterator':
        return self

    def __next__(self) -> Gram:
        while self._phase is not self.Phase.DONE:
            if self._rows is None:
                self._rows = iter(self._source._iter_grams(self._phase.value))

            gram = next(self._rows, None)
            if gram is not None:
                return gram

            self._rows = None
            self._phase = self._NEXT_PHASE[self._phase]

        raise StopIteration
