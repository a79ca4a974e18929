#!/usr/bin/env python3
"""
注音符号音节 (PhonaSet)

KeyKey 数据库中的读音字串 (qstring) 以 2 字元的 absolute order 编码一个音节:
    order = (s[1] - 48) * 79 + (s[0] - 48)    (79 进位, ASCII 48-126)

音节本身是 16 位打包值:
    聲母 bits 0-4, 介音 bits 5-6, 韻母 bits 7-10, 聲調 bits 11-13

qstring 有两种格式:
    - 单元图: 连续的 2-char 音节, 例如 "fakM6CQ;=M"
    - 双元图: "~{前字注音} {当前字注音}", 以空格分隔

注意: "~" (ASCII 126) 本身也是合法的编码字元, 单元图的 qstring 可能恰好以 "~" 开头。
先按双元图格式解析, 解不出任何音节且不含空格时, 再按单元图格式整串解析。
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

# ==============================================================================
# 位元遮罩
# ==============================================================================

CONSONANT_MASK = 0x001F
SEMIVOWEL_MASK = 0x0060
VOWEL_MASK = 0x0780
INTONATION_MASK = 0x3800

# absolute order 的各进位基数 (比有效符号数多一个 "空" 值)
CONSONANT_BASE = 22
SEMIVOWEL_BASE = 4
VOWEL_BASE = 14
INTONATION_BASE = 5

ORDER_CHAR_OFFSET = 48
ORDER_RADIX = 79

# 双元图 qstring 的前缀与分隔符
BIGRAM_PREFIX = '~'
BIGRAM_SEPARATOR = ' '


class Consonant(IntEnum):
    """聲母 (21 个)"""
    B = 0x0001    # ㄅ
    P = 0x0002    # ㄆ
    M = 0x0003    # ㄇ
    F = 0x0004    # ㄈ
    D = 0x0005    # ㄉ
    T = 0x0006    # ㄊ
    N = 0x0007    # ㄋ
    L = 0x0008    # ㄌ
    G = 0x0009    # ㄍ
    K = 0x000A    # ㄎ
    H = 0x000B    # ㄏ
    J = 0x000C    # ㄐ
    Q = 0x000D    # ㄑ
    X = 0x000E    # ㄒ
    ZH = 0x000F   # ㄓ
    CH = 0x0010   # ㄔ
    SH = 0x0011   # ㄕ
    R = 0x0012    # ㄖ
    Z = 0x0013    # ㄗ
    C = 0x0014    # ㄘ
    S = 0x0015    # ㄙ


class Semivowel(IntEnum):
    """介音 (3 个)"""
    YI = 0x0020   # ㄧ
    WU = 0x0040   # ㄨ
    YU = 0x0060   # ㄩ


class Vowel(IntEnum):
    """韻母 (13 个)"""
    A = 0x0080    # ㄚ
    O = 0x0100    # ㄛ
    E = 0x0180    # ㄜ
    EH = 0x0200   # ㄝ
    AI = 0x0280   # ㄞ
    EI = 0x0300   # ㄟ
    AU = 0x0380   # ㄠ
    OU = 0x0400   # ㄡ
    AN = 0x0480   # ㄢ
    EN = 0x0500   # ㄣ
    ANG = 0x0580  # ㄤ
    ENG = 0x0600  # ㄥ
    ER = 0x0680   # ㄦ


class Intonation(IntEnum):
    """聲調 (5 个)"""
    FIRST = 0x0000    # 一声 (阴平), 不标记
    SECOND = 0x0800   # ˊ
    THIRD = 0x1000    # ˇ
    FOURTH = 0x1800   # ˋ
    NEUTRAL = 0x2000  # ˙


# ==============================================================================
# 符号对照表
# ==============================================================================

CONSONANT_SYMBOLS = {
    consonant: chr(0x3105 + index)
    for index, consonant in enumerate(Consonant)
}

SEMIVOWEL_SYMBOLS = {
    Semivowel.YI: 'ㄧ',
    Semivowel.WU: 'ㄨ',
    Semivowel.YU: 'ㄩ',
}

VOWEL_SYMBOLS = {
    vowel: chr(0x311A + index)
    for index, vowel in enumerate(Vowel)
}

INTONATION_SYMBOLS = {
    Intonation.FIRST: '',
    Intonation.SECOND: 'ˊ',
    Intonation.THIRD: 'ˇ',
    Intonation.FOURTH: 'ˋ',
    Intonation.NEUTRAL: '˙',
}

# 反查表: 符号 -> 组件
_SYMBOL_COMPONENTS = {}
for _table in (CONSONANT_SYMBOLS, SEMIVOWEL_SYMBOLS, VOWEL_SYMBOLS, INTONATION_SYMBOLS):
    for _component, _symbol in _table.items():
        if _symbol:
            _SYMBOL_COMPONENTS[_symbol] = _component


@dataclass(frozen=True)
class PhonaSet:
    """
    注音符号的完整汉字读音结构

    用法:
        PhonaSet.from_absolute_order_string("fa")   # ㄍㄨㄛˋ
        PhonaSet.from_components(Consonant.B, vowel=Vowel.A)   # ㄅㄚ
    """

    syllable: int = 0

    # ==========================================================================
    # 建构
    # ==========================================================================

    @classmethod
    def from_components(cls, consonant: Optional[Consonant] = None,
                        semivowel: Optional[Semivowel] = None,
                        vowel: Optional[Vowel] = None,
                        intonation: Intonation = Intonation.FIRST) -> 'PhonaSet':
        """以组件建立音节, 缺少的组件记为 0"""
        syllable = int(intonation)
        for component in (consonant, semivowel, vowel):
            if component is not None:
                syllable |= int(component)
        return cls(syllable)

    @classmethod
    def from_absolute_order(cls, order: int) -> 'PhonaSet':
        """从 absolute order 值重建音节"""
        consonant = order % CONSONANT_BASE
        semivowel = ((order // CONSONANT_BASE) % SEMIVOWEL_BASE) << 5
        vowel = ((order // (CONSONANT_BASE * SEMIVOWEL_BASE)) % VOWEL_BASE) << 7
        intonation = ((order // (CONSONANT_BASE * SEMIVOWEL_BASE * VOWEL_BASE))
                      % INTONATION_BASE) << 11
        return cls(consonant | semivowel | vowel | intonation)

    @classmethod
    def from_absolute_order_string(cls, s: str) -> Optional['PhonaSet']:
        """
        从 2-char absolute order 字串重建音节

        Returns:
            PhonaSet, 长度不是 2 或字元超出 ASCII 48-126 时返回 None
        """
        if len(s) != 2:
            return None

        low = ord(s[0]) - ORDER_CHAR_OFFSET
        high = ord(s[1]) - ORDER_CHAR_OFFSET
        if not (0 <= low < ORDER_RADIX and 0 <= high < ORDER_RADIX):
            return None

        return cls.from_absolute_order(high * ORDER_RADIX + low)

    @classmethod
    def from_string(cls, symbols: str) -> Optional['PhonaSet']:
        """
        从注音符号字串 (例如 "ㄍㄨㄛˋ") 重建音节

        Returns:
            PhonaSet, 含有无法辨识的符号时返回 None
        """
        syllable = 0
        for symbol in symbols:
            component = _SYMBOL_COMPONENTS.get(symbol)
            if component is None:
                return None
            syllable |= int(component)
        return cls(syllable)

    # ==========================================================================
    # 组件
    # ==========================================================================

    @property
    def raw_consonant(self) -> int:
        return self.syllable & CONSONANT_MASK

    @property
    def raw_semivowel(self) -> int:
        return self.syllable & SEMIVOWEL_MASK

    @property
    def raw_vowel(self) -> int:
        return self.syllable & VOWEL_MASK

    @property
    def raw_intonation(self) -> int:
        return self.syllable & INTONATION_MASK

    @property
    def absolute_order(self) -> int:
        """
        音节的 absolute order

        Raises:
            ValueError: 音节含有超出编码范围的组件值
        """
        consonant = self.raw_consonant
        semivowel = self.raw_semivowel >> 5
        vowel = self.raw_vowel >> 7
        intonation = self.raw_intonation >> 11
        if consonant >= CONSONANT_BASE or vowel >= VOWEL_BASE or intonation >= INTONATION_BASE:
            raise ValueError(f"音节无法编码: 0x{self.syllable:04X}")
        return (consonant
                + semivowel * CONSONANT_BASE
                + vowel * CONSONANT_BASE * SEMIVOWEL_BASE
                + intonation * CONSONANT_BASE * SEMIVOWEL_BASE * VOWEL_BASE)

    def to_absolute_order_string(self) -> str:
        """编码为 2-char absolute order 字串"""
        high, low = divmod(self.absolute_order, ORDER_RADIX)
        return chr(low + ORDER_CHAR_OFFSET) + chr(high + ORDER_CHAR_OFFSET)

    def __str__(self) -> str:
        """转换为 Unicode 注音符号字串, 无法辨识的组件不输出"""
        # IntEnum 与 int 的 hash 相同, 可以直接用原始值查表
        return (CONSONANT_SYMBOLS.get(self.raw_consonant, '')
                + SEMIVOWEL_SYMBOLS.get(self.raw_semivowel, '')
                + VOWEL_SYMBOLS.get(self.raw_vowel, '')
                + INTONATION_SYMBOLS.get(self.raw_intonation, ''))


# ==============================================================================
# QString 解码
# ==============================================================================

def decode_syllables(encoded: str) -> List[str]:
    """
    解码连续的 2-char 音节

    Returns:
        注音字串列表, 长度为奇数时返回空列表; 无效或空的音节直接略过
    """
    if len(encoded) % 2 != 0:
        return []

    result = []
    for i in range(0, len(encoded), 2):
        phonaset = PhonaSet.from_absolute_order_string(encoded[i:i + 2])
        if phonaset is None:
            continue
        composed = str(phonaset)
        if composed:
            result.append(composed)
    return result


def _bigram_parts(query_string: str) -> List[List[str]]:
    """按双元图格式拆分, 返回每个部分解出的音节 (只保留有结果的部分)"""
    parts = query_string[len(BIGRAM_PREFIX):].split(BIGRAM_SEPARATOR)
    decoded = [decode_syllables(part) for part in parts]
    return [syllables for syllables in decoded if syllables]


def decode_query_string(query_string: str) -> str:
    """
    将数据库中的 qstring 解码为可读的注音字串

    Returns:
        单元图: 以 "," 连接的音节; 双元图: 以 " → " 连接的前后字读音;
        无法解码时返回原字串
    """
    if query_string.startswith(BIGRAM_PREFIX):
        parts = _bigram_parts(query_string)
        if parts:
            return ' → '.join(''.join(syllables) for syllables in parts)
        if BIGRAM_SEPARATOR in query_string:
            return query_string

    if len(query_string) % 2 != 0:
        return query_string

    syllables = decode_syllables(query_string)
    return ','.join(syllables) if syllables else query_string


def decode_query_string_as_key_array(query_string: str) -> List[str]:
    """
    将数据库中的 qstring 解码为注音阵列 (用于 Gram 的 key_array)

    双元图只取最后一个部分 (当前字的读音)。无法解码时返回 [query_string],
    保证资料不会因为单笔坏掉的读音而遗失。
    """
    if query_string.startswith(BIGRAM_PREFIX):
        parts = query_string[len(BIGRAM_PREFIX):].split(BIGRAM_SEPARATOR)
        syllables = decode_syllables(parts[-1])
        if syllables:
            return syllables
        # 单元图不含空格, 有空格就只能是双元图
        if len(parts) > 1:
            return [query_string]

    if len(query_string) % 2 != 0:
        return [query_string]

    syllables = decode_syllables(query_string)
    return syllables if syllables else [query_string]
