"""Tests for the Bopomofo syllable codec and qstring decoding."""

from __future__ import annotations

import pytest

from keykey_userdb.core.phonaset import (
    Consonant,
    Intonation,
    PhonaSet,
    Semivowel,
    Vowel,
    decode_query_string,
    decode_query_string_as_key_array,
    decode_syllables,
)


@pytest.mark.parametrize(
    "encoded, expected",
    [
        ("fa", "ㄍㄨㄛˋ"),  # 過
        ("kM", "ㄖㄨㄥˊ"),  # 融
        ("6C", "ㄏㄜˊ"),  # 合
        ("Q;", "ㄧㄣ"),  # 音
        ("=M", "ㄔㄥˊ"),  # 程
    ],
)
def test_absolute_order_string_renders_known_syllables(encoded: str, expected: str) -> None:
    phonaset = PhonaSet.from_absolute_order_string(encoded)

    assert phonaset is not None
    assert str(phonaset) == expected


@pytest.mark.parametrize("encoded", ["", "a", "abc", " 0", "0 ", "\x7f0", "0\x7f"])
def test_absolute_order_string_rejects_bad_input(encoded: str) -> None:
    assert PhonaSet.from_absolute_order_string(encoded) is None


def test_absolute_order_string_accepts_full_character_range() -> None:
    assert PhonaSet.from_absolute_order_string("00") == PhonaSet(0)
    assert PhonaSet.from_absolute_order_string("~~") is not None


def test_from_absolute_order_splits_fields() -> None:
    # 9 + 2*22 + 2*88 + 3*1232
    phonaset = PhonaSet.from_absolute_order(9 + 44 + 176 + 3696)

    assert phonaset.raw_consonant == Consonant.G
    assert phonaset.raw_semivowel == Semivowel.WU
    assert phonaset.raw_vowel == Vowel.O
    assert phonaset.raw_intonation == Intonation.FOURTH


def test_from_components() -> None:
    assert str(PhonaSet.from_components(Consonant.B, vowel=Vowel.A)) == "ㄅㄚ"
    assert str(PhonaSet.from_components(Consonant.M, None, Vowel.A, Intonation.SECOND)) == "ㄇㄚˊ"
    assert str(PhonaSet.from_components(
        Consonant.G, Semivowel.WU, Vowel.O, Intonation.FOURTH)) == "ㄍㄨㄛˋ"
    assert str(PhonaSet.from_components(semivowel=Semivowel.YU, intonation=Intonation.NEUTRAL)) == "ㄩ˙"
    assert str(PhonaSet.from_components()) == ""


@pytest.mark.parametrize(
    "consonant, expected",
    [(Consonant.B, "ㄅ"), (Consonant.P, "ㄆ"), (Consonant.M, "ㄇ"), (Consonant.S, "ㄙ")],
)
def test_consonant_symbols(consonant: Consonant, expected: str) -> None:
    assert str(PhonaSet.from_components(consonant)) == expected


def test_unknown_field_values_render_as_absent() -> None:
    # consonant 0x1F and vowel 0x780 are outside the symbol tables, tone 0x3800 too
    assert str(PhonaSet(0x1F | 0x0080)) == "ㄚ"
    assert str(PhonaSet(0x0001 | 0x0780)) == "ㄅ"
    assert str(PhonaSet(0x0001 | 0x3800)) == "ㄅ"


def test_equality_and_hash_follow_syllable_value() -> None:
    assert PhonaSet(100) == PhonaSet(100)
    assert hash(PhonaSet(100)) == hash(PhonaSet(100))
    assert PhonaSet(100) != PhonaSet(200)


def test_every_valid_order_string_survives_symbol_round_trip() -> None:
    for high in range(79):
        for low in range(79):
            encoded = chr(low + 48) + chr(high + 48)
            phonaset = PhonaSet.from_absolute_order_string(encoded)
            rendered = str(phonaset)

            assert rendered == str(PhonaSet.from_absolute_order_string(encoded))
            assert PhonaSet.from_string(rendered) == phonaset
            assert phonaset.absolute_order == (high * 79 + low) % 6160


def test_to_absolute_order_string_inverts_decoding() -> None:
    for encoded in ["fa", "kM", "6C", "Q;", "=M", "~\\", "}g"]:
        assert PhonaSet.from_absolute_order_string(encoded).to_absolute_order_string() == encoded


def test_from_string_rejects_unknown_symbols() -> None:
    assert PhonaSet.from_string("abc") is None
    assert PhonaSet.from_string("ㄍㄨㄛˋ") == PhonaSet.from_absolute_order_string("fa")


def test_absolute_order_rejects_unencodable_syllable() -> None:
    with pytest.raises(ValueError):
        PhonaSet(0x1F).absolute_order


# --------------------------------------------------------------------------
# qstring decoding
# --------------------------------------------------------------------------


def test_decode_flat_query_string() -> None:
    assert decode_query_string("fakM6CQ;=M") == "ㄍㄨㄛˋ,ㄖㄨㄥˊ,ㄏㄜˊ,ㄧㄣ,ㄔㄥˊ"
    assert decode_query_string("O_yf") == "ㄈㄨˋ,ㄉㄧㄠˋ"


def test_decode_query_string_passthrough() -> None:
    assert decode_query_string("") == ""
    assert decode_query_string("abc") == "abc"
    assert decode_query_string("  ") == "  "
    assert decode_query_string("00") == "00"


def test_decode_paired_query_string() -> None:
    assert decode_query_string("~fa kM") == "ㄍㄨㄛˋ → ㄖㄨㄥˊ"
    assert decode_query_string("~O_ yf") == "ㄈㄨˋ → ㄉㄧㄠˋ"


def test_decode_query_string_with_leading_tilde_falls_back_to_flat() -> None:
    assert decode_query_string("~_]O") == "ㄋㄚˋ,ㄌㄧˇ"


def test_key_array_for_flat_query_string() -> None:
    assert decode_query_string_as_key_array("fakM6CQ;=M") == [
        "ㄍㄨㄛˋ", "ㄖㄨㄥˊ", "ㄏㄜˊ", "ㄧㄣ", "ㄔㄥˊ",
    ]


def test_key_array_for_paired_query_string_keeps_last_part() -> None:
    assert decode_query_string_as_key_array("~fa kM") == ["ㄖㄨㄥˊ"]
    assert decode_query_string_as_key_array("~O_ yffa") == ["ㄉㄧㄠˋ", "ㄍㄨㄛˋ"]


@pytest.mark.parametrize("encoded", ["~00 00", "~fa 00", "~fa 0", "~ "])
def test_malformed_paired_query_string_is_kept(encoded: str) -> None:
    # a space only appears in paired strings, so no flat reading is attempted
    assert decode_query_string_as_key_array(encoded) == [encoded]


def test_decode_malformed_paired_query_string() -> None:
    assert decode_query_string("~00 00") == "~00 00"
    assert decode_query_string("~ ") == "~ "
    assert decode_query_string("~fa 00") == "ㄍㄨㄛˋ"


@pytest.mark.parametrize(
    "encoded, expected",
    [
        ("~_]O", ["ㄋㄚˋ", "ㄌㄧˇ"]),  # 那裡
        ("~_3_", ["ㄋㄚˋ", "ㄘˋ"]),  # 那次
        ("~_XO", ["ㄋㄚˋ", "ㄇㄧˇ"]),  # 納米
        ("~@U:", ["ㄧㄚˊ", "ㄑㄧㄢ"]),  # 牙籤
        ("~\\cH", ["ㄐㄧㄥˇ", "ㄏㄡˊ"]),  # 儆猴
        ("~=KP6CJ1", ["ㄉㄨㄥ", "ㄇㄚˇ", "ㄏㄜˊ", "ㄕㄚ"]),  # 冬馬和紗
        ("~=ZX01", ["ㄉㄨㄥ", "ㄐㄧㄡˇ", "ㄑㄩ"]),  # 東九區
        ("~7]K", ["ㄓㄠ", "ㄩㄣˊ"]),  # 朝雲
        ("~Ip4", ["ㄋㄧㄢˊ", "ㄊㄧㄝ"]),  # 粘貼
        ("~Jc=", ["ㄘㄣˊ", "ㄧㄥ"]),  # 岑纓
    ],
)
def test_flat_query_strings_starting_with_tilde(encoded: str, expected: list) -> None:
    assert decode_query_string_as_key_array(encoded) == expected


@pytest.mark.parametrize(
    "encoded, expected",
    [("}g", ["ㄧㄡˋ"]), ("}l", ["ㄙㄨㄥˋ"]), ("~\\", ["ㄐㄧㄥˇ"])],
)
def test_candidate_override_query_strings(encoded: str, expected: list) -> None:
    assert decode_query_string_as_key_array(encoded) == expected


@pytest.mark.parametrize("encoded", ["abc", "", "  ", "~", "00"])
def test_key_array_falls_back_to_original_text(encoded: str) -> None:
    assert decode_query_string_as_key_array(encoded) == [encoded]


def test_decode_syllables_skips_invalid_pairs() -> None:
    assert decode_syllables("fa  kM") == ["ㄍㄨㄛˋ", "ㄖㄨㄥˊ"]
    assert decode_syllables("fak") == []
