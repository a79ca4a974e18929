"""Shared fixtures: real SQLite databases laid out like KeyKey's (1024-byte pages,
32 reserved bytes per page) and a counter-mode encryptor that produces SEE pages."""

from __future__ import annotations

import hashlib
import sqlite3
import struct
from pathlib import Path

import pytest
from Crypto.Cipher import AES

PAGE_SIZE = 1024
RESERVE = 32
DATA_AREA = PAGE_SIZE - RESERVE

UNIGRAM_ROWS = [
    ("fakM6CQ;=M", "過融合音程", 0.5),
    ("O_yf", "複調", -1.25),
    ("~_]O", "那裡", 2.0),
]

BIGRAM_ROWS = [
    ("~fa kM", "過", "融"),
    ("~O_ yf", "複", "調"),
]

EXPORT_BIGRAM_ROWS = [
    ("~fa kM", "過", "融", 1.5),
    ("~O_ yf", "複", "調", 0.25),
]

OVERRIDE_ROWS = [
    ("}g", "又"),
    ("~\\", "井"),
]


def _empty_database_page() -> bytes:
    """A one-page SQLite file whose header reserves 32 bytes at the end of every page."""
    header = bytearray(PAGE_SIZE)
    header[0:16] = b"SQLite format 3\x00"
    struct.pack_into(">H", header, 16, PAGE_SIZE)
    header[18] = 1  # write version
    header[19] = 1  # read version
    header[20] = RESERVE
    header[21:24] = bytes([64, 32, 32])
    struct.pack_into(">I", header, 24, 1)  # file change counter
    struct.pack_into(">I", header, 28, 1)  # database size in pages
    struct.pack_into(">I", header, 44, 4)  # schema format
    struct.pack_into(">I", header, 56, 1)  # UTF-8
    struct.pack_into(">I", header, 92, 1)  # version-valid-for
    struct.pack_into(">I", header, 96, 3045000)
    # empty sqlite_master leaf page; cell content starts at the usable size
    header[100] = 0x0D
    struct.pack_into(">H", header, 105, PAGE_SIZE - RESERVE)
    return bytes(header)


def build_reserved_database(path: Path, with_probability: bool = False) -> Path:
    path.write_bytes(_empty_database_page())

    bigram_rows = EXPORT_BIGRAM_ROWS if with_probability else BIGRAM_ROWS
    bigram_columns = "qstring TEXT, previous TEXT, current TEXT"
    if with_probability:
        bigram_columns += ", probability REAL"

    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(
            f"""
            CREATE TABLE user_unigrams (qstring TEXT, current TEXT, probability REAL);
            CREATE TABLE user_bigram_cache ({bigram_columns});
            CREATE TABLE user_candidate_override_cache (qstring TEXT, current TEXT);
            """
        )
        with conn:
            conn.executemany("INSERT INTO user_unigrams VALUES (?, ?, ?)", UNIGRAM_ROWS)
            placeholders = ", ".join("?" * len(bigram_rows[0]))
            conn.executemany(f"INSERT INTO user_bigram_cache VALUES ({placeholders})", bigram_rows)
            conn.executemany("INSERT INTO user_candidate_override_cache VALUES (?, ?)", OVERRIDE_ROWS)
    finally:
        conn.close()
    return path


def page_nonce(page_num: int, base_counter: int | None = None) -> bytes:
    nonce = bytearray(hashlib.sha256(b"nonce-%d" % page_num).digest()[:16])
    if base_counter is not None:
        struct.pack_into("<I", nonce, 4, base_counter)
    return bytes(nonce)


def see_encrypt(plain: bytes, key: bytes, base_counters: dict | None = None) -> bytes:
    """Encrypt pages the way KeyKey's SEE build lays them out."""
    assert len(plain) % PAGE_SIZE == 0
    base_counters = base_counters or {}
    cipher = AES.new(key, AES.MODE_ECB)
    out = bytearray()
    for page_num in range(len(plain) // PAGE_SIZE):
        page = plain[page_num * PAGE_SIZE:(page_num + 1) * PAGE_SIZE]
        nonce = page_nonce(page_num, base_counters.get(page_num))
        base = struct.unpack("<I", nonce[4:8])[0]
        counter_blocks = b"".join(
            nonce[:4] + struct.pack("<I", (base + i) & 0xFFFFFFFF) + nonce[8:]
            for i in range(DATA_AREA // 16)
        )
        keystream = cipher.encrypt(counter_blocks)
        data = bytearray(a ^ b for a, b in zip(page[:DATA_AREA], keystream))
        if page_num == 0:
            data[16:24] = page[16:24]
        mac = hashlib.sha256(bytes(data)).digest()[:16]
        out += data + nonce + mac
    return bytes(out)


@pytest.fixture
def plain_db(tmp_path: Path) -> Path:
    return build_reserved_database(tmp_path / "plain.db")


@pytest.fixture
def encrypted_db(tmp_path: Path, plain_db: Path) -> Path:
    from keykey_userdb.core.crypto import DEFAULT_KEY

    path = tmp_path / "SmartMandarinUserData.db"
    path.write_bytes(see_encrypt(plain_db.read_bytes(), DEFAULT_KEY))
    return path


@pytest.fixture
def export_content(tmp_path: Path) -> str:
    from keykey_userdb.core.crypto import EXPORT_KEY

    block_db = build_reserved_database(tmp_path / "block.db", with_probability=True)
    hex_data = see_encrypt(block_db.read_bytes(), EXPORT_KEY).hex().upper()
    wrapped = "\n".join(hex_data[i:i + 64] for i in range(0, len(hex_data), 64))
    return (
        "MJSR version 1.0.0\n"
        "春夕\tㄔㄨㄣ,ㄒㄧ\t-3.5\t0\n"
        "你好\tㄋㄧˇ,ㄏㄠˇ\tnot-a-number\t0\n"
        "broken line without tabs\n"
        "測\tㄘㄜˋ\t1\n"
        "空讀音\t,,\t0.5\t0\n"
        "# user bigram and candidate override caches\n"
        "ignored\tㄧ\t0\t0\n"
        f"<database>\n{wrapped}\n</database>\n"
    )
