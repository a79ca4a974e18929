#!/usr/bin/env python3
"""
KeyKey 数据库加密工具函数

提供 SQLite SEE (AES-128) 页加密相关的常量与底层工具。

Keystream 产生方式:
    AES-128-ECB(key, counter_block)
    counter_block = nonce 的副本, 但 bytes 4-7 换成 little-endian 计数器,
    计数器从 nonce[4:8] 的原始值开始, 每个 16 字节块递增 1
"""

import struct
from Crypto.Cipher import AES

# ==============================================================================
# 常量定义
# ==============================================================================

PAGE_SIZE = 1024  # SQLite 页大小
KEY_SIZE = 16  # AES-128 密钥长度
AES_BLOCK_SIZE = 16  # AES 块大小

# Reserve = Nonce (16) + MAC (16) = 32
NONCE_SIZE = 16
MAC_SIZE = 16
RESERVE = NONCE_SIZE + MAC_SIZE

# 每页真正加密的数据区 (992 bytes = 62 个 AES 块)
DATA_AREA_SIZE = PAGE_SIZE - RESERVE
BLOCKS_PER_PAGE = (DATA_AREA_SIZE + AES_BLOCK_SIZE - 1) // AES_BLOCK_SIZE

# 计数器在 nonce 中的位置
COUNTER_OFFSET = 4
COUNTER_MASK = 0xFFFFFFFF

# 第一页 bytes 16-23 (页大小、版本、保留区长度等) 没有加密
PLAIN_HEADER_START = 16
PLAIN_HEADER_END = 24

# SQLite header 中 "每页保留字节数" 的位置
RESERVED_BYTES_OFFSET = 20

# 默认密钥: "yahookeykeyuserdb" 的前 16 bytes
DEFAULT_KEY = b"yahookeykeyuserdb"[:KEY_SIZE]

# 汇出档 <database> 区块的密钥: "mjsrexport" 重复填充到 16 bytes
EXPORT_KEY = b"mjsrexportmjsrex"

# SQLite 文件头
SQLITE_HEADER = b"SQLite format 3\x00"


# ==============================================================================
# 基础工具函数
# ==============================================================================

def xor_bytes(data: bytes, keystream: bytes) -> bytes:
    """
    将数据与 keystream 逐字节异或

    Args:
        data: 输入字节数组
        keystream: keystream (长度不得小于 data)

    Returns:
        异或后的字节数组, 长度与 data 相同
    """
    size = len(data)
    if size == 0:
        return b''
    value = int.from_bytes(data, 'big') ^ int.from_bytes(keystream[:size], 'big')
    return value.to_bytes(size, 'big')


def split_page(page_data: bytes) -> tuple:
    """
    拆分一个加密页

    Returns:
        (data_area, nonce) 元组
        - data_area: 前 992 bytes 密文
        - nonce: 保留区的前 16 bytes (其后 16 bytes 的 MAC 不做验证)

    Raises:
        ValueError: 如果页大小不正确
    """
    if len(page_data) != PAGE_SIZE:
        raise ValueError(f"页大小必须是 {PAGE_SIZE} bytes, 实际: {len(page_data)}")

    nonce = page_data[DATA_AREA_SIZE:DATA_AREA_SIZE + NONCE_SIZE]
    return page_data[:DATA_AREA_SIZE], nonce


# ==============================================================================
# Keystream
# ==============================================================================

def build_counter_block(nonce: bytes, counter: int) -> bytes:
    """
    构建 counter block

    Args:
        nonce: 页 nonce (16 bytes)
        counter: 计数器值, 超出 32 位时回绕

    Returns:
        nonce 的副本, bytes 4-7 换成小端序计数器
    """
    packed = struct.pack('<I', counter & COUNTER_MASK)
    return nonce[:COUNTER_OFFSET] + packed + nonce[COUNTER_OFFSET + 4:NONCE_SIZE]


def generate_keystream(cipher, nonce: bytes, block_count: int = BLOCKS_PER_PAGE) -> bytes:
    """
    用 AES-ECB 加密连续的 counter block 产生 keystream

    Args:
        cipher: AES.MODE_ECB 的 cipher 对象
        nonce: 页 nonce (16 bytes)
        block_count: 需要的 AES 块数量

    Returns:
        block_count * 16 bytes 的 keystream
    """
    base_counter = struct.unpack('<I', nonce[COUNTER_OFFSET:COUNTER_OFFSET + 4])[0]
    counter_blocks = b''.join(
        build_counter_block(nonce, base_counter + block_idx)
        for block_idx in range(block_count)
    )
    # ECB 对每个块独立加密, 一次处理整页的 counter blocks
    return cipher.encrypt(counter_blocks)


def new_ecb_cipher(key: bytes):
    """
    建立不补齐的 AES-128-ECB cipher

    Raises:
        ValueError: 如果密钥长度不正确
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"密钥长度必须是 {KEY_SIZE} bytes, 实际: {len(key)}")
    return AES.new(key, AES.MODE_ECB)


# ==============================================================================
# 工具函数
# ==============================================================================

def is_encrypted_db(file_path: str) -> bool:
    """
    检查数据库是否已加密

    读取失败或文件不足 16 bytes 时一律视为已加密, 交给解密流程处理。

    Args:
        file_path: 数据库文件路径

    Returns:
        True: 已加密
        False: 未加密 (标准 SQLite 格式)
    """
    try:
        with open(file_path, 'rb') as f:
            header = f.read(len(SQLITE_HEADER))
    except OSError:
        return True

    # 如果是标准 SQLite 头，说明未加密
    return header != SQLITE_HEADER


if __name__ == "__main__":
    print("KeyKey SEE 加密参数:")
    print(f"  页大小: {PAGE_SIZE} bytes")
    print(f"  数据区: {DATA_AREA_SIZE} bytes ({BLOCKS_PER_PAGE} 块)")
    print(f"  Reserve 大小: {RESERVE} bytes")
    print(f"  密钥长度: {KEY_SIZE} bytes")
    print(f"  默认密钥: {DEFAULT_KEY!r}")
    print(f"  汇出密钥: {EXPORT_KEY!r}")
