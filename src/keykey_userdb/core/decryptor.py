#!/usr/bin/env python3
"""
KeyKey 使用者数据库解密器

将 SmartMandarinUserData.db 等使用 SQLite SEE AES-128 加密的数据库
解密成标准 SQLite 数据库
"""

from pathlib import Path
from typing import Optional

from .crypto import (
    PAGE_SIZE,
    RESERVE,
    DEFAULT_KEY,
    PLAIN_HEADER_START,
    PLAIN_HEADER_END,
    is_encrypted_db,
    new_ecb_cipher,
    generate_keystream,
    split_page,
    xor_bytes,
)
from .errors import InvalidSizeError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SEEDecryptor:
    """
    KeyKey 数据库解密器

    只解密不验证: 保留区中的 MAC 会被忽略, 输出时以零填充。

    用法:
        decryptor = SEEDecryptor()
        decryptor.decrypt_file("SmartMandarinUserData.db", "decrypted.db")
    """

    def __init__(self, key: Optional[bytes] = None):
        """
        初始化解密器

        Args:
            key: AES-128 密钥 (16 bytes), 不传则使用默认密钥

        Raises:
            ValueError: 如果密钥长度不正确
        """
        self.key = DEFAULT_KEY if key is None else bytes(key)
        self._cipher = new_ecb_cipher(self.key)

    @classmethod
    def from_hex(cls, key_hex: str) -> 'SEEDecryptor':
        """
        以十六进制字符串建立解密器

        Args:
            key_hex: 密钥的十六进制字符串 (32 个字符 = 16 bytes)

        Raises:
            ValueError: 如果密钥格式不正确
        """
        try:
            key = bytes.fromhex(key_hex)
        except ValueError:
            raise ValueError("密钥必须是有效的十六进制字符串")
        return cls(key)

    @staticmethod
    def is_encrypted_database(file_path: str) -> bool:
        """检查数据库文件是否仍是加密状态"""
        return is_encrypted_db(file_path)

    def decrypt(self, encrypted_data: bytes) -> bytes:
        """
        解密整个数据库

        Args:
            encrypted_data: 加密的数据库二进制数据

        Returns:
            解密后的数据库二进制数据 (与输入等长)

        Raises:
            InvalidSizeError: 如果长度不是页大小的整数倍
        """
        if len(encrypted_data) % PAGE_SIZE != 0:
            raise InvalidSizeError(
                f"数据库大小无效: 必须是 {PAGE_SIZE} 的倍数, 实际: {len(encrypted_data)} bytes"
            )

        total_pages = len(encrypted_data) // PAGE_SIZE
        logger.debug(f"开始解密 {total_pages} 页")

        output = bytearray()
        for page_num in range(total_pages):
            start = page_num * PAGE_SIZE
            page_data = encrypted_data[start:start + PAGE_SIZE]
            output += self._decrypt_page(page_data, page_num)

        return bytes(output)

    def decrypt_file(self, input_path: str, output_path: str) -> None:
        """
        解密整个数据库文件

        Args:
            input_path: 加密的数据库文件路径
            output_path: 解密后的输出文件路径

        Raises:
            OSError: 文件读写失败
            InvalidSizeError: 文件大小不是页大小的整数倍
        """
        with open(input_path, 'rb') as f:
            encrypted_data = f.read()

        logger.info(f"解密 {input_path} ({len(encrypted_data):,} bytes, "
                    f"{len(encrypted_data) // PAGE_SIZE} 页)")

        decrypted_data = self.decrypt(encrypted_data)

        # 创建输出目录
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'wb') as f:
            f.write(decrypted_data)

        logger.info(f"输出文件: {output_path}")

    def _decrypt_page(self, page_data: bytes, page_num: int) -> bytes:
        """
        解密单个数据库页

        结构: [密文 (992)] + [Nonce (16)] + [MAC (16)]
        """
        encrypted_data, nonce = split_page(page_data)

        keystream = generate_keystream(self._cipher, nonce)
        decrypted_data = xor_bytes(encrypted_data, keystream)

        if page_num == 0:
            # 第一页特殊处理: bytes 16-23 本来就没有加密, 直接使用原始数据
            decrypted_data = (decrypted_data[:PLAIN_HEADER_START]
                              + page_data[PLAIN_HEADER_START:PLAIN_HEADER_END]
                              + decrypted_data[PLAIN_HEADER_END:])

        # 保留区以零填充, 保持页面大小为 1024
        return decrypted_data + b'\x00' * RESERVE


def decrypt_database(input_file: str, output_file: str, key: Optional[bytes] = None) -> None:
    """
    便捷函数: 解密数据库

    Args:
        input_file: 加密的数据库
        output_file: 输出文件
        key: 自订密钥 (可选)
    """
    SEEDecryptor(key).decrypt_file(input_file, output_file)
