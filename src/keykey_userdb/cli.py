#!/usr/bin/env python3
"""
KeyKey 使用者数据库命令行工具

用法:
    kkdecrypt decrypt SmartMandarinUserData.db
    kkdecrypt decrypt SmartMandarinUserData.db decrypted.db
    kkdecrypt dump SmartMandarinUserData.db
    kkdecrypt dump export.txt --json
"""

import argparse
import json
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import yaml

from . import __version__
from .core import (
    PAGE_SIZE,
    KeyKeyError,
    SEEDecryptor,
    UserDatabase,
    UserPhraseTextFile,
    is_encrypted_db,
)
from .core.records import UserPhraseDataSource
from .utils import Config, get_logger, parse_log_level, setup_logger

logger = get_logger(__name__)


def default_output_path(input_path: str) -> str:
    """SmartMandarinUserData.db -> SmartMandarinUserData.decrypted.db (同目录)"""
    path = Path(input_path)
    return str(path.with_name(f"{path.stem}.decrypted.db"))


def build_decryptor(config: Config) -> SEEDecryptor:
    key_hex = config.get('decrypt.key_hex')
    if key_hex:
        return SEEDecryptor.from_hex(str(key_hex))
    return SEEDecryptor()


# ==============================================================================
# 输出
# ==============================================================================

def print_grams(source: UserPhraseDataSource, config: Config, as_json: bool = False) -> None:
    """显示数据来源中的所有词条"""
    separator = config.get('dump.key_separator', ',')
    bigram_limit = config.get('dump.bigram_limit')

    unigrams = source.fetch_unigrams()
    bigrams = source.fetch_bigrams(bigram_limit)
    overrides = source.fetch_candidate_overrides()

    if as_json:
        records = [gram.to_dict() for gram in unigrams + bigrams + overrides]
        print(json.dumps(records, ensure_ascii=False, indent=2))
        return

    print("\n=== 使用者单字词 (user_unigrams) ===")
    for gram in unigrams:
        print(f"  {gram.current}\t{separator.join(gram.key_array)}\t({gram.probability})")

    print("\n=== 使用者双字词快取 (user_bigram_cache) ===")
    for gram in bigrams:
        print(f"  {gram.previous or ''}→{gram.current}\t{separator.join(gram.key_array)}")

    print("\n=== 候选字覆盖快取 (user_candidate_override_cache) ===")
    if not overrides:
        print("  (空)")
    for gram in overrides:
        print(f"  {gram.current}\t{separator.join(gram.key_array)}")

    print("\n=== 统计 ===")
    print(f"  单字词: {len(unigrams)}")
    print(f"  双字词: {len(bigrams)}")
    print(f"  候选字覆盖: {len(overrides)}")
    print(f"  合计: {len(unigrams) + len(bigrams) + len(overrides)}")


def dump_database(db_path: str, config: Config, as_json: bool = False) -> None:
    with UserDatabase(db_path) as db:
        print_grams(db, config, as_json)


# ==============================================================================
# 指令
# ==============================================================================

def handle_decrypt(args: argparse.Namespace, config: Config) -> int:
    input_path = args.input
    if not os.path.isfile(input_path):
        print(f"❌ 找不到文件: {input_path}")
        return 1

    output_path = args.output or default_output_path(input_path)

    file_size = os.path.getsize(input_path)
    print(f"解密 {input_path}")
    print(f"  ├─ 文件大小: {file_size:,} bytes")
    print(f"  ├─ 页面数量: {file_size // PAGE_SIZE}")

    build_decryptor(config).decrypt_file(input_path, output_path)

    print(f"  └─ 输出: {output_path}")
    print("✅ 完成")

    dump_database(output_path, config)
    return 0


def handle_dump(args: argparse.Namespace, config: Config) -> int:
    path = args.path
    if not os.path.isfile(path):
        print(f"❌ 找不到文件: {path}")
        return 1

    if UserPhraseTextFile.is_text_file(path):
        logger.info(f"检测到 MJSR 汇出档: {path}")
        print_grams(UserPhraseTextFile.from_path(path), config, args.json)
        return 0

    if not is_encrypted_db(path):
        dump_database(path, config, args.json)
        return 0

    if not args.json:
        print("检测到加密数据库，正在解密...")

    fd, temp_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    try:
        build_decryptor(config).decrypt_file(path, temp_path)
        dump_database(temp_path, config, args.json)
    finally:
        # 清理临时文件
        os.remove(temp_path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='kkdecrypt',
        description='Yahoo! 奇摩输入法 (KeyKey) 使用者数据库工具',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-c', '--config', help='YAML 配置文件路径')
    parser.add_argument('-v', '--verbose', action='store_true', help='显示调试日志')

    subparsers = parser.add_subparsers(dest='command', metavar='<指令>')

    decrypt_parser = subparsers.add_parser('decrypt', help='解密 KeyKey 使用者数据库')
    decrypt_parser.add_argument('input', help='加密的数据库文件')
    decrypt_parser.add_argument('output', nargs='?', help='输出文件 (默认为 <名称>.decrypted.db)')

    dump_parser = subparsers.add_parser('dump', help='显示数据库或汇出档中的所有词汇')
    dump_parser.add_argument('path', help='数据库 (加密或已解密) 或 MJSR 汇出档')
    dump_parser.add_argument('--json', action='store_true', help='以 JSON 输出')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # 参数错误 (argparse 的退出码 2) 统一返回 1, --help/--version 照常退出
        if e.code:
            return 1
        raise

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = Config(args.config)
    except (OSError, yaml.YAMLError) as e:
        print(f"❌ 无法读取配置文件: {e}")
        return 1

    level = 'DEBUG' if args.verbose else config.get('logging.level')
    setup_logger(log_file=config.get('logging.file'), level=parse_log_level(level))

    handlers = {
        'decrypt': handle_decrypt,
        'dump': handle_dump,
    }

    try:
        return handlers[args.command](args, config)
    except (KeyKeyError, OSError, ValueError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
