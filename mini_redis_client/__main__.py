"""Mini-Redis client entry point.

このモジュールは、1つのコマンドを送信して結果を表示するエントリポイントです。
`python -m mini_redis_client GET foo` のように使います。
"""

import argparse
import logging
import sys

from mini_redis_client.commands import connect
from mini_redis_client.config import ClientConfig, parse_server
from mini_redis_client.exceptions import CommandError, RedisClientError


def setup_logging(debug: bool) -> None:
    """ログ設定を初期化."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mini_redis_client",
        description="Send one command to a Redis-compatible server.",
    )
    parser.add_argument("--server", type=parse_server, help="host:port (default: $REDIS_SERVER or 127.0.0.1:6379)")
    parser.add_argument("--debug", action="store_true", help="log raw protocol traffic")
    parser.add_argument("--raw", action="store_true", help="do not decode replies as UTF-8")
    parser.add_argument("command")
    parser.add_argument("args", nargs="*")
    return parser


def format_result(result, indent: int = 0) -> list[str]:
    """結果を表示用の行に変換する"""
    prefix = " " * indent
    if result is None:
        return [f"{prefix}(nil)"]
    if isinstance(result, list):
        if not result:
            return [f"{prefix}(empty array)"]
        lines = []
        for index, item in enumerate(result, 1):
            if isinstance(item, list) and item:
                lines.append(f"{prefix}{index})")
                lines.extend(format_result(item, indent + 3))
            else:
                lines.extend(f"{prefix}{index}) {line.lstrip()}" for line in format_result(item))
        return lines
    if isinstance(result, int):
        return [f"{prefix}(integer) {result}"]
    if isinstance(result, bytes):
        return [f"{prefix}{result!r}"]
    return [f"{prefix}{result}"]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {}
    if args.server:
        overrides["host"], overrides["port"] = args.server
    if args.debug:
        overrides["trace"] = True
    if args.raw:
        overrides["encoding"] = None
    try:
        config = ClientConfig.from_env(**overrides)
    except ValueError as e:
        parser.error(f"REDIS_SERVER: {e}")

    setup_logging(config.trace)
    logger = logging.getLogger(__name__)

    try:
        with connect(config) as client:
            result = client.call(args.command, *args.args)
    except CommandError as e:
        print(f"(error) {e.message}")
        return 1
    except RedisClientError as e:
        logger.error(f"{config.server}: {e}")
        return 2

    for line in format_result(result):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
