"""Command dispatcher for the Mini-Redis client.

このモジュールは、任意のコマンドの「エンコード→送信→デコード」と、
リプライの整形が必要な一部のコマンド（QUIT / INFO / KEYS）を担当します。

"""

import logging

from mini_redis_client.config import ClientConfig
from mini_redis_client.connection import Connection
from mini_redis_client.exceptions import CommandError, RESPProtocolError
from mini_redis_client.protocol import Array, BulkString, RedisError, Reply, SimpleString

logger = logging.getLogger(__name__)


def find_error(reply: Reply) -> RedisError | None:
    """リプライ（ネストしたArrayを含む）の中で最初のRedisErrorを返す"""
    stack = [reply]
    while stack:
        item = stack.pop()
        if isinstance(item, RedisError):
            return item
        if isinstance(item, Array) and item.items:
            stack.extend(reversed(item.items))
    return None


def to_python(reply: Reply):
    """Reply値を素のPythonオブジェクトに変換する.

    例:
        SimpleString("OK") → "OK"
        BulkString(None) → None
        Array([Integer(1), Array([])]) → [1, []]

    Raises:
        ValueError: RedisErrorが含まれている
    """
    if not isinstance(reply, Array):
        return _scalar(reply)
    if reply.items is None:
        return None

    root: list = []
    stack = [(iter(reply.items), root)]
    while stack:
        items, out = stack[-1]
        for item in items:
            if isinstance(item, Array) and item.items is not None:
                child: list = []
                out.append(child)
                stack.append((iter(item.items), child))
                break
            out.append(None if isinstance(item, Array) else _scalar(item))
        else:
            stack.pop()
    return root


def _scalar(reply: Reply):
    if isinstance(reply, RedisError):
        raise ValueError(f"Error reply cannot be converted: {reply.value}")
    return reply.value


class RedisClient:
    """Mini-Redisのクライアント.

    責務:
    - 任意のコマンドの実行: execute() / call()
    - リプライの整形が必要なコマンド: quit() / info() / keys()
    - Errorリプライを CommandError に変換
    """

    def __init__(self, connection: Connection) -> None:
        """クライアントを初期化.

        Args:
            connection: 接続済みのConnection

        """
        self._connection = connection

    @property
    def connection(self) -> Connection:
        return self._connection

    def execute(self, name, *args) -> Reply:
        """コマンドを実行してReply値を返す.

        Args:
            name: コマンド名（大文字小文字は問わない）
            *args: コマンド引数（Noneは$-1として送信）

        Raises:
            CommandError: サーバがErrorリプライを返した
            RedisConnectionError: 送受信に失敗した
            RESPProtocolError: 不正なリプライ
        """
        command = self._command_name(name)
        self._connection.send_command(command, *args)
        return self._read_reply(command)

    def call(self, name, *args):
        """コマンドを実行して素のPythonオブジェクトを返す"""
        return to_python(self.execute(name, *args))

    def ping(self):
        """PINGを送る"""
        return self.call("PING")

    def quit(self) -> bool:
        """QUITを送信し、リプライを待たずにソケットを閉じる"""
        self._connection.send_command("QUIT")
        self._connection.close()
        return True

    def info(self, section=None) -> dict:
        """INFOの "key:value" 行を辞書に変換して返す.

        例: "a:1\\r\\nb:two\\r\\n" → {"a": "1", "b": "two"}
        """
        args = () if section is None else (section,)
        reply = self.execute("INFO", *args)
        if not isinstance(reply, (BulkString, SimpleString)):
            raise RESPProtocolError(f"Unexpected INFO reply: {reply!r}")

        body = reply.value
        if not body:
            return {}

        if isinstance(body, bytes):
            sep, comment = b":", b"#"
        else:
            sep, comment = ":", "#"

        result = {}
        for line in body.splitlines():
            if not line or line.startswith(comment):
                continue
            key, found, value = line.partition(sep)
            if found:
                result[key] = value
        return result

    def keys(self, pattern="*") -> list:
        """パターンに一致するキーの一覧を返す.

        古いサーバはArrayではなく、空白区切りの1つの文字列でキーを返します。
        どちらの形式でも結果はキー名のリストです。
        """
        reply = self.execute("KEYS", pattern)
        if isinstance(reply, Array):
            return to_python(reply) or []
        if isinstance(reply, (BulkString, SimpleString)) and reply.value:
            return reply.value.split()
        return []

    def close(self) -> None:
        """QUITを送らずにソケットを閉じる"""
        self._connection.close()

    def __enter__(self) -> "RedisClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _read_reply(self, command: str) -> Reply:
        reply = self._connection.receive()
        error = find_error(reply)
        if error is not None:
            logger.debug(f"[{command}] error reply: {error.value}")
            raise CommandError(command, error.value)
        return reply

    @staticmethod
    def _command_name(name) -> str:
        if isinstance(name, (bytes, bytearray)):
            name = bytes(name).decode("ascii", "replace")
        return name.upper()


def connect(config: ClientConfig | None = None, **overrides) -> RedisClient:
    """設定からConnectionを作り、RedisClientを返す.

    Args:
        config: 接続設定（Noneの場合はデフォルト値）
        **overrides: configより優先する設定値
            （socket_factory も指定可能）

    Raises:
        RedisConnectionError: 接続に失敗した
    """
    config = config or ClientConfig()
    options = {
        "host": config.host,
        "port": config.port,
        "encoding": config.encoding,
        "encoding_errors": config.encoding_errors,
        "trace": config.trace,
        "timeout": config.timeout,
    }
    options.update(overrides)
    host = options.pop("host")
    port = options.pop("port")
    return RedisClient(Connection(host, port, **options))
