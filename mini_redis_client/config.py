"""Client configuration for Mini-Redis.

接続先・コーデック・トレース設定をまとめて保持します。
環境変数は ClientConfig.from_env() を呼んだ場合にのみ参照します。
"""

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6379


def parse_server(server: str) -> tuple[str, int]:
    """"host:port" 形式の文字列を (host, port) に分解する.

    ポートを省略した場合はデフォルトポートを使います。

    Raises:
        ValueError: ポートが整数でない、または範囲外
    """
    host, sep, port = server.rpartition(":")
    if not sep:
        return server or DEFAULT_HOST, DEFAULT_PORT

    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in server address: {server!r}") from None
    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in server address: {server!r}")

    return host or DEFAULT_HOST, port_number


@dataclass
class ClientConfig:
    """接続設定.

    Attributes:
        host: 接続先ホスト
        port: 接続先ポート
        encoding: 文字列のコーデック（Noneの場合はbytesをそのまま扱う）
        encoding_errors: コーデックのエラー処理方式
        trace: 送受信内容をDEBUGログに出力するか
        timeout: ソケットのタイムアウト秒数（Noneの場合は無期限にブロック）
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    encoding: str | None = "utf-8"
    encoding_errors: str = "strict"
    trace: bool = False
    timeout: float | None = None

    @property
    def server(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "ClientConfig":
        """環境変数 REDIS_SERVER / REDIS_DEBUG から設定を作る.

        Args:
            environ: 参照する環境変数（Noneの場合はos.environ）
            **overrides: 環境変数より優先する設定値
        """
        if environ is None:
            environ = os.environ

        values: dict = {}
        server = environ.get("REDIS_SERVER")
        if server:
            values["host"], values["port"] = parse_server(server)
        debug = environ.get("REDIS_DEBUG", "")
        values["trace"] = debug not in ("", "0")

        values.update(overrides)
        return cls(**values)
