"""Exception hierarchy for the Mini-Redis client.

接続・プロトコル・コマンドの3種類の失敗を区別します。
いずれも呼び出し中の操作を即座に中断し、部分的な結果は返しません。
"""


class RedisClientError(Exception):
    """クライアントが送出する例外の基底クラス."""


class RedisConnectionError(RedisClientError, ConnectionError):
    """ソケットの接続・送信・受信に失敗した.

    この例外が発生した接続は使用不能になります。自動再接続は行いません。

    例:
        raise RedisConnectionError("Redis server closed connection")
    """


class RESPProtocolError(RedisClientError):
    """RESPプロトコルのパースエラー.

    受信バッファがフレームの途中で止まっている可能性があるため、
    この例外の後の接続状態は未定義です。

    例:
        raise RESPProtocolError(f"Unknown reply type: {tag!r} ({payload!r})")
    """


class CommandError(RedisClientError):
    """サーバがErrorリプライ(-)を返した.

    接続は引き続き使用できます。

    Attributes:
        command: エラーを引き起こしたコマンド名
        message: サーバのエラーメッセージ
    """

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"[{command}] {message}")
        self.command = command
        self.message = message
