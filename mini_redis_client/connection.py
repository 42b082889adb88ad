"""Blocking TCP connection to a Mini-Redis server.

このモジュールは、ソケットと受信バッファを所有し、
「フレームを送る」「リプライを1つ受け取る」の2操作を提供します。

"""

import logging
import socket

from mini_redis_client.buffer import ReadBuffer
from mini_redis_client.exceptions import RedisConnectionError, RESPProtocolError
from mini_redis_client.protocol import RESPEncoder, RESPParser, Reply

logger = logging.getLogger(__name__)


class Connection:
    """サーバへの1本のTCP接続.

    責務:
    - ソケットと受信バッファ(ReadBuffer)の排他的な所有
    - リクエストフレームの完全な送信（部分送信は残りを再送）
    - リプライ1つ分の受信とパース

    ライフサイクル:
    1. __init__(): TCP接続を確立
    2. send_command() / receive(): 1リクエストずつ送受信
    3. close(): ソケットを閉じる

    ソケットエラーやプロトコルエラーが起きた接続は閉じられ、再利用できません。
    スレッド間で共有する場合の排他制御は呼び出し側の責任です。
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 6379,
        *,
        encoding: str | None = "utf-8",
        encoding_errors: str = "strict",
        trace: bool = False,
        timeout: float | None = None,
        socket_factory=socket.create_connection,
    ) -> None:
        """接続を確立する.

        Args:
            host: 接続先ホスト
            port: 接続先ポート
            encoding: 文字列のコーデック（Noneの場合はbytesのまま扱う）
            encoding_errors: コーデックのエラー処理方式
            trace: 送受信内容をDEBUGログに出力するか
            timeout: ソケットのタイムアウト秒数
            socket_factory: (address, timeout) を受け取りソケットを返す関数

        Raises:
            RedisConnectionError: 接続に失敗した
        """
        self.host = host
        self.port = port
        self.trace = trace
        self._encoder = RESPEncoder(encoding, encoding_errors)
        self._parser = RESPParser(encoding, encoding_errors)

        try:
            self._sock = socket_factory((host, port), timeout)
        except OSError as e:
            raise RedisConnectionError(
                f"Could not connect to Redis server at {host}:{port}: {e}"
            ) from e

        self._buffer: ReadBuffer | None = ReadBuffer(self._sock)
        logger.debug(f"Connected to Redis server at {host}:{port}")

    @property
    def closed(self) -> bool:
        return self._sock is None

    def send_command(self, name, *args) -> None:
        """コマンドをエンコードして送信する"""
        if self.trace:
            logger.debug(f"[SEND] {str(name).upper()} {list(args)!r}")
        self.send_frame(self._encoder.encode_command(name, *args))

    def send_frame(self, frame: bytes) -> None:
        """フレームを最後まで送信する.

        Raises:
            RedisConnectionError: 送信に失敗した、または未接続
        """
        sock = self._require_socket()
        if self.trace:
            logger.debug(f"[SEND RAW] {frame!r}")

        view = memoryview(frame)
        while view:
            try:
                sent = sock.send(view)
            except OSError as e:
                self._invalidate()
                raise RedisConnectionError(
                    f"Could not write to Redis server: {e}"
                ) from e
            if not sent:
                self._invalidate()
                raise RedisConnectionError("Could not write to Redis server")
            view = view[sent:]

    def receive(self) -> Reply:
        """リプライを1つ受信してパースする.

        Raises:
            RedisConnectionError: 受信中に接続が切れた
            RESPProtocolError: 不正なリプライ
        """
        self._require_socket()
        try:
            reply = self._parser.read_reply(self._buffer)
        except (RedisConnectionError, RESPProtocolError):
            self._invalidate()
            raise

        if self.trace:
            logger.debug(f"[RECV] {reply!r}")
        return reply

    def close(self) -> None:
        """ソケットを閉じる（閉じた後の呼び出しは何もしない）"""
        if self._sock is None:
            return
        sock = self._sock
        self._sock = None
        self._buffer.clear()
        self._buffer = None
        try:
            sock.close()
        finally:
            logger.debug(f"Closed connection to {self.host}:{self.port}")

    def _require_socket(self):
        if self._sock is None:
            raise RedisConnectionError("Not connected to any server")
        return self._sock

    def _invalidate(self) -> None:
        logger.warning(f"Connection to {self.host}:{self.port} is no longer usable")
        try:
            self.close()
        except OSError:
            logger.debug("Error while closing broken socket", exc_info=True)
