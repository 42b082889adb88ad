"""Read accumulator for a blocking socket.

このモジュールは、TCPのバイトストリームをRESPの論理単位
（CRLFで終わる行、または長さ指定のペイロード）に切り出す役割を担当します。
ストリームとメッセージの境界変換はここでのみ行います。
"""

import logging

from mini_redis_client.exceptions import RedisConnectionError, RESPProtocolError

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
READ_CHUNK_SIZE = 8192


class ReadBuffer:
    """ソケットから読み込んだ未消費バイトを保持するバッファ.

    責務:
    - 1行（CRLFまで）の切り出し: ensure_line()
    - 長さ指定のペイロードの切り出し: ensure_exact(n)
    - データが足りない場合はソケットから追加で読み込む

    消費されなかったバイトは次の呼び出しのために残ります。
    """

    def __init__(self, sock, chunk_size: int = READ_CHUNK_SIZE) -> None:
        """バッファを初期化.

        Args:
            sock: recv()を持つブロッキングソケット
            chunk_size: 1回のrecv()で要求する最大バイト数
        """
        self._sock = sock
        self._chunk_size = chunk_size
        self._buf = bytearray()

    @property
    def pending(self) -> int:
        """まだ消費されていないバイト数."""
        return len(self._buf)

    def ensure_line(self) -> bytes:
        """CRLFまでの1行を取り出す（CRLFは含まない）."""
        start = 0
        while True:
            index = self._buf.find(CRLF, start)
            if index >= 0:
                line = bytes(self._buf[:index])
                del self._buf[: index + len(CRLF)]
                return line
            # CRが末尾にある場合は次のチャンクでLFが来るかもしれない
            start = max(len(self._buf) - 1, 0)
            self._fill()

    def ensure_exact(self, n: int) -> bytes:
        """nバイトのペイロードと末尾のCRLFを取り出し、ペイロードのみ返す."""
        while len(self._buf) < n + len(CRLF):
            self._fill()

        terminator = bytes(self._buf[n : n + len(CRLF)])
        if terminator != CRLF:
            raise RESPProtocolError(
                f"Expected CRLF after {n} byte payload, got: {terminator!r}"
            )

        data = bytes(self._buf[:n])
        del self._buf[: n + len(CRLF)]
        return data

    def clear(self) -> None:
        """未消費のバイトをすべて破棄する."""
        self._buf.clear()

    def _fill(self) -> None:
        try:
            chunk = self._sock.recv(self._chunk_size)
        except OSError as e:
            raise RedisConnectionError(
                f"Error while reading from Redis server: {e}"
            ) from e

        if not chunk:
            raise RedisConnectionError("Redis server closed connection")

        self._buf.extend(chunk)
