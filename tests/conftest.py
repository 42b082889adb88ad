"""Shared fixtures for the client tests."""

import pytest

from mini_redis_client.connection import Connection


class MockSocket:
    """テスト用のモックソケット.

    recv()はfeed()で積まれたチャンクを順に返し、尽きたらb""（EOF）を返します。
    send()に渡されたデータはsentにキャプチャされます。
    """

    def __init__(self, max_send: int | None = None) -> None:
        """モックソケットを初期化.

        Args:
            max_send: 1回のsend()で受け付ける最大バイト数（部分送信の再現用）
        """
        self.sent = bytearray()
        self.closed = False
        self.recv_calls = 0
        self._chunks: list[bytes] = []
        self._max_send = max_send

    def feed(self, data: bytes, chunk_size: int | None = None) -> None:
        """受信データを積む（chunk_sizeごとに分割される）."""
        size = chunk_size or len(data) or 1
        for start in range(0, len(data), size):
            self._chunks.append(data[start : start + size])

    def recv(self, bufsize: int) -> bytes:
        """積まれたチャンクを返す."""
        if self.closed:
            raise OSError("socket is closed")
        self.recv_calls += 1
        if not self._chunks:
            return b""
        chunk = self._chunks.pop(0)
        if len(chunk) > bufsize:
            self._chunks.insert(0, chunk[bufsize:])
            chunk = chunk[:bufsize]
        return chunk

    def send(self, data) -> int:
        """データをバッファに書き込む."""
        if self.closed:
            raise OSError("socket is closed")
        data = bytes(data)
        if self._max_send is not None:
            data = data[: self._max_send]
        self.sent.extend(data)
        return len(data)

    def close(self) -> None:
        """接続を閉じる."""
        self.closed = True


@pytest.fixture
def socket_class() -> type[MockSocket]:
    return MockSocket


@pytest.fixture
def mock_socket() -> MockSocket:
    return MockSocket()


@pytest.fixture
def socket_factory(mock_socket):
    """Connectionに渡すソケットファクトリ（接続先を記録する）."""

    def factory(address, timeout=None):
        factory.address = address
        factory.timeout = timeout
        return mock_socket

    return factory


@pytest.fixture
def connection(socket_factory) -> Connection:
    return Connection(socket_factory=socket_factory)
