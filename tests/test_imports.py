"""Test that all modules can be imported successfully."""


def test_import_exceptions() -> None:
    """Test that exceptions module can be imported."""
    from mini_redis_client.exceptions import (
        CommandError,
        RedisClientError,
        RedisConnectionError,
        RESPProtocolError,
    )

    assert issubclass(CommandError, RedisClientError)
    assert issubclass(RESPProtocolError, RedisClientError)
    assert issubclass(RedisConnectionError, ConnectionError)


def test_import_protocol() -> None:
    """Test that protocol module can be imported."""
    from mini_redis_client.protocol import RESPEncoder, RESPParser

    assert RESPEncoder is not None
    assert RESPParser is not None


def test_import_connection() -> None:
    """Test that connection and buffer modules can be imported."""
    from mini_redis_client.buffer import ReadBuffer
    from mini_redis_client.connection import Connection

    assert ReadBuffer is not None
    assert Connection is not None


def test_import_commands() -> None:
    """Test that commands module can be imported."""
    from mini_redis_client.commands import RedisClient, connect

    assert RedisClient is not None
    assert connect is not None
