"""RESP (REdis Serialization Protocol) encoder and reply parser.

このモジュールは、コマンドのエンコード（Pythonオブジェクト→バイト列）と
リプライのパース（バイト列→Pythonオブジェクト）を担当します。

"""

import re
from dataclasses import dataclass

from mini_redis_client.buffer import ReadBuffer
from mini_redis_client.exceptions import RESPProtocolError

INTEGER_PAYLOAD = re.compile(rb"-?[0-9]+")


@dataclass
class SimpleString:
    """Simple String型を表すラッパー (+)"""
    value: str | bytes

@dataclass
class RedisError:
    """Error型を表すラッパー (-)"""
    value: str

@dataclass
class Integer:
    """Integer型を表すラッパー (:)"""
    value: int

@dataclass
class BulkString:
    """Bulk String型を表すラッパー ($)"""
    value: str | bytes | None  # NoneはNull Bulk String（空文字列とは別）

@dataclass
class Array:
    """Array型を表すラッパー (*)"""
    items: list | None  # Noneの場合はNull Array


Reply = SimpleString | RedisError | Integer | BulkString | Array


class RESPEncoder:
    """RESPのエンコーダ.

    責務:
    - コマンド名と引数をmulti-bulk形式のリクエストフレームにエンコード
    - Reply値をRESPのリプライ形式にエンコード（テスト用サーバで使用）

    文字列はバイト列に変換してから長さを計算します（文字数ではなくバイト数）。
    """

    def __init__(self, encoding: str | None = "utf-8", errors: str = "strict") -> None:
        """エンコーダを初期化.

        Args:
            encoding: 文字列をバイト列に変換するコーデック（Noneの場合はUTF-8）
            errors: コーデックのエラー処理方式
        """
        self._encoding = encoding or "utf-8"
        self._errors = errors

    def to_bytes(self, value) -> bytes:
        """引数1つをバイト列に変換する"""
        if isinstance(value, bytes):
            return value
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
        if not isinstance(value, str):
            value = str(value)
        return value.encode(self._encoding, self._errors)

    def encode_command(self, name, *args) -> bytes:
        """コマンドをmulti-bulk形式にエンコード.

        Args:
            name: コマンド名（大文字に正規化される）
            *args: 引数（Noneは$-1としてエンコードされる）

        Returns:
            リクエストフレーム

        例: ("get", "foo") → b'*2\\r\\n$3\\r\\nGET\\r\\n$3\\r\\nfoo\\r\\n'

        """
        parts = [f"*{len(args) + 1}\r\n".encode("ascii")]
        for element in (self.to_bytes(name).upper(), *args):
            if element is None:
                parts.append(b"$-1\r\n")
                continue
            data = self.to_bytes(element)
            parts.append(f"${len(data)}\r\n".encode("ascii"))
            parts.append(data)
            parts.append(b"\r\n")
        return b"".join(parts)

    def encode_simple_string(self, value: str | bytes) -> bytes:
        """Simple Stringをエンコードする"""
        return b"+" + self.to_bytes(value) + b"\r\n"

    def encode_error(self, message: str) -> bytes:
        """エラーメッセージをエンコードする"""
        return b"-" + self.to_bytes(message) + b"\r\n"

    def encode_integer(self, value: int) -> bytes:
        """整数をエンコードする"""
        return f":{value}\r\n".encode("ascii")

    def encode_bulk_string(self, value: str | bytes | None) -> bytes:
        """Bulk Stringをエンコードする"""
        if value is None:
            # Null値
            return b"$-1\r\n"

        data = self.to_bytes(value)
        # $<length>\r\n<data>\r\n
        return f"${len(data)}\r\n".encode("ascii") + data + b"\r\n"

    def encode_array(self, items: list | None) -> bytes:
        """Arrayをエンコード"""
        if items is None:
            # Null Array
            return b"*-1\r\n"

        result = f"*{len(items)}\r\n".encode("ascii")
        for item in items:
            result += self.encode_reply(item)
        return result

    def encode_reply(self, reply: Reply) -> bytes:
        """Reply値を適切な形式でエンコードする"""
        if isinstance(reply, SimpleString):
            return self.encode_simple_string(reply.value)
        elif isinstance(reply, RedisError):
            return self.encode_error(reply.value)
        elif isinstance(reply, Integer):
            return self.encode_integer(reply.value)
        elif isinstance(reply, BulkString):
            return self.encode_bulk_string(reply.value)
        elif isinstance(reply, Array):
            return self.encode_array(reply.items)
        else:
            raise ValueError(f"Unsupported type: {type(reply)}")


class RESPParser:
    """RESPリプライのパーサ.

    責務:
    - ReadBufferから1リプライ分を読み取り、Reply値に変換
    - ネストしたArrayを明示的なスタックで処理（再帰の深さに依存しない）
    - テキストのペイロードをコーデックでデコード

    Errorリプライ(-)はRedisErrorとして返します。Arrayの途中にErrorが
    含まれていても残りの要素を読み切るためです。例外への変換は呼び出し側で行います。
    """

    def __init__(self, encoding: str | None = "utf-8", errors: str = "strict") -> None:
        """パーサを初期化.

        Args:
            encoding: ペイロードのデコードに使うコーデック（Noneの場合はbytesのまま返す）
            errors: コーデックのエラー処理方式
        """
        self._encoding = encoding
        self._errors = errors

    def read_reply(self, buffer: ReadBuffer) -> Reply:
        """1つの完全なリプライを読み取る.

        Args:
            buffer: ソケットに結びついたReadBuffer

        Returns:
            パース済みのReply値

        Raises:
            RESPProtocolError: 不正なRESP形式
            RedisConnectionError: 読み取り途中で接続が切れた
        """
        # 読み取り中のArrayごとに (要素リスト, 要素数) を積む
        pending: list[tuple[list, int]] = []
        while True:
            reply, count = self._read_element(buffer)
            if count:
                pending.append(([], count))
                continue

            while pending:
                items, expected = pending[-1]
                items.append(reply)
                if len(items) < expected:
                    break
                pending.pop()
                reply = Array(items)
            else:
                return reply

    def _read_element(self, buffer: ReadBuffer) -> tuple[Reply | None, int]:
        """1行読み取り、完成したReplyか、続く要素数を返す"""
        line = buffer.ensure_line()
        if not line:
            raise RESPProtocolError("Empty reply line")

        tag = line[:1]
        payload = line[1:]

        if tag == b"+":
            return SimpleString(self._decode(payload)), 0
        if tag == b"-":
            return RedisError(self._decode_error(payload)), 0
        if tag == b":":
            return Integer(self._parse_int(tag, payload)), 0
        if tag == b"$":
            length = self._parse_int(tag, payload)
            if length < 0:
                return BulkString(None), 0
            return BulkString(self._decode(buffer.ensure_exact(length))), 0
        if tag == b"*":
            count = self._parse_int(tag, payload)
            if count < 0:
                return Array(None), 0
            if count == 0:
                return Array([]), 0
            return None, count

        raise RESPProtocolError(f"Unknown reply type: {tag!r} ({payload!r})")

    def _parse_int(self, tag: bytes, payload: bytes) -> int:
        # 10進数字のみ、符号は先頭の "-" だけ
        if not INTEGER_PAYLOAD.fullmatch(payload):
            raise RESPProtocolError(
                f"Invalid integer payload for {tag!r}: {payload!r}"
            )
        return int(payload)

    def _decode(self, data: bytes) -> str | bytes:
        if self._encoding is None:
            return data
        try:
            return data.decode(self._encoding, self._errors)
        except UnicodeDecodeError as e:
            raise RESPProtocolError(f"Cannot decode reply payload: {e}") from e

    def _decode_error(self, data: bytes) -> str:
        # エラーメッセージは報告のため常に文字列にする
        return data.decode(self._encoding or "utf-8", "replace")
