# File: src/tibia_login/utils.py
"""
Tibia Login 编解码库 - 通用工具箱

本模块汇集了登录包编解码共用的校验与字段读写辅助函数。
"""

import struct
import zlib

from .exceptions import (
    ChecksumError,
    FieldValueError,
    MalformedPacketError,
    TruncatedInputError,
)

CHECKSUM_PREFIX_LEN = 8  # 8 字符 ASCII 十六进制 Adler-32
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF


def adler32(data: bytes) -> int:
    """计算 Adler-32 校验和。

    Args:
        data: 需要计算校验和的原始字节流。

    Returns:
        int: 32 位无符号校验值。
    """
    return zlib.adler32(data) & U32_MAX


def format_checksum_prefix(value: int) -> bytes:
    """将 32 位校验值格式化为 8 字符 ASCII 十六进制前缀。

    算法逻辑:
    1. 按大端序打包为 4 字节。
    2. 转为小写十六进制文本，以字面字节 (而非二进制) 形式返回。

    Args:
        value: 32 位校验值。

    Returns:
        bytes: 8 字节 ASCII 前缀，如 b"0a1b2c3d"。
    """
    return struct.pack(">I", value & U32_MAX).hex().encode("ascii")


def parse_checksum_prefix(prefix: bytes) -> int:
    """解析 8 字符十六进制前缀 (大小写均可)。

    Raises:
        ChecksumError: 前缀长度不对或包含非十六进制字符。
    """
    if len(prefix) != CHECKSUM_PREFIX_LEN:
        raise ChecksumError(f"校验前缀长度应为 8, 实际为 {len(prefix)}")
    try:
        raw = bytes.fromhex(prefix.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ChecksumError(f"校验前缀不是合法的十六进制: {prefix!r}") from e
    return struct.unpack(">I", raw)[0]


def is_hex_digit(byte: int) -> bool:
    """判断单个字节是否为 ASCII 十六进制字符。"""
    return byte in b"0123456789abcdefABCDEF"


def pack_string(field: str, value: str, encoding: str) -> bytes:
    """编码 u16 小端长度前缀字符串。

    Raises:
        FieldValueError: 无法编码或长度超过 65535 字节。
    """
    if not isinstance(value, str):
        raise FieldValueError(field, f"需要 str, 实际为 {type(value).__name__}")
    try:
        raw = value.encode(encoding)
    except UnicodeEncodeError as e:
        raise FieldValueError(
            field, f"包含 {encoding} 无法编码的字符: {e.object[e.start : e.end]!r}"
        ) from e
    if len(raw) > U16_MAX:
        raise FieldValueError(field, f"长度 {len(raw)} 超过 {U16_MAX} 字节")
    return struct.pack("<H", len(raw)) + raw


def pack_uint(field: str, fmt: str, value: int, limit: int) -> bytes:
    """打包无符号整数，超出范围时报出字段名。"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldValueError(field, f"需要 int, 实际为 {type(value).__name__}")
    if not 0 <= value <= limit:
        raise FieldValueError(field, f"取值 {value} 超出范围 0..{limit}")
    return struct.pack(fmt, value)


def fit_padding(padding: bytes, length: int) -> bytes:
    """将填充字节截断或补零到指定长度。"""
    return padding[:length].ljust(length, b"\x00")


class ByteReader:
    """带字段名校验的顺序读取游标。

    所有读取在长度不足时抛出 TruncatedInputError，并指明出错的字段。
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, field: str, size: int) -> bytes:
        if self.remaining < size:
            raise TruncatedInputError(field, size, self.remaining)
        chunk = self.data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def read_u8(self, field: str) -> int:
        return self.read(field, 1)[0]

    def read_u16(self, field: str) -> int:
        return struct.unpack("<H", self.read(field, 2))[0]

    def read_u32(self, field: str) -> int:
        return struct.unpack("<I", self.read(field, 4))[0]

    def read_string(self, field: str, encoding: str) -> str:
        length = self.read_u16(f"{field}.length")
        raw = self.read(field, length)
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise MalformedPacketError(
                f"字段 '{field}' 无法按 {encoding} 解码: {raw!r}"
            ) from e

    def read_rest(self) -> bytes:
        chunk = self.data[self.offset :]
        self.offset = len(self.data)
        return chunk
