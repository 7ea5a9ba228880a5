# File: src/tibia_login/capabilities.py
"""
Tibia Login 编解码库 - 版本能力表 (Capabilities)

根据协议版本号解析出一组固定的布局开关:
是否使用 RSA 信封、是否携带 XTEA 会话密钥、账号是字符串还是整数、是否带 Adler-32 前缀。

解析结果在每次编解码操作开始时计算一次，之后的分支判断全部基于该结果。
"""

from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import UnsupportedVersionError

# 9.80 及以上的登录包格式已完全改变
VERSION_CUTOFF = 980


@dataclass(frozen=True)
class Capabilities:
    """单个协议版本的布局开关。

    Attributes:
        version: 协议版本号 (如 860 表示 8.60)。
        has_envelope: 载荷是否使用 RSA (无填充) 加密。
        has_session_key: 凭据字段前是否有 16 字节 XTEA 会话密钥。
        account_is_string: 账号是否为 u16 长度前缀字符串 (否则为 u32 整数)。
        has_checksum_prefix: 数据包前是否有 8 字符的 Adler-32 十六进制前缀。
        client_build: 默认的客户端 Build 号。
    """

    version: int
    has_envelope: bool
    has_session_key: bool
    account_is_string: bool
    has_checksum_prefix: bool
    client_build: int


# (起始版本, 结束版本, envelope, session_key, account_is_string, checksum)
_VERSION_TABLE: tuple[tuple[int, int, bool, bool, bool, bool], ...] = (
    (700, 769, False, False, False, False),
    (770, 829, True, True, False, False),
    (830, 860, True, True, True, False),
    (861, VERSION_CUTOFF - 1, True, True, True, True),
)

CapabilityResolver = Callable[[int], Capabilities]


def resolve_capabilities(version: int) -> Capabilities:
    """查询协议版本对应的布局开关。

    Args:
        version: 协议版本号 (整数形式, 如 860)。

    Returns:
        Capabilities: 该版本的布局开关。

    Raises:
        UnsupportedVersionError: 版本 >= 980、低于能力表下限或不是整数。
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise UnsupportedVersionError(version, f"协议版本必须是整数: {version!r}")

    if version >= VERSION_CUTOFF:
        raise UnsupportedVersionError(version)

    for low, high, envelope, session_key, acc_str, checksum in _VERSION_TABLE:
        if low <= version <= high:
            return Capabilities(
                version=version,
                has_envelope=envelope,
                has_session_key=session_key,
                account_is_string=acc_str,
                has_checksum_prefix=checksum,
                client_build=version,
            )

    raise UnsupportedVersionError(
        version, f"能力表中没有协议版本 {version} 的条目 (最低 {_VERSION_TABLE[0][0]})"
    )
