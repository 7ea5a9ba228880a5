# File: src/tibia_login/exceptions.py
"""
Tibia Login 编解码库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如登录服务器、抓包工具）能进行精细的错误处理。
所有异常都会携带足够的上下文（字段名、期望值与实际值），错误不会被静默恢复。
"""


class TibiaPacketError(Exception):
    """Tibia Login 编解码库所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 tibia-login 抛出的已知错误。
    """

    pass


class ConfigError(TibiaPacketError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段或字段类型错误。
    2. 找不到配置文件、密钥文件或环境变量。
    """

    pass


class UnsupportedVersionError(ConfigError):
    """协议版本不受支持。

    触发场景:
    1. 版本号 >= 980 (新版登录包格式不在本库范围内)。
    2. 版本号低于能力表中最早的条目。
    3. 版本号不是整数。
    """

    def __init__(self, version: object, message: str | None = None) -> None:
        self.version = version
        super().__init__(message or f"不支持的协议版本: {version!r} (需要 < 980)")


class DecodeError(TibiaPacketError):
    """解码登录包失败 (结构层面的错误)。"""

    pass


class EncodeError(TibiaPacketError):
    """编码登录包失败。"""

    pass


class TruncatedInputError(DecodeError):
    """数据包长度不足，无法读取定长字段或带长度前缀的字段。"""

    def __init__(self, field: str, expected: int, actual: int) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"数据包长度不足: 字段 '{field}' 需要 {expected} 字节, 实际剩余 {actual} 字节"
        )


class MalformedPacketError(DecodeError):
    """数据包结构损坏 (如未知的操作码)。"""

    pass


class ChecksumError(DecodeError):
    """Adler-32 校验前缀缺失、多余或校验失败。"""

    pass


class SentinelError(DecodeError):
    """RSA 解密后的首字节不是 0x00。

    通常意味着使用了错误的私钥，或数据包已被篡改。
    """

    def __init__(self, actual: int) -> None:
        self.actual = actual
        super().__init__(f"RSA 解密结果首字节应为 0x00, 实际为 {actual:#04x}")


class EnvelopeError(DecodeError, EncodeError):
    """RSA 信封层错误 (密钥加载、加密或解密失败)。

    同时属于 DecodeError 与 EncodeError，两个方向都可能抛出。
    """

    pass


class KeySizeError(DecodeError, EncodeError):
    """RSA 密钥长度不符合协议要求 (需要 1024 bit，即 128 字节)。"""

    def __init__(self, expected: int, actual: int, version: int | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.version = version
        prefix = f"协议 {version} " if version is not None else ""
        super().__init__(
            f"{prefix}需要 {expected * 8} bit RSA 密钥, 但提供的是 {actual * 8} bit"
        )


class PayloadTooLargeError(EncodeError):
    """明文载荷在填充前已超过 RSA 块大小。"""

    def __init__(self, limit: int, actual: int) -> None:
        self.limit = limit
        self.actual = actual
        super().__init__(f"RSA 载荷过大: 上限 {limit} 字节, 实际 {actual} 字节")


class FieldValueError(EncodeError):
    """字段取值超出线格式允许的范围 (如 u16 溢出、字符串过长)。"""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"字段 '{field}' 无效: {message}")
