# src/tibia_login/__init__.py
"""
Tibia-Login v1.0.0
Tibia (< 9.80) 登录握手包的编解码库。
"""

# 暴露版本能力表
from .capabilities import Capabilities, resolve_capabilities

# 暴露核心配置
from .config import (
    CodecConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露编解码器与数据模型
from .core import LoginCodec

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    ChecksumError,
    ConfigError,
    DecodeError,
    EncodeError,
    EnvelopeError,
    FieldValueError,
    KeySizeError,
    MalformedPacketError,
    PayloadTooLargeError,
    SentinelError,
    TibiaPacketError,
    TruncatedInputError,
    UnsupportedVersionError,
)
from .protocols import build_login_packet, parse_login_packet
from .record import LoginRecord

__version__ = "1.0.0"

__all__ = [
    "LoginCodec",
    "LoginRecord",
    "Capabilities",
    "resolve_capabilities",
    "build_login_packet",
    "parse_login_packet",
    "CodecConfig",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "TibiaPacketError",
    "ConfigError",
    "UnsupportedVersionError",
    "DecodeError",
    "EncodeError",
    "TruncatedInputError",
    "MalformedPacketError",
    "ChecksumError",
    "SentinelError",
    "EnvelopeError",
    "KeySizeError",
    "PayloadTooLargeError",
    "FieldValueError",
]
