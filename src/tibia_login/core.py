# File: src/tibia_login/core.py
"""
Tibia 登录编解码器 (Codec)

职责：
1. 资源组装：Config + RSA 密钥 + 版本能力表。
2. 在进程启动时一次性加载密钥，之后每次编解码显式传入协议层。
"""

import logging
from typing import Any

from .capabilities import CapabilityResolver, resolve_capabilities
from .config import CodecConfig, load_rsa_key_file
from .crypto import RsaKeyLike, load_rsa_key
from .protocols import build_login_packet, parse_login_packet
from .record import LoginRecord

logger = logging.getLogger(__name__)


class LoginCodec:
    """绑定了配置与密钥的登录包编解码器。

    协议层函数本身是无状态的，本类只负责提供默认值。
    同一实例可被多个线程并发使用 (内部无可变共享状态)。
    """

    def __init__(
        self,
        config: CodecConfig,
        rsa_key: RsaKeyLike | None = None,
        resolver: CapabilityResolver = resolve_capabilities,
    ) -> None:
        """初始化编解码器。

        Args:
            config: 全局配置对象。
            rsa_key: RSA 密钥。为 None 时从 config.rsa_key_path 加载 (若已配置)。
            resolver: 版本能力表查询函数。

        Raises:
            ConfigError: 密钥文件无法读取。
            EnvelopeError: 密钥格式无法识别。
        """
        self.config = config
        self.resolver = resolver

        if rsa_key is None and config.rsa_key_path is not None:
            rsa_key = load_rsa_key_file(config)

        self.rsa_key = load_rsa_key(rsa_key) if rsa_key is not None else None
        if self.rsa_key is None:
            logger.info("未加载 RSA 密钥，仅支持无信封的协议版本")
        else:
            logger.info(
                f"RSA 密钥已加载 ({self.rsa_key.size_in_bits()} bit, "
                f"默认协议 {config.protocol_version})"
            )

    def new_record(self, **fields: Any) -> LoginRecord:
        """创建登录记录，缺省的版本与平台标识取自配置。"""
        fields.setdefault("protocol_version", self.config.protocol_version)
        fields.setdefault("os_id", self.config.os_id)
        return LoginRecord(**fields)

    def encode(self, record: LoginRecord) -> bytes:
        """编码登录记录，结果同时缓存在 record.raw_packet。"""
        return build_login_packet(
            record,
            self.rsa_key,
            resolver=self.resolver,
            encoding=self.config.string_encoding,
        )

    def decode(self, packet: bytes, version: int | None = None) -> LoginRecord:
        """解码登录数据包。

        Args:
            packet: 带长度前缀的原始数据包。
            version: 显式指定的协议版本，为 None 时使用包头中的 Build 号。
        """
        return parse_login_packet(
            packet,
            self.rsa_key,
            version=version,
            resolver=self.resolver,
            encoding=self.config.string_encoding,
        )
