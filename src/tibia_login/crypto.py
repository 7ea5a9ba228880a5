# File: src/tibia_login/crypto.py
"""
Tibia Login 编解码库 - RSA 信封原语

登录包使用“无填充”的教科书式 RSA:
明文块与密钥模数等长，填充与首字节哨兵约定完全由编解码层负责。
"""

import logging

from Crypto.PublicKey import RSA

from .exceptions import EnvelopeError

logger = logging.getLogger(__name__)

RsaKeyLike = RSA.RsaKey | bytes | str


def load_rsa_key(key: RsaKeyLike) -> RSA.RsaKey:
    """加载 RSA 密钥。

    Args:
        key: 已加载的 RsaKey 对象，或 PEM/DER 格式的原始密钥 (bytes/str)。

    Returns:
        RSA.RsaKey: 可用于加解密的密钥对象。

    Raises:
        EnvelopeError: 密钥格式无法识别。
    """
    if isinstance(key, RSA.RsaKey):
        return key
    try:
        return RSA.import_key(key)
    except (ValueError, IndexError, TypeError) as e:
        raise EnvelopeError(f"无法加载 RSA 密钥: {e}") from e


def key_size_bytes(key: RSA.RsaKey) -> int:
    """返回密钥模数的字节长度 (1024 bit 密钥为 128)。"""
    return key.size_in_bytes()


def rsa_encrypt_raw(block: bytes, key: RSA.RsaKey) -> bytes:
    """无填充 RSA 加密 (使用公钥指数)。

    Args:
        block: 明文块，长度必须等于密钥字节长度。
        key: RSA 密钥 (公钥或私钥均可)。

    Returns:
        bytes: 与密钥等长的密文。

    Raises:
        EnvelopeError: 块长度不符或明文数值不小于模数。
    """
    size = key_size_bytes(key)
    if len(block) != size:
        raise EnvelopeError(f"RSA 明文块长度应为 {size}, 实际为 {len(block)}")

    m = int.from_bytes(block, byteorder="big")
    if m >= key.n:
        raise EnvelopeError("RSA 明文数值不小于模数，无法加密")

    c = pow(m, key.e, key.n)
    return c.to_bytes(size, byteorder="big")


def rsa_decrypt_raw(block: bytes, key: RSA.RsaKey) -> bytes:
    """无填充 RSA 解密 (需要私钥)。

    Args:
        block: 密文块，长度必须等于密钥字节长度。
        key: RSA 私钥。

    Returns:
        bytes: 与密钥等长的明文 (保留前导零字节)。

    Raises:
        EnvelopeError: 密钥不含私钥部分、块长度不符或密文数值越界。
    """
    if not key.has_private():
        raise EnvelopeError("解密需要 RSA 私钥，但提供的是公钥")

    size = key_size_bytes(key)
    if len(block) != size:
        raise EnvelopeError(f"RSA 密文块长度应为 {size}, 实际为 {len(block)}")

    c = int.from_bytes(block, byteorder="big")
    if c >= key.n:
        raise EnvelopeError("RSA 密文数值不小于模数，数据包已损坏")

    m = pow(c, key.d, key.n)
    logger.debug("rsa_decrypt_raw: block_len=%d", size)
    return m.to_bytes(size, byteorder="big")
