# src/tibia_login/protocols/login.py
"""
Tibia 登录包 (Login) 编解码器

负责 LoginRecord 与线格式字节流之间的双向转换。
本模块是无状态的，不持有密钥或配置；每次调用只解析一次版本能力表。

线格式:
    u16_le length
    [8 字符 ASCII 十六进制 Adler-32]      (has_checksum_prefix)
    u8 opcode + u16_le os + u16_le build
    u8 0x00 (角色登录) | u32_le x3 (spr/dat/pic)
    载荷: 明文，或 128 字节 RSA 密文 (has_envelope)
"""

import logging
import secrets
import struct
from collections.abc import Callable

from .. import utils
from ..capabilities import (
    VERSION_CUTOFF,
    Capabilities,
    CapabilityResolver,
    resolve_capabilities,
)
from ..crypto import (
    RsaKeyLike,
    key_size_bytes,
    load_rsa_key,
    rsa_decrypt_raw,
    rsa_encrypt_raw,
)
from ..exceptions import (
    ChecksumError,
    EnvelopeError,
    FieldValueError,
    KeySizeError,
    MalformedPacketError,
    PayloadTooLargeError,
    SentinelError,
    TruncatedInputError,
    UnsupportedVersionError,
)
from ..record import OPCODE_CHARACTER_LOGIN, OPCODE_OS_SELECTION, LoginRecord
from .constants import FrameConst, HeaderConst, LoginConst

logger = logging.getLogger(__name__)

ChecksumFunc = Callable[[bytes], int]


def _resolve(version: int, resolver: CapabilityResolver) -> Capabilities:
    """解析版本能力表，并强制执行 9.80 版本上限。"""
    if isinstance(version, int) and version >= VERSION_CUTOFF:
        raise UnsupportedVersionError(version)
    return resolver(version)


def _envelope_key(rsa_key: RsaKeyLike | None, caps: Capabilities):
    """加载信封密钥并校验其为 1024 bit。"""
    if rsa_key is None:
        raise EnvelopeError(f"协议 {caps.version} 需要 RSA 密钥，但未提供")
    key = load_rsa_key(rsa_key)
    size = key_size_bytes(key)
    if size != LoginConst.RSA_BLOCK_SIZE:
        logger.warning(
            "RSA 密钥长度不匹配: version=%d key_bits=%d", caps.version, size * 8
        )
        raise KeySizeError(LoginConst.RSA_BLOCK_SIZE, size, caps.version)
    return key


# =========================================================================
# Encode
# =========================================================================


def build_login_packet(
    record: LoginRecord,
    rsa_key: RsaKeyLike | None,
    resolver: CapabilityResolver = resolve_capabilities,
    checksum: ChecksumFunc = utils.adler32,
    encoding: str = LoginConst.DEFAULT_ENCODING,
) -> bytes:
    """将登录记录编码为完整的登录数据包。

    Args:
        record: 待编码的登录记录。编码结果会缓存到 record.raw_packet。
        rsa_key: RSA 密钥 (RsaKey 或 PEM/DER 原始数据)。无信封的版本可传 None。
        resolver: 版本能力表查询函数。
        checksum: 32 位校验函数 (默认 Adler-32)。
        encoding: 字符串字段的编码。

    Returns:
        bytes: 带 u16 长度前缀的数据包。

    Raises:
        UnsupportedVersionError: 协议版本不受支持。
        KeySizeError: 需要信封但密钥不是 1024 bit。
        PayloadTooLargeError: 明文载荷超过 128 字节。
        EnvelopeError: 密钥无法加载或加密失败。
        FieldValueError: 字段取值超出线格式范围。
    """
    caps = _resolve(record.protocol_version, resolver)

    # 密钥校验先于载荷构建，与载荷内容无关
    key = _envelope_key(rsa_key, caps) if caps.has_envelope else None

    client_build = (
        record.client_build if record.client_build is not None else caps.client_build
    )

    # 1. Header
    pkt = bytearray()
    pkt.append(record.opcode)
    pkt.extend(utils.pack_uint("os_id", "<H", record.os_id, utils.U16_MAX))
    pkt.extend(utils.pack_uint("client_build", "<H", client_build, utils.U16_MAX))

    if record.is_character_login:
        pkt.extend(HeaderConst.CHARACTER_MARKER)
    else:
        for name in ("spr_revision", "dat_revision", "pic_revision"):
            value = getattr(record, name)
            pkt.extend(utils.pack_uint(name, "<I", value, utils.U32_MAX))

    # 2. Payload
    payload = bytearray()
    if caps.has_envelope:
        payload.append(LoginConst.SENTINEL)

    if caps.has_session_key:
        if record.session_key is None:
            record.session_key = secrets.token_bytes(LoginConst.SESSION_KEY_LEN)
            logger.debug("build_login_packet: 未提供会话密钥，已随机生成")
        if len(record.session_key) != LoginConst.SESSION_KEY_LEN:
            raise FieldValueError(
                "session_key",
                f"需要 {LoginConst.SESSION_KEY_LEN} 字节, 实际为 {len(record.session_key)}",
            )
        payload.extend(record.session_key)

    if caps.account_is_string:
        payload.extend(utils.pack_string("account", record.account, encoding))
    else:
        payload.extend(utils.pack_uint("account", "<I", record.account, utils.U32_MAX))

    if record.is_character_login:
        payload.extend(utils.pack_string("character", record.character, encoding))

    payload.extend(utils.pack_string("password", record.password, encoding))

    if record.hardware_info:
        if len(record.hardware_info) != LoginConst.HARDWARE_INFO_LEN:
            raise FieldValueError(
                "hardware_info",
                f"需要 {LoginConst.HARDWARE_INFO_LEN} 字节, 实际为 {len(record.hardware_info)}",
            )
        payload.extend(record.hardware_info)

    # 3. RSA Envelope
    if key is not None:
        if len(payload) > LoginConst.RSA_BLOCK_SIZE:
            raise PayloadTooLargeError(LoginConst.RSA_BLOCK_SIZE, len(payload))
        pad_len = LoginConst.RSA_BLOCK_SIZE - len(payload)
        payload.extend(utils.fit_padding(record.padding, pad_len))
        payload = bytearray(rsa_encrypt_raw(bytes(payload), key))

    pkt.extend(payload)

    # 4. Checksum 前缀
    if caps.has_checksum_prefix:
        pkt[:0] = utils.format_checksum_prefix(checksum(bytes(pkt)))

    if len(pkt) > FrameConst.LENGTH_MAX:
        raise FieldValueError(
            "length", f"数据包长度 {len(pkt)} 超过 {FrameConst.LENGTH_MAX}"
        )

    # 5. 长度前缀
    packet = struct.pack("<H", len(pkt)) + bytes(pkt)
    record.raw_packet = packet

    logger.debug(
        "build_login_packet: version=%d opcode=%#04x envelope=%s checksum=%s len=%d",
        caps.version,
        record.opcode,
        caps.has_envelope,
        caps.has_checksum_prefix,
        len(packet),
    )
    return packet


# =========================================================================
# Decode
# =========================================================================


def parse_login_packet(
    packet: bytes,
    rsa_key: RsaKeyLike | None,
    version: int | None = None,
    resolver: CapabilityResolver = resolve_capabilities,
    checksum: ChecksumFunc = utils.adler32,
    encoding: str = LoginConst.DEFAULT_ENCODING,
) -> LoginRecord:
    """将登录数据包解码为登录记录。

    Args:
        packet: 带 u16 长度前缀的原始数据包。
        rsa_key: RSA 私钥 (RsaKey 或 PEM/DER 原始数据)。无信封的版本可传 None。
        version: 显式指定的协议版本。为 None 时使用包头中的 Build 号。
        resolver: 版本能力表查询函数。
        checksum: 32 位校验函数 (默认 Adler-32)。
        encoding: 字符串字段的编码。

    Returns:
        LoginRecord: 解码后的登录记录，raw_packet 为输入数据。

    Raises:
        TruncatedInputError: 任一字段长度不足。
        MalformedPacketError: 未知操作码或结构损坏。
        ChecksumError: 校验前缀不匹配或与版本能力不一致。
        UnsupportedVersionError: 协议版本不受支持。
        KeySizeError: 密钥不是 1024 bit。
        EnvelopeError: RSA 解密失败。
        SentinelError: 解密结果首字节不是 0x00。
    """
    packet = bytes(packet)
    reader = utils.ByteReader(packet)

    # 1. 长度前缀
    length = reader.read_u16("length")
    if reader.remaining < length:
        raise TruncatedInputError("body", length, reader.remaining)
    framed = packet[FrameConst.LENGTH_PREFIX_LEN : FrameConst.LENGTH_PREFIX_LEN + length]
    reader = utils.ByteReader(framed)

    # 2. Checksum 前缀 (操作码 0x01/0x0A 不可能是十六进制字符)
    has_prefix = bool(framed) and utils.is_hex_digit(framed[0])
    if has_prefix:
        expected = utils.parse_checksum_prefix(
            reader.read("checksum", utils.CHECKSUM_PREFIX_LEN)
        )
        actual = checksum(framed[utils.CHECKSUM_PREFIX_LEN :]) & utils.U32_MAX
        if expected != actual:
            logger.warning(
                "parse_login_packet: 校验失败 expected=%08x actual=%08x", expected, actual
            )
            raise ChecksumError(
                f"Adler-32 校验失败: 前缀 {expected:08x}, 实际 {actual:08x}"
            )

    # 3. Header
    opcode = reader.read_u8("opcode")
    if opcode not in (OPCODE_OS_SELECTION, OPCODE_CHARACTER_LOGIN):
        raise MalformedPacketError(f"未知的登录包操作码: {opcode:#04x}")

    os_id = reader.read_u16("os_id")
    client_build = reader.read_u16("client_build")

    revisions = (0, 0, 0)
    if opcode == OPCODE_OS_SELECTION:
        revisions = (
            reader.read_u32("spr_revision"),
            reader.read_u32("dat_revision"),
            reader.read_u32("pic_revision"),
        )
    else:
        marker = reader.read("character_marker", len(HeaderConst.CHARACTER_MARKER))
        if marker != HeaderConst.CHARACTER_MARKER:
            raise MalformedPacketError(f"角色登录包头应为 0x00, 实际为 {marker.hex()}")

    # 4. 版本能力 (只解析一次)
    caps = _resolve(client_build if version is None else version, resolver)
    if caps.has_checksum_prefix != has_prefix:
        raise ChecksumError(
            f"协议 {caps.version} {'需要' if caps.has_checksum_prefix else '不应有'} Adler-32 前缀"
        )

    # 5. RSA Envelope
    if caps.has_envelope:
        key = _envelope_key(rsa_key, caps)
        body = reader.read_rest()
        if len(body) < LoginConst.RSA_BLOCK_SIZE:
            raise TruncatedInputError("envelope", LoginConst.RSA_BLOCK_SIZE, len(body))
        if len(body) > LoginConst.RSA_BLOCK_SIZE:
            raise EnvelopeError(
                f"RSA 密文长度应为 {LoginConst.RSA_BLOCK_SIZE}, 实际为 {len(body)}"
            )
        plain = rsa_decrypt_raw(body, key)
        if plain[0] != LoginConst.SENTINEL:
            logger.warning("parse_login_packet: RSA 哨兵字节错误，密钥可能不匹配")
            raise SentinelError(plain[0])
        reader = utils.ByteReader(plain, offset=1)

    # 6. Payload
    session_key = None
    if caps.has_session_key:
        session_key = reader.read("session_key", LoginConst.SESSION_KEY_LEN)

    if caps.account_is_string:
        account: str | int = reader.read_string("account", encoding)
    else:
        account = reader.read_u32("account")

    character = None
    if opcode == OPCODE_CHARACTER_LOGIN:
        character = reader.read_string("character", encoding)

    password = reader.read_string("password", encoding)

    # 硬件指纹: 无剩余字节时视为未携带；信封内的全零区域是填充，同样视为未携带
    tail = reader.read_rest()
    hardware_info = tail[: LoginConst.HARDWARE_INFO_LEN]
    padding = tail[LoginConst.HARDWARE_INFO_LEN :]
    if caps.has_envelope and not any(hardware_info):
        hardware_info = b""
    elif hardware_info and len(hardware_info) < LoginConst.HARDWARE_INFO_LEN:
        raise TruncatedInputError(
            "hardware_info", LoginConst.HARDWARE_INFO_LEN, len(hardware_info)
        )

    logger.debug(
        "parse_login_packet: version=%d opcode=%#04x envelope=%s checksum=%s",
        caps.version,
        opcode,
        caps.has_envelope,
        has_prefix,
    )

    return LoginRecord(
        protocol_version=caps.version,
        account=account,
        password=password,
        os_id=os_id,
        client_build=client_build,
        spr_revision=revisions[0],
        dat_revision=revisions[1],
        pic_revision=revisions[2],
        character=character,
        session_key=session_key,
        hardware_info=hardware_info,
        padding=padding,
        raw_packet=packet,
    )
