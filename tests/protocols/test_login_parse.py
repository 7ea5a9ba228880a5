# tests/protocols/test_login_parse.py
"""
测试登录包解析 (Decode) 以及编码/解码的往返一致性。
"""

import struct

import pytest
from Crypto.PublicKey import RSA

from tibia_login.crypto import rsa_encrypt_raw
from tibia_login.exceptions import (
    ChecksumError,
    DecodeError,
    EnvelopeError,
    KeySizeError,
    MalformedPacketError,
    SentinelError,
    TruncatedInputError,
    UnsupportedVersionError,
)
from tibia_login.protocols import build_login_packet, parse_login_packet
from tibia_login.record import LoginRecord


def _frame(body: bytes) -> bytes:
    return struct.pack("<H", len(body)) + body


def _os_header(version: int = 860) -> bytes:
    return b"\x01" + struct.pack("<HHIII", 2, version, 10, 20, 30)


# =========================================================================
# 往返 (Round-trip)
# =========================================================================


@pytest.mark.parametrize("version", [710, 740, 760])
def test_roundtrip_plain_versions(make_record, hardware_info, version):
    """无信封的版本: 所有字段完整还原"""
    record = make_record(
        protocol_version=version,
        client_build=version,
        account=987654,
        session_key=None,
        hardware_info=hardware_info,
    )
    decoded = parse_login_packet(build_login_packet(record, None), None)
    assert decoded == record


def test_roundtrip_plain_without_hardware_info(make_record):
    record = make_record(
        protocol_version=760, client_build=760, account=5, session_key=None
    )
    decoded = parse_login_packet(build_login_packet(record, None), None)
    assert decoded == record
    assert decoded.hardware_info == b""
    assert decoded.padding == b""


def test_roundtrip_plain_zero_hardware_info(make_record):
    """明文包中全零的硬件指纹是真实数据，不能当作未携带"""
    record = make_record(
        protocol_version=760,
        client_build=760,
        account=1,
        session_key=None,
        hardware_info=b"\x00" * 47,
    )
    decoded = parse_login_packet(build_login_packet(record, None), None)
    assert decoded == record
    assert decoded.hardware_info == b"\x00" * 47


def test_decode_plain_partial_zero_hardware_info(make_record):
    record = make_record(
        protocol_version=760, client_build=760, account=1, session_key=None
    )
    body = build_login_packet(record, None)[2:] + b"\x00" * 10
    with pytest.raises(TruncatedInputError) as exc_info:
        parse_login_packet(_frame(body), None)
    assert exc_info.value.field == "hardware_info"


def test_roundtrip_860_scenario(rsa_key):
    """8.60: 信封 + 会话密钥 + 字符串账号，无校验前缀"""
    record = LoginRecord(
        protocol_version=860,
        account="user1",
        password="pass1",
        os_id=2,
        client_build=860,
    )
    packet = build_login_packet(record, rsa_key)
    decoded = parse_login_packet(packet, rsa_key)

    assert decoded.account == "user1"
    assert decoded.password == "pass1"
    assert decoded.protocol_version == 860
    assert decoded.client_build == 860
    assert decoded.os_id == 2
    assert decoded.hardware_info == b""
    assert decoded.session_key == record.session_key
    assert decoded.raw_packet == packet


@pytest.mark.parametrize("version", [770, 810, 830, 860, 861, 910, 971])
def test_roundtrip_envelope_versions(make_record, rsa_key, hardware_info, version):
    """信封版本: 除 padding 外所有字段还原"""
    account = "user1" if version >= 830 else 1234567
    record = make_record(
        protocol_version=version,
        client_build=version,
        account=account,
        hardware_info=hardware_info,
        padding=b"\x5a" * 3,
    )
    decoded = parse_login_packet(build_login_packet(record, rsa_key), rsa_key)

    decoded.padding = record.padding
    assert decoded == record


def test_roundtrip_character_login(make_record, rsa_key):
    record = make_record(character="Knight Elite")
    decoded = parse_login_packet(build_login_packet(record, rsa_key), rsa_key)

    assert decoded.character == "Knight Elite"
    assert decoded.opcode == 0x0A
    assert decoded.account == "user1"
    assert decoded.password == "pass1"
    assert decoded.spr_revision == 0
    assert decoded.pic_revision == 0


def test_roundtrip_with_pem_key(make_record, rsa_key):
    pem = rsa_key.export_key()
    record = make_record()
    decoded = parse_login_packet(build_login_packet(record, pem), pem)
    assert decoded.account == "user1"


def test_decode_returns_padding(make_record, rsa_key):
    record = make_record(padding=b"\xee" * 200)
    decoded = parse_login_packet(build_login_packet(record, rsa_key), rsa_key)
    # 凭据之后的非零填充会被当作硬件指纹读取，其余部分才是 padding
    assert decoded.hardware_info == b"\xee" * 47
    assert decoded.padding == b"\xee" * (127 - 30 - 47)


# =========================================================================
# 版本覆盖
# =========================================================================


def test_decode_explicit_version_overrides_header(make_record, rsa_key):
    """包头中的 Build 号不在能力表中时，可由调用方显式指定协议版本"""
    record = make_record(client_build=1)
    packet = build_login_packet(record, rsa_key)

    with pytest.raises(UnsupportedVersionError):
        parse_login_packet(packet, rsa_key)

    decoded = parse_login_packet(packet, rsa_key, version=860)
    assert decoded.protocol_version == 860
    assert decoded.client_build == 1
    assert decoded.account == "user1"


def test_decode_rejects_version_above_cutoff():
    body = b"\x01" + struct.pack("<HHIII", 2, 1000, 0, 0, 0)
    with pytest.raises(UnsupportedVersionError):
        parse_login_packet(_frame(body), None)


# =========================================================================
# 截断 (TruncatedInput)
# =========================================================================


@pytest.mark.parametrize(
    "packet",
    [
        b"\x05\x00\x01",
        b"\x01\x00\x01",
        b"\x00\x00\x00",
        b"",
        b"\x01",
    ],
)
def test_decode_truncated_short_input(packet):
    with pytest.raises(TruncatedInputError):
        parse_login_packet(packet, None)


def test_decode_truncated_reports_field():
    with pytest.raises(TruncatedInputError) as exc_info:
        parse_login_packet(b"\x01\x00\x01", None)
    assert exc_info.value.field == "os_id"


def test_decode_truncated_password(make_record):
    record = make_record(protocol_version=760, account=1, session_key=None)
    packet = build_login_packet(record, None)
    cut = _frame(packet[2:-2])
    with pytest.raises(TruncatedInputError) as exc_info:
        parse_login_packet(cut, None)
    assert exc_info.value.field == "password"


def test_decode_truncated_hardware_info(make_record, hardware_info):
    record = make_record(
        protocol_version=760, account=1, session_key=None, hardware_info=hardware_info
    )
    packet = build_login_packet(record, None)
    with pytest.raises(TruncatedInputError, match="hardware_info"):
        parse_login_packet(_frame(packet[2:-10]), None)


def test_decode_truncated_envelope(rsa_key):
    with pytest.raises(TruncatedInputError) as exc_info:
        parse_login_packet(_frame(_os_header() + b"\x01" * 100), rsa_key)
    assert exc_info.value.field == "envelope"


def test_decode_ignores_bytes_beyond_length(make_record):
    record = make_record(
        protocol_version=760, client_build=760, account=1, session_key=None
    )
    packet = build_login_packet(record, None)
    decoded = parse_login_packet(packet + b"\xff\xff", None)
    assert decoded == record


# =========================================================================
# 信封 (Envelope / Sentinel / Key size)
# =========================================================================


@pytest.mark.parametrize("first_byte", [0x01, 0x20, 0x7F])
def test_decode_sentinel_error(rsa_key, first_byte):
    block = bytes([first_byte]) + b"\x00" * 127
    packet = _frame(_os_header() + rsa_encrypt_raw(block, rsa_key))

    with pytest.raises(SentinelError) as exc_info:
        parse_login_packet(packet, rsa_key)
    assert exc_info.value.actual == first_byte


def test_decode_key_size_error(make_record, rsa_key, rsa_key_2048):
    packet = build_login_packet(make_record(), rsa_key)
    with pytest.raises(KeySizeError) as exc_info:
        parse_login_packet(packet, rsa_key_2048)
    assert exc_info.value.actual == 256


def test_decode_requires_private_key(make_record, rsa_key):
    packet = build_login_packet(make_record(), rsa_key)
    with pytest.raises(EnvelopeError, match="私钥"):
        parse_login_packet(packet, rsa_key.public_key())


def test_decode_requires_key(make_record, rsa_key):
    packet = build_login_packet(make_record(), rsa_key)
    with pytest.raises(EnvelopeError):
        parse_login_packet(packet, None)


def test_decode_oversized_envelope(rsa_key):
    with pytest.raises(EnvelopeError, match="128"):
        parse_login_packet(_frame(_os_header() + b"\x01" * 130), rsa_key)


def test_decode_public_key_encrypted_packet(make_record, rsa_key):
    """客户端只持有公钥即可加密，服务端用私钥解密"""
    record = make_record()
    packet = build_login_packet(record, rsa_key.public_key())
    assert parse_login_packet(packet, rsa_key).password == "pass1"


# =========================================================================
# Adler-32 前缀
# =========================================================================


def test_decode_checksum_roundtrip(make_record, rsa_key):
    record = make_record(protocol_version=900, client_build=900)
    decoded = parse_login_packet(build_login_packet(record, rsa_key), rsa_key)
    assert decoded.protocol_version == 900
    assert decoded.account == "user1"


def test_decode_checksum_uppercase_prefix(make_record, rsa_key):
    record = make_record(protocol_version=900, client_build=900)
    packet = build_login_packet(record, rsa_key)
    upper = packet[:2] + packet[2:10].upper() + packet[10:]
    assert parse_login_packet(upper, rsa_key).account == "user1"


def test_decode_checksum_mismatch(make_record, rsa_key):
    record = make_record(protocol_version=900, client_build=900)
    packet = bytearray(build_login_packet(record, rsa_key))
    packet[-1] ^= 0xFF
    with pytest.raises(ChecksumError, match="校验失败"):
        parse_login_packet(bytes(packet), rsa_key)


def test_decode_checksum_missing(make_record, rsa_key):
    record = make_record(protocol_version=900, client_build=900)
    packet = build_login_packet(record, rsa_key)
    stripped = _frame(packet[10:])
    with pytest.raises(ChecksumError, match="需要"):
        parse_login_packet(stripped, rsa_key)


def test_decode_checksum_unexpected(make_record, rsa_key):
    record = make_record(protocol_version=900, client_build=900)
    packet = build_login_packet(record, rsa_key)
    with pytest.raises(ChecksumError, match="不应有"):
        parse_login_packet(packet, rsa_key, version=860)


# =========================================================================
# 结构错误
# =========================================================================


def test_decode_unknown_opcode():
    body = b"\x02" + struct.pack("<HHIII", 2, 760, 0, 0, 0) + b"\x00" * 8
    with pytest.raises(MalformedPacketError, match="0x02"):
        parse_login_packet(_frame(body), None)


def test_decode_bad_character_marker():
    body = b"\x0a" + struct.pack("<HH", 2, 760) + b"\x01" + b"\x00" * 8
    with pytest.raises(MalformedPacketError):
        parse_login_packet(_frame(body), None)


def test_decode_errors_share_base_class():
    """所有结构错误都可以用 DecodeError 统一捕获"""
    with pytest.raises(DecodeError):
        parse_login_packet(b"\x01\x00", None)


def test_decode_wrong_key_never_returns_partial_record(make_record, rsa_key):
    other = RSA.generate(1024)
    packet = build_login_packet(make_record(), rsa_key)
    with pytest.raises(DecodeError):
        parse_login_packet(packet, other)
