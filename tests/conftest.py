# tests/conftest.py
import sys
from pathlib import Path

import pytest
from Crypto.PublicKey import RSA

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from tibia_login.config import CodecConfig
from tibia_login.record import LoginRecord


@pytest.fixture(scope="session")
def rsa_key():
    """[Fixture] 1024 bit RSA 私钥 (协议要求的长度)，整个测试会话只生成一次。"""
    return RSA.generate(1024)


@pytest.fixture(scope="session")
def rsa_key_2048():
    """[Fixture] 长度不符合协议要求的 2048 bit 私钥。"""
    return RSA.generate(2048)


@pytest.fixture
def session_key() -> bytes:
    return bytes(range(16))


@pytest.fixture
def hardware_info() -> bytes:
    return bytes(range(1, 48))


@pytest.fixture
def make_record(session_key):
    """[Fixture] 返回一个构造 LoginRecord 的工厂，默认值对应 8.60 客户端。"""

    def _make(**overrides) -> LoginRecord:
        fields = dict(
            protocol_version=860,
            account="user1",
            password="pass1",
            os_id=2,
            client_build=860,
            spr_revision=0x4C2C7993,
            dat_revision=0x4C6A4CBC,
            pic_revision=0x4C63F145,
            session_key=session_key,
        )
        fields.update(overrides)
        return LoginRecord(**fields)

    return _make


@pytest.fixture
def valid_config() -> CodecConfig:
    """[Fixture] 返回一个不带密钥文件的 CodecConfig 对象。"""
    return CodecConfig(
        protocol_version=860,
        os_id=2,
        rsa_key_path=None,
        string_encoding="latin-1",
    )
