"""
Tibia Login 编解码库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import codecs
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .capabilities import resolve_capabilities
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodecConfig:
    """LoginCodec 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        protocol_version: 默认协议版本 (如 860)。
        os_id: 默认客户端平台标识。
        rsa_key_path: RSA 私钥文件路径 (PEM/DER)。为 None 时需由调用方显式提供密钥。
        string_encoding: 账号、密码、角色名的字符串编码。
    """

    protocol_version: int
    os_id: int
    rsa_key_path: Path | None
    string_encoding: str

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} "
            f"version={self.protocol_version}, "
            f"os_id={self.os_id}, "
            f"rsa_key_path={str(self.rsa_key_path) if self.rsa_key_path else None!r}, "
            f"encoding='{self.string_encoding}'>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> CodecConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        CodecConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
        UnsupportedVersionError: 协议版本不在能力表范围内。
    """

    def _req(key: str) -> Any:
        """获取必要字段，缺失则报错"""
        if key not in raw_data:
            raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
        return raw_data[key]

    def _to_int(key: str, value: Any) -> int:
        try:
            return int(str(value), 0)
        except ValueError:
            raise ConfigError(f"整数格式无效 '{key}': {value}")

    version = _to_int("protocol_version", _req("protocol_version"))
    # 尽早暴露不支持的版本，而不是等到第一次编解码
    resolve_capabilities(version)

    os_id = _to_int("os_id", raw_data.get("os_id", 2))
    if not 0 <= os_id <= 0xFFFF:
        raise ConfigError(f"os_id 超出 u16 范围: {os_id}")

    key_path = raw_data.get("rsa_key_path")
    encoding = str(raw_data.get("string_encoding", "latin-1"))
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise ConfigError(f"未知的字符串编码: {encoding}")

    return CodecConfig(
        protocol_version=version,
        os_id=os_id,
        rsa_key_path=Path(key_path).expanduser() if key_path else None,
        string_encoding=encoding,
    )


def load_config_from_toml(file_path: Path, profile: str = "default") -> CodecConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [tibia]: 单一配置块。
    3. Root: 兼容根目录直接配置。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "tibia" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [tibia] 节，忽略 profile='{profile}'。")
        raw_config = data["tibia"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env(dotenv_path: Path | None = None) -> CodecConfig:
    """从环境变量加载配置。

    自动读取所有以 `TIBIA_` 开头的环境变量，并映射到配置字段。
    例如: `TIBIA_PROTOCOL_VERSION` -> `protocol_version`。

    Args:
        dotenv_path: 可选的 .env 文件。存在时先加载到环境变量中 (不覆盖已有值)。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    if dotenv_path is not None:
        if dotenv_path.exists():
            load_dotenv(dotenv_path=dotenv_path, override=False)
        else:
            logger.warning(f".env 文件不存在: {dotenv_path}")

    env_map = {
        "protocol_version": "PROTOCOL_VERSION",
        "os_id": "OS_ID",
        "rsa_key_path": "RSA_KEY_PATH",
        "string_encoding": "STRING_ENCODING",
    }

    raw_data = {}
    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"TIBIA_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 TIBIA_ 前缀的环境变量")

    return create_config_from_dict(raw_data)


def load_rsa_key_file(config: CodecConfig) -> bytes:
    """读取配置中指定的 RSA 私钥文件。

    Raises:
        ConfigError: 未配置密钥路径或文件无法读取。
    """
    if config.rsa_key_path is None:
        raise ConfigError("配置缺失: 未设置 rsa_key_path")
    try:
        return config.rsa_key_path.read_bytes()
    except OSError as e:
        raise ConfigError(f"无法读取 RSA 密钥文件 {config.rsa_key_path}: {e}") from e
