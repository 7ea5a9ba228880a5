# example.py
"""
这是一个 tibia-login API 的最小示例。

它演示了如何在进程启动时一次性加载配置与 RSA 私钥，
然后对登录包进行编码与解码。

运行此示例：
1. 安装依赖： pip install -e .
2. (可选) 在根目录创建 config.toml，或设置 TIBIA_ 前缀的环境变量 / .env 文件。
   未配置 rsa_key_path 时会生成一个临时的 1024 bit 密钥。
3. 从项目根目录运行： python example.py
"""

import logging
import sys
from pathlib import Path

from Crypto.PublicKey import RSA

from tibia_login import (
    ConfigError,
    LoginCodec,
    TibiaPacketError,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 日志配置
logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("TibiaLoginExample")

PROJECT_ROOT = Path(__file__).resolve().parent


def load_config():
    """按 config.toml -> 环境变量 (.env) -> 内置默认值 的顺序加载配置。"""
    config_path = PROJECT_ROOT / "config.toml"
    if config_path.exists():
        logger.info(f"发现配置文件: {config_path}")
        return load_config_from_toml(config_path)

    try:
        return load_config_from_env(dotenv_path=PROJECT_ROOT / ".env")
    except ConfigError as e:
        logger.info(f"{e}，使用内置默认配置")
        return create_config_from_dict({"protocol_version": 860, "os_id": 2})


def main() -> None:
    try:
        config = load_config()
        logger.info(f"配置已加载: {config}")

        rsa_key = None
        if config.rsa_key_path is None:
            logger.warning("未配置 rsa_key_path，生成临时 1024 bit 密钥")
            rsa_key = RSA.generate(1024)

        codec = LoginCodec(config, rsa_key=rsa_key)

        record = codec.new_record(account="user1", password="pass1")
        packet = codec.encode(record)
        logger.info(f"编码完成: {len(packet)} 字节\n{packet.hex()}")

        decoded = codec.decode(packet)
        logger.info(f"解码完成: {decoded}")

    except TibiaPacketError as e:
        logger.critical(f"编解码失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
