"""
Tibia 协议层 (Protocol Layer)

本包负责登录数据包的纯粹构建 (Build) 与解析 (Parse)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何密钥存储或配置加载。
- 不依赖于 core 或 config 层。
"""

from . import constants
from .login import build_login_packet, parse_login_packet

# 公共 API
__all__ = [
    "constants",
    "build_login_packet",
    "parse_login_packet",
]
