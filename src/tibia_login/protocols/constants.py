# src/tibia_login/protocols/constants.py
"""
Tibia Login 协议层 - 常量定义

本模块定义了登录包相关的定长字段尺寸与固定值。
操作码由 LoginRecord 推导，定义在 record 模块中。
"""

# =========================================================================
# 1. 外层帧 (Frame)
# =========================================================================


class FrameConst:
    LENGTH_PREFIX_LEN = 2  # u16 小端长度前缀
    LENGTH_MAX = 0xFFFF


# =========================================================================
# 2. 包头 (Header)
# =========================================================================


class HeaderConst:
    # 角色登录包用单个零字节替代资源版本三元组
    CHARACTER_MARKER = b"\x00"


# =========================================================================
# 3. 载荷 (Payload)
# =========================================================================


class LoginConst:
    # RSA 信封 (1024 bit)
    RSA_BLOCK_SIZE = 128
    SENTINEL = 0x00

    # 定长字段
    SESSION_KEY_LEN = 16  # XTEA 密钥
    HARDWARE_INFO_LEN = 47

    DEFAULT_ENCODING = "latin-1"
