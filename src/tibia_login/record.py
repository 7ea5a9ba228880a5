# File: src/tibia_login/record.py
"""
Tibia Login 编解码库 - 登录记录模块

定义编码与解码两个方向共享的数据模型。
本模块不包含编解码逻辑，仅作为数据容器。
"""

from dataclasses import dataclass, field

# 登录包操作码
OPCODE_OS_SELECTION = 0x01
OPCODE_CHARACTER_LOGIN = 0x0A


@dataclass
class LoginRecord:
    """登录包的结构化表示。

    每个记录独立持有自己的字段，不与其他记录共享。
    `raw_packet` 只是最近一次编码/解码的缓存，不作为数据来源。

    Attributes:
        protocol_version: 协议版本号 (< 980)，决定布局开关。
        os_id: 客户端平台标识 (u16)。
        client_build: 客户端 Build 号 (u16)。为 None 时使用能力表默认值。
        spr_revision: SPR 资源版本 (u32)，仅用于选择 OS 的登录包。
        dat_revision: DAT 资源版本 (u32)，仅用于选择 OS 的登录包。
        pic_revision: PIC 资源版本 (u32)，仅用于选择 OS 的登录包。
        character: 角色名。设置后生成“角色登录”包 (操作码 0x0A)。
        session_key: 16 字节 XTEA 会话密钥，按原样透传。
        account: 账号 (字符串或 u32 整数，由协议版本决定)。
        password: 密码。
        hardware_info: 47 字节硬件指纹，空字节串表示不携带。
        padding: 用于填满 RSA 块的尾部字节。
        raw_packet: 最近一次编码/解码的原始数据包。
    """

    protocol_version: int
    account: str | int = ""
    password: str = ""
    os_id: int = 0
    client_build: int | None = None

    # --- 选择 OS 包专用 ---
    spr_revision: int = 0
    dat_revision: int = 0
    pic_revision: int = 0

    # --- 角色登录包专用 ---
    character: str | None = None

    # --- 载荷 ---
    session_key: bytes | None = None
    hardware_info: bytes = b""
    padding: bytes = b""

    # --- 缓存 ---
    raw_packet: bytes | None = field(default=None, compare=False)

    @property
    def is_character_login(self) -> bool:
        return self.character is not None

    @property
    def opcode(self) -> int:
        """由 character 字段推导出的操作码，不单独存储。"""
        return OPCODE_CHARACTER_LOGIN if self.is_character_login else OPCODE_OS_SELECTION

    def __repr__(self) -> str:
        """隐藏密码与会话密钥，防止日志泄露敏感信息。"""
        return (
            f"<{self.__class__.__name__} "
            f"version={self.protocol_version}, "
            f"os_id={self.os_id}, "
            f"account={self.account!r}, "
            f"password='******', "
            f"character={self.character!r}>"
        )
