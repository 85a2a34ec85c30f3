from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grub_pbkdf2.services.encoding import ALGORITHM_TAG


class DerivationParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    iteration_count: int = Field(default=10000, gt=0, le=0xFFFFFFFF)
    buflen: int = Field(default=64, gt=0)
    saltlen: int = Field(default=64, gt=0)


class ParsedCredential(BaseModel):
    """解析后的凭据行，仅含公开字段。"""

    algorithm: str = ALGORITHM_TAG
    iteration_count: int = Field(gt=0)
    salt_hex: str
    key_hex: str

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if value != ALGORITHM_TAG:
            raise ValueError(f"不支持的算法标识: {value}")
        return value

    @field_validator("salt_hex", "key_hex")
    @classmethod
    def validate_hex(cls, value: str) -> str:
        text = value.strip().upper()
        if not text or len(text) % 2 or any(ch not in "0123456789ABCDEF" for ch in text):
            raise ValueError("必须是偶数长度的十六进制串")
        return text

    @property
    def salt(self) -> bytes:
        return bytes.fromhex(self.salt_hex)

    @property
    def key(self) -> bytes:
        return bytes.fromhex(self.key_hex)

    def to_string(self) -> str:
        return f"{self.algorithm}.{self.iteration_count}.{self.salt_hex}.{self.key_hex}"
