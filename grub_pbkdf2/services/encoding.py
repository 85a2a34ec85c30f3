from __future__ import annotations

import binascii

from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry

HEX_DIGITS = b"0123456789ABCDEF"
ALGORITHM_TAG = "grub.pbkdf2.sha512"
OUTPUT_PREFIX = b"Your PBKDF2 is "


def hexify(source: SecretBuffer, registry: SecretRegistry, label: str = "hex") -> SecretBuffer:
    """大写十六进制编码，结果写入新的敏感缓冲区。"""
    target = registry.allocate(2 * len(source), label=label)
    with source.view() as src, target.view() as dest:
        for i, byte in enumerate(src):
            dest[2 * i] = HEX_DIGITS[byte >> 4]
            dest[2 * i + 1] = HEX_DIGITS[byte & 0x0F]
    return target


def unhexify(text: str | bytes) -> bytes:
    """hexify 的逆操作，大小写均可；非法输入抛 ValueError。"""
    return binascii.unhexlify(text)


def render_credential(
    iteration_count: int,
    salt_hex: SecretBuffer,
    key_hex: SecretBuffer,
    registry: SecretRegistry,
    algorithm: str = ALGORITHM_TAG,
) -> SecretBuffer:
    """拼装 <算法标识>.<迭代次数>.<盐>.<密钥>。"""
    prefix = algorithm.encode("ascii") + b"."
    rounds = str(iteration_count).encode("ascii")
    size = len(prefix) + len(rounds) + 1 + len(salt_hex) + 1 + len(key_hex)
    line = registry.empty(size, label="credential")
    line.extend(prefix)
    line.extend(rounds)
    line.extend(b".")
    with salt_hex.view() as view:
        line.extend(view)
    line.extend(b".")
    with key_hex.view() as view:
        line.extend(view)
    return line
