from __future__ import annotations

import hashlib
import hmac

from passlib.context import CryptContext
from passlib.hash import grub_pbkdf2_sha512

from grub_pbkdf2.schemas import ALGORITHM_TAG, ParsedCredential
from grub_pbkdf2.services.encoding import OUTPUT_PREFIX as ENCODED_OUTPUT_PREFIX

pwd_context = CryptContext(schemes=["grub_pbkdf2_sha512"], deprecated="auto")

OUTPUT_PREFIX = ENCODED_OUTPUT_PREFIX.decode("ascii")


class CredentialFormatError(ValueError):
    """凭据格式错误。"""


def _strip(text: str) -> str:
    text = text.strip()
    if text.startswith(OUTPUT_PREFIX):
        text = text[len(OUTPUT_PREFIX) :]
    return text


def parse_credential(text: str) -> ParsedCredential:
    body = _strip(text)
    prefix = ALGORITHM_TAG + "."
    if not body.startswith(prefix):
        raise CredentialFormatError("缺少 grub.pbkdf2.sha512 前缀")
    parts = body[len(prefix) :].split(".")
    if len(parts) != 3:
        raise CredentialFormatError("凭据字段数量不正确")
    rounds, salt_hex, key_hex = parts
    if not rounds.isdigit():
        raise CredentialFormatError("迭代次数必须是十进制整数")
    try:
        return ParsedCredential(iteration_count=int(rounds), salt_hex=salt_hex, key_hex=key_hex)
    except ValueError as exc:
        raise CredentialFormatError("凭据格式无效") from exc


def identify_credential(text: str) -> bool:
    return pwd_context.identify(_strip(text)) == "grub_pbkdf2_sha512"


def verify_password(plain_password: str, credential: str) -> bool:
    parsed = parse_credential(credential)
    # passlib 的 handler 只接受 64 字节摘要
    if len(parsed.key) == grub_pbkdf2_sha512.checksum_size and len(parsed.salt) <= grub_pbkdf2_sha512.max_salt_size:
        return pwd_context.verify(plain_password, parsed.to_string())
    derived = hashlib.pbkdf2_hmac(
        "sha512",
        plain_password.encode("utf-8"),
        parsed.salt,
        parsed.iteration_count,
        len(parsed.key),
    )
    return hmac.compare_digest(derived, parsed.key)
