from __future__ import annotations

import hashlib
import logging
from typing import Callable

from grub_pbkdf2.core.errors import DerivationError
from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry

HASH_NAME = "sha512"

Primitive = Callable[[str, memoryview, memoryview, int, int], bytes]

# 原语异常类型到错误码
ERROR_CODES: dict[type[BaseException], int] = {
    ValueError: 1,
    OverflowError: 2,
    MemoryError: 3,
    TypeError: 4,
}


def _stdlib_pbkdf2(hash_name: str, password: memoryview, salt: memoryview, iterations: int, dklen: int) -> bytes:
    return hashlib.pbkdf2_hmac(hash_name, password, salt, iterations, dklen)


class KeyDerivationEngine:
    """PBKDF2-HMAC-SHA512 封装。"""

    def __init__(self, primitive: Primitive = _stdlib_pbkdf2) -> None:
        self._primitive = primitive
        self._logger = logging.getLogger("kdf")

    def derive(
        self,
        password: SecretBuffer,
        salt: SecretBuffer,
        iteration_count: int,
        buflen: int,
        registry: SecretRegistry,
    ) -> SecretBuffer:
        key = registry.allocate(buflen, label="derived-key")
        with password.view() as pw, salt.view() as salt_view:
            try:
                derived = self._primitive(HASH_NAME, pw, salt_view, iteration_count, buflen)
            except tuple(ERROR_CODES) as exc:
                code = ERROR_CODES[next(t for t in ERROR_CODES if isinstance(exc, t))]
                self._logger.debug("PBKDF2 原语失败: %s", exc)
                raise DerivationError(code, str(exc)) from exc

        if len(derived) != buflen:
            raise DerivationError(ERROR_CODES[ValueError], f"primitive returned {len(derived)} bytes, expected {buflen}")
        with key.view() as view:
            view[:] = derived
        del derived
        self._logger.debug("派生完成: iterations=%s buflen=%s saltlen=%s", iteration_count, buflen, len(salt))
        return key
