from __future__ import annotations

import logging
import sys
from pathlib import Path

from grub_pbkdf2.core.errors import EntropyError
from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry

TRUSTED_PLATFORMS = ("linux", "freebsd")


class EntropySource:
    """从系统随机设备读取盐。"""

    def __init__(self, device: Path | str = "/dev/random", platform: str | None = None) -> None:
        self._device = Path(device)
        self._platform = platform if platform is not None else sys.platform
        self._logger = logging.getLogger("entropy")

    @property
    def trusted_platform(self) -> bool:
        return self._platform.startswith(TRUSTED_PLATFORMS)

    def read_salt(self, saltlen: int, registry: SecretRegistry) -> SecretBuffer:
        if not self.trusted_platform:
            self._logger.warning("WARNING: your random generator isn't known to be secure (%s)", self._platform)

        salt = registry.allocate(saltlen, label="salt")
        try:
            stream = open(self._device, "rb", buffering=0)
        except OSError as exc:
            self._logger.debug("无法打开随机设备 %s: %s", self._device, exc)
            raise EntropyError() from exc

        with stream, salt.view() as view:
            try:
                count = stream.readinto(view)
            except OSError as exc:
                raise EntropyError() from exc
        if count != saltlen:
            self._logger.debug("随机设备读取不足: %s/%s", count, saltlen)
            raise EntropyError()
        return salt
