from __future__ import annotations

from dataclasses import dataclass

from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry
from grub_pbkdf2.schemas import ALGORITHM_TAG
from grub_pbkdf2.services.encoding import render_credential


@dataclass(slots=True)
class Credential:
    iteration_count: int
    salt_hex: SecretBuffer
    key_hex: SecretBuffer
    algorithm: str = ALGORITHM_TAG

    def render(self, registry: SecretRegistry) -> SecretBuffer:
        return render_credential(self.iteration_count, self.salt_hex, self.key_hex, registry, algorithm=self.algorithm)

    def destroy(self) -> None:
        self.salt_hex.destroy()
        self.key_hex.destroy()
