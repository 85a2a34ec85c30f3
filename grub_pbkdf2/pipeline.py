from __future__ import annotations

import logging
from typing import BinaryIO, Literal

from grub_pbkdf2.core.errors import OutputError
from grub_pbkdf2.core.secrets import Allocator, SecretBuffer, SecretRegistry
from grub_pbkdf2.models import Credential
from grub_pbkdf2.schemas import DerivationParameters
from grub_pbkdf2.services.encoding import OUTPUT_PREFIX, hexify
from grub_pbkdf2.services.entropy import EntropySource
from grub_pbkdf2.services.kdf import KeyDerivationEngine
from grub_pbkdf2.services.prompt import SecurePrompt

Stage = Literal[
    "init",
    "params_resolved",
    "prompted",
    "salt_generated",
    "derived",
    "encoded",
    "done",
    "failed",
]


class CredentialPipeline:
    """凭据生成主流程：提示 → 取盐 → 派生 → 编码 → 输出。

    每次运行分配的敏感缓冲区都登记在同一个 SecretRegistry 中，
    无论成功还是失败，离开 run() 之前全部清零。
    """

    def __init__(
        self,
        prompt: SecurePrompt,
        entropy: EntropySource,
        kdf: KeyDerivationEngine | None = None,
        allocator: Allocator = bytearray,
    ) -> None:
        self._prompt = prompt
        self._entropy = entropy
        self._kdf = kdf or KeyDerivationEngine()
        self._allocator = allocator
        self._logger = logging.getLogger("pipeline")

        self._stage: Stage = "init"
        self._failure: str | None = None

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def failure(self) -> str | None:
        return self._failure

    def run(self, params: DerivationParameters, out: BinaryIO) -> None:
        if self._stage != "init":
            raise RuntimeError(f"pipeline already used (stage={self._stage})")
        self._advance("params_resolved")
        try:
            with SecretRegistry(self._allocator) as registry:
                password = self._prompt.read_password(registry)
                self._advance("prompted")

                salt = self._entropy.read_salt(params.saltlen, registry)
                self._advance("salt_generated")

                try:
                    key = self._kdf.derive(password, salt, params.iteration_count, params.buflen, registry)
                finally:
                    password.destroy()
                self._advance("derived")

                credential = Credential(
                    iteration_count=params.iteration_count,
                    salt_hex=hexify(salt, registry, label="salt-hex"),
                    key_hex=hexify(key, registry, label="key-hex"),
                )
                salt.destroy()
                key.destroy()
                line = self._build_output(credential, registry)
                credential.destroy()
                self._advance("encoded")

                self._emit(line, out)
        except BaseException as exc:
            self._stage = "failed"
            self._failure = str(exc) or exc.__class__.__name__
            self._logger.debug("流程失败: %s", self._failure)
            raise
        self._advance("done")

    def _build_output(self, credential: Credential, registry: SecretRegistry) -> SecretBuffer:
        body = credential.render(registry)
        line = registry.empty(len(OUTPUT_PREFIX) + len(body) + 1, label="output")
        line.extend(OUTPUT_PREFIX)
        with body.view() as view:
            line.extend(view)
        line.extend(b"\n")
        body.destroy()
        return line

    def _emit(self, line: SecretBuffer, out: BinaryIO) -> None:
        try:
            with line.view() as view:
                out.write(view)
            out.flush()
        except OSError as exc:
            self._logger.debug("写出凭据失败: %s", exc)
            raise OutputError() from exc

    def _advance(self, stage: Stage) -> None:
        self._logger.debug("阶段 %s -> %s", self._stage, stage)
        self._stage = stage
