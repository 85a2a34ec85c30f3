from __future__ import annotations

import io
import logging
import sys
import termios
from pathlib import Path
from typing import BinaryIO

from grub_pbkdf2.core.errors import InputError, MismatchError
from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry

FIRST_PROMPT = b"Enter password: "
SECOND_PROMPT = b"\nReenter password: "
LINE_CAPACITY = 128

logger = logging.getLogger("prompt")


class TerminalChannel:
    """交互通道：优先控制终端，不可用时退回 stdin/stderr。"""

    def __init__(self, reader: BinaryIO, writer: BinaryIO, *, owned: bool = False) -> None:
        self._reader = reader
        self._writer = writer
        self._owned = owned

    @classmethod
    def open(cls, tty_device: Path | str = "/dev/tty") -> TerminalChannel:
        try:
            tty = open(tty_device, "r+b", buffering=0)
        except OSError as exc:
            logger.debug("无法打开控制终端 %s，改用标准输入: %s", tty_device, exc)
            if sys.stdin is None or sys.stderr is None:
                raise InputError() from exc
            # 无缓冲读取，避免密码残留在不可擦除的预读缓冲中
            try:
                reader = open(sys.stdin.fileno(), "rb", buffering=0, closefd=False)
            except (OSError, ValueError) as stdin_exc:
                raise InputError() from stdin_exc
            return cls(reader, sys.stderr.buffer, owned=True)
        return cls(tty, tty, owned=True)

    def __enter__(self) -> TerminalChannel:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fileno(self) -> int | None:
        try:
            return self._reader.fileno()
        except (OSError, AttributeError, io.UnsupportedOperation):
            return None

    def write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            self._writer.flush()
        except OSError as exc:
            logger.debug("提示输出失败: %s", exc)

    def read_byte(self) -> int | None:
        try:
            chunk = self._reader.read(1)
        except OSError as exc:
            raise InputError() from exc
        if not chunk:
            return None
        return chunk[0]

    def close(self) -> None:
        if self._owned:
            self._reader.close()


class EchoSuppressor:
    """作用域内关闭回显与信号字符，离开时恢复原终端属性。"""

    def __init__(self, fd: int | None) -> None:
        self._fd = fd
        self._saved: list | None = None
        self.changed = False

    def __enter__(self) -> EchoSuppressor:
        if self._fd is None:
            logger.debug("输入不是文件描述符，跳过回显控制")
            return self
        try:
            current = termios.tcgetattr(self._fd)
        except termios.error:
            logger.debug("输入不是终端，跳过回显控制")
            return self

        self._saved = current
        modified = current[:]
        modified[3] &= ~(termios.ECHO | termios.ISIG)
        try:
            termios.tcsetattr(self._fd, termios.TCSAFLUSH, modified)
            self.changed = True
        except termios.error as exc:
            logger.warning("无法关闭终端回显，输入的密码将可见: %s", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if not self.changed:
            return
        self.changed = False
        try:
            termios.tcsetattr(self._fd, termios.TCSAFLUSH, self._saved)
        except termios.error as exc:
            logger.warning("恢复终端属性失败: %s", exc)


class SecurePrompt:
    """无回显地读取两次密码并确认一致。"""

    def __init__(self, channel: TerminalChannel) -> None:
        self._channel = channel

    def read_password(self, registry: SecretRegistry) -> SecretBuffer:
        first: SecretBuffer | None = None
        second: SecretBuffer | None = None
        try:
            suppressor = EchoSuppressor(self._channel.fileno())
            with suppressor:
                self._channel.write(FIRST_PROMPT)
                first = self._read_line(registry, "password")
                self._channel.write(SECOND_PROMPT)
                try:
                    second = self._read_line(registry, "password-confirm")
                finally:
                    suppressor.restore()
                    self._channel.write(b"\n")

            if not first.equals(second):
                raise MismatchError()
        except BaseException:
            for buf in (first, second):
                if buf is not None:
                    buf.destroy()
            raise

        second.destroy()
        return first

    def _read_line(self, registry: SecretRegistry, label: str) -> SecretBuffer:
        line = registry.empty(LINE_CAPACITY, label=label)
        try:
            while True:
                byte = self._channel.read_byte()
                if byte is None:
                    break
                line.append(byte)
                if byte == 0x0A:
                    break
        except BaseException:
            line.destroy()
            raise

        if len(line) == 0:
            line.destroy()
            raise InputError()
        if line.endswith(b"\n"):
            line.truncate(len(line) - 1)
        return line
