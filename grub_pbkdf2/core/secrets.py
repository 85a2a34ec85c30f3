from __future__ import annotations

import hmac
from typing import Callable

from grub_pbkdf2.core.errors import AllocationError

Allocator = Callable[[int], bytearray]

_MIN_GROW = 32


def _allocate(allocator: Allocator, size: int) -> bytearray:
    try:
        return allocator(size)
    except (MemoryError, OverflowError) as exc:
        raise AllocationError() from exc


def wipe(data: bytearray) -> None:
    """原地清零，不改变长度。"""
    data[:] = bytes(len(data))


class SecretBuffer:
    """敏感字节缓冲区，释放前必定清零。"""

    def __init__(self, size: int = 0, *, label: str = "secret", allocator: Allocator = bytearray) -> None:
        self.label = label
        self._allocator = allocator
        self._data = _allocate(allocator, size)
        self._length = size
        self._destroyed = False

    @classmethod
    def empty(cls, capacity: int, *, label: str = "secret", allocator: Allocator = bytearray) -> SecretBuffer:
        buf = cls(capacity, label=label, allocator=allocator)
        buf._length = 0
        return buf

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{self._length} bytes"
        return f"<SecretBuffer {self.label}: {state}>"

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def capacity(self) -> int:
        return len(self._data)

    def view(self) -> memoryview:
        """返回有效内容的可写视图；调用方用完须 release()。"""
        self._check_alive()
        return memoryview(self._data)[: self._length]

    def append(self, value: int) -> None:
        self._check_alive()
        if self._length == len(self._data):
            self._grow(self._length + 1)
        self._data[self._length] = value
        self._length += 1

    def extend(self, data: bytes | bytearray | memoryview) -> None:
        self._check_alive()
        size = len(data)
        if self._length + size > len(self._data):
            self._grow(self._length + size)
        self._data[self._length : self._length + size] = data
        self._length += size

    def truncate(self, length: int) -> None:
        """截断到 length，被截掉的部分立即清零。"""
        self._check_alive()
        if length < 0 or length > self._length:
            raise ValueError("truncate length out of range")
        tail = len(self._data) - length
        self._data[length:] = bytes(tail)
        self._length = length

    def endswith(self, suffix: bytes) -> bool:
        self._check_alive()
        n = len(suffix)
        if n > self._length:
            return False
        with self.view() as view:
            return view[self._length - n :] == suffix

    def equals(self, other: SecretBuffer) -> bool:
        """常量时间比较。"""
        with self.view() as left, other.view() as right:
            return hmac.compare_digest(left, right)

    def destroy(self) -> None:
        if self._destroyed:
            return
        wipe(self._data)
        self._data = bytearray()
        self._length = 0
        self._destroyed = True

    def _grow(self, needed: int) -> None:
        capacity = max(needed, len(self._data) * 2, _MIN_GROW)
        replacement = _allocate(self._allocator, capacity)
        with memoryview(self._data) as old:
            replacement[: self._length] = old[: self._length]
        wipe(self._data)
        self._data = replacement

    def _check_alive(self) -> None:
        if self._destroyed:
            raise ValueError(f"secret buffer {self.label!r} already destroyed")


class SecretRegistry:
    """登记一次运行中分配的所有敏感缓冲区，统一销毁。"""

    def __init__(self, allocator: Allocator = bytearray) -> None:
        self._allocator = allocator
        self._buffers: list[SecretBuffer] = []

    def __enter__(self) -> SecretRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy_all()

    def allocate(self, size: int, label: str = "secret") -> SecretBuffer:
        buf = SecretBuffer(size, label=label, allocator=self._allocator)
        self._buffers.append(buf)
        return buf

    def empty(self, capacity: int, label: str = "secret") -> SecretBuffer:
        buf = SecretBuffer.empty(capacity, label=label, allocator=self._allocator)
        self._buffers.append(buf)
        return buf

    @property
    def live(self) -> list[SecretBuffer]:
        return [buf for buf in self._buffers if not buf.destroyed]

    def destroy_all(self) -> int:
        count = 0
        for buf in self._buffers:
            if not buf.destroyed:
                buf.destroy()
                count += 1
        self._buffers.clear()
        return count
