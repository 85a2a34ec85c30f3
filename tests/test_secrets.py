import pytest

from grub_pbkdf2.core.errors import AllocationError
from grub_pbkdf2.core.secrets import SecretBuffer, SecretRegistry


class RecordingAllocator:
    def __init__(self) -> None:
        self.blocks: list[bytearray] = []

    def __call__(self, size: int) -> bytearray:
        block = bytearray(size)
        self.blocks.append(block)
        return block


def test_destroy_zeroes_storage_and_is_idempotent():
    alloc = RecordingAllocator()
    buf = SecretBuffer(4, allocator=alloc)
    with buf.view() as view:
        view[:] = b"\xde\xad\xbe\xef"
    assert alloc.blocks[0] == bytearray(b"\xde\xad\xbe\xef")

    buf.destroy()
    buf.destroy()
    assert buf.destroyed
    assert len(buf) == 0
    assert alloc.blocks[0] == bytearray(4)


def test_growth_wipes_previous_storage():
    alloc = RecordingAllocator()
    buf = SecretBuffer.empty(2, allocator=alloc)
    for byte in b"hunter2":
        buf.append(byte)

    assert len(alloc.blocks) == 2
    assert alloc.blocks[0] == bytearray(2)
    with buf.view() as view:
        assert bytes(view) == b"hunter2"


def test_truncate_zeroes_dropped_tail():
    alloc = RecordingAllocator()
    buf = SecretBuffer.empty(8, allocator=alloc)
    buf.extend(b"abc\n")
    assert buf.endswith(b"\n")
    buf.truncate(3)
    assert len(buf) == 3
    assert alloc.blocks[0][3] == 0
    assert not buf.endswith(b"\n")


def test_equals_compares_contents():
    left = SecretBuffer.empty(8)
    right = SecretBuffer.empty(8)
    left.extend(b"same")
    right.extend(b"same")
    assert left.equals(right)
    right.append(0x21)
    assert not left.equals(right)


def test_destroyed_buffer_rejects_access():
    buf = SecretBuffer(1)
    buf.destroy()
    with pytest.raises(ValueError):
        buf.view()
    with pytest.raises(ValueError):
        buf.append(1)


def test_registry_destroys_everything_on_exit():
    alloc = RecordingAllocator()
    with SecretRegistry(alloc) as registry:
        a = registry.allocate(3, label="a")
        b = registry.empty(4, label="b")
        with a.view() as view:
            view[:] = b"xyz"
        b.extend(b"pw")
        assert len(registry.live) == 2
    assert a.destroyed and b.destroyed
    assert all(block == bytearray(len(block)) for block in alloc.blocks)


def test_allocation_failure_maps_to_allocation_error():
    def failing(size: int) -> bytearray:
        raise MemoryError

    with pytest.raises(AllocationError, match="Out of memory"):
        SecretRegistry(failing).allocate(16)
