import pytest

from grub_pbkdf2.core.secrets import SecretRegistry
from grub_pbkdf2.models import Credential
from grub_pbkdf2.services.encoding import hexify, render_credential, unhexify


def _buffer(registry: SecretRegistry, data: bytes):
    buf = registry.allocate(len(data))
    with buf.view() as view:
        view[:] = data
    return buf


def test_hexify_uses_uppercase_nibbles():
    with SecretRegistry() as registry:
        encoded = hexify(_buffer(registry, bytes([0x00, 0x01, 0x0A, 0xAB, 0xF0, 0xFF])), registry)
        with encoded.view() as view:
            assert bytes(view) == b"00010AABF0FF"


def test_hexify_length_and_alphabet():
    data = bytes(range(256))
    with SecretRegistry() as registry:
        encoded = hexify(_buffer(registry, data), registry)
        with encoded.view() as view:
            text = bytes(view).decode("ascii")
    assert len(text) == 2 * len(data)
    assert set(text) <= set("0123456789ABCDEF")
    assert unhexify(text) == data


def test_unhexify_accepts_lowercase_and_rejects_garbage():
    assert unhexify("00ff10") == b"\x00\xff\x10"
    with pytest.raises(ValueError):
        unhexify("ABC")
    with pytest.raises(ValueError):
        unhexify("ZZ")


def test_render_credential_layout():
    with SecretRegistry() as registry:
        salt_hex = _buffer(registry, b"00010203")
        key_hex = _buffer(registry, b"DEADBEEF")
        line = render_credential(10000, salt_hex, key_hex, registry)
        with line.view() as view:
            assert bytes(view) == b"grub.pbkdf2.sha512.10000.00010203.DEADBEEF"


def test_credential_renders_its_algorithm_tag():
    with SecretRegistry() as registry:
        credential = Credential(
            iteration_count=7,
            salt_hex=_buffer(registry, b"AB"),
            key_hex=_buffer(registry, b"CD"),
            algorithm="grub.pbkdf2.sha256",
        )
        with credential.render(registry).view() as view:
            assert bytes(view) == b"grub.pbkdf2.sha256.7.AB.CD"

        default = Credential(iteration_count=7, salt_hex=credential.salt_hex, key_hex=credential.key_hex)
        with default.render(registry).view() as view:
            assert bytes(view) == b"grub.pbkdf2.sha512.7.AB.CD"
