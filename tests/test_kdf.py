import hashlib

import pytest

from grub_pbkdf2.core.errors import DerivationError
from grub_pbkdf2.core.secrets import SecretRegistry
from grub_pbkdf2.services.kdf import KeyDerivationEngine


def _buffer(registry: SecretRegistry, data: bytes):
    buf = registry.allocate(len(data))
    with buf.view() as view:
        view[:] = data
    return buf


def _derive(engine: KeyDerivationEngine, password: bytes, salt: bytes, iterations: int, buflen: int) -> bytes:
    with SecretRegistry() as registry:
        key = engine.derive(_buffer(registry, password), _buffer(registry, salt), iterations, buflen, registry)
        with key.view() as view:
            return bytes(view)


def test_derivation_matches_reference_and_is_deterministic():
    engine = KeyDerivationEngine()
    first = _derive(engine, b"correct horse", b"\x00\x01\x02\x03", 1, 4)
    second = _derive(engine, b"correct horse", b"\x00\x01\x02\x03", 1, 4)
    assert first == second
    assert first == hashlib.pbkdf2_hmac("sha512", b"correct horse", b"\x00\x01\x02\x03", 1, 4)


def test_output_length_follows_buflen():
    engine = KeyDerivationEngine()
    assert len(_derive(engine, b"pw", b"salt", 2, 100)) == 100


def test_primitive_rejection_becomes_derivation_error():
    engine = KeyDerivationEngine()
    with pytest.raises(DerivationError) as excinfo:
        _derive(engine, b"pw", b"salt", 0, 4)
    assert excinfo.value.code == 1
    assert "Cryptographic error number 1" in str(excinfo.value)


def test_custom_primitive_overflow_code():
    def overflowing(hash_name, password, salt, iterations, dklen):
        assert hash_name == "sha512"
        raise OverflowError("too large")

    with pytest.raises(DerivationError) as excinfo:
        _derive(KeyDerivationEngine(overflowing), b"pw", b"salt", 1, 4)
    assert excinfo.value.code == 2
    assert excinfo.value.detail == "too large"


def test_short_primitive_output_is_rejected():
    engine = KeyDerivationEngine(lambda *args: b"\x00")
    with pytest.raises(DerivationError):
        _derive(engine, b"pw", b"salt", 1, 4)
