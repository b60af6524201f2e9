# Tests for the crypto envelope
# Covers: encrypt/decrypt round trip, wrong password, tamper and truncation
#         rejection, key derivation failures, blob framing

from unittest.mock import patch

import pytest
from argon2.exceptions import HashingError

import lockbox.crypto
import lockbox.storage
from lockbox.crypto import CryptoManager, KeyDerivationError


SALT = CryptoManager.SALT_SIZE
NONCE = CryptoManager.NONCE_SIZE
TAG = CryptoManager.TAG_SIZE


@pytest.fixture(scope="module")
def crypto():
    return CryptoManager()


@pytest.fixture(scope="module")
def hello_blob(crypto):
    return crypto.encrypt(b"hello vault", "correct-horse")


def _flip_bit(blob: bytes, index: int, bit: int = 0) -> bytes:
    tampered = bytearray(blob)
    tampered[index] ^= 1 << bit
    return bytes(tampered)


# ── Constants ────────────────────────────────────────────────────────


class TestWireFormat:
    def test_fixed_lengths(self):
        assert SALT == 16
        assert NONCE == 12
        assert TAG == 16
        assert CryptoManager.KEY_SIZE == 32

    def test_blob_length(self, hello_blob):
        assert len(hello_blob) == SALT + NONCE + len(b"hello vault") + TAG

    def test_ciphertext_does_not_contain_plaintext(self, hello_blob):
        assert b"hello vault" not in hello_blob


# ── Round trip ───────────────────────────────────────────────────────


class TestEncryptDecrypt:
    def test_hello_vault_scenario(self, crypto, hello_blob):
        assert crypto.decrypt(hello_blob, "correct-horse") == b"hello vault"
        assert crypto.decrypt(hello_blob, "wrong-password") is None

    @pytest.mark.parametrize("plaintext", [
        b"",
        "pässwörd ✓ 鍵".encode("utf-8"),
        bytes(range(256)) * 4,
    ])
    def test_roundtrip(self, crypto, plaintext):
        blob = crypto.encrypt(plaintext, "hunter2")
        assert len(blob) == SALT + NONCE + len(plaintext) + TAG
        assert crypto.decrypt(blob, "hunter2") == plaintext

    def test_password_types_are_interchangeable(self, crypto):
        blob = crypto.encrypt(b"data", "s3cret")
        assert crypto.decrypt(blob, b"s3cret") == b"data"
        assert crypto.decrypt(blob, bytearray(b"s3cret")) == b"data"

    def test_empty_password_roundtrip(self, crypto):
        blob = crypto.encrypt(b"data", "")
        assert crypto.decrypt(blob, "") == b"data"
        assert crypto.decrypt(blob, " ") is None

    def test_encryption_is_not_deterministic(self, crypto):
        first = crypto.encrypt(b"same input", "same password")
        second = crypto.encrypt(b"same input", "same password")
        assert first != second
        assert first[:SALT] != second[:SALT]
        assert first[SALT:SALT + NONCE] != second[SALT:SALT + NONCE]

    def test_wrong_password_is_rejected(self, crypto):
        blob = crypto.encrypt(b"top secret", "alpha")
        assert crypto.decrypt(blob, "beta") is None
        assert crypto.decrypt(blob, "Alpha") is None


# ── Tampering ────────────────────────────────────────────────────────


class TestTamperDetection:
    @pytest.mark.parametrize("index,bit", [
        (SALT, 0),                  # first nonce byte
        (SALT + NONCE - 1, 7),      # last nonce byte
        (SALT + NONCE, 0),          # first ciphertext byte
        (SALT + NONCE + 5, 3),      # middle of ciphertext
        (-TAG, 0),                  # first tag byte
        (-1, 7),                    # last tag byte
    ])
    def test_single_bit_flip_fails(self, crypto, hello_blob, index, bit):
        tampered = _flip_bit(hello_blob, index, bit)
        assert crypto.decrypt(tampered, "correct-horse") is None

    def test_salt_bit_flip_fails(self, crypto, hello_blob):
        tampered = _flip_bit(hello_blob, 0)
        assert crypto.decrypt(tampered, "correct-horse") is None

    def test_appended_byte_fails(self, crypto, hello_blob):
        assert crypto.decrypt(hello_blob + b"\x00", "correct-horse") is None

    def test_dropped_byte_fails(self, crypto, hello_blob):
        assert crypto.decrypt(hello_blob[:-1], "correct-horse") is None


# ── Truncation ───────────────────────────────────────────────────────


class TestTruncation:
    @pytest.mark.parametrize("length", [0, 1, SALT, SALT + NONCE - 1])
    def test_short_blob_fails_without_key_derivation(self, crypto, length):
        with patch.object(CryptoManager, "derive_key") as derive:
            assert crypto.decrypt(b"\x01" * length, "password") is None
        derive.assert_not_called()

    @pytest.mark.parametrize("extra", [0, 1, TAG - 1])
    def test_blob_without_full_tag_fails(self, crypto, extra):
        with patch.object(CryptoManager, "derive_key") as derive:
            assert crypto.decrypt(b"\x01" * (SALT + NONCE + extra), "password") is None
        derive.assert_not_called()


# ── Key derivation ───────────────────────────────────────────────────


class TestKeyDerivation:
    def test_same_inputs_same_key(self, crypto):
        salt = b"\x07" * SALT
        key = crypto.derive_key("password", salt)
        assert len(key) == CryptoManager.KEY_SIZE
        assert crypto.derive_key("password", salt) == key

    def test_salt_changes_key(self, crypto):
        assert crypto.derive_key("password", b"\x01" * SALT) != crypto.derive_key("password", b"\x02" * SALT)

    def test_password_changes_key(self, crypto):
        salt = b"\x03" * SALT
        assert crypto.derive_key("password", salt) != crypto.derive_key("passwore", salt)

    def test_wrong_salt_length_raises(self, crypto):
        with pytest.raises(ValueError):
            crypto.derive_key("password", b"short")

    @pytest.mark.parametrize("failure", [HashingError("Memory allocation error"), MemoryError()])
    def test_derivation_failure_is_raised_as_key_derivation_error(self, crypto, failure):
        with patch("lockbox.crypto.hash_secret_raw", side_effect=failure):
            with pytest.raises(KeyDerivationError):
                crypto.derive_key("password", b"\x00" * SALT)

    def test_encrypt_propagates_derivation_failure(self, crypto):
        with patch("lockbox.crypto.hash_secret_raw", side_effect=HashingError("Memory allocation error")):
            with pytest.raises(KeyDerivationError):
                crypto.encrypt(b"data", "password")

    def test_decrypt_reports_derivation_failure_as_failed(self, crypto, hello_blob):
        with patch("lockbox.crypto.hash_secret_raw", side_effect=HashingError("Memory allocation error")):
            assert crypto.decrypt(hello_blob, "correct-horse") is None


class TestClearBytes:
    def test_bytearray_is_zeroed(self, crypto):
        data = bytearray(b"sensitive")
        crypto.clear_bytes(data)
        assert data == bytearray(len(b"sensitive"))

    def test_immutable_bytes_are_ignored(self, crypto):
        data = b"sensitive"
        crypto.clear_bytes(data)
        assert data == b"sensitive"


class TestModuleNotice:
    @pytest.mark.parametrize("module", [lockbox.crypto, lockbox.storage])
    def test_sensitive_modules_carry_legal_notice(self, module):
        assert "LEGAL NOTICE:" in module.__doc__
