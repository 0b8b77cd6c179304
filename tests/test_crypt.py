"""Tests for password-based message encryption."""

from __future__ import annotations

import pytest

from mtd.errors import DecryptingError, MtdError
from mtd.sync.crypt import HEADER_SIZE, decrypt, encrypt

MSG = b"A message to keep secure."
PASSWD = b"Very secure passwd"


class TestCrypt:
    """encrypt/decrypt behavior."""

    def test_decrypting_encrypted_returns_original(self):
        assert decrypt(encrypt(MSG, PASSWD), PASSWD) == MSG

    def test_empty_message(self):
        assert decrypt(encrypt(b"", PASSWD), PASSWD) == b""

    def test_same_message_gives_different_ciphertexts(self):
        ciphertexts = {encrypt(MSG, PASSWD) for _ in range(3)}
        assert len(ciphertexts) == 3

    def test_layout(self):
        """Salt and nonce precede the ciphertext plus 16-byte tag."""
        ct = encrypt(MSG, PASSWD)
        assert len(ct) == HEADER_SIZE + len(MSG) + 16

    def test_incorrect_password_fails(self):
        ct = encrypt(MSG, PASSWD)
        with pytest.raises(DecryptingError):
            decrypt(ct, b"Incorrect passwd")

    def test_appended_bytes_fail(self):
        ct = encrypt(MSG, PASSWD) + bytes([14, 36, 122])
        with pytest.raises(DecryptingError):
            decrypt(ct, PASSWD)

    def test_flipped_byte_fails(self):
        ct = bytearray(encrypt(MSG, PASSWD))
        ct[-1] ^= 0x01
        with pytest.raises(DecryptingError):
            decrypt(bytes(ct), PASSWD)

    def test_too_short_fails(self):
        with pytest.raises(DecryptingError, match="too short"):
            decrypt(b"\x00" * (HEADER_SIZE - 1), PASSWD)

    def test_errors_are_mtd_errors(self):
        with pytest.raises(MtdError):
            decrypt(b"", PASSWD)
