"""Tests for license blob encryption."""

import base64

import pytest

from convertsave.config.env import EnvReader
from convertsave.exceptions import LicenseError
from convertsave.license.crypto import (
    NONCE_SIZE,
    PLACEHOLDER_SECRET,
    TAG_SIZE,
    decrypt_license,
    derive_key,
    encrypt_license,
    license_secret,
)
from convertsave.license.models import LicenseErrorKind


class TestLicenseSecret:
    """Tests for license_secret."""

    def test_from_environment(self):
        env = EnvReader(env={"LICENSE_ENCRYPTION_KEY": "s3cret"})
        assert license_secret(env) == "s3cret"

    def test_placeholder_when_unset(self):
        assert license_secret(EnvReader(env={})) == PLACEHOLDER_SECRET


class TestBlob:
    """Tests for encrypt_license and decrypt_license."""

    def test_key_length(self, license_key):
        assert len(license_key) == 32
        assert derive_key("test-secret") == license_key

    def test_decrypts_what_it_encrypts(self, license_key, make_record):
        record = make_record()
        blob = encrypt_license(record, license_key)

        raw = base64.b64decode(blob)
        assert len(raw) > NONCE_SIZE + TAG_SIZE
        assert decrypt_license(blob, license_key) == record

    def test_nonce_is_fresh(self, license_key, make_record):
        record = make_record()
        assert encrypt_license(record, license_key) != encrypt_license(record, license_key)

    def test_wrong_key(self, license_key, make_record):
        blob = encrypt_license(make_record(), license_key)
        with pytest.raises(LicenseError, match="Decryption failed") as exc_info:
            decrypt_license(blob, derive_key("other-secret"))
        assert exc_info.value.kind == LicenseErrorKind.INVALID

    def test_tampered_ciphertext(self, license_key, make_record):
        raw = bytearray(base64.b64decode(encrypt_license(make_record(), license_key)))
        raw[-1] ^= 0x01
        with pytest.raises(LicenseError, match="Decryption failed"):
            decrypt_license(base64.b64encode(bytes(raw)).decode(), license_key)

    @pytest.mark.parametrize("blob", ["not base64 !!", base64.b64encode(b"short").decode()])
    def test_malformed(self, blob, license_key):
        with pytest.raises(LicenseError):
            decrypt_license(blob, license_key)
