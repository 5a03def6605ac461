"""Encryption of the on-disk license blob.

Blob layout: ``base64(nonce[12] || tag[16] || ciphertext)``, AES-256-GCM
with a key derived by scrypt from the shared secret. The license server
produces blobs in this layout; encrypt_license exists for tests and tooling.
"""

from __future__ import annotations

import base64
import binascii
import functools
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import ValidationError

from convertsave.config.env import ENV_LICENSE_KEY, EnvReader
from convertsave.exceptions import LicenseError
from convertsave.license.models import LicenseErrorKind, LicenseRecord

PLACEHOLDER_SECRET = "PLACEHOLDER_KEY_SET_LICENSE_ENCRYPTION_KEY_ENV_VAR"

SCRYPT_SALT = b"salt"
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 32

NONCE_SIZE = 12
TAG_SIZE = 16


def license_secret(env: EnvReader | None = None) -> str:
    """Shared secret from LICENSE_ENCRYPTION_KEY, or the placeholder."""
    reader = env or EnvReader()
    return reader.get_str(ENV_LICENSE_KEY, PLACEHOLDER_SECRET) or PLACEHOLDER_SECRET


@functools.lru_cache(maxsize=4)
def derive_key(secret: str) -> bytes:
    """Derive the 32-byte AES key from the shared secret."""
    kdf = Scrypt(salt=SCRYPT_SALT, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(secret.encode("utf-8"))


def encrypt_license(record: LicenseRecord, key: bytes) -> str:
    """Encrypt a record into a base64 blob with a fresh random nonce."""
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, record.to_json().encode("utf-8"), None)
    # AESGCM appends the tag; the blob stores it before the ciphertext
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return base64.b64encode(nonce + tag + ciphertext).decode("ascii")


def decrypt_license(blob: str, key: bytes) -> LicenseRecord:
    """Decrypt and parse a license blob.

    Raises:
        LicenseError: If the blob is malformed, was encrypted with another
            key, or does not hold a license record.
    """
    try:
        data = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise LicenseError(f"License data is not valid base64: {e}", LicenseErrorKind.INVALID) from e

    if len(data) <= NONCE_SIZE + TAG_SIZE:
        raise LicenseError("License data is too short", LicenseErrorKind.INVALID)

    nonce = data[:NONCE_SIZE]
    tag = data[NONCE_SIZE : NONCE_SIZE + TAG_SIZE]
    ciphertext = data[NONCE_SIZE + TAG_SIZE :]
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as e:
        raise LicenseError(
            "Decryption failed: invalid license or key", LicenseErrorKind.INVALID
        ) from e

    try:
        return LicenseRecord.from_json(plaintext)
    except ValidationError as e:
        raise LicenseError(f"License contents are malformed: {e}", LicenseErrorKind.INVALID) from e
