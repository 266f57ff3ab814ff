from __future__ import annotations

import base64
import binascii
import hashlib
import os
from urllib.parse import quote, unquote

from anyio.to_thread import run_sync
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from starlette_cookies.cookies import Cookie
from starlette_cookies.exceptions import AlreadyProtected, AuthenticationFailed, NotProtected, Tampered

__all__ = ["Encryptor", "CookieEncryptor"]

NONCE_SIZE = 12
MARKER_LENGTH = 32
MARKER_NAMESPACE = "starlette_cookies.CookieEncryptor"


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode() if isinstance(value, str) else value


class Encryptor:
    """
    Authenticated symmetric encryption.

    Tokens are url-safe base64 of `nonce + AES-GCM ciphertext`. The AES key is derived from the secret with HKDF.
    """

    def __init__(self, key: str | bytes, info: bytes = b"starlette-cookies-encryption") -> None:
        if not key:
            raise ValueError("Encryption key must not be empty.")

        derived_key = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=info).derive(_to_bytes(key))
        self._aesgcm = AESGCM(derived_key)

    def encrypt(self, data: bytes, associated_data: bytes | None = None) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return base64.urlsafe_b64encode(nonce + self._aesgcm.encrypt(nonce, data, associated_data))

    def decrypt(self, token: bytes, associated_data: bytes | None = None) -> bytes:
        """
        Decrypt a token produced by `encrypt`.

        Raises `AuthenticationFailed` if the token is malformed, was modified, or was encrypted with another key or
        associated data.
        """
        try:
            payload = base64.b64decode(token, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError):
            raise AuthenticationFailed("Encrypted data is malformed.") from None

        if base64.urlsafe_b64encode(payload) != token:
            raise AuthenticationFailed("Encrypted data is not canonically encoded.")

        if len(payload) <= NONCE_SIZE:
            raise AuthenticationFailed("Encrypted data is too short.")

        try:
            return self._aesgcm.decrypt(payload[:NONCE_SIZE], payload[NONCE_SIZE:], associated_data)
        except InvalidTag:
            raise AuthenticationFailed("Encrypted data failed authentication.") from None

    async def aencrypt(self, data: bytes, associated_data: bytes | None = None) -> bytes:
        return await run_sync(self.encrypt, data, associated_data)

    async def adecrypt(self, token: bytes, associated_data: bytes | None = None) -> bytes:
        return await run_sync(self.decrypt, token, associated_data)


class CookieEncryptor:
    """
    Encrypts cookie values and detects whether an encrypted value has been tampered with.

    Encrypted values start with a marker derived from the cookie name, so a value encrypted
    for one cookie is not accepted as an encrypted value of another cookie.
    """

    def __init__(self, key: str | bytes, encryptor: Encryptor | None = None) -> None:
        self.encryptor = encryptor or Encryptor(key)

    def encrypt(self, cookie: Cookie) -> Cookie:
        """
        Return a copy of the cookie with the encrypted value.

        Raises `AlreadyProtected` if the value is already encrypted.
        """
        if self.is_encrypted(cookie):
            raise AlreadyProtected(f'The "{cookie.name}" cookie value is already encrypted.')

        token = self.encryptor.encrypt(cookie.value.encode(), cookie.name.encode())
        return cookie.with_raw_value(self.marker(cookie) + quote(token.decode(), safe=""))

    def decrypt(self, cookie: Cookie) -> Cookie:
        """
        Return a copy of the cookie with the decrypted value.

        Raises `NotProtected` if the value does not look encrypted (check with `is_encrypted` first)
        and `Tampered` if it fails authentication.
        """
        if not self.is_encrypted(cookie):
            raise NotProtected(f'The "{cookie.name}" cookie value is not validly encrypted.')

        token = unquote(cookie.value[MARKER_LENGTH:]).encode()
        try:
            value = self.encryptor.decrypt(token, cookie.name.encode())
            return cookie.with_value(value.decode())
        except (AuthenticationFailed, UnicodeDecodeError):
            raise Tampered(f'The "{cookie.name}" cookie value was tampered with.') from None

    def is_encrypted(self, cookie: Cookie) -> bool:
        return len(cookie.value) > MARKER_LENGTH and cookie.value.startswith(self.marker(cookie))

    def marker(self, cookie: Cookie) -> str:
        return hashlib.md5(f"{MARKER_NAMESPACE}{cookie.name}".encode(), usedforsecurity=False).hexdigest()

    encode = encrypt
    decode = decrypt
    is_protected = is_encrypted
