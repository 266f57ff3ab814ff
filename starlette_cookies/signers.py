from __future__ import annotations

import hashlib
import typing

from itsdangerous import BadSignature
from itsdangerous import Signer as BaseSigner

from starlette_cookies.cookies import Cookie
from starlette_cookies.exceptions import AlreadyProtected, NotProtected, Tampered

__all__ = ["Signer", "CookieSigner", "BadSignature"]

MARKER_LENGTH = 32
MARKER_NAMESPACE = "starlette_cookies.CookieSigner"


class Signer(BaseSigner):
    default_salt = "starlette-cookies.signer"

    def __init__(
        self,
        secret_key: str | bytes,
        digest_method: typing.Any = hashlib.sha256,
        salt: str | bytes | None = None,
    ) -> None:
        super().__init__(
            secret_key=secret_key,
            salt=salt or self.default_salt,
            key_derivation="hmac",
            digest_method=digest_method,
        )


class CookieSigner:
    """
    Signs cookie values and checks whether a signed value has been tampered with.

    The signed value is `<marker><marker><value>.<signature>`. The marker is derived from the cookie name and is part
    of the signed message, so a value signed for one cookie does not validate as a value of another cookie.
    """

    def __init__(self, key: str | bytes, digest_method: typing.Any = hashlib.sha256, signer: Signer | None = None) -> None:
        self.signer = signer or Signer(key, digest_method=digest_method)

    def sign(self, cookie: Cookie) -> Cookie:
        """
        Return a copy of the cookie with the signed value.

        Raises `AlreadyProtected` if the value is already signed.
        """
        if self.is_signed(cookie):
            raise AlreadyProtected(f'The "{cookie.name}" cookie value is already signed.')

        marker = self.marker(cookie)
        signed = self.signer.sign(marker + cookie.value).decode()
        return cookie.with_value(marker + signed)

    def validate(self, cookie: Cookie) -> Cookie:
        """
        Return a copy of the cookie with the original unsigned value.

        Raises `NotProtected` if the value is not signed and `Tampered` if the signature is invalid.
        """
        if not self.is_signed(cookie):
            raise NotProtected(f'The "{cookie.name}" cookie value is not signed.')

        marker = self.marker(cookie)
        envelope = cookie.value[MARKER_LENGTH:].encode()
        try:
            message = self.signer.unsign(envelope)
        except BadSignature:
            raise Tampered(f'The "{cookie.name}" cookie value was tampered with.') from None

        # base64 ignores trailing bits, only the canonical signature is accepted
        if self.signer.sign(message) != envelope:
            raise Tampered(f'The "{cookie.name}" cookie value was tampered with.')

        try:
            text = message.decode()
        except UnicodeDecodeError:
            raise Tampered(f'The "{cookie.name}" cookie value was tampered with.') from None

        if not text.startswith(marker):
            raise Tampered(f'The "{cookie.name}" cookie value was signed for another cookie.')
        return cookie.with_value(text[MARKER_LENGTH:])

    def is_signed(self, cookie: Cookie) -> bool:
        return len(cookie.value) > MARKER_LENGTH and cookie.value.startswith(self.marker(cookie))

    def marker(self, cookie: Cookie) -> str:
        return hashlib.md5(f"{MARKER_NAMESPACE}{cookie.name}".encode(), usedforsecurity=False).hexdigest()

    encode = sign
    decode = validate
    is_protected = is_signed
