from __future__ import annotations

import dataclasses
import enum
import fnmatch
import http.cookies as http_cookies
import logging
import re
import typing
from urllib.parse import unquote_plus

from starlette_cookies.collection import RequestCookies
from starlette_cookies.cookies import Cookie
from starlette_cookies.encryptors import CookieEncryptor
from starlette_cookies.exceptions import CookieProtectionError, ImproperlyConfigured
from starlette_cookies.signers import CookieSigner

__all__ = ["CookieAction", "CookieRule", "CookiePolicy", "CookieCodec"]

logger = logging.getLogger(__name__)


class CookieAction(enum.StrEnum):
    ENCRYPT = "encrypt"
    SIGN = "sign"


class CookieCodec(typing.Protocol):  # pragma: no cover
    def encode(self, cookie: Cookie) -> Cookie:
        ...

    def decode(self, cookie: Cookie) -> Cookie:
        ...

    def is_protected(self, cookie: Cookie) -> bool:
        ...


@dataclasses.dataclass(frozen=True)
class CookieRule:
    """
    Applies `action` to cookies whose names match `pattern`.

    Patterns use shell-style wildcards: `*`, `?` and `[seq]`.
    """

    pattern: str
    action: CookieAction
    regex: re.Pattern[str] = dataclasses.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "action", CookieAction(self.action))
        except ValueError:
            raise ImproperlyConfigured(
                f'Unsupported action "{self.action}" for cookie pattern "{self.pattern}", '
                f'expected "{CookieAction.ENCRYPT}" or "{CookieAction.SIGN}".'
            ) from None
        object.__setattr__(self, "regex", re.compile(fnmatch.translate(self.pattern)))

    def matches(self, name: str) -> bool:
        return self.regex.match(name) is not None


Rules = typing.Mapping[str, CookieAction | str] | typing.Iterable[CookieRule]


class CookiePolicy:
    """
    Decides which cookies get encrypted or signed.

    Rules are checked in order, the first rule matching a cookie name wins. Cookies matching no rule are left intact.
    The policy holds no per-request state and can be shared between concurrent requests.

    Example:

        policy = CookiePolicy(
            encryptor=CookieEncryptor(secret_key),
            signer=CookieSigner(secret_key),
            rules={
                "identity": CookieAction.ENCRYPT,
                "name_[1-9]": CookieAction.SIGN,
                "prefix*": CookieAction.SIGN,
            },
        )
    """

    def __init__(self, encryptor: CookieEncryptor, signer: CookieSigner, rules: Rules = ()) -> None:
        self.encryptor = encryptor
        self.signer = signer
        if isinstance(rules, typing.Mapping):
            rules = [CookieRule(str(pattern), typing.cast(CookieAction, action)) for pattern, action in rules.items()]
        self.rules: tuple[CookieRule, ...] = tuple(rules)

    def match(self, name: str) -> CookieAction | None:
        for rule in self.rules:
            if rule.matches(name):
                return rule.action
        return None

    def codec(self, action: CookieAction) -> CookieCodec:
        return self.encryptor if action == CookieAction.ENCRYPT else self.signer

    def decode_cookie(self, cookie: Cookie) -> Cookie:
        """
        Decrypt or validate the cookie according to the rules.

        Raises `CookieProtectionError` subclasses on failure.
        """
        action = self.match(cookie.name)
        if action is None:
            return cookie
        return self.codec(action).decode(cookie)

    def encode_cookie(self, cookie: Cookie) -> Cookie:
        """Encrypt or sign the cookie according to the rules. Already protected cookies are returned as is."""
        action = self.match(cookie.name)
        if action is None:
            return cookie

        codec = self.codec(action)
        if codec.is_protected(cookie):
            return cookie
        return codec.encode(cookie)

    def decode_value(self, name: str, value: str) -> str:
        """
        Decode a raw request cookie value.

        Values of cookies matching no rule are returned unchanged.
        """
        if self.match(name) is None:
            return value
        return self.decode_cookie(Cookie(name, unquote_plus(value))).value

    def decode_request_cookies(self, cookies: typing.Mapping[str, str]) -> RequestCookies:
        """
        Decrypt and validate request cookies.

        Cookies that fail decryption or validation are excluded from the result and logged.
        """
        decoded: dict[str, str] = {}
        for name, value in cookies.items():
            try:
                decoded[name] = self.decode_value(name, value)
            except CookieProtectionError as exc:
                logger.info(str(exc), exc_info=exc, extra={"cookie": name})
        return RequestCookies(decoded)

    def encode_set_cookie_header(self, header: str) -> str:
        """
        Encrypt or sign the value of a `Set-Cookie` header. Headers that need no change are returned as is.

        The value is protected exactly as the client would send it back, with `http.cookies` quoting removed
        the same way Starlette parses request cookies. Only the value is replaced, attributes are kept verbatim.
        """
        name_value, separator, attributes = header.partition(";")
        name = name_value.partition("=")[0].strip()
        if self.match(name) is None:
            return header

        # validates the name and attributes
        parsed = Cookie.from_cookie_string(header)
        cookie = parsed.with_value(http_cookies._unquote(name_value.partition("=")[2].strip()))
        encoded = self.encode_cookie(cookie)
        if encoded is cookie:
            return header
        return f"{parsed.name}={encoded.header_value}{separator}{attributes}"

    def encode_set_cookie_headers(self, headers: typing.Iterable[str]) -> list[str] | None:
        """
        Encrypt or sign the values of `Set-Cookie` headers.

        Returns `None` when no header has been changed.
        """
        changed = False
        encoded_headers = []
        for header in headers:
            encoded = self.encode_set_cookie_header(header)
            changed = changed or encoded != header
            encoded_headers.append(encoded)
        return encoded_headers if changed else None
