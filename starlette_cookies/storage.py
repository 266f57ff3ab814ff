from __future__ import annotations

import logging
import typing

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from starlette_cookies.collection import CookieCollection, RequestCookies
from starlette_cookies.cookies import Cookie
from starlette_cookies.exceptions import CookieProtectionError
from starlette_cookies.policy import CookiePolicy

__all__ = ["CookieStorage"]

logger = logging.getLogger(__name__)


class CookieStorage:
    """
    Collects outgoing cookies of a single request and holds its decoded incoming cookies.

    Outgoing cookies are encrypted or signed when added. A storage instance belongs to one request only.
    """

    def __init__(self, policy: CookiePolicy) -> None:
        self.policy = policy
        self.cookies = CookieCollection()
        self.loaded = RequestCookies()
        self.tampered: dict[str, str] = {}

    def add(self, cookie: Cookie) -> None:
        self.cookies.add(self.policy.encode_cookie(cookie))

    def delete(self, name: str, path: str = "/", domain: str | None = None) -> None:
        """Instruct the client to remove the cookie."""
        self.cookies.add(Cookie(name, path=path, domain=domain).expire())

    def load(self, cookies: typing.Mapping[str, str]) -> RequestCookies:
        """
        Decrypt and validate request cookies.

        Cookies that fail are not loaded, the failure reason is available in `tampered`.
        """
        decoded: dict[str, str] = {}
        for name, value in cookies.items():
            try:
                decoded[name] = self.policy.decode_value(name, value)
            except CookieProtectionError as exc:
                logger.info(str(exc), exc_info=exc, extra={"cookie": name})
                self.tampered[name] = str(exc)

        self.loaded = RequestCookies(decoded)
        return self.loaded

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the decoded value of the request cookie."""
        return self.loaded.get(name, default)

    def has(self, name: str) -> bool:
        return self.loaded.has(name)

    def apply_to_headers(self, headers: MutableHeaders) -> None:
        for cookie in self.cookies:
            headers.append("set-cookie", cookie.to_header())

    def add_to_response(self, response: Response) -> Response:
        return self.cookies.add_to_response(response)
