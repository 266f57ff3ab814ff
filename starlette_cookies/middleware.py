from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from starlette_cookies.collection import RequestCookies
from starlette_cookies.exceptions import RequestCookiesNotSet
from starlette_cookies.policy import CookiePolicy
from starlette_cookies.storage import CookieStorage

__all__ = ["CookieMiddleware", "CookieStorageMiddleware", "get_request_cookies", "get_cookie_storage"]

REQUEST_COOKIES_KEY = "request_cookies"
COOKIE_STORAGE_KEY = "cookie_storage"


class CookieMiddleware:
    """
    Decrypts and validates request cookies, encrypts and signs `Set-Cookie` response headers.

    The decoded cookies are available to downstream apps via `get_request_cookies`.
    """

    def __init__(self, app: ASGIApp, policy: CookiePolicy) -> None:
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":  # pragma: no cover
            return await self.app(scope, receive, send)

        connection = HTTPConnection(scope)
        scope = {**scope, REQUEST_COOKIES_KEY: self.policy.decode_request_cookies(connection.cookies)}

        async def sender(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                encoded = self.policy.encode_set_cookie_headers(headers.getlist("set-cookie"))
                if encoded is not None:
                    del headers["set-cookie"]
                    for header in encoded:
                        headers.append("set-cookie", header)
            await send(message)

        await self.app(scope, receive, sender)


class CookieStorageMiddleware:
    """
    Creates a `CookieStorage` for every request.

    Request cookies are loaded into the storage before the app is called, cookies added to the storage
    are sent with the response.
    """

    def __init__(self, app: ASGIApp, policy: CookiePolicy) -> None:
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":  # pragma: no cover
            return await self.app(scope, receive, send)

        storage = CookieStorage(self.policy)
        request_cookies = storage.load(HTTPConnection(scope).cookies)
        scope = {**scope, REQUEST_COOKIES_KEY: request_cookies, COOKIE_STORAGE_KEY: storage}

        async def sender(message: Message) -> None:
            if message["type"] == "http.response.start":
                storage.apply_to_headers(MutableHeaders(scope=message))
            await send(message)

        await self.app(scope, receive, sender)


def get_request_cookies(connection: HTTPConnection) -> RequestCookies:
    """Return decoded cookies of the current request."""
    try:
        return connection.scope[REQUEST_COOKIES_KEY]
    except KeyError:
        raise RequestCookiesNotSet(
            "Request cookies are not available. Ensure CookieMiddleware or CookieStorageMiddleware is installed."
        ) from None


def get_cookie_storage(connection: HTTPConnection) -> CookieStorage:
    try:
        return connection.scope[COOKIE_STORAGE_KEY]
    except KeyError:
        raise RequestCookiesNotSet("Cookie storage is not available. Ensure CookieStorageMiddleware is installed.") from None
