from __future__ import annotations

import typing

from starlette.requests import HTTPConnection
from starlette.responses import Response

from starlette_cookies.cookies import Cookie
from starlette_cookies.exceptions import InvalidFormat

__all__ = ["CookieCollection", "RequestCookies"]


class CookieCollection:
    """
    A mutable set of cookies indexed by cookie name.

    Adding a cookie replaces any cookie with the same name.
    """

    def __init__(self, cookies: typing.Iterable[Cookie] | None = None) -> None:
        self._cookies: dict[str, Cookie] = {}
        for cookie in cookies or []:
            if not isinstance(cookie, Cookie):
                raise InvalidFormat("CookieCollection can contain only Cookie instances.")
            self._cookies[cookie.name] = cookie

    def get(self, name: str) -> Cookie | None:
        return self._cookies.get(name)

    def get_value(self, name: str, default: str | None = None) -> str | None:
        """Return the value of the named cookie or `default` if the cookie is not set."""
        cookie = self._cookies.get(name)
        return cookie.value if cookie is not None else default

    def add(self, cookie: Cookie) -> None:
        self._cookies[cookie.name] = cookie

    def has(self, name: str) -> bool:
        return name in self._cookies

    def remove(self, name: str) -> Cookie | None:
        """Remove the named cookie and return it."""
        return self._cookies.pop(name, None)

    def clear(self) -> None:
        self._cookies.clear()

    def contains(self, cookie: Cookie) -> bool:
        """Test if this exact cookie instance is in the collection."""
        return any(item is cookie for item in self._cookies.values())

    def exists(self, fn: typing.Callable[[Cookie, str], bool]) -> bool:
        """Test if at least one cookie matches the condition specified by `fn`."""
        return any(fn(cookie, name) for name, cookie in self._cookies.items())

    def expire(self, name: str) -> None:
        """Replace the named cookie with its expired copy."""
        if name in self._cookies:
            self._cookies[name] = self._cookies[name].expire()

    def walk(self, fn: typing.Callable[[Cookie, str], Cookie | None]) -> None:
        """
        Apply a function on each cookie.

        Callback receives the cookie and its name. When it returns a cookie, that cookie replaces the current one.
        """
        for name, cookie in list(self._cookies.items()):
            result = fn(cookie, name)
            if result is not None:
                del self._cookies[name]
                self._cookies[result.name] = result

    def keys(self) -> list[str]:
        return list(self._cookies.keys())

    def values(self) -> list[Cookie]:
        return list(self._cookies.values())

    def is_empty(self) -> bool:
        return not self._cookies

    def to_dict(self) -> dict[str, Cookie]:
        return dict(self._cookies)

    def add_to_response(self, response: Response) -> Response:
        """Append every cookie to the response as a `Set-Cookie` header."""
        for cookie in self._cookies.values():
            cookie.add_to_response(response)
        return response

    def set_to_response(self, response: Response) -> Response:
        """Replace all `Set-Cookie` headers of the response with cookies from this collection."""
        del response.headers["set-cookie"]
        return self.add_to_response(response)

    @classmethod
    def from_dict(cls, cookies: typing.Mapping[str, str]) -> CookieCollection:
        """Create a collection from "name" => "value" pairs."""
        if not all(isinstance(name, str) for name in cookies):
            raise InvalidFormat('Invalid mapping format. It must be "name" => "value" pairs.')
        return cls(Cookie(name, value) for name, value in cookies.items())

    @classmethod
    def from_response(cls, response: Response) -> CookieCollection:
        """Create a collection from `Set-Cookie` headers of the response."""
        return cls(Cookie.from_cookie_string(header) for header in response.headers.getlist("set-cookie"))

    @classmethod
    def from_request(cls, request: HTTPConnection) -> CookieCollection:
        return cls.from_dict(request.cookies)

    def __getitem__(self, name: str) -> Cookie:
        return self._cookies[name]

    def __setitem__(self, name: str, cookie: Cookie) -> None:
        self.add(cookie)

    def __delitem__(self, name: str) -> None:
        del self._cookies[name]

    def __contains__(self, name: object) -> bool:
        return name in self._cookies

    def __iter__(self) -> typing.Iterator[Cookie]:
        return iter(self._cookies.values())

    def __len__(self) -> int:
        return len(self._cookies)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CookieCollection):
            return NotImplemented
        return self._cookies == other._cookies

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.keys()}>"


class RequestCookies:
    """Read-only cookie values of the current request, after decryption and signature validation."""

    def __init__(self, cookies: typing.Mapping[str, str] | None = None) -> None:
        self._cookies = dict(cookies or {})

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._cookies.get(name, default)

    def has(self, name: str) -> bool:
        return name in self._cookies

    def to_dict(self) -> dict[str, str]:
        return dict(self._cookies)

    def __getitem__(self, name: str) -> str:
        return self._cookies[name]

    def __contains__(self, name: object) -> bool:
        return name in self._cookies

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestCookies):
            return NotImplemented
        return self._cookies == other._cookies

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {list(self._cookies)}>"
