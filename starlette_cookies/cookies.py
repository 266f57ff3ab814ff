from __future__ import annotations

import dataclasses
import datetime
import email.utils
import enum
import re
import typing
from urllib.parse import quote_plus, unquote_plus

from starlette.responses import Response

from starlette_cookies.exceptions import InvalidFormat

__all__ = ["Cookie", "SameSite", "utcnow"]

# https://tools.ietf.org/html/rfc6265#section-4.1.1
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9!#$%&'*+\-.^_`|~]+$")
INVALID_PATH_PATTERN = re.compile(r"[\x00-\x1f\x7f;]")
ATTRIBUTE_SEPARATOR = re.compile(r"\s*;\s*")
FLAG_ATTRIBUTES = ("secure", "httponly")


class SameSite(enum.StrEnum):
    LAX = "Lax"
    STRICT = "Strict"
    NONE = "None"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _to_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def _to_same_site(value: str | None) -> SameSite | None:
    if value is None:
        return None
    try:
        return SameSite(value)
    except ValueError:
        raise InvalidFormat('sameSite should be one of "Lax", "Strict" or "None".') from None


def _validate_path(path: str | None) -> None:
    if path is not None and INVALID_PATH_PATTERN.search(path):
        raise InvalidFormat(f'The cookie path "{path}" contains invalid characters.')


@dataclasses.dataclass(frozen=True)
class Cookie:
    """
    An immutable HTTP cookie.

    All `with_*` methods return a modified copy, the original instance is never changed.
    Setting `same_site` to `SameSite.NONE` always makes the cookie secure.
    """

    name: str
    value: str = ""
    expires: datetime.datetime | None = None
    domain: str | None = None
    path: str | None = "/"
    secure: bool = True
    http_only: bool = True
    same_site: SameSite | str | None = SameSite.LAX
    encode_value: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not NAME_PATTERN.match(self.name):
            raise InvalidFormat(f'The cookie name "{self.name}" contains invalid characters or is empty.')

        _validate_path(self.path)
        same_site = _to_same_site(self.same_site)
        object.__setattr__(self, "same_site", same_site)
        if same_site == SameSite.NONE:
            # browsers reject SameSite=None cookies without the Secure flag
            object.__setattr__(self, "secure", True)

        if self.expires is not None:
            object.__setattr__(self, "expires", _to_utc(self.expires))

    def with_value(self, value: str) -> Cookie:
        """Return a copy with a new value that will be percent-encoded on output."""
        return dataclasses.replace(self, value=value, encode_value=True)

    def with_raw_value(self, value: str) -> Cookie:
        """Return a copy with a new value that is already safe to be sent as is."""
        return dataclasses.replace(self, value=value, encode_value=False)

    def with_expires(self, expires: datetime.datetime) -> Cookie:
        return dataclasses.replace(self, expires=expires)

    def with_max_age(self, max_age: datetime.timedelta | int) -> Cookie:
        """
        Return a copy that expires after `max_age`.

        Zero or negative interval makes the cookie expire immediately.
        """
        if not isinstance(max_age, datetime.timedelta):
            max_age = datetime.timedelta(seconds=max_age)
        return dataclasses.replace(self, expires=utcnow().replace(microsecond=0) + max_age)

    def expire(self) -> Cookie:
        """Return a copy that the client will remove immediately."""
        return dataclasses.replace(self, expires=utcnow() - datetime.timedelta(days=365))

    def expire_when_browser_is_closed(self) -> Cookie:
        """Return a session cookie copy, it is removed when the client shuts down."""
        return dataclasses.replace(self, expires=None)

    def is_expired(self) -> bool:
        return self.expires is not None and self.expires <= utcnow()

    def with_domain(self, domain: str) -> Cookie:
        return dataclasses.replace(self, domain=domain)

    def with_path(self, path: str) -> Cookie:
        return dataclasses.replace(self, path=path)

    def with_secure(self, secure: bool = True) -> Cookie:
        return dataclasses.replace(self, secure=secure)

    def with_http_only(self, http_only: bool = True) -> Cookie:
        return dataclasses.replace(self, http_only=http_only)

    def with_same_site(self, same_site: SameSite | str) -> Cookie:
        return dataclasses.replace(self, same_site=same_site)

    @property
    def max_age(self) -> int | None:
        """Seconds left until the cookie expires, relative to the current time."""
        if self.expires is None:
            return None
        return int(self.expires.timestamp()) - int(utcnow().timestamp())

    @property
    def header_value(self) -> str:
        """The value as it appears in the `Set-Cookie` header."""
        return quote_plus(self.value) if self.encode_value else self.value

    def to_header(self) -> str:
        """Format the cookie as a `Set-Cookie` header value."""
        parts = [f"{self.name}={self.header_value}"]

        if self.expires is not None:
            parts.append("Expires=" + email.utils.format_datetime(self.expires, usegmt=True))
            parts.append(f"Max-Age={self.max_age}")
        if self.domain is not None:
            parts.append(f"Domain={self.domain}")
        if self.path is not None:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        if self.same_site is not None:
            parts.append(f"SameSite={self.same_site}")

        return "; ".join(parts)

    def add_to_response(self, response: Response) -> Response:
        """Append the cookie to the response as a `Set-Cookie` header."""
        response.raw_headers.append((b"set-cookie", self.to_header().encode("latin-1")))
        return response

    def __str__(self) -> str:
        return self.to_header()

    @classmethod
    def from_cookie_string(cls, string: str) -> Cookie:
        """
        Parse `Set-Cookie` header value.

        Unknown attributes are ignored. `Max-Age` takes precedence over `Expires`.
        Raises `InvalidFormat` if the string is empty or contains an invalid attribute value.
        """
        segments = [segment for segment in ATTRIBUTE_SEPARATOR.split(string.strip()) if segment]
        if not segments:
            raise InvalidFormat("Cookie string must have at least name.")

        name, value = _split_attribute(segments[0])
        params: dict[str, typing.Any] = {
            "path": None,
            "secure": False,
            "http_only": False,
            "same_site": None,
        }
        max_age: int | None = None

        for segment in segments[1:]:
            key, attribute = _split_attribute(segment)
            key = key.lower()
            if attribute is None and key not in FLAG_ATTRIBUTES:
                continue

            match key:
                case "expires":
                    params["expires"] = _parse_http_date(typing.cast(str, attribute))
                case "max-age":
                    try:
                        max_age = int(typing.cast(str, attribute))
                    except ValueError:
                        raise InvalidFormat(f'Invalid cookie Max-Age "{attribute}".') from None
                case "domain":
                    params["domain"] = attribute
                case "path":
                    params["path"] = attribute
                case "secure":
                    params["secure"] = True
                case "httponly":
                    params["http_only"] = True
                case "samesite":
                    params["same_site"] = typing.cast(str, attribute).capitalize()

        if max_age is not None:
            params["expires"] = utcnow().replace(microsecond=0) + datetime.timedelta(seconds=max_age)

        return cls(name, unquote_plus(value) if value is not None else "", **params)


def _split_attribute(attribute: str) -> tuple[str, str | None]:
    key, separator, value = attribute.partition("=")
    return key, value if separator else None


def _parse_http_date(value: str) -> datetime.datetime:
    try:
        return _to_utc(email.utils.parsedate_to_datetime(value))
    except (TypeError, ValueError):
        raise InvalidFormat(f'Invalid cookie expiry date "{value}".') from None
