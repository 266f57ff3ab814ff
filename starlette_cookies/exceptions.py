class CookieError(Exception):
    """Base class for all cookie errors."""


class InvalidFormat(CookieError, ValueError):
    """Raised when a cookie name, path, same-site mode or cookie string is malformed."""


class ImproperlyConfigured(CookieError):
    """Raised when cookie protection settings are invalid."""


class AuthenticationFailed(CookieError):
    """Raised by the encryption primitive when a token fails authentication."""


class CookieProtectionError(CookieError):
    """
    Base class for errors raised by cookie encryptors and signers.

    The middleware drops the offending cookie and logs these errors instead of failing the request.
    """


class AlreadyProtected(CookieProtectionError):
    """The cookie value is already encrypted or signed."""


class NotProtected(CookieProtectionError):
    """The cookie value is not encrypted or signed for this cookie name."""


class Tampered(CookieProtectionError):
    """The cookie value failed authentication."""


class RequestCookiesNotSet(CookieError, LookupError):
    """Raised when request cookies are accessed outside of the cookie middleware."""
