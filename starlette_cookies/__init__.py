from starlette_cookies.collection import CookieCollection, RequestCookies
from starlette_cookies.config import Config, CookieSettings
from starlette_cookies.cookies import Cookie, SameSite
from starlette_cookies.encryptors import CookieEncryptor, Encryptor
from starlette_cookies.exceptions import (
    AlreadyProtected,
    AuthenticationFailed,
    CookieError,
    CookieProtectionError,
    ImproperlyConfigured,
    InvalidFormat,
    NotProtected,
    RequestCookiesNotSet,
    Tampered,
)
from starlette_cookies.middleware import (
    CookieMiddleware,
    CookieStorageMiddleware,
    get_cookie_storage,
    get_request_cookies,
)
from starlette_cookies.policy import CookieAction, CookiePolicy, CookieRule
from starlette_cookies.signers import CookieSigner, Signer
from starlette_cookies.storage import CookieStorage

__all__ = [
    "Cookie",
    "SameSite",
    "CookieCollection",
    "RequestCookies",
    "Encryptor",
    "CookieEncryptor",
    "Signer",
    "CookieSigner",
    "CookieAction",
    "CookieRule",
    "CookiePolicy",
    "CookieStorage",
    "CookieMiddleware",
    "CookieStorageMiddleware",
    "get_request_cookies",
    "get_cookie_storage",
    "Config",
    "CookieSettings",
    "CookieError",
    "InvalidFormat",
    "ImproperlyConfigured",
    "AuthenticationFailed",
    "CookieProtectionError",
    "AlreadyProtected",
    "NotProtected",
    "Tampered",
    "RequestCookiesNotSet",
]
