from __future__ import annotations

import dataclasses
import hashlib
import os
import pathlib
import typing

from starlette.config import Config as BaseConfig
from starlette.config import Environ
from starlette.datastructures import CommaSeparatedStrings

from starlette_cookies.encryptors import CookieEncryptor
from starlette_cookies.exceptions import ImproperlyConfigured
from starlette_cookies.policy import CookieAction, CookiePolicy, CookieRule
from starlette_cookies.signers import CookieSigner

__all__ = ["Config", "CookieSettings"]


class Config(BaseConfig):
    """
    Starlette config that reads several `.env` files.

    Later files override earlier ones, missing files are skipped. Environment variables take precedence over files.
    """

    def __init__(
        self,
        env_files: typing.Iterable[str | pathlib.Path] = (),
        env_prefix: str = "",
        environ: typing.Mapping[str, str] | None = None,
    ):
        super().__init__(None, Environ() if environ is None else environ, env_prefix)
        for env_file in filter(os.path.isfile, env_files):
            self.file_values.update(BaseConfig(env_file).file_values)


@dataclasses.dataclass(frozen=True)
class CookieSettings:
    """
    Cookie protection settings.

    Encryption patterns are checked before signature patterns.
    """

    secret_key: str
    encrypt: typing.Sequence[str] = ()
    sign: typing.Sequence[str] = ()
    signer_algorithm: str = "sha256"

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ImproperlyConfigured("Cookie secret key must not be empty.")
        if self.signer_algorithm not in hashlib.algorithms_guaranteed or self.signer_algorithm.startswith("shake_"):
            raise ImproperlyConfigured(f'Unsupported signer algorithm "{self.signer_algorithm}".')

    @property
    def rules(self) -> list[CookieRule]:
        return [
            *(CookieRule(pattern, CookieAction.ENCRYPT) for pattern in self.encrypt),
            *(CookieRule(pattern, CookieAction.SIGN) for pattern in self.sign),
        ]

    def create_policy(self) -> CookiePolicy:
        return CookiePolicy(
            encryptor=CookieEncryptor(self.secret_key),
            signer=CookieSigner(self.secret_key, digest_method=getattr(hashlib, self.signer_algorithm)),
            rules=self.rules,
        )

    @classmethod
    def from_config(cls, config: BaseConfig) -> CookieSettings:
        """
        Read settings from environment.

        Recognized variables: COOKIES_SECRET_KEY (required), COOKIES_ENCRYPT and COOKIES_SIGN (comma separated name
        patterns), COOKIES_SIGNER_ALGORITHM.
        """
        return cls(
            secret_key=config("COOKIES_SECRET_KEY", cast=str),
            encrypt=list(config("COOKIES_ENCRYPT", cast=CommaSeparatedStrings, default="")),
            sign=list(config("COOKIES_SIGN", cast=CommaSeparatedStrings, default="")),
            signer_algorithm=config("COOKIES_SIGNER_ALGORITHM", cast=str, default="sha256"),
        )
