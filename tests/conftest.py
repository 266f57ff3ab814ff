import datetime
import typing

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute
from starlette.testclient import TestClient
from starlette.types import ASGIApp

from starlette_cookies import CookieAction, CookieEncryptor, CookiePolicy, CookieSigner


class AppFactory(typing.Protocol):  # pragma: nocover
    def __call__(
        self,
        debug: bool = True,
        middleware: list[Middleware] | None = None,
        routes: typing.Iterable[BaseRoute] | None = None,
        **kwargs: typing.Any,
    ) -> Starlette:
        ...


class ClientFactory(typing.Protocol):  # pragma: nocover
    def __call__(
        self,
        debug: bool = True,
        middleware: list[Middleware] | None = None,
        routes: typing.Iterable[BaseRoute] | None = None,
        raise_server_exceptions: bool = True,
        app: ASGIApp | None = None,
        **kwargs: typing.Any,
    ) -> TestClient:
        ...


@pytest.fixture
def test_app_factory() -> AppFactory:
    def factory(*args: typing.Any, **kwargs: typing.Any) -> Starlette:
        kwargs.setdefault("debug", True)
        kwargs.setdefault("routes", [])
        kwargs.setdefault("middleware", [])
        return Starlette(*args, **kwargs)

    return factory


@pytest.fixture
def test_client_factory(test_app_factory: AppFactory) -> ClientFactory:
    def factory(**kwargs: typing.Any) -> TestClient:
        raise_server_exceptions = kwargs.pop("raise_server_exceptions", True)
        app = kwargs.pop("app", None) or test_app_factory(**kwargs)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return typing.cast(ClientFactory, factory)


@pytest.fixture
def secret_key() -> str:
    return "key!"


@pytest.fixture
def encryptor(secret_key: str) -> CookieEncryptor:
    return CookieEncryptor(secret_key)


@pytest.fixture
def signer(secret_key: str) -> CookieSigner:
    return CookieSigner(secret_key)


@pytest.fixture
def policy(encryptor: CookieEncryptor, signer: CookieSigner) -> CookiePolicy:
    return CookiePolicy(
        encryptor=encryptor,
        signer=signer,
        rules={
            "encrypted": CookieAction.ENCRYPT,
            "secret*": CookieAction.ENCRYPT,
            "signed": CookieAction.SIGN,
            "name_[1-9]": CookieAction.SIGN,
        },
    )


@pytest.fixture
def now(monkeypatch: pytest.MonkeyPatch) -> datetime.datetime:
    """Freeze the clock used by cookies."""
    frozen = datetime.datetime(2023, 5, 17, 12, 30, 15, tzinfo=datetime.timezone.utc)
    monkeypatch.setattr("starlette_cookies.cookies.utcnow", lambda: frozen)
    return frozen
