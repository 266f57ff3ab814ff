import datetime

import pytest
from starlette.responses import Response

from starlette_cookies import Cookie, InvalidFormat, SameSite

HOUR = datetime.timedelta(hours=1)


def test_accepts_valid_name() -> None:
    assert Cookie("session").name == "session"


@pytest.mark.parametrize("name", ["sess;ion", "", "a b", "a=b", "ключ", "a\tb"])
def test_rejects_invalid_name(name: str) -> None:
    with pytest.raises(InvalidFormat, match="invalid characters or is empty"):
        Cookie(name)


def test_defaults() -> None:
    cookie = Cookie("test", "42")
    assert str(cookie) == "test=42; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_with_value() -> None:
    cookie = Cookie("test").with_value("42")
    assert str(cookie) == "test=42; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_value_is_encoded() -> None:
    assert str(Cookie("test", ";")) == "test=%3B; Path=/; Secure; HttpOnly; SameSite=Lax"
    assert str(Cookie("test", "a b")) == "test=a+b; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_with_raw_value() -> None:
    cookie = Cookie("test", ";").with_raw_value("a%20b")
    assert cookie.encode_value is False
    assert str(cookie) == "test=a%20b; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_with_value_restores_encoding() -> None:
    cookie = Cookie("test").with_raw_value("a").with_value(";")
    assert cookie.encode_value is True
    assert str(cookie).startswith("test=%3B;")


def test_with_expires(now: datetime.datetime) -> None:
    cookie = Cookie("test", "42").with_expires(now + HOUR)
    assert str(cookie) == (
        "test=42; Expires=Wed, 17 May 2023 13:30:15 GMT; Max-Age=3600; Path=/; Secure; HttpOnly; SameSite=Lax"
    )


def test_with_expires_accepts_naive_datetime_as_utc(now: datetime.datetime) -> None:
    cookie = Cookie("test").with_expires(datetime.datetime(2023, 5, 17, 13, 30, 15))
    assert cookie.expires == now + HOUR


def test_with_expires_converts_to_utc(now: datetime.datetime) -> None:
    tz = datetime.timezone(datetime.timedelta(hours=3))
    cookie = Cookie("test").with_expires(datetime.datetime(2023, 5, 17, 16, 30, 15, tzinfo=tz))
    assert cookie.expires == now + HOUR
    assert "Expires=Wed, 17 May 2023 13:30:15 GMT" in str(cookie)


def test_with_max_age(now: datetime.datetime) -> None:
    cookie = Cookie("test", "42").with_max_age(HOUR)
    assert cookie.expires == now + HOUR
    assert str(cookie) == (
        "test=42; Expires=Wed, 17 May 2023 13:30:15 GMT; Max-Age=3600; Path=/; Secure; HttpOnly; SameSite=Lax"
    )


def test_with_max_age_accepts_seconds(now: datetime.datetime) -> None:
    assert Cookie("test").with_max_age(60).expires == now + datetime.timedelta(seconds=60)


def test_with_negative_max_age(now: datetime.datetime) -> None:
    cookie = Cookie("test", "42").with_max_age(-HOUR)
    assert cookie.is_expired()
    assert str(cookie) == (
        "test=42; Expires=Wed, 17 May 2023 11:30:15 GMT; Max-Age=-3600; Path=/; Secure; HttpOnly; SameSite=Lax"
    )


def test_with_zero_max_age_is_expired(now: datetime.datetime) -> None:
    assert Cookie("test").with_max_age(0).is_expired()


def test_max_age_is_relative_to_serialization_time(monkeypatch: pytest.MonkeyPatch, now: datetime.datetime) -> None:
    cookie = Cookie("test").with_max_age(HOUR)
    assert cookie.max_age == 3600

    monkeypatch.setattr("starlette_cookies.cookies.utcnow", lambda: now + datetime.timedelta(minutes=10))
    assert cookie.max_age == 3000
    assert "Max-Age=3000" in str(cookie)


def test_is_expired(now: datetime.datetime) -> None:
    assert Cookie("test").with_expires(now - HOUR).is_expired()
    assert Cookie("test").with_expires(now).is_expired()
    assert not Cookie("test").with_expires(now + HOUR).is_expired()
    assert not Cookie("test").is_expired()


def test_expire(now: datetime.datetime) -> None:
    cookie = Cookie("test", "42").expire()
    assert cookie.is_expired()
    assert cookie.expires is not None
    assert cookie.expires < now


def test_expire_when_browser_is_closed(now: datetime.datetime) -> None:
    cookie = Cookie("test", "42").with_max_age(HOUR).expire_when_browser_is_closed()
    assert cookie.expires is None
    assert str(cookie) == "test=42; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_with_domain() -> None:
    cookie = Cookie("test", "42").with_domain("example.com")
    assert str(cookie) == "test=42; Domain=example.com; Path=/; Secure; HttpOnly; SameSite=Lax"


def test_with_path() -> None:
    cookie = Cookie("test", "42").with_path("/test")
    assert str(cookie) == "test=42; Path=/test; Secure; HttpOnly; SameSite=Lax"


@pytest.mark.parametrize("path", ["/test;", "/te\nst", "/\x7f"])
def test_invalid_path(path: str) -> None:
    with pytest.raises(InvalidFormat, match="path"):
        Cookie("test", "42").with_path(path)

    with pytest.raises(InvalidFormat, match="path"):
        Cookie("test", "42", path=path)


def test_with_secure() -> None:
    cookie = Cookie("test", "42").with_secure(False)
    assert str(cookie) == "test=42; Path=/; HttpOnly; SameSite=Lax"
    assert cookie.with_secure().secure is True


def test_with_http_only() -> None:
    cookie = Cookie("test", "42").with_http_only(False)
    assert str(cookie) == "test=42; Path=/; Secure; SameSite=Lax"
    assert cookie.with_http_only().http_only is True


def test_with_same_site() -> None:
    cookie = Cookie("test", "42").with_same_site("Strict")
    assert cookie.same_site == SameSite.STRICT
    assert str(cookie) == "test=42; Path=/; Secure; HttpOnly; SameSite=Strict"


def test_invalid_same_site() -> None:
    with pytest.raises(InvalidFormat, match="sameSite"):
        Cookie("test", "42").with_same_site("Invalid")

    with pytest.raises(InvalidFormat, match="sameSite"):
        Cookie("test", "42", same_site="lax")


def test_same_site_none_forces_secure() -> None:
    cookie = Cookie("test", "42").with_secure(False).with_same_site(SameSite.NONE)
    assert cookie.secure is True
    assert str(cookie) == "test=42; Path=/; Secure; HttpOnly; SameSite=None"

    assert Cookie("test", secure=False, same_site="None").secure is True


def test_attributes() -> None:
    cookie = Cookie("test")
    assert cookie.name == "test"
    assert cookie.value == ""
    assert cookie.expires is None
    assert cookie.domain is None
    assert cookie.path == "/"
    assert cookie.secure is True
    assert cookie.http_only is True
    assert cookie.same_site == SameSite.LAX
    assert cookie.max_age is None


def test_immutability(now: datetime.datetime) -> None:
    original = Cookie("test", "42")
    copies = [
        original.with_value("value"),
        original.with_raw_value("value"),
        original.with_expires(now),
        original.with_max_age(HOUR),
        original.expire(),
        original.expire_when_browser_is_closed(),
        original.with_domain("example.com"),
        original.with_path("/test"),
        original.with_secure(False),
        original.with_http_only(False),
        original.with_same_site(SameSite.STRICT),
    ]

    assert all(copy is not original for copy in copies)
    assert original == Cookie("test", "42")

    with pytest.raises(AttributeError):
        original.value = "changed"  # type: ignore[misc]


def test_add_to_response() -> None:
    response = Response()
    assert Cookie("test", "42").add_to_response(response) is response
    assert response.headers.getlist("set-cookie") == ["test=42; Path=/; Secure; HttpOnly; SameSite=Lax"]


@pytest.mark.parametrize(
    "header, expected",
    [
        ("name=value", Cookie("name", "value", path=None, secure=False, http_only=False, same_site=None)),
        (
            "name=value; Path=/; Secure; HttpOnly; SameSite=Lax",
            Cookie("name", "value"),
        ),
        (
            "name=a+b%3B; domain=example.com; path=/path; secure; httponly; samesite=Strict; unknown=1; Flag",
            Cookie("name", "a b;", domain="example.com", path="/path", same_site=SameSite.STRICT),
        ),
        (
            "name=value; Expires=Wed, 17 May 2023 13:30:15 GMT",
            Cookie(
                "name",
                "value",
                expires=datetime.datetime(2023, 5, 17, 13, 30, 15, tzinfo=datetime.timezone.utc),
                path=None,
                secure=False,
                http_only=False,
                same_site=None,
            ),
        ),
        (
            "name=value;  Max-Age=3600 ;Domain=",
            Cookie(
                "name",
                "value",
                expires=datetime.datetime(2023, 5, 17, 13, 30, 15, tzinfo=datetime.timezone.utc),
                domain="",
                path=None,
                secure=False,
                http_only=False,
                same_site=None,
            ),
        ),
        ("name", Cookie("name", "", path=None, secure=False, http_only=False, same_site=None)),
        ("name=a=b", Cookie("name", "a=b", path=None, secure=False, http_only=False, same_site=None)),
    ],
)
def test_from_cookie_string(header: str, expected: Cookie, now: datetime.datetime) -> None:
    assert Cookie.from_cookie_string(header) == expected


def test_from_cookie_string_max_age_takes_precedence(now: datetime.datetime) -> None:
    cookie = Cookie.from_cookie_string("name=value; Max-Age=60; Expires=Wed, 17 May 2023 13:30:15 GMT")
    assert cookie.expires == now + datetime.timedelta(seconds=60)


def test_from_cookie_string_same_site_none_is_secure() -> None:
    assert Cookie.from_cookie_string("name=value; SameSite=None").secure is True


def test_from_cookie_string_same_site_is_case_insensitive() -> None:
    assert Cookie.from_cookie_string("name=value; SameSite=lax").same_site == SameSite.LAX
    assert Cookie.from_cookie_string("name=value; samesite=STRICT").same_site == SameSite.STRICT


@pytest.mark.parametrize(
    "header",
    [
        "",
        " ; ",
        "=value",
        "na me=value",
        "name=value; Max-Age=soon",
        "name=value; Expires=tomorrow",
        "name=value; SameSite=Sometimes",
    ],
)
def test_from_cookie_string_rejects_invalid_string(header: str) -> None:
    with pytest.raises(InvalidFormat):
        Cookie.from_cookie_string(header)


def test_serialize_and_parse(now: datetime.datetime) -> None:
    cookie = (
        Cookie("test", "some; value")
        .with_max_age(HOUR)
        .with_domain("example.com")
        .with_path("/path")
        .with_same_site(SameSite.STRICT)
    )
    assert Cookie.from_cookie_string(str(cookie)) == cookie


def test_parse_recomputes_max_age_at_parse_time(monkeypatch: pytest.MonkeyPatch, now: datetime.datetime) -> None:
    header = str(Cookie("test", "42").with_max_age(HOUR))

    later = now + datetime.timedelta(minutes=5)
    monkeypatch.setattr("starlette_cookies.cookies.utcnow", lambda: later)
    cookie = Cookie.from_cookie_string(header)

    assert cookie.expires == later + HOUR
    assert cookie.max_age == 3600
