import click

from starlette_cookies.cookies import Cookie
from starlette_cookies.encryptors import CookieEncryptor
from starlette_cookies.exceptions import CookieError
from starlette_cookies.signers import CookieSigner

key_option = click.option(
    "--key",
    envvar="COOKIES_SECRET_KEY",
    required=True,
    help="Secret key, defaults to COOKIES_SECRET_KEY environment variable.",
)


@click.group("cookies", help="Cookie encryption and signing.")
def cookies_command() -> None:
    pass


@cookies_command.command("encrypt")
@key_option
@click.argument("name")
@click.argument("value")
def encrypt_command(key: str, name: str, value: str) -> None:
    """Encrypt cookie value and print it as sent to the client."""
    try:
        click.echo(CookieEncryptor(key).encrypt(Cookie(name, value)).value)
    except CookieError as exc:
        raise click.ClickException(str(exc))


@cookies_command.command("decrypt")
@key_option
@click.argument("name")
@click.argument("value")
def decrypt_command(key: str, name: str, value: str) -> None:
    """Decrypt encrypted cookie value back to plain text."""
    try:
        click.echo(CookieEncryptor(key).decrypt(Cookie(name, value)).value)
    except CookieError as exc:
        raise click.ClickException(str(exc))


@cookies_command.command("sign")
@key_option
@click.argument("name")
@click.argument("value")
def sign_command(key: str, name: str, value: str) -> None:
    """Sign cookie value."""
    try:
        click.echo(CookieSigner(key).sign(Cookie(name, value)).value)
    except CookieError as exc:
        raise click.ClickException(str(exc))


@cookies_command.command("validate")
@key_option
@click.argument("name")
@click.argument("value")
def validate_command(key: str, name: str, value: str) -> None:
    """Verify signature and print the original cookie value."""
    try:
        click.echo(CookieSigner(key).validate(Cookie(name, value)).value)
    except CookieError as exc:
        raise click.ClickException(str(exc))
