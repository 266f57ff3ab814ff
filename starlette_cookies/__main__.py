from starlette_cookies.commands import cookies_command

if __name__ == "__main__":  # pragma: no cover
    cookies_command()
