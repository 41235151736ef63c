"""CLI implementation for cafe."""

import json
import logging
import re
import warnings
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Optional

import typer

from .core.config import CafeConfig, MenuPattern, create_config
from .server import DEFAULT_PORT, Cafe

app = typer.Typer(add_completion=False, help="Serve a directory with HTTP range support.")

_REGEXP_PREFIX = "regexp:"
_REGEXP_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


def cafe_version() -> str:
    """Installed distribution version, read once at startup."""
    try:
        return package_version("cafe-server")
    except PackageNotFoundError:
        return "0.0.0"


def parse_pattern_option(option: str) -> list[MenuPattern]:
    """Turn one --include/--exclude value into menu patterns.

    ``regexp:/pattern/flags`` compiles a regular expression, anything else is
    a colon-separated list of globs.
    """
    if option.startswith(_REGEXP_PREFIX):
        body = option[len(_REGEXP_PREFIX):]
        if not body.startswith("/") or body.rfind("/") == 0:
            raise typer.BadParameter(f"Expected regexp:/pattern/flags, received {option}")
        slash = body.rfind("/")
        flags = 0
        for flag in body[slash + 1:]:
            if flag in _REGEXP_FLAGS:
                flags |= _REGEXP_FLAGS[flag]
            else:
                warnings.warn(f"Ignoring unsupported regexp flag {flag!r} in {option}")
        try:
            return [re.compile(body[1:slash], flags)]
        except re.error as e:
            raise typer.BadParameter(f"Invalid regular expression in {option}: {e}")
    return [p for p in option.split(":") if p]


def parse_alias_option(option: str) -> tuple[str, str]:
    route, sep, target = option.partition("=")
    if not sep or not route or not target:
        raise typer.BadParameter(f"Expected ROUTE=TARGET, received {option}")
    return route, target


def config_summary(config: CafeConfig) -> str:
    """JSON rendering of a config for display."""
    def pattern(p):
        return p if isinstance(p, str) else f"regexp:/{p.pattern}/"

    return json.dumps({
        "basePath": config.base_path,
        "menu": {
            "include": [pattern(p) for p in config.menu.include],
            "exclude": [pattern(p) for p in config.menu.exclude],
        },
        "alias": dict(config.alias),
        "broadcastVersion": config.broadcast_version,
        "debugResponseHeaders": config.debug_response_headers,
    }, indent=2)


@app.command()
def main(
    base_path: Path = typer.Argument(Path("."), help="Directory to serve"),
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", min=0, max=65535, help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    include: Optional[list[str]] = typer.Option(None, "--include", help="Globs (a:b) or regexp:/re/flags to serve"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", help="Globs (a:b) or regexp:/re/flags to hide"),
    alias: Optional[list[str]] = typer.Option(None, "--alias", help="ROUTE=TARGET redirect"),
    broadcast_version: bool = typer.Option(False, "--broadcast-version", help="Send the Cafe-Version header"),
    debug_response_headers: bool = typer.Option(False, "--debug-response-headers",
                                                help="Send Cafe-Failure-Reason on failures"),
    retry_count: int = typer.Option(-1, "--retry-count", min=-1, help="Bind retries, -1 for unlimited"),
    retry_interval: float = typer.Option(0.5, "--retry-interval", min=0, help="Seconds between bind retries"),
    incremental: bool = typer.Option(True, "--incremental/--no-incremental", help="Try the next port on retry"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
):
    """Open a café serving BASE_PATH."""
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not base_path.is_dir():
        typer.echo(f"Base path {base_path} is not a directory.", err=True)
        raise typer.Exit(code=1)

    menu = {}
    if include:
        menu["include"] = [p for option in include for p in parse_pattern_option(option)]
    if exclude:
        menu["exclude"] = [p for option in exclude for p in parse_pattern_option(option)]

    config = create_config(
        base_path=base_path,
        menu=menu,
        alias=dict(parse_alias_option(a) for a in alias or ()),
        broadcast_version=broadcast_version,
        debug_response_headers=debug_response_headers,
    )
    typer.echo(f"Using configuration:\n{config_summary(config)}")

    cafe = Cafe(config, version=cafe_version(), host=host)
    result = cafe.start(port, retry_count=retry_count, retry_interval=retry_interval, incremental=incremental)
    if not result.success:
        typer.echo(result.error, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"A café just opened for business at {result.port}.")
    try:
        cafe.wait()
    except KeyboardInterrupt:
        typer.echo("Closing the café...")
    finally:
        cafe.stop()


if __name__ == "__main__":
    app()
