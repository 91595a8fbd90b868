"""Typer application and CLI entry point for rescache.

The ``rescache`` command inspects and maintains a configured cache store:
it can print the key a request maps to, show a cached entry together with
its freshness, report backend statistics and clear the store.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Commands translate
:class:`~rescache.exceptions.RescacheError` subclasses into their exit
codes, so scripts can tell a miss (exit 4) from a corrupt entry (exit 8)
or a failing backend (exit 6).
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer

from rescache import __version__
from rescache.exceptions import InvalidUsageError, RescacheError
from rescache.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NOT_FOUND
from rescache.models import CacheConfig, RequestDescriptor

app = typer.Typer(
    name="rescache",
    help="Inspect and maintain an HTTP response cache store.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"rescache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    codec: Optional[str] = typer.Option(None, "--codec", help="Codec override: json, pickle."),
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Backend override: memory, disk."
    ),
    directory: Optional[str] = typer.Option(
        None, "--dir", help="Disk backend directory override."
    ),
) -> None:
    """Root callback: installs the output manager and stores config overrides."""
    from rescache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    ctx.ensure_object(dict)
    ctx.obj["codec"] = codec
    ctx.obj["backend"] = backend
    ctx.obj["directory"] = directory


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report a :class:`RescacheError` on stderr and exit with its code."""
    from rescache.output import error

    try:
        yield
    except RescacheError as exc:
        error(str(exc))
        raise typer.Exit(exc.exit_code) from exc


def _resolve(ctx: typer.Context) -> CacheConfig:
    from rescache.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_codec=obj.get("codec"),
        cli_backend=obj.get("backend"),
        cli_directory=obj.get("directory"),
    )


def _build_request(url: str, method: str, headers: list[str]) -> RequestDescriptor:
    from pydantic import ValidationError

    parsed: dict[str, str] = {}
    for raw in headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {raw!r}, expected 'Name: value'")
        parsed[name.strip()] = value.strip()
    try:
        return RequestDescriptor(method=method, url=url, headers=parsed)
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid request: {exc.errors()[0]['msg']}") from exc


_METHOD_OPTION = typer.Option("GET", "--method", "-X", help="HTTP method.")
_HEADER_OPTION = typer.Option(
    None, "--header", "-H", help="Request header 'Name: value' (repeatable)."
)


@app.command("key")
def key_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute request URL."),
    method: str = _METHOD_OPTION,
    header: Optional[list[str]] = _HEADER_OPTION,
) -> None:
    """Print the cache key a request maps to.

    Example::

        rescache key http://foo.bar/
        rescache key https://api.example.com/users -H "Accept: application/json"
    """
    from rescache.codecs import get_codec
    from rescache.keys import derive_key
    from rescache.output import print_data

    with _handle_errors():
        config = _resolve(ctx)
        request = _build_request(url, method, header or [])
        print_data(derive_key(request, get_codec(config.codec)))


@app.command("show")
def show_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute request URL."),
    method: str = _METHOD_OPTION,
    header: Optional[list[str]] = _HEADER_OPTION,
) -> None:
    """Show the cached entry for a request and whether it is still fresh.

    Exits with code 4 when nothing is cached for the request.
    """
    from rescache.output import error, print_record
    from rescache.response import format_http_date
    from rescache.storage import Storage

    with _handle_errors():
        config = _resolve(ctx)
        request = _build_request(url, method, header or [])
        with Storage.from_config(config) as storage:
            key = storage.cache_key(request)
            cached = storage.read(request)
        if cached is None:
            error(f"No cached entry for {request.method.value.upper()} {request.url}")
            raise typer.Exit(EXIT_NOT_FOUND)
        print_record(
            {
                "key": key,
                "status": cached.status,
                "reason_phrase": cached.reason_phrase or "",
                "headers": dict(cached.headers.items()),
                "body_bytes": len(cached.body),
                "date": format_http_date(cached.date),
                "age": cached.age(),
                "max_age": cached.max_age,
                "ttl": cached.ttl(),
                "fresh": cached.is_fresh(),
                "cacheable": cached.is_cacheable(),
            },
            title=f"{request.method.value.upper()} {request.url}",
        )


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show backend statistics (entry count, directory, volume)."""
    from rescache.output import print_record
    from rescache.storage import Storage

    with _handle_errors():
        config = _resolve(ctx)
        with Storage.from_config(config) as storage:
            stats = storage.backend.stats()
        stats["codec"] = config.codec
        print_record(stats, title="Cache statistics")


@app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Remove every entry from the configured store."""
    from rescache.output import success
    from rescache.storage import Storage

    with _handle_errors():
        config = _resolve(ctx)
        with Storage.from_config(config) as storage:
            removed = storage.backend.clear()
        success(f"Removed {removed} cached entries.")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration (file, environment and flags merged)."""
    from rescache.config import config_path
    from rescache.output import info, print_record

    with _handle_errors():
        config = _resolve(ctx)
        info(f"Config file: {config_path()}")
        print_record(config.model_dump(mode="json"), title="Configuration")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key: codec, backend, directory or shared."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Persist a configuration value to the config file.

    The value is coerced to the field's type (``shared`` accepts
    ``true``/``false``) and the result is validated against
    :class:`~rescache.models.CacheConfig` before saving. Environment
    variables and flags still override the saved file.

    Example::

        rescache config set codec pickle
        rescache config set directory /var/cache/rescache
    """
    from pydantic import ValidationError

    from rescache.config import load_config, save_config
    from rescache.output import success

    with _handle_errors():
        data = load_config().model_dump(mode="json")
        if key not in data:
            raise InvalidUsageError(f"Unknown config key: {key}")

        coerced: Any = value
        if isinstance(data[key], bool):
            coerced = value.lower() in ("true", "1", "yes")
        elif key == "directory" and value == "":
            coerced = None
        data[key] = coerced

        try:
            new_config = CacheConfig.model_validate(data)
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid value for {key}: {exc.errors()[0]['msg']}") from exc
        save_config(new_config)
        success(f"Set {key} = {coerced}")


def main() -> None:
    """CLI entry point invoked by the ``rescache`` console script."""
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from rescache.output import error

        if isinstance(exc, RescacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
