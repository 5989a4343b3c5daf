"""The ``zonecache`` command line.

Commands::

    zonecache fetch  [URI]   print the resource, downloading it if the copy expired
    zonecache status [URI]   show the cache entry without touching the network
    zonecache path   [URI]   print the cache file a URI maps to
    zonecache config ...     show, set or reset the global config

Global flags pick the output format and verbosity and are applied by
:func:`main_callback` before any command runs.  :func:`main` is the
console-script entry point: it turns :class:`~zonecache.exceptions.ZonecacheError`
into the matching exit code and writes a crash log for anything else.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from typing import Optional

import typer

from zonecache import __version__
from zonecache.commands.config import config_app
from zonecache.commands.fetch import fetch_command, path_command, status_command
from zonecache.exceptions import ConfigurationError, ZonecacheError
from zonecache.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from zonecache.output import OutputFormat, OutputManager, error, set_output


app = typer.Typer(
    name="zonecache",
    help="Fetch remote text resources through a TTL-bound local cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.command("fetch")(fetch_command)
app.command("status")(status_command)
app.command("path")(path_command)
app.add_typer(config_app, name="config", help="Show or change the global config.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"zonecache {__version__}")
        raise typer.Exit()


def _configured_format() -> tuple[OutputFormat, Optional[str]]:
    """Format from ``output.format`` in the config, plus the raw value if unknown."""
    from zonecache.config import load_global_config

    try:
        configured = load_global_config().output.format
    except ConfigurationError:
        # The command that loads the config reports it properly.
        return OutputFormat.AUTO, None
    try:
        return OutputFormat(configured), None
    except ValueError:
        return OutputFormat.AUTO, configured


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Print the version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print records as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print records as key<TAB>value lines."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colours."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print the payload and errors."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Report cache hits, misses and downloads on stderr."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the payload to this file instead of stdout."
    ),
) -> None:
    """Fetch remote text resources through a TTL-bound local cache."""
    unknown: Optional[str] = None
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt, unknown = _configured_format()

    output = OutputManager(
        format=fmt, no_color=no_color, quiet=quiet, verbose=verbose, output_file=output_file
    )
    set_output(output)
    if unknown is not None:
        output.warning(f"Unknown output.format {unknown!r} in config, using auto")


def _write_crash_log(exc: BaseException) -> str:
    """Save the traceback of *exc* under the data directory and return the file path."""
    from zonecache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    header = f"zonecache {__version__}\nargv: {' '.join(sys.argv)}\n\n"
    log_path.write_text(
        header + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)


def main() -> None:
    """Console-script entry point.  Always exits via :class:`SystemExit`."""
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except ZonecacheError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
