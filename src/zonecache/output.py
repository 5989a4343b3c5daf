"""Terminal output for the zonecache CLI.

Data and diagnostics never share a stream:

* **stdout** carries exactly one payload per command: a fetched document
  (written byte-for-byte), a single line such as a cache path, or a
  key/value record such as a cache status or the global config.
* **stderr** carries everything else.  Library code (the cache and the
  fetcher) only calls :func:`debug`, so it stays silent unless the user
  passed ``--verbose``.

Records are rendered as JSON (``--json``), as ``key<TAB>value`` lines
(``--plain`` or piped output), or as a two-column Rich table on a
terminal.  Nested records are flattened to dotted keys such as
``fetch.timeout_ms`` in the non-JSON formats, the same keys
``zonecache config set`` accepts.

``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all switch Rich styling
off.  Messages are passed to Rich as :class:`~rich.text.Text`, so square
brackets in a URI are never read as markup.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How records are rendered.  ``AUTO`` picks ``RICH`` on a colour TTY."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


_PREFIXES = {"warning": "Warning: ", "error": "Error: ", "debug": "[debug] "}
_STYLES = {"success": "green", "warning": "yellow", "error": "bold red", "debug": "dim"}


def _flatten(record: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in record.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, f"{name}.")
        else:
            yield name, value


def _render_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


class OutputManager:
    """Routes command output to stdout, stderr, or an ``--output`` file.

    Args:
        format: Record format; ``AUTO`` resolves to ``RICH`` or ``PLAIN``.
        no_color: Turn off all styling.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages (cache hits, downloads).
        output_file: Write the payload to this file instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(file=sys.stdout, no_color=self._no_color)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # --- Payload (stdout or --output) ---

    def print_document(self, text: str) -> None:
        """Emit a fetched document exactly as read, plus a final newline if missing."""
        self._emit(text if text.endswith("\n") else text + "\n")

    def print_line(self, text: str) -> None:
        """Emit one line of plain text, such as a file path."""
        self._emit(text + "\n")

    def print_record(self, record: Mapping[str, Any], title: Optional[str] = None) -> None:
        """Emit a key/value record in the active format.

        An ``--output`` file always receives JSON, whatever the format.
        """
        if self._format == OutputFormat.JSON or self._output_file:
            self._emit(json.dumps(record, indent=2, ensure_ascii=False, default=str) + "\n")
            return

        rows = [(key, _render_value(value)) for key, value in _flatten(record)]
        if self._format == OutputFormat.PLAIN:
            self._emit("".join(f"{key}\t{value}\n" for key, value in rows))
            return

        table = Table(title=title, show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column(overflow="fold")
        for key, value in rows:
            table.add_row(key, Text(value))
        self._stdout.print(table)

    def _emit(self, text: str) -> None:
        if self._output_file:
            with open(self._output_file, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            return
        sys.stdout.write(text)
        sys.stdout.flush()

    # --- Diagnostics (stderr) ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("info", message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("success", message)

    def warning(self, message: str) -> None:
        """Always shown, even with ``--quiet``."""
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        """Always shown, even with ``--quiet``."""
        self._diagnostic("error", message)

    def debug(self, message: str) -> None:
        """Shown only with ``--verbose``."""
        if self._verbose:
            self._diagnostic("debug", message)

    def _diagnostic(self, level: str, message: str) -> None:
        line = _PREFIXES.get(level, "") + message
        if self._no_color:
            print(line, file=sys.stderr, flush=True)
        else:
            self._stderr.print(Text(line, style=_STYLES.get(level, "")))


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- Global instance, installed by the CLI callback ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, or a quiet-by-default one.

    The lazy default is not verbose, so library callers that never
    configure output see nothing but warnings and errors.
    """
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_document(text: str) -> None:
    get_output().print_document(text)


def print_line(text: str) -> None:
    get_output().print_line(text)


def print_record(record: Mapping[str, Any], title: Optional[str] = None) -> None:
    get_output().print_record(record, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
