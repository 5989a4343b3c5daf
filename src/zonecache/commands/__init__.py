"""Built-in CLI sub-commands for zonecache.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~zonecache.commands.fetch` -- ``fetch``, ``status`` and ``path``,
  the commands that work on one cached resource.
* :mod:`~zonecache.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or plain callback functions
registered directly on the root app.
"""
