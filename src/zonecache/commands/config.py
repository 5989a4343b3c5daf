"""``zonecache config`` -- inspect and edit the global config file.

Keys use the dotted names shown by ``zonecache config show``::

    default_uri            resource fetched when no URI is given
    fetch.timeout_ms       download timeout in milliseconds
    fetch.ttl              seconds (or an ISO 8601 duration) before a copy expires
    fetch.cache_directory  where cached files are stored
    fetch.encoding         text encoding of cached files
    output.format          auto, json, plain or rich

Values are checked before anything is written: a URI must name a file, a
format must be one the CLI knows, and the whole config must still pass
:class:`~zonecache.models.GlobalConfig` validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import typer
from pydantic import BaseModel, ValidationError

from zonecache.exceptions import ConfigurationError, ZonecacheError
from zonecache.models import GlobalConfig
from zonecache.output import error, info, print_record, success, warning

config_app = typer.Typer(no_args_is_help=True)


def _leaf_keys(model: type[BaseModel], prefix: str = "") -> Iterator[str]:
    for name, field in model.model_fields.items():
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            yield from _leaf_keys(annotation, f"{prefix}{name}.")
        else:
            yield f"{prefix}{name}"


def _check_value(key: str, value: str) -> Any:
    """Reject values that validate as strings but make no sense for *key*."""
    from zonecache.cache import path_for
    from zonecache.output import OutputFormat

    if key == "default_uri":
        path_for(value, ".")
    elif key == "output.format":
        choices = [f.value for f in OutputFormat]
        if value not in choices:
            raise ConfigurationError(f"output.format must be one of {', '.join(choices)}")
    elif key == "fetch.cache_directory":
        directory = Path(value).expanduser()
        if not directory.is_dir():
            warning(f"{directory} does not exist yet; fetches will fail until it is created")
        return str(directory)
    return value


def _apply(config: GlobalConfig, key: str, value: str) -> GlobalConfig:
    known = list(_leaf_keys(GlobalConfig))
    if key not in known:
        raise ConfigurationError(f"Unknown config key: {key} (expected one of: {', '.join(known)})")

    data = config.model_dump(mode="json")
    *parents, leaf = key.split(".")
    target = data
    for part in parents:
        target = target[part]
    target[leaf] = _check_value(key, value)

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        reason = exc.errors()[0]["msg"]
        raise ConfigurationError(f"Invalid value for {key}: {value!r} ({reason})") from None


@config_app.command("show")
def config_show() -> None:
    """Print the effective global config.

    Example::

        zonecache config show
        zonecache --json config show
    """
    from zonecache.config import get_config_path, load_global_config

    try:
        config = load_global_config()
    except ZonecacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    path = get_config_path()
    info(f"Config file: {path}" if path.is_file() else f"Config file: {path} (not created, defaults)")
    print_record(config.model_dump(mode="json"), title="zonecache config")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. fetch.timeout_ms."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one config value.

    Example::

        zonecache config set fetch.timeout_ms 2000
        zonecache config set fetch.ttl 3600
        zonecache config set fetch.cache_directory ~/.cache/zonecache
        zonecache config set default_uri https://example.org/data/zones.xml
    """
    from zonecache.config import load_global_config, save_global_config

    try:
        updated = _apply(load_global_config(), key, value)
    except ZonecacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    save_global_config(updated)
    *parents, leaf = key.split(".")
    section: Any = updated
    for part in parents:
        section = getattr(section, part)
    success(f"Set {key} = {getattr(section, leaf)}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Delete the config file so every setting returns to its default.

    Example::

        zonecache config reset --force
    """
    from zonecache.config import reset_global_config

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    if reset_global_config():
        success("Configuration reset to defaults.")
    else:
        info("No config file; already using defaults.")
