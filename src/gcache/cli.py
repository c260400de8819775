"""
CLI entry point for gcache.

This module provides the Typer-based command-line interface for inspecting
and maintaining a geohash cache.

Commands:
    get         Print the value stored for a geohash
    get-json    Print the decoded JSON record for a geohash
    put         Store a raw text value
    put-json    Store a JSON record
    delete      Remove a geohash
    dump        Print every entry as one JSON array per line
    load        Import lines written by dump
    stats       Show table statistics

Every command needs a cache directory, given with --dir (or GCACHE_DIR) or
through a YAML file passed with --config.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from gcache import __version__, codec
from gcache.errors import CacheOpenError, ConfigError, StorageError
from gcache.logging import setup_logging
from gcache.schema import CacheConfig, CacheStatus, load_config
from gcache.store import GeoCache

# Initialize Typer app with metadata
app = typer.Typer(
    name="gcache",
    help="Inspect and maintain an LMDB geohash cache.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich consoles for formatted output
console = Console()
err_console = Console(stderr=True)


DirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--dir",
        "-d",
        help="Cache directory (must already exist).",
        envvar="GCACHE_DIR",
        resolve_path=True,
    ),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="YAML file with path, read_only and map_size.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
ReadOnlyOption = Annotated[
    bool,
    typer.Option(
        "--read-only",
        help="Open the cache read-only.",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]gcache[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log debug diagnostics to stderr.",
        ),
    ] = False,
) -> None:
    """
    gcache - LMDB-backed cache of geolocation records keyed by geohash.
    """
    setup_logging(verbose=verbose)


def _open(directory: Optional[Path], config_path: Optional[Path], read_only: bool) -> GeoCache:
    """Open the cache named on the command line or exit with code 1."""
    try:
        if config_path is not None:
            config = load_config(config_path)
            if directory is not None:
                config = config.model_copy(update={"path": directory})
            if read_only:
                config = config.model_copy(update={"read_only": True})
        elif directory is not None:
            config = CacheConfig(path=directory, read_only=read_only)
        else:
            err_console.print("[red]No cache directory given. Use --dir or --config.[/red]")
            raise typer.Exit(code=1)
        return GeoCache.from_config(config)
    except (ConfigError, CacheOpenError) as e:
        err_console.print(f"[red]{e}[/red]", highlight=False)
        raise typer.Exit(code=1)


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Geohash to look up.")],
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
) -> None:
    """
    Print the value stored for a geohash.

    Prints "not found" for a missing key. Always exits 0 once the cache is open.

    Example:
        $ gcache get u0yjjd6 --dir ./ghash
    """
    with _open(directory, config_path, read_only) as cache:
        cache.show(key, console=console)


@app.command("get-json")
def get_json(
    key: Annotated[str, typer.Argument(help="Geohash to look up.")],
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
    pretty: Annotated[
        bool,
        typer.Option("--pretty", help="Indent the JSON output."),
    ] = False,
) -> None:
    """
    Print the JSON record stored for a geohash.

    Exits 1 when the key is missing or its value is not valid JSON.

    Example:
        $ gcache get-json u0yjjd6 --dir ./ghash --pretty
    """
    with _open(directory, config_path, read_only) as cache:
        result = cache.lookup_json(key)

    if result.status == CacheStatus.NOT_FOUND:
        err_console.print(f"[yellow]{key} not found[/yellow]")
        raise typer.Exit(code=1)
    if not result.ok:
        err_console.print(f"[red]{result.message}[/red]", highlight=False)
        raise typer.Exit(code=1)

    print(json.dumps(result.value, indent=2 if pretty else None, ensure_ascii=False))


@app.command()
def put(
    key: Annotated[str, typer.Argument(help="Geohash to store under.")],
    value: Annotated[str, typer.Argument(help="Text to store.")],
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
) -> None:
    """
    Store a raw text value for a geohash.

    Example:
        $ gcache put u0yjjd6 'Hamburg, DE' --dir ./ghash
    """
    with _open(directory, config_path, read_only) as cache:
        result = cache.put(key, value)

    if not result.ok:
        err_console.print(f"[red]E{result.code}: {result.message}[/red]", highlight=False)
        raise typer.Exit(code=1)


@app.command("put-json")
def put_json(
    key: Annotated[str, typer.Argument(help="Geohash to store under.")],
    document: Annotated[str, typer.Argument(help="JSON document to store.")],
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
) -> None:
    """
    Store a JSON record for a geohash. The record is stored minified.

    Example:
        $ gcache put-json u0yjjd6 '{"cc": "DE", "locality": "Hamburg"}' --dir ./ghash
    """
    try:
        record = json.loads(document)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]Invalid JSON: {e}[/red]", highlight=False)
        raise typer.Exit(code=1)

    with _open(directory, config_path, read_only) as cache:
        result = cache.put_json(key, record)

    if not result.ok:
        err_console.print(f"[red]E{result.code}: {result.message}[/red]", highlight=False)
        raise typer.Exit(code=1)


@app.command()
def delete(
    key: Annotated[str, typer.Argument(help="Geohash to remove.")],
    directory: DirOption = None,
    config_path: ConfigOption = None,
) -> None:
    """
    Remove a geohash from the cache.

    Example:
        $ gcache delete u0yjjd6 --dir ./ghash
    """
    with _open(directory, config_path, False) as cache:
        result = cache.delete(key)

    if result.status == CacheStatus.NOT_FOUND:
        err_console.print(f"[yellow]{key} not found[/yellow]")
        raise typer.Exit(code=1)
    if not result.ok:
        err_console.print(f"[red]E{result.code}: {result.message}[/red]", highlight=False)
        raise typer.Exit(code=1)


@app.command()
def dump(
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
) -> None:
    """
    Print every entry as a JSON array of key and value, one per line.

    The output can be fed back with `gcache load`. Entries that are not
    valid UTF-8 are skipped with a warning.

    Example:
        $ gcache dump --dir ./ghash > ghash.txt
    """
    with _open(directory, config_path, read_only) as cache:
        try:
            for key, text in cache.dump():
                print(codec.format_entry(key, text))
        except StorageError as e:
            err_console.print(f"[red]{e}[/red]", highlight=False)
            raise typer.Exit(code=1)


@app.command()
def load(
    source: Annotated[
        Path,
        typer.Argument(
            help="File of lines written by `gcache dump`.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    directory: DirOption = None,
    config_path: ConfigOption = None,
) -> None:
    """
    Import lines written by `gcache dump`.

    Exits 1 when any line could not be stored.

    Example:
        $ gcache load ghash.txt --dir ./ghash
    """
    with _open(directory, config_path, False) as cache:
        with source.open(encoding="utf-8") as f:
            stored, skipped = cache.load(f)

    console.print(f"Loaded {stored} entries from {source}", highlight=False)
    if skipped:
        err_console.print(f"[yellow]Skipped {skipped} lines[/yellow]", highlight=False)
        raise typer.Exit(code=1)


@app.command()
def stats(
    directory: DirOption = None,
    config_path: ConfigOption = None,
    read_only: ReadOnlyOption = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output statistics in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Show statistics for the cache table.

    Example:
        $ gcache stats --dir ./ghash
    """
    with _open(directory, config_path, read_only) as cache:
        try:
            data = cache.stats()
        except StorageError as e:
            err_console.print(f"[red]{e}[/red]", highlight=False)
            raise typer.Exit(code=1)
        path = str(cache.path)

    if json_output:
        print(json.dumps({"path": path, **data}, indent=2))
        return

    table = Table(title=f"gcache {path}", show_header=True, header_style="bold")
    table.add_column("Statistic", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in data.items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
