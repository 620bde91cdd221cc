"""CLI adapter for ``lib_config_formats`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose format identification and conversion on the command line so operators
can check which format a file resolves to, inspect its decoded content, or
convert it to another format without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools`` and binds the trace identifier.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_formats` – lists active formats and their extensions.
* :func:`cli_identify` – prints the format picked for a path.
* :func:`cli_show` – loads a file and prints it as JSON.
* :func:`cli_convert` – loads a file and writes it in another format.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer of the Clean Architecture stack. It
invokes the composition root (:class:`FormatDispatcher`) and never reaches into
codec implementation details directly. ``lib_cli_exit_tools`` centralises the
exit code strategy so library errors surface as concise messages.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .core import FormatDispatcher
from .domain.formats import Format, all_formats
from .observability import bind_trace_id

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

FORMAT_CHOICES: Final[tuple[str, ...]] = tuple(str(fmt) for fmt in all_formats())


def _resolve_version() -> str:
    """Return the installed package version with sensible fallbacks.

    Returns
    -------
    str
        Distribution version if available, otherwise ``"0.0.0"``.
    """

    try:
        return metadata.version("lib_config_formats")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Load, inspect and convert JSON, JSON5, RON, TOML and YAML configuration files",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_config_formats",
    message="lib_config_formats version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.option(
    "--trace-id",
    default=None,
    help="Trace identifier attached to every log entry of this run",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, trace_id: Optional[str]) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``; binds *trace_id*
        via :func:`lib_config_formats.observability.bind_trace_id`.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    bind_trace_id(trace_id)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_config_formats")
    except metadata.PackageNotFoundError:
        click.echo("lib_config_formats (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_config_formats')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("formats", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--all/--active",
    "show_all",
    default=False,
    help="Also list formats that are disabled or whose library is missing",
)
def cli_formats(show_all: bool) -> None:
    """List formats and the extensions that select them.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["formats", "--all"])
    >>> result.output.splitlines()[-1].startswith("YAML: yaml, yml")
    True
    """

    active = _dispatcher().formats
    for fmt in all_formats():
        if fmt in active:
            click.echo(f"{fmt}: {', '.join(fmt.extensions)}")
        elif show_all:
            click.echo(f"{fmt}: {', '.join(fmt.extensions)} (inactive)")


@cli.command("identify", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path", type=click.Path(path_type=Path, dir_okay=False))
def cli_identify(path: Path) -> None:
    """Print the format selected for PATH from its extension."""

    click.echo(str(_dispatcher().identify(path)))


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "path",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option(
    "--format",
    "format_name",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default=None,
    help="Parse PATH as this format instead of guessing from the extension",
)
@click.option(
    "--indent",
    type=int,
    default=2,
    show_default=True,
    help="Indent size of the JSON output",
)
def cli_show(path: Path, format_name: Optional[str], indent: int) -> None:
    """Load PATH and print its content as JSON."""

    dispatcher = _dispatcher()
    if format_name is None:
        data = dispatcher.load(path)
    else:
        with path.open("rb") as handle:
            data = dispatcher.load_from(format_name, handle)
    click.echo(json.dumps(data, indent=indent, ensure_ascii=False, default=str))


@cli.command("convert", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "source",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.argument("destination", type=click.Path(path_type=Path, dir_okay=False))
@click.option(
    "--from",
    "source_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default=None,
    help="Format of SOURCE (defaults to its extension)",
)
@click.option(
    "--to",
    "target_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default=None,
    help="Format of DESTINATION (defaults to its extension)",
)
def cli_convert(
    source: Path,
    destination: Path,
    source_format: Optional[str],
    target_format: Optional[str],
) -> None:
    """Load SOURCE and write it to DESTINATION, converting between formats.

    DESTINATION is only touched once the whole document has been rendered.
    """

    dispatcher = _dispatcher()
    if source_format is None:
        data = dispatcher.load(source)
    else:
        with source.open("rb") as handle:
            data = dispatcher.load_from(source_format, handle)

    if target_format is None:
        dispatcher.dump(data, destination)
        written = dispatcher.identify(destination)
    else:
        written = Format.parse(target_format)
        text = dispatcher.dumps(data, written)
        with destination.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
    click.echo(f"{source} -> {destination} ({written})")


def _dispatcher() -> FormatDispatcher:
    """Return a dispatcher reflecting the current environment."""

    return FormatDispatcher()


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_config_formats",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
