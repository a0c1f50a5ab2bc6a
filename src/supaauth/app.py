"""Typer application and CLI entry point for supaauth.

This module wires together the top-level Typer application and registers
the ``signup``, ``login``, and ``whoami`` commands.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It registers commands and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`supaauth.config`: Provider configuration resolution.
    :mod:`supaauth.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from pathlib import Path

import typer

from supaauth import __version__
from supaauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="supaauth",
    help="Sign in to a Supabase project with GitHub and keep the token in the system keyring.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"supaauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the supaauth version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the user profile as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print the profile as tab-separated rows."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable colour and styling."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print the profile and errors."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log browser and HTTP steps to stderr."
    ),
) -> None:
    """Install the invocation's output manager and logging level.

    ``--json`` wins over ``--plain`` when both are given.
    """
    from supaauth.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose)


def register_commands(target: typer.Typer) -> None:
    """Attach ``signup``, ``login``, and ``whoami`` to *target*."""
    from supaauth.commands.auth import login_command, signup_command, whoami_command

    target.command("signup")(signup_command)
    target.command("login")(login_command)
    target.command("whoami")(whoami_command)


def _write_crash_log(exc: Exception) -> Path:
    """Save the active traceback under ``<data dir>/logs`` and return the file."""
    from supaauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(
        f"supaauth {__version__}: {type(exc).__name__}\n\n{traceback.format_exc()}",
        encoding="utf-8",
    )
    return log_path


def main() -> None:
    """Console-script entry point.

    A :class:`~supaauth.exceptions.SupaauthError` that escapes a command
    exits with its ``exit_code``; anything else is written to a crash log
    and exits with :data:`~supaauth.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    from supaauth.exceptions import SupaauthError
    from supaauth.output import error

    register_commands(app)
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SupaauthError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
