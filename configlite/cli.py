from __future__ import annotations
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Settings
from .constants import DB_ENVVAR, OutputFormat
from .errors import ConfigliteError
from .repository import Repository

app = typer.Typer(add_completion=False, help="configlite: configuration values shared by applications")
console = Console(soft_wrap=True, emoji=False)
err_console = Console(stderr=True, soft_wrap=True, emoji=False)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def _main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None, "--db", envvar=DB_ENVVAR, help="The configuration database file to use (default: ~/.config.db)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log database activity to stderr"),
) -> None:
    ctx.obj = Settings.resolve(db, verbose)
    _setup_logging(ctx.obj.verbose)


@contextmanager
def _repository(ctx: typer.Context) -> Iterator[Repository]:
    """Open the repository for one command; any store error ends the process with status 1."""
    settings: Settings = ctx.obj
    try:
        with Repository(settings.database) as repo:
            yield repo
    except ConfigliteError as exc:
        err_console.print(f"[red]error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


# ---------------------------
# applications
# ---------------------------
@app.command("la", hidden=True)
@app.command("list-app")
def list_app(ctx: typer.Context):
    """List registered applications."""
    with _repository(ctx) as repo:
        apps = repo.list_applications()
    for name in apps:
        typer.echo(name)


@app.command("ra", hidden=True)
@app.command("register-app")
def register_app(ctx: typer.Context, application: str = typer.Argument(..., help="Application name")):
    """Register an application (no-op if it already exists)."""
    with _repository(ctx) as repo:
        repo.register_application(application)
    console.print(f"[green]OK[/] {escape(application)}")


# ---------------------------
# configurations
# ---------------------------
@app.command("lc", hidden=True)
@app.command("list-configs")
def list_configs(
    ctx: typer.Context,
    application: str = typer.Argument(..., help="The application whose configuration has to be displayed"),
    fmt: OutputFormat = typer.Option(
        OutputFormat.JSON, "--format", "-f", case_sensitive=False, help="The format to display the configuration in"
    ),
):
    """Display every configuration value of an application."""
    with _repository(ctx) as repo:
        configs = repo.get_all_configs(application)

    if fmt == OutputFormat.JSON:
        typer.echo(json.dumps(configs, indent=4))
    else:
        for k, v in configs.items():
            typer.echo(f"{k} {v}")


@app.command("gc", hidden=True)
@app.command("get-config")
def get_config(
    ctx: typer.Context,
    application: str = typer.Argument(...),
    configuration: str = typer.Argument(...),
):
    """Print a single configuration value."""
    with _repository(ctx) as repo:
        value = repo.get_config(application, configuration)
    typer.echo(value)


@app.command("uc", hidden=True)
@app.command("upsert-config")
def upsert_config(
    ctx: typer.Context,
    application: str = typer.Argument(...),
    configuration: str = typer.Argument(...),
    value: str = typer.Argument(...),
):
    """Create or replace a configuration value."""
    with _repository(ctx) as repo:
        repo.upsert_config(application, configuration, value)
    console.print(f"[green]OK[/] {escape(application)} {escape(configuration)}={escape(value)}", highlight=False)


@app.command("dc", hidden=True)
@app.command("delete-config")
def delete_config(
    ctx: typer.Context,
    application: str = typer.Argument(...),
    configuration: str = typer.Argument(...),
    like: bool = typer.Option(
        False, "--like", "-l", help="The configuration name is used in an SQL LIKE clause"
    ),
):
    """Delete a configuration value, or every value matching a pattern."""
    with _repository(ctx) as repo:
        count = repo.delete_config(application, configuration, like)
    console.print(f"[green]Deleted[/] {count} configuration(s) of {escape(application)}", highlight=False)


if __name__ == "__main__":
    app()
