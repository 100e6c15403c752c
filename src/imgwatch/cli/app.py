"""imgwatch command line entry point."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from imgwatch.cli.mode import prompt_mode
from imgwatch.errors import ConfigError, ImgwatchError
from imgwatch.models.config import DEFAULT_CONFIG_FILE, RunMode, WatchConfig

err_console = Console(stderr=True)

app = typer.Typer(
    name="imgwatch",
    help="Re-render images through a resize/blur/flip/rotate pipeline whenever they change.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        from imgwatch import __version__

        typer.echo(f"imgwatch {__version__}")
        raise typer.Exit()


# Option names are matched case-insensitively, so -C and --COMPILE work too
@app.command(context_settings={"token_normalize_func": str.lower})
def main(
    compile_: bool = typer.Option(
        False,
        "-c",
        "--compile",
        "-compile",
        "--c",
        help="Process every file once, then exit.",
    ),
    watch: bool = typer.Option(
        False,
        "-w",
        "--watch",
        "-watch",
        "--w",
        help="Keep polling and re-process files whose modification time changes.",
    ),
    config_path: str = typer.Option(
        DEFAULT_CONFIG_FILE, "-f", "--config", help="Path to the YAML config file"
    ),
    interval: float = typer.Option(
        1.0, "--interval", min=0.0, help="Seconds to sleep between polling passes"
    ),
    workers: int = typer.Option(
        1, "--workers", min=1, help="Process changed files on this many worker processes"
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Stop at the first unreadable or unprocessable file. By default such "
        "files are reported and skipped while the others keep being watched.",
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version."
    ),
) -> None:
    """Compile or watch the images listed in image_watcher.yaml.

    Without -c or -w you are asked which mode to use (default: watch).
    """
    if compile_ and watch:
        raise typer.BadParameter("choose either compile or watch mode, not both")

    if compile_:
        mode: RunMode | None = RunMode.COMPILE
    elif watch:
        mode = RunMode.WATCH
    else:
        mode = prompt_mode()
        if mode is None:
            raise typer.Exit(130)  # prompt cancelled

    config = WatchConfig(
        config_path=config_path, interval=interval, workers=workers, strict=strict
    )

    from imgwatch.core.resolver import resolve_config
    from imgwatch.pipeline.poller import console, run_watch

    console.print(f"Parsing config file {escape(config.config_path)}")
    try:
        tasks, _defaults = resolve_config(config.config_path)
    except ConfigError as exc:
        err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(1)

    try:
        summary = run_watch(tasks, mode, config)
    except ImgwatchError as exc:
        err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(130)

    if not summary.ok:
        raise typer.Exit(1)
