"""Change detection and the compile/watch run loop.

Each pass stats every watched file and re-runs its pipeline when the
modification time differs from the one seen last (or on first sight). The
stored timestamp is the one *observed* before processing, so a file edited
while it is being processed is picked up again on the next pass.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from contextlib import nullcontext
from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

from imgwatch.core.executor import execute
from imgwatch.errors import ExecError, FileStatError, ImgwatchError
from imgwatch.models.config import RunMode, WatchConfig
from imgwatch.models.jobs import FileTask, WatchedEntry
from imgwatch.pipeline.signals import ShutdownHandler, worker_init

console = Console()
err_console = Console(stderr=True)

Processor = Callable[[FileTask], None]


@dataclass(slots=True)
class TickResult:
    processed: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)  # (path, message)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(slots=True)
class RunSummary:
    passes: int = 0
    processed: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    def add(self, tick: TickResult) -> None:
        self.passes += 1
        self.processed += len(tick.processed)
        self.failures.extend(tick.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


def read_mtime(path: str) -> int:
    """Modification time of ``path`` in nanoseconds."""
    try:
        return os.stat(path).st_mtime_ns
    except OSError as exc:
        raise FileStatError(path, exc.strerror or str(exc)) from exc


def needs_processing(last: int | None, current: int) -> bool:
    """True on first sight and on any change, including a clock going backwards."""
    return last is None or last != current


def watch_entries(tasks: Iterable[FileTask]) -> list[WatchedEntry]:
    return [WatchedEntry(task=task) for task in tasks]


def poll_once(
    entries: list[WatchedEntry],
    process: Processor = execute,
    *,
    strict: bool = False,
    pool: ProcessPoolExecutor | None = None,
) -> TickResult:
    """Run one pass over ``entries``, updating their timestamps in place.

    Without ``pool`` every changed file is processed before the next one is
    stat'ed. With a pool, all changed files of the pass are submitted at once;
    timestamps are still recorded here, in order, before submission.

    Unless ``strict``, a file that cannot be stat'ed or processed is reported
    and skipped for this pass.
    """
    result = TickResult()
    pending: dict[Future[None], FileTask] = {}

    for entry in entries:
        task = entry.task
        try:
            current = read_mtime(task.path)
        except FileStatError as exc:
            if strict:
                raise
            _record_failure(result, task.path, exc)
            continue

        if not needs_processing(entry.last_modified, current):
            continue
        entry.last_modified = current

        console.print(
            f"updating [cyan]{escape(task.path)}[/cyan] to [cyan]{escape(task.output)}[/cyan]"
        )
        if pool is not None:
            pending[pool.submit(process, task)] = task
            continue
        try:
            process(task)
        except ExecError as exc:
            if strict:
                raise
            _record_failure(result, task.path, exc)
        else:
            result.processed.append(task.path)

    for future in as_completed(pending):
        task = pending[future]
        try:
            future.result()
        except ExecError as exc:
            if strict:
                for f in pending:
                    f.cancel()
                raise
            _record_failure(result, task.path, exc)
        else:
            result.processed.append(task.path)

    return result


def run_loop(
    entries: list[WatchedEntry],
    mode: RunMode,
    config: WatchConfig,
    *,
    process: Processor = execute,
    sleep: Callable[[float], object] | None = None,
    shutdown: ShutdownHandler | None = None,
) -> RunSummary:
    """Compile mode makes exactly one pass; watch mode repeats until shutdown."""
    if shutdown is None:
        shutdown = ShutdownHandler()
    if sleep is None:
        sleep = shutdown.wait

    summary = RunSummary()
    pool_cm = (
        ProcessPoolExecutor(max_workers=config.workers, initializer=worker_init)
        if config.workers > 1
        else nullcontext()
    )
    with pool_cm as pool:
        while True:
            summary.add(poll_once(entries, process, strict=config.strict, pool=pool))
            if mode is RunMode.COMPILE or shutdown.is_shutting_down:
                break
            sleep(config.interval)
            if shutdown.is_shutting_down:
                break
    return summary


def run_watch(tasks: list[FileTask], mode: RunMode, config: WatchConfig) -> RunSummary:
    """Watch ``tasks`` with Ctrl+C handling and print a summary at the end."""
    entries = watch_entries(tasks)
    if mode is RunMode.WATCH:
        console.print(
            f"[bold]Watching[/bold] {len(entries):,} file(s) every {config.interval:g}s "
            "(Ctrl+C to stop)"
        )

    shutdown = ShutdownHandler()
    shutdown.install()
    try:
        summary = run_loop(entries, mode, config, shutdown=shutdown)
    finally:
        shutdown.uninstall()

    console.print()
    if summary.ok:
        console.print(f"[bold green]Done![/bold green] {summary.processed:,} image(s) written")
    else:
        console.print(
            f"[bold yellow]Finished with errors:[/bold yellow] {summary.processed:,} written, "
            f"{len(summary.failures):,} failed"
        )
    return summary


def _record_failure(result: TickResult, path: str, exc: ImgwatchError) -> None:
    err_console.print(f"[yellow]Skipping {escape(path)}:[/yellow] {escape(str(exc))}")
    result.failures.append((path, str(exc)))
