# SPDX-License-Identifier: GPL-3.0-or-later
"""Progress reporting for a packaging run.

A run owns a single progress range sized ``scripts * PROGRESS_UNITS_PER_SCRIPT``.
The bundler's fractional progress fills the first 80% of it; every archive
entry written afterwards is one tick, which covers the remaining units.
"""
from __future__ import annotations

from typing import Callable, Optional, Protocol

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn, TimeElapsedColumn

from scriptpack.common.system_constants import BUNDLING_PROGRESS_SHARE

__all__ = [
    "BUILDING_PHASE",
    "BundlerProgressHandler",
    "ProgressReporter",
    "NullProgress",
    "RichProgress",
    "bundler_progress_handler",
]

BUILDING_PHASE = "building"

BundlerProgressHandler = Callable[..., None]


class ProgressReporter(Protocol):
    def start(self, total: int) -> None: ...

    def update(self, fraction: float, label: str, *, force: bool = False) -> None: ...

    def tick(self, label: str) -> None: ...

    def stop(self) -> None: ...


class NullProgress:
    """Reporter that discards everything."""

    def start(self, total: int) -> None:
        pass

    def update(self, fraction: float, label: str, *, force: bool = False) -> None:
        pass

    def tick(self, label: str) -> None:
        pass

    def stop(self) -> None:
        pass


class RichProgress:
    """Reporter rendering a single ``rich`` progress bar."""

    def __init__(self, console: Optional[Console] = None, refresh_per_second: float = 20) -> None:
        self._progress = Progress(
            BarColumn(bar_width=50),
            TextColumn("{task.description}", justify="left"),
            TimeElapsedColumn(),
            console=console,
            refresh_per_second=refresh_per_second,
            transient=False,
        )
        self._task: Optional[TaskID] = None
        self._total = 0

    def start(self, total: int) -> None:
        self._total = total
        self._task = self._progress.add_task("", total=total)
        self._progress.start()

    def update(self, fraction: float, label: str, *, force: bool = False) -> None:
        if self._task is None:
            return
        completed = max(0.0, min(fraction, 1.0)) * self._total
        self._progress.update(self._task, completed=completed, description=label)
        if force:
            self._progress.refresh()

    def tick(self, label: str) -> None:
        if self._task is None:
            return
        self._progress.update(self._task, advance=1, description=label)

    def stop(self) -> None:
        if self._task is not None:
            self._progress.stop()
            self._task = None


def bundler_progress_handler(reporter: ProgressReporter) -> BundlerProgressHandler:
    """Adapt ``(percent, phase, detail=None)`` bundler callbacks to *reporter*.

    Any phase other than ``building`` forces an immediate redraw so a changed
    step description is never hidden by render throttling.
    """

    def handle(percent: float, phase: str, detail: Optional[str] = None) -> None:
        label = f"{phase} {detail}" if detail else phase
        reporter.update(percent * BUNDLING_PROGRESS_SHARE, label, force=phase != BUILDING_PHASE)

    return handle
