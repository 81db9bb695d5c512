"""
Terminal progress displays for downloads and extraction.

A ProgressStyle is built once per run and handed to the download and extraction
steps; the factories below turn it into rich Progress instances.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)

from zigfetch.constants import (
    PROGRESS_BAR_COMPLETE_STYLE,
    PROGRESS_BAR_FINISHED_STYLE,
    PROGRESS_SPINNER,
)


@dataclass(frozen=True)
class ProgressStyle:
    complete_style: str = PROGRESS_BAR_COMPLETE_STYLE
    finished_style: str = PROGRESS_BAR_FINISHED_STYLE
    spinner: str = PROGRESS_SPINNER
    transient: bool = False
    enabled: bool = True
    console: Optional[Console] = None


def download_progress(style: ProgressStyle, total: Optional[int]) -> Progress:
    """
    Progress display for a byte stream.

    With a known total it shows a bar, bytes done / total and transfer speed;
    without one it falls back to a spinner with the running byte count.
    """
    if total:
        columns = (
            SpinnerColumn(style.spinner, style="green"),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            BarColumn(
                bar_width=None,
                complete_style=style.complete_style,
                finished_style=style.finished_style,
            ),
            DownloadColumn(),
            TransferSpeedColumn(),
        )
    else:
        columns = (
            SpinnerColumn(style.spinner, style="green"),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
        )
    return Progress(
        *columns,
        console=style.console,
        transient=style.transient,
        disable=not style.enabled,
    )


def extraction_progress(style: ProgressStyle) -> Progress:
    """Spinner display whose description names the entry being extracted."""
    return Progress(
        SpinnerColumn(style.spinner, style="green"),
        TimeElapsedColumn(),
        TextColumn("{task.description}"),
        console=style.console,
        transient=style.transient,
        disable=not style.enabled,
    )
