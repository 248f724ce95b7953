"""
Progress reporting and cooperative cancellation for long validation runs.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging
import threading

from tqdm import tqdm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """Coarse-grained progress message (one per window or per iteration batch)."""

    progress: float
    current_method: str
    window_index: int
    total_windows: int

    def to_message(self) -> Dict[str, Any]:
        return {
            'progress': self.progress,
            'currentMethod': self.current_method,
            'windowIndex': self.window_index,
            'totalWindows': self.total_windows,
        }


ProgressCallback = Callable[[ProgressEvent], None]


class CancellationToken:
    """Advisory cancellation flag polled at loop boundaries."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def emit_progress(callback: Optional[ProgressCallback], event: ProgressEvent) -> None:
    """Invoke a progress callback; a failing callback never aborts the run."""
    if callback is None:
        return
    try:
        callback(event)
    except Exception as e:
        logger.error(f"Progress callback failed: {str(e)}")


def create_progress_bar(total: int = 100, desc: str = "", position: int = 0, leave: bool = True) -> tqdm:
    """
    Create a progress bar for tracking operations.

    Args:
        total: Total number of steps
        desc: Description of the progress bar
        position: Position of the progress bar (for multiple bars)
        leave: Whether to leave the progress bar after completion

    Returns:
        tqdm progress bar instance
    """
    return tqdm(
        total=total,
        desc=desc,
        position=position,
        leave=leave,
        ncols=80,
        bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]'
    )


def progress_bar_callback(bar: tqdm) -> ProgressCallback:
    """Adapt a percentage-based tqdm bar into a ProgressCallback."""
    def update(event: ProgressEvent) -> None:
        bar.set_description(f"{event.current_method} [{event.window_index + 1}/{event.total_windows}]")
        target = min(bar.total, round(event.progress, 1))
        if target > bar.n:
            bar.update(target - bar.n)
    return update
