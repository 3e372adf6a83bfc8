from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The import executor reports an integer percentage after every row; this
module renders it. In non-TTY environments (CI, piped output) the bar is
disabled to avoid ANSI control sequence spam, but the last reported value is
still tracked.
"""

__all__ = [
    "ImportProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ImportProgressBar:
    """Percent progress bar fed by the import executor's callback.

    Usable directly as the ``on_progress`` callback::

        with ImportProgressBar(total_rows) as bar:
            executor.run(results, notes, on_progress=bar)
    """

    def __init__(self, total_rows: int, *, description: str = "Importing readings") -> None:
        self.total_rows = total_rows
        self.description = description
        self.percent = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, percent: int) -> None:
        self.update(percent)

    def update(self, percent: int) -> None:
        """Advance the bar to ``percent`` (never moves backwards)."""
        if percent <= self.percent:
            return
        delta = percent - self.percent
        self.percent = percent
        if self.enabled and self.pbar is not None:
            self.pbar.update(delta)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ImportProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
