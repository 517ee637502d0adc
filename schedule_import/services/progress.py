from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display over the commit loop with tqdm (TTY only).

Non-TTY environments (CI, redirected output) get no bar at all so that the
labeled log lines stay free of ANSI control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressTracker:
    """tqdm bar counting imported / errored drafts.

    Usable as a context manager; ``close`` is idempotent.
    """

    def __init__(self, total: int, *, description: str = "Importing classes", enabled: bool = True) -> None:
        self.total = total
        self.description = description
        self.imported = 0
        self.errored = 0

        self.enabled = enabled and total > 0 and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="class",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, ok: bool = True) -> None:
        if ok:
            self.imported += 1
        else:
            self.errored += 1
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(ok=self.imported, err=self.errored)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
