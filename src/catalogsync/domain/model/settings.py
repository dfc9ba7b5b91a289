"""Import run options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

DEFAULT_CHUNK_SIZE: Final[int] = 100
DEFAULT_CHUNK_PAUSE_SECONDS: Final[float] = 0.1
DEFAULT_MAX_WORKERS: Final[int] = 1
MAX_WORKERS_LIMIT: Final[int] = 8
DEFAULT_LOOKBACK_ROWS: Final[int] = 8


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportSettings:
    """Knobs for one import run.

    ``inter_chunk_pause_seconds`` is a throttling policy only and may be zero.
    ``deadline_seconds`` bounds the commit phase; chunks not started when it
    expires are reported as not attempted.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    inter_chunk_pause_seconds: float = DEFAULT_CHUNK_PAUSE_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS
    deadline_seconds: float | None = None
    lookback_rows: int = DEFAULT_LOOKBACK_ROWS

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.inter_chunk_pause_seconds < 0:
            raise ValueError("inter_chunk_pause_seconds must be non-negative")
        if not 1 <= self.max_workers <= MAX_WORKERS_LIMIT:
            raise ValueError(
                f"max_workers must be between 1 and {MAX_WORKERS_LIMIT}, got {self.max_workers}"
            )
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive when set")
        if self.lookback_rows < 0:
            raise ValueError("lookback_rows must be non-negative")
