"""Copy progress accounting: percent complete, ETA and size totals."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CopyStats:
    """Per-run copy statistics.

    Only raw samples are stored (one duration and one size per processed
    file); every other figure is derived from them on access.

    Attributes:
        total: Number of files the run will process.
        durations: Seconds spent on each processed file.
        sizes: Byte size of each processed file.
    """
    total: int
    durations: list[float] = field(default_factory=list)
    sizes: list[int] = field(default_factory=list)

    def record(self, duration: float, size: int) -> None:
        """Add the sample for one processed file (copied or failed)."""
        self.durations.append(duration)
        self.sizes.append(size)

    @property
    def done(self) -> int:
        return len(self.durations)

    @property
    def elapsed(self) -> float:
        return sum(self.durations)

    @property
    def average_duration(self) -> float:
        if not self.durations:
            return 0.0
        return self.elapsed / len(self.durations)

    @property
    def remaining(self) -> float:
        """Estimated seconds left: files still to do times the average so far."""
        return (self.total - self.done) * self.average_duration

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.done / self.total * 100

    @property
    def total_size(self) -> int:
        return sum(self.sizes)

    @property
    def average_size(self) -> float:
        if not self.sizes:
            return 0.0
        return self.total_size / len(self.sizes)


def format_duration(seconds: float) -> str:
    """Format *seconds* as ``M:SS``, or ``H:MM:SS`` from one hour up."""
    s = int(seconds)
    if s < 3600:
        return f"{s // 60}:{s % 60:02d}"
    return f"{s // 3600}:{s // 60 % 60:02d}:{s % 60:02d}"


_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def format_size(n: float) -> str:
    """Human-readable byte count using binary units."""
    for unit in _UNITS[:-1]:
        if abs(n) < 1024:
            return f"{n:.0f} {unit}" if unit == "B" else f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} {_UNITS[-1]}"
