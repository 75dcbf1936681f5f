"""Run statistics.

Counters are lock-protected so the statistics surface stays correct
if policy loops are ever dispatched concurrently.
"""

import threading
from dataclasses import dataclass, field

from angrr.utils.formatting import dry_run_indicator


class Counter:
    """Thread-safe monotonically increasing counter."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increase(self) -> None:
        self.add(1)

    def add(self, n: int) -> None:
        with self._lock:
            self._value += n

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class Statistics:
    """Counts collected during a run.

    Attributes:
        traversed: Entries found in GC root directories.
        monitored: Roots matched by a temporary root policy plus profile generations.
        expired: Expired temporary roots plus profile removal candidates.
        invalid: Reserved for invalid roots.
        removed: Paths removed (or that would be removed in dry-run).
    """

    traversed: Counter = field(default_factory=Counter)
    monitored: Counter = field(default_factory=Counter)
    expired: Counter = field(default_factory=Counter)
    invalid: Counter = field(default_factory=Counter)
    removed: Counter = field(default_factory=Counter)

    @property
    def kept(self) -> int:
        return self.traversed.value - self.removed.value

    def as_dict(self) -> dict[str, int]:
        """Snapshot of all counts, including kept."""
        return {
            "traversed": self.traversed.value,
            "monitored": self.monitored.value,
            "expired": self.expired.value,
            "removed": self.removed.value,
            "invalid": self.invalid.value,
            "kept": self.kept,
        }

    def render(self, *, dry_run: bool) -> str:
        """Render the statistics block as Rich markup."""
        counts = self.as_dict()
        lines = ["[bold_header]Statistics[/]"]
        for name, value in counts.items():
            suffix = dry_run_indicator(name == "removed" and value != 0 and dry_run)
            lines.append(f"{name + ':':<10} [number]{value}[/]{suffix}")
        return "\n".join(lines)
