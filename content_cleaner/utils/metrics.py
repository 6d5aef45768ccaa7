"""
Metrics Collection Module
Tracks per-item outcomes and timings for batch cleaning runs
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict


@dataclass
class Metrics:
    """
    Collects outcome counters for a batch of cleaned items.

    A feed dump where half the descriptions come back empty usually means the
    publisher changed its markup; the empty/rejected counts make that visible
    in a single summary line instead of thousands of per-item traces.
    """

    items_processed: int = 0

    # Outcome counts, e.g. outcomes["empty"], outcomes["truncated"]
    outcomes: Counter = field(default_factory=Counter)

    # Bounded so a very long batch cannot grow memory without limit
    processing_time_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=1000))

    start_time: datetime = field(default_factory=datetime.now)

    def record_item(self, time_ms: float, outcome: str = "ok"):
        """
        Record one processed item.

        Args:
            time_ms: Time spent on the item in milliseconds
            outcome: "ok", "empty", "rejected", "truncated", ...
        """
        self.items_processed += 1
        self.outcomes[outcome] += 1
        self.processing_time_ms.append(time_ms)

    def get_summary(self) -> Dict:
        """
        Get a summary of all metrics.

        Returns:
            Dictionary suitable for logging as structured extra fields
        """
        stats = {}
        if self.processing_time_ms:
            sorted_times = sorted(self.processing_time_ms)
            n = len(sorted_times)
            stats = {
                "avg_ms": sum(sorted_times) / n,
                "max_ms": sorted_times[-1],
                "p50_ms": sorted_times[n // 2],
                "p95_ms": sorted_times[int(n * 0.95)] if n > 1 else sorted_times[0],
            }

        return {
            "elapsed_seconds": (datetime.now() - self.start_time).total_seconds(),
            "items_processed": self.items_processed,
            "outcomes": dict(self.outcomes),
            "processing_time_stats": stats,
        }
