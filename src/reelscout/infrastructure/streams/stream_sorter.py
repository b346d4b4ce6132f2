"""Stream ranking for aggregated add-on results."""

from __future__ import annotations

from reelscout.domain.entities.streams import StreamSource


class StreamSorter:
    """Ranking: Quality (best first), then seeders (most first).

    Quality dominates: a 4K source with 0 seeders ranks above a 1080p
    source with 900. Python's sort is stable, so sources with equal
    quality and seeders keep their fetch order.
    """

    @staticmethod
    def rank(source: StreamSource) -> tuple[int, int]:
        """Sort key for a single source (higher is better)."""
        return source.rank, max(source.seeders, 0)

    def sort(self, sources: list[StreamSource]) -> list[StreamSource]:
        """Return a new list sorted best-first."""
        return sorted(sources, key=self.rank, reverse=True)
