"""Clustering of seed hits into diagonal-aligned candidate alignments."""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from typing import Callable, Dict, Iterator, List, Tuple

from .records import DiagonalAlignment


class DiagonalClusters:
    """Alignments between one reference and one partner, ordered by diagonal."""

    def __init__(self) -> None:
        self._keys: List[int] = []
        self._records: Dict[int, DiagonalAlignment] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, diagonal: int) -> bool:
        return diagonal in self._records

    def get(self, diagonal: int) -> DiagonalAlignment | None:
        return self._records.get(diagonal)

    def put(self, diagonal: int, record: DiagonalAlignment) -> None:
        if diagonal not in self._records:
            insort(self._keys, diagonal)
        self._records[diagonal] = record

    def pop(self, diagonal: int) -> DiagonalAlignment:
        record = self._records.pop(diagonal)
        del self._keys[bisect_left(self._keys, diagonal)]
        return record

    def nearest(self, diagonal: int, tolerance: int) -> int | None:
        """Key of the closest alignment strictly less than ``tolerance`` away."""

        best_key = None
        best = tolerance
        idx = bisect_left(self._keys, diagonal)
        if idx < len(self._keys) and self._keys[idx] - diagonal < best:
            best_key = self._keys[idx]
            best = best_key - diagonal
        if idx > 0 and diagonal - self._keys[idx - 1] < best:
            best_key = self._keys[idx - 1]
        return best_key

    def keys(self) -> List[int]:
        return list(self._keys)

    def ascending(self, low: int, high: int | None = None) -> Iterator[DiagonalAlignment]:
        """Alignments with ``low <= diagonal <= high`` in increasing order."""

        start = bisect_left(self._keys, low)
        stop = len(self._keys) if high is None else bisect_right(self._keys, high)
        for key in self._keys[start:stop]:
            yield self._records[key]

    def descending(self, high: int, low: int | None = None) -> Iterator[DiagonalAlignment]:
        """Alignments with ``low <= diagonal <= high`` in decreasing order."""

        stop = bisect_right(self._keys, high)
        start = 0 if low is None else bisect_left(self._keys, low)
        for key in reversed(self._keys[start:stop]):
            yield self._records[key]


class DiagonalAccumulator:
    """Collect seed hits of one reference strand against every partner read.

    Hits within ``max_diagonal_shift`` of an existing alignment extend it;
    anything further away starts a new candidate alignment.
    """

    def __init__(
        self,
        seed_length: int,
        max_diagonal_shift: int,
        *,
        is_embedded: Callable[[int], bool] | None = None,
    ) -> None:
        self.seed_length = seed_length
        self.max_diagonal_shift = max_diagonal_shift
        self.is_embedded = is_embedded or (lambda _: False)
        self.partners: Dict[int, DiagonalClusters] = {}

    def __len__(self) -> int:
        return len(self.partners)

    def clear(self) -> None:
        self.partners.clear()

    def add_hit(self, ref_pos: int, partner: int, partner_pos: int) -> None:
        if self.is_embedded(partner):
            return
        clusters = self.partners.get(partner)
        if clusters is None:
            clusters = self.partners[partner] = DiagonalClusters()

        diagonal = partner_pos - ref_pos
        key = clusters.nearest(diagonal, self.max_diagonal_shift)
        if key is None:
            clusters.put(
                diagonal,
                DiagonalAlignment(
                    ref_start=ref_pos,
                    partner_start=partner_pos,
                    ref_length=self.seed_length,
                    partner_length=self.seed_length,
                ),
            )
            return

        aln = clusters.pop(key)
        aln.partner_length = max(
            aln.partner_length, self.seed_length + partner_pos - aln.partner_start
        )
        aln.ref_length = max(aln.ref_length, self.seed_length + ref_pos - aln.ref_start)
        aln.hits += 1
        clusters.put(diagonal, aln)

    def items(self) -> Iterator[Tuple[int, DiagonalClusters]]:
        """Partners in increasing id order with their alignments."""

        for partner in sorted(self.partners):
            yield partner, self.partners[partner]
