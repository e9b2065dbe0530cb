"""Decide, per candidate partner, between embedding, overlap and no relation."""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from .config import OverlapConfiguration
from .diagonals import DiagonalAccumulator, DiagonalClusters
from .records import DiagonalAlignment, Embedding, Overlap

Decision = Tuple[int, "Embedding | None", List[Overlap]]


class PairClassifier:
    """Turn the diagonal clusters of one reference strand into relations.

    Three checks run per partner. The embedding check comes first and, when
    it succeeds, no overlap is reported for that partner. The two overlap
    checks are independent of each other and each keeps only its first
    qualifying cluster.
    """

    def __init__(self, sequences: Sequence[str], config: OverlapConfiguration) -> None:
        self.sequences = sequences
        self.config = config

    def _supported(self, aln: DiagonalAlignment, span: int) -> Tuple[bool, float]:
        rate = self.config.seed_length * aln.hits / span
        return aln.hits >= self.config.min_hits or rate >= self.config.min_cover_rate, rate

    def _near_start(self, start: int, length: int) -> bool:
        return start <= length * self.config.border_rate

    def _near_end(self, end: int, length: int) -> bool:
        return end >= length * (1 - self.config.border_rate)

    def find_embedding(
        self,
        ref_id: int,
        partner_id: int,
        clusters: DiagonalClusters,
        reversed: bool,
    ) -> Embedding | None:
        ref_len = len(self.sequences[ref_id])
        partner_len = len(self.sequences[partner_id])
        limit = partner_len - ref_len
        shift = self.config.max_diagonal_shift
        partner_inside = partner_len <= ref_len
        inner_len = partner_len if partner_inside else ref_len

        for aln in clusters.ascending(min(0, limit) - shift, max(0, limit) + shift):
            supported, rate = self._supported(aln, inner_len)
            if not supported:
                continue
            pos = aln.diagonal
            if partner_inside:
                if pos > 0 or pos < limit:
                    continue
                if not self._near_start(aln.partner_start, partner_len) or not self._near_end(
                    aln.partner_end, partner_len
                ):
                    continue
                offset = ref_len + pos - partner_len if reversed else -pos
                return Embedding(partner_id, ref_id, offset, reversed, rate)

            if pos < 0 or pos > limit:
                continue
            if not self._near_start(aln.ref_start, ref_len) or not self._near_end(
                aln.ref_end, ref_len
            ):
                continue
            return Embedding(ref_id, partner_id, pos, reversed, rate)
        return None

    def find_partner_to_ref(
        self,
        ref_id: int,
        partner_id: int,
        clusters: DiagonalClusters,
        reversed: bool,
    ) -> Overlap | None:
        """Suffix of the partner overlapping the start of the reference strand."""

        ref_len = len(self.sequences[ref_id])
        partner_len = len(self.sequences[partner_id])
        lowest = max(0, partner_len - ref_len)

        for aln in clusters.ascending(-self.config.max_diagonal_shift):
            pos = aln.diagonal
            if pos < lowest or pos >= partner_len:
                continue
            supported, rate = self._supported(aln, partner_len - pos)
            if not supported:
                continue
            if not self._near_start(aln.ref_start, ref_len) or not self._near_end(
                aln.partner_end, partner_len
            ):
                continue
            return Overlap(partner_id, False, ref_id, reversed, partner_len - pos, rate)
        return None

    def find_ref_to_partner(
        self,
        ref_id: int,
        partner_id: int,
        clusters: DiagonalClusters,
        reversed: bool,
    ) -> Overlap | None:
        """Suffix of the reference strand overlapping the start of the partner."""

        ref_len = len(self.sequences[ref_id])
        partner_len = len(self.sequences[partner_id])
        limit = partner_len - ref_len
        highest = min(0, limit)

        for aln in clusters.descending(limit + self.config.max_diagonal_shift):
            pos = aln.diagonal
            if pos > highest or pos <= -ref_len:
                continue
            supported, rate = self._supported(aln, ref_len + pos)
            if not supported:
                continue
            if not self._near_start(aln.partner_start, partner_len) or not self._near_end(
                aln.ref_end, ref_len
            ):
                continue
            return Overlap(ref_id, reversed, partner_id, False, ref_len + pos, rate)
        return None

    def classify(
        self,
        ref_id: int,
        partner_id: int,
        clusters: DiagonalClusters,
        reversed: bool = False,
    ) -> Tuple[Embedding | None, List[Overlap]]:
        embedding = self.find_embedding(ref_id, partner_id, clusters, reversed)
        if embedding is not None:
            return embedding, []
        overlaps = []
        for check in (self.find_partner_to_ref, self.find_ref_to_partner):
            overlap = check(ref_id, partner_id, clusters, reversed)
            if overlap is not None:
                overlaps.append(overlap)
        return None, overlaps

    def classify_all(
        self,
        ref_id: int,
        accumulator: DiagonalAccumulator,
        reversed: bool = False,
    ) -> Iterator[Decision]:
        for partner_id, clusters in accumulator.items():
            embedding, overlaps = self.classify(ref_id, partner_id, clusters, reversed)
            if embedding is not None or overlaps:
                yield partner_id, embedding, overlaps
