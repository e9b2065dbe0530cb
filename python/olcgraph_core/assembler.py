"""Overlap search over every read and construction of the assembly graph."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Sequence

from .classifier import PairClassifier
from .compact import CompactAssemblyGraph
from .config import OverlapConfiguration
from .diagonals import DiagonalAccumulator
from .graph import AssemblyGraph, Link, build_assembly_graph, overlap_link
from .records import Embedding, Overlap
from .seeds import Seed, SeedIndex, SeedIterator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class GraphAssembler:
    """Find embedded reads and overlaps, then compact them into a graph.

    Every read is scanned on both strands against the reads with a higher
    id, so each pair is examined once. Embedding decisions are final: a read
    already embedded is never re-embedded and never becomes a container.

    Parameters
    ----------
    sequences
        Reads, addressed by their position in the list. Not copied.
    index
        Exact-match seed lookup over the same reads.
    config
        Seed and threshold parameters.
    progress
        Optional ``progress(done, total)`` called after each read is scanned.
    """

    def __init__(
        self,
        sequences: Sequence[str],
        index: SeedIndex,
        config: OverlapConfiguration | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.sequences = sequences
        self.index = index
        self.config = config or OverlapConfiguration()
        self.progress = progress
        self.seeds = SeedIterator(self.config)
        self.classifier = PairClassifier(sequences, self.config)
        self.embedded: Dict[int, Embedding] = {}
        self.overlaps: List[Overlap] = []
        self._lock = threading.Lock()
        self._scanned = 0

    def is_embedded(self, sequence_id: int) -> bool:
        return sequence_id in self.embedded

    def add_embedding(self, embedding: Embedding) -> bool:
        """Record an embedding unless either read already is embedded."""

        with self._lock:
            if embedding.embedded_id in self.embedded or embedding.parent_id in self.embedded:
                return False
            self.embedded[embedding.embedded_id] = embedding
            return True

    def add_overlaps(self, overlaps: Iterable[Overlap]) -> None:
        with self._lock:
            self.overlaps.extend(overlaps)

    def find_overlaps(self, *, use_threads: bool = False, max_workers: int = 16) -> None:
        """Scan every read; with ``use_threads`` reads are scanned concurrently."""

        total = len(self.sequences)
        self._scanned = 0
        if use_threads:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                list(executor.map(self._scan_and_report, range(total)))
        else:
            for seq_id in range(total):
                self._scan_and_report(seq_id)
        logger.info(
            "Scanned %d sequences: %d embedded, %d overlaps",
            total,
            len(self.embedded),
            len(self.overlaps),
        )

    def _scan_and_report(self, seq_id: int) -> None:
        self.scan_sequence(seq_id)
        if self.progress is not None:
            with self._lock:
                self._scanned += 1
                done = self._scanned
            self.progress(done, len(self.sequences))

    def scan_sequence(self, ref_id: int) -> None:
        if self.is_embedded(ref_id):
            return
        accumulator = DiagonalAccumulator(
            self.config.seed_length,
            self.config.max_diagonal_shift,
            is_embedded=self.is_embedded,
        )
        for reversed, seeds in self.seeds.strands(self.sequences[ref_id]):
            accumulator.clear()
            self.collect_hits(ref_id, seeds, accumulator)
            if not self._apply_decisions(ref_id, accumulator, reversed):
                logger.debug("Sequence %d is embedded; scan stopped", ref_id)
                return

    def collect_hits(
        self,
        ref_id: int,
        seeds: Iterable[Seed],
        accumulator: DiagonalAccumulator,
    ) -> None:
        count = len(self.sequences)
        for ref_pos, kmer in seeds:
            for partner, partner_pos in self.index.search(kmer):
                if not 0 <= partner < count or not 0 <= partner_pos < len(self.sequences[partner]):
                    logger.warning(
                        "Seed index returned unknown hit (%r, %r) for %s; skipped",
                        partner,
                        partner_pos,
                        kmer,
                    )
                    continue
                if partner <= ref_id:
                    continue
                accumulator.add_hit(ref_pos, partner, partner_pos)

    def _apply_decisions(
        self, ref_id: int, accumulator: DiagonalAccumulator, reversed: bool
    ) -> bool:
        """Store the decisions of one strand; False once the reference is embedded."""

        found: List[Overlap] = []
        for _, embedding, overlaps in self.classifier.classify_all(ref_id, accumulator, reversed):
            if embedding is None:
                found.extend(overlaps)
                continue
            if self.add_embedding(embedding) and embedding.embedded_id == ref_id:
                self.add_overlaps(found)
                return False
        self.add_overlaps(found)
        return True

    def links(self) -> List[Link]:
        return [overlap_link(overlap) for overlap in self.overlaps]

    def build(self) -> AssemblyGraph:
        return build_assembly_graph(self.sequences, dict(self.embedded), self.links())

    def assemble(self, *, use_threads: bool = False, max_workers: int = 16) -> AssemblyGraph:
        self.find_overlaps(use_threads=use_threads, max_workers=max_workers)
        return self.build()

    def to_compact(self) -> CompactAssemblyGraph:
        """Export the scan results for merging or checkpointing."""

        compact = CompactAssemblyGraph(self.sequences)
        for embedding in self.embedded.values():
            compact.add_embedding(embedding)
        for overlap in self.overlaps:
            compact.add_overlap(overlap)
        return compact
