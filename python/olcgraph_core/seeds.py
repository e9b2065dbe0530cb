"""Seed sampling over both strands and exact-match seed lookup."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Iterator, List, NamedTuple, Protocol, Sequence, Tuple

from Bio.Seq import reverse_complement

from .config import OverlapConfiguration

Seed = Tuple[int, str]


class SeedHit(NamedTuple):
    sequence_id: int
    position: int


class SeedIndex(Protocol):
    """Exact-match lookup of a k-mer over the whole read set."""

    def search(self, kmer: str) -> List[SeedHit]:
        ...


class StrandSeeds:
    """Restartable iterable of ``(position, kmer)`` seeds over one strand."""

    def __init__(self, sequence: str, seed_length: int, seed_step: int) -> None:
        self.sequence = sequence
        self.seed_length = seed_length
        self.seed_step = seed_step

    def positions(self) -> Iterator[int]:
        last = len(self.sequence) - self.seed_length
        if last < 0:
            return
        pos = 0
        for pos in range(0, last + 1, self.seed_step):
            yield pos
        if pos != last:
            yield last

    def __iter__(self) -> Iterator[Seed]:
        for pos in self.positions():
            yield pos, self.sequence[pos : pos + self.seed_length]

    def __len__(self) -> int:
        return sum(1 for _ in self.positions())


class SeedIterator:
    """Sample seeds every ``seed_step`` bases on a read and its reverse complement.

    Reverse strand positions refer to the reverse complemented read.
    """

    def __init__(self, config: OverlapConfiguration) -> None:
        self.seed_length = config.seed_length
        self.seed_step = config.seed_step

    def positive_strand(self, sequence: str) -> StrandSeeds:
        return StrandSeeds(str(sequence), self.seed_length, self.seed_step)

    def negative_strand(self, sequence: str) -> StrandSeeds:
        return StrandSeeds(
            reverse_complement(str(sequence)), self.seed_length, self.seed_step
        )

    def strands(self, sequence: str) -> Iterator[Tuple[bool, StrandSeeds]]:
        yield False, self.positive_strand(sequence)
        yield True, self.negative_strand(sequence)


class SuffixArraySeedIndex:
    """Sorted suffix array over every read, queried by binary search.

    Entries are ``(read_idx, start)`` pairs ordered by the first
    ``key_length`` bases of the suffix they denote, so all occurrences of a
    k-mer no longer than ``key_length`` form one contiguous run. Longer
    queries are narrowed on their leading ``key_length`` bases and then
    checked in full.
    """

    def __init__(
        self, sequences: Sequence[str], min_suffix_len: int = 1, key_length: int = 32
    ) -> None:
        if key_length < 1:
            raise ValueError(f"key_length must be positive, got {key_length}")
        self.sequences = sequences
        self.key_length = key_length
        entries = [
            (index, start)
            for index, read in enumerate(sequences)
            for start in range(len(read) - min_suffix_len + 1)
        ]
        entries.sort(key=lambda entry: sequences[entry[0]][entry[1] : entry[1] + key_length])
        self._entries = entries

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, kmer: str) -> List[SeedHit]:
        if not kmer:
            return []
        probe = kmer[: self.key_length]
        span = len(probe)
        sequences = self.sequences

        def prefix(entry: Tuple[int, int]) -> str:
            return sequences[entry[0]][entry[1] : entry[1] + span]

        lo = bisect_left(self._entries, probe, key=prefix)
        hi = bisect_right(self._entries, probe, lo=lo, key=prefix)
        run = self._entries[lo:hi]
        if len(kmer) > span:
            run = [
                (index, start)
                for index, start in run
                if sequences[index][start : start + len(kmer)] == kmer
            ]
        return [SeedHit(*entry) for entry in run]
