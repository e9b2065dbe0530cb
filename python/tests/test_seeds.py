"""Tests for seed sampling, configuration and the suffix array seed index."""

import pytest

from olcgraph_core import OverlapConfiguration, SeedIterator, SuffixArraySeedIndex


def test_forward_seeds_cover_both_ends():
    """The last seed is anchored at the read end even off the stride."""
    seeds = SeedIterator(OverlapConfiguration(seed_length=4, seed_step=2))
    strand = seeds.positive_strand("ACGTACGTA")

    assert list(strand) == [(0, "ACGT"), (2, "GTAC"), (4, "ACGT"), (5, "CGTA")]
    assert len(strand) == 4


def test_seeds_are_restartable():
    """Iterating a strand twice yields the same seeds."""
    strand = SeedIterator(OverlapConfiguration(seed_length=3, seed_step=1)).positive_strand("ACGTT")

    assert list(strand) == list(strand)


def test_negative_strand_uses_reverse_complement_coordinates():
    """Reverse strand seeds are read off the reverse complement."""
    seeds = SeedIterator(OverlapConfiguration(seed_length=4, seed_step=4))

    assert list(seeds.negative_strand("AAAACCCC")) == [(0, "GGGG"), (4, "TTTT")]


def test_short_read_has_no_seeds():
    """A read shorter than the seed length produces nothing on either strand."""
    seeds = SeedIterator(OverlapConfiguration(seed_length=4, seed_step=1))

    for _, strand in seeds.strands("ACG"):
        assert list(strand) == []


@pytest.mark.parametrize(
    "params",
    [
        {"seed_length": 0},
        {"seed_step": 0},
        {"max_diagonal_shift": -1},
        {"min_cover_rate": 1.5},
        {"border_rate": -0.1},
        {"min_hits": 0},
    ],
)
def test_invalid_configuration_is_rejected(params):
    """Out of range parameters fail at construction."""
    with pytest.raises(ValueError):
        OverlapConfiguration(**params)


def test_configuration_from_error_rates():
    """Default error rates give 38-mers every 19 bases and an 80 base tolerance."""
    config = OverlapConfiguration.from_error_rates()

    assert config.seed_length == 38
    assert config.seed_step == 19
    assert config.max_diagonal_shift == 80
    assert config.min_cover_rate == 0.25
    assert config.border_rate == 0.15


def test_configuration_from_error_rates_accepts_overrides():
    """Explicit values win over the derived ones."""
    config = OverlapConfiguration.from_error_rates(0.02, 0.01, seed_step=7)

    assert config.seed_step == 7
    assert config.seed_length == 38


def test_suffix_array_index_finds_every_occurrence():
    """All positions of a k-mer across all reads are returned."""
    index = SuffixArraySeedIndex(["ACGTAC", "TACG"])

    assert sorted(index.search("AC")) == [(0, 0), (0, 4), (1, 1)]
    assert index.search("GGG") == []
    assert index.search("") == []


def test_suffix_array_index_is_case_sensitive():
    """Lookups are exact matches."""
    index = SuffixArraySeedIndex(["acgt", "ACGT"])

    assert index.search("ACG") == [(1, 0)]


def test_suffix_array_index_with_short_sort_key():
    """Queries longer than the sort key are still matched in full."""
    reads = ["ACGTACGA", "TACGTT", "ACGTAA"]
    index = SuffixArraySeedIndex(reads, key_length=2)

    assert sorted(index.search("AC")) == [(0, 0), (0, 4), (1, 1), (2, 0)]
    assert sorted(index.search("ACGTA")) == [(0, 0), (2, 0)]
    assert index.search("ACGTT") == [(1, 1)]
    assert index.search("ACGTC") == []
    assert sorted(index.search("CGT")) == [(0, 1), (1, 2), (2, 1)]
    with pytest.raises(ValueError):
        SuffixArraySeedIndex(reads, key_length=0)
