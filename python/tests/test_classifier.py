"""Tests for embedding and overlap classification of diagonal clusters."""

import pytest

from olcgraph_core import DiagonalAccumulator, Embedding, Overlap, OverlapConfiguration, PairClassifier


@pytest.fixture
def config():
    return OverlapConfiguration(seed_length=4, seed_step=1, max_diagonal_shift=2)


def _clusters(config, hits):
    acc = DiagonalAccumulator(config.seed_length, config.max_diagonal_shift)
    for ref_pos, partner, partner_pos in hits:
        acc.add_hit(ref_pos, partner, partner_pos)
    return acc


def test_partner_embedded_in_reference(config, example_reads):
    """AACC sits at offset 2 of AAAACCCC."""
    classifier = PairClassifier(example_reads, config)
    acc = _clusters(config, [(2, 2, 0)])

    embedding, overlaps = classifier.classify(0, 2, acc.partners[2])

    assert embedding == Embedding(2, 0, 2, False, 1.0)
    assert overlaps == []


def test_embedding_on_reverse_strand_uses_forward_offset(config):
    """GGTT matches the reverse complement of AACC at forward offset 2."""
    reads = ["AAAACCCC", "GGTT"]
    classifier = PairClassifier(reads, config)
    acc = _clusters(config, [(2, 1, 0)])

    embedding, _ = classifier.classify(0, 1, acc.partners[1], reversed=True)

    assert embedding == Embedding(1, 0, 2, True, 1.0)


def test_reference_embedded_in_longer_partner(config):
    """A short reference inside a longer partner is embedded in the partner."""
    reads = ["GACC", "TTGACCTT"]
    classifier = PairClassifier(reads, config)
    acc = _clusters(config, [(0, 1, 2)])

    embedding, overlaps = classifier.classify(0, 1, acc.partners[1])

    assert embedding == Embedding(0, 1, 2, False, 1.0)
    assert overlaps == []


def test_reference_overlaps_onto_partner(config, example_reads):
    """The CCCC suffix of read 0 is the prefix of read 1."""
    classifier = PairClassifier(example_reads, config)
    acc = _clusters(config, [(4, 1, 0)])

    embedding, overlaps = classifier.classify(0, 1, acc.partners[1])

    assert embedding is None
    assert overlaps == [Overlap(0, False, 1, False, 4, 1.0)]
    assert classifier.find_partner_to_ref(0, 1, acc.partners[1], False) is None


def test_partner_overlaps_onto_reference(config):
    """The CCCC suffix of the partner is the prefix of the reference."""
    reads = ["CCCCGGGG", "AAAACCCC"]
    classifier = PairClassifier(reads, config)
    acc = _clusters(config, [(0, 1, 4)])

    embedding, overlaps = classifier.classify(0, 1, acc.partners[1])

    assert embedding is None
    assert overlaps == [Overlap(1, False, 0, False, 4, 1.0)]


def test_single_low_coverage_hit_is_not_enough(config):
    """One seed covering a fifth of the partner does not make an embedding."""
    reads = ["A" * 40, "C" * 20]
    classifier = PairClassifier(reads, config)
    acc = _clusters(config, [(10, 1, 0)])

    assert classifier.find_embedding(0, 1, acc.partners[1], False) is None

    acc.add_hit(26, 1, 16)
    embedding = classifier.find_embedding(0, 1, acc.partners[1], False)
    assert embedding == Embedding(1, 0, 10, False, 0.4)


def test_internal_repeat_is_ignored(config):
    """An alignment that stops far from the partner ends is no relation."""
    reads = ["A" * 40, "C" * 20]
    classifier = PairClassifier(reads, config)
    acc = _clusters(config, [(10, 1, 0), (14, 1, 4)])

    assert classifier.classify(0, 1, acc.partners[1]) == (None, [])


def test_classify_all_skips_unrelated_partners(config, example_reads):
    """Only partners with a decision are yielded, in id order."""
    classifier = PairClassifier(example_reads + ["TTTTTTTT"], config)
    acc = _clusters(config, [(4, 1, 0), (2, 2, 0), (0, 3, 0)])

    decisions = list(classifier.classify_all(0, acc))

    assert [partner for partner, _, _ in decisions] == [1, 2]
    assert decisions[0][2] == [Overlap(0, False, 1, False, 4, 1.0)]
    assert decisions[1][1] == Embedding(2, 0, 2, False, 1.0)
