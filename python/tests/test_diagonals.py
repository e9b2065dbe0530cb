"""Tests for clustering seed hits by diagonal."""

from olcgraph_core import DiagonalAccumulator, DiagonalAlignment, DiagonalClusters


def _record(ref_start, partner_start):
    return DiagonalAlignment(ref_start, partner_start, 4, 4)


def test_hits_on_the_same_diagonal_merge():
    """Collinear hits extend one alignment."""
    acc = DiagonalAccumulator(seed_length=4, max_diagonal_shift=3)
    acc.add_hit(0, 1, 5)
    acc.add_hit(2, 1, 7)

    clusters = acc.partners[1]
    assert clusters.keys() == [5]
    aln = clusters.get(5)
    assert aln.hits == 2
    assert (aln.ref_start, aln.partner_start) == (0, 5)
    assert (aln.ref_length, aln.partner_length) == (6, 6)


def test_nearby_diagonal_rekeys_the_alignment():
    """A small indel moves the alignment to the newest diagonal."""
    acc = DiagonalAccumulator(seed_length=4, max_diagonal_shift=3)
    acc.add_hit(0, 1, 5)
    acc.add_hit(4, 1, 10)

    clusters = acc.partners[1]
    assert clusters.keys() == [6]
    aln = clusters.get(6)
    assert aln.hits == 2
    assert aln.ref_length == 8
    assert aln.diagonal == 5


def test_distant_diagonals_stay_separate():
    """Hits at or beyond the tolerance start a new alignment."""
    acc = DiagonalAccumulator(seed_length=4, max_diagonal_shift=3)
    acc.add_hit(0, 1, 0)
    acc.add_hit(0, 1, 3)
    acc.add_hit(0, 1, 20)

    assert acc.partners[1].keys() == [0, 3, 20]


def test_embedded_partners_are_ignored():
    """Hits against an already embedded read are dropped."""
    acc = DiagonalAccumulator(seed_length=4, max_diagonal_shift=3, is_embedded=lambda p: p == 2)
    acc.add_hit(0, 2, 0)
    acc.add_hit(0, 3, 0)

    assert list(acc.partners) == [3]


def test_partners_are_reported_in_id_order():
    """Iteration order does not depend on hit order."""
    acc = DiagonalAccumulator(seed_length=4, max_diagonal_shift=3)
    for partner in (5, 2, 9):
        acc.add_hit(0, partner, 0)

    assert [partner for partner, _ in acc.items()] == [2, 5, 9]
    acc.clear()
    assert len(acc) == 0


def test_nearest_prefers_the_ceiling_on_ties():
    """Equidistant neighbours resolve to the higher diagonal."""
    clusters = DiagonalClusters()
    clusters.put(0, _record(0, 0))
    clusters.put(4, _record(0, 4))

    assert clusters.nearest(2, 3) == 4
    assert clusters.nearest(1, 3) == 0
    assert clusters.nearest(10, 3) is None


def test_range_queries():
    """Ascending and descending windows are inclusive."""
    clusters = DiagonalClusters()
    for key in (-5, -1, 0, 3, 8):
        clusters.put(key, _record(0, key))

    assert [a.diagonal for a in clusters.ascending(-1, 3)] == [-1, 0, 3]
    assert [a.diagonal for a in clusters.ascending(0)] == [0, 3, 8]
    assert [a.diagonal for a in clusters.descending(3)] == [3, 0, -1, -5]
    assert [a.diagonal for a in clusters.descending(3, -1)] == [3, 0, -1]

    clusters.pop(0)
    assert 0 not in clusters
    assert len(clusters) == 4
