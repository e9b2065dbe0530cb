"""Tests for edit-distance verification of overlap edges."""

from olcgraph_core import (
    AssemblyGraph,
    GraphAssembler,
    SuffixArraySeedIndex,
    normalised_damerau_levenshtein_distance,
    verify_edges,
)
from olcgraph_core.verification import overlap_regions


def test_normalised_distance():
    """Distance is scaled by the overlap and paired with the match count."""
    assert normalised_damerau_levenshtein_distance("ACGT", "ACGT") == (0.0, 4)
    diff, matches = normalised_damerau_levenshtein_distance("ACGT", "ACGA")
    assert diff == 0.25
    assert matches == 3
    assert normalised_damerau_levenshtein_distance("", "ACGT") == (0.0, 0)


def test_overlap_regions_follow_vertex_orientation(small_config, example_reads):
    """Edges through read ends compare the oriented suffix and prefix."""
    graph = GraphAssembler(example_reads, SuffixArraySeedIndex(example_reads), small_config).assemble()

    regions = {overlap_regions(graph, edge) for edge in graph.edges}
    assert regions == {("CCCC", "CCCC"), ("GGGG", "GGGG")}


def test_verify_edges_splits_good_and_bad(small_config, example_reads):
    """Exact overlaps pass a zero threshold; mismatching ones do not."""
    graph = GraphAssembler(example_reads, SuffixArraySeedIndex(example_reads), small_config).assemble()
    accepted, rejected = verify_edges(graph, max_diff=0.0)
    assert len(accepted) == len(graph.edges) == 2
    assert rejected == []

    wrong = AssemblyGraph(["AAAACCCC", "GGGGTTTT"])
    wrong.add_edge(wrong.get_vertex(0, False), wrong.get_vertex(1, True), 4)
    accepted, rejected = verify_edges(wrong, max_diff=0.25)
    assert accepted == []
    assert len(rejected) == 1
