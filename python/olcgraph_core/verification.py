"""Edit-distance check of the overlap regions behind assembly graph edges."""

from __future__ import annotations

from typing import List, Tuple

from Bio.Seq import reverse_complement
from fastDamerauLevenshtein import (
    damerauLevenshtein as damerau_levenshtein_distance,
)

from .graph import AssemblyEdge, AssemblyGraph, AssemblyVertex


def normalised_damerau_levenshtein_distance(
    suffix: str,
    prefix: str,
) -> Tuple[float, int]:
    """Return the normalised Damerau–Levenshtein distance and match count.

    The metric is normalised by the shorter string so it can compare a suffix of
    one read against a prefix of another. The companion integer is the number of
    matching positions (``m - d``).
    """

    overlap_len = min(len(suffix), len(prefix))
    if overlap_len == 0:
        return 0.0, 0
    distance = damerau_levenshtein_distance(
        suffix[-overlap_len:], prefix[:overlap_len], similarity=False
    )
    return distance / overlap_len, overlap_len - distance


def _oriented(graph: AssemblyGraph, vertex: AssemblyVertex, leaving: bool) -> str:
    read = str(graph.sequences[vertex.sequence_index])
    # A read is left through its end and entered through its start.
    if vertex.is_start == leaving:
        return reverse_complement(read)
    return read


def overlap_regions(graph: AssemblyGraph, edge: AssemblyEdge) -> Tuple[str, str]:
    """Suffix of the first read and prefix of the second, both oriented."""

    left = _oriented(graph, edge.vertex1, leaving=True)
    right = _oriented(graph, edge.vertex2, leaving=False)
    return left[len(left) - edge.overlap :], right[: edge.overlap]


def verify_edges(
    graph: AssemblyGraph,
    *,
    max_diff: float = 0.25,
) -> Tuple[List[AssemblyEdge], List[AssemblyEdge]]:
    """Split edges into those whose overlap region is within ``max_diff`` and the rest."""

    accepted: List[AssemblyEdge] = []
    rejected: List[AssemblyEdge] = []
    for edge in graph.edges:
        suffix, prefix = overlap_regions(graph, edge)
        diff, _ = normalised_damerau_levenshtein_distance(suffix, prefix)
        (accepted if diff <= max_diff else rejected).append(edge)
    return accepted, rejected
