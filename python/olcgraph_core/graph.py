"""Final assembly graph handed to the layout step, and the compaction that builds it."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, NamedTuple, Sequence, Tuple

import networkx as nx
import numpy as np
from scipy.sparse import coo_matrix

from .records import Embedding, Overlap

logger = logging.getLogger(__name__)


class EmbeddingConsistencyWarning(UserWarning):
    """An embedded read does not fit inside its parent at the recorded offset."""


@dataclass(frozen=True)
class AssemblyVertex:
    sequence_index: int
    is_start: bool

    @property
    def index(self) -> int:
        return 2 * self.sequence_index + (0 if self.is_start else 1)


@dataclass(frozen=True)
class AssemblyEdge:
    vertex1: AssemblyVertex
    vertex2: AssemblyVertex
    overlap: int
    rate: float = 1.0

    def other(self, vertex: AssemblyVertex) -> AssemblyVertex:
        return self.vertex2 if vertex == self.vertex1 else self.vertex1


@dataclass(frozen=True)
class AssemblyEmbedded:
    read_id: int
    read: str
    offset: int
    reversed: bool
    rate: float = 1.0
    consistent: bool = True


class Link(NamedTuple):
    """Edge between read ends, expressed with original read ids."""

    first_id: int
    first_is_start: bool
    second_id: int
    second_is_start: bool
    overlap: int
    rate: float = 1.0


def overlap_link(overlap: Overlap) -> Link:
    """Map a directed overlap onto the two read ends it joins.

    The ``from`` read leaves through its end (its start when reversed) and
    the ``to`` read is entered through its start (its end when reversed).
    """

    return Link(
        overlap.from_id,
        overlap.from_reversed,
        overlap.to_id,
        not overlap.to_reversed,
        overlap.length,
        overlap.rate,
    )


class AssemblyGraph:
    """Two vertices per surviving read, overlap edges and embedded reads."""

    def __init__(self, sequences: Sequence[str], original_ids: Sequence[int] | None = None) -> None:
        self.sequences = list(sequences)
        self.original_ids = (
            list(original_ids) if original_ids is not None else list(range(len(self.sequences)))
        )
        self._vertices: List[AssemblyVertex] = []
        for index in range(len(self.sequences)):
            self._vertices.append(AssemblyVertex(index, True))
            self._vertices.append(AssemblyVertex(index, False))
        self._edges: List[AssemblyEdge] = []
        self._adjacency: List[List[AssemblyEdge]] = [[] for _ in self._vertices]
        self._embedded: Dict[int, List[AssemblyEmbedded]] = {}

    @property
    def vertices(self) -> List[AssemblyVertex]:
        return list(self._vertices)

    @property
    def edges(self) -> List[AssemblyEdge]:
        return list(self._edges)

    def get_vertex(self, sequence_index: int, is_start: bool) -> AssemblyVertex:
        return self._vertices[2 * sequence_index + (0 if is_start else 1)]

    def get_edges(self, vertex: AssemblyVertex) -> List[AssemblyEdge]:
        return list(self._adjacency[vertex.index])

    def add_edge(
        self,
        vertex1: AssemblyVertex,
        vertex2: AssemblyVertex,
        overlap: int,
        rate: float = 1.0,
    ) -> AssemblyEdge:
        if vertex1.sequence_index == vertex2.sequence_index:
            raise ValueError(f"edge joins both ends of sequence {vertex1.sequence_index}")
        edge = AssemblyEdge(vertex1, vertex2, overlap, rate)
        self._edges.append(edge)
        self._adjacency[vertex1.index].append(edge)
        self._adjacency[vertex2.index].append(edge)
        return edge

    def add_embedded(self, sequence_index: int, embedded: AssemblyEmbedded) -> None:
        self._embedded.setdefault(sequence_index, []).append(embedded)

    def get_embedded(self, sequence_index: int) -> List[AssemblyEmbedded]:
        return list(self._embedded.get(sequence_index, []))

    def embedded_count(self) -> int:
        return sum(len(items) for items in self._embedded.values())

    def canonical(self) -> Tuple:
        """Order-independent description used for equality."""

        edges = sorted(
            (min(e.vertex1.index, e.vertex2.index), max(e.vertex1.index, e.vertex2.index), e.overlap, e.rate)
            for e in self._edges
        )
        embedded = {
            index: sorted((e.read_id, e.offset, e.reversed, e.rate, e.consistent) for e in items)
            for index, items in self._embedded.items()
            if items
        }
        return tuple(self.sequences), tuple(self.original_ids), tuple(edges), tuple(sorted(embedded.items()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssemblyGraph):
            return NotImplemented
        return self.canonical() == other.canonical()

    def __repr__(self) -> str:
        return (
            f"AssemblyGraph(sequences={len(self.sequences)}, edges={len(self._edges)}, "
            f"embedded={self.embedded_count()})"
        )

    def to_networkx(self) -> nx.MultiGraph:
        """Vertices keyed by their dense index; parallel edges are kept."""

        graph = nx.MultiGraph()
        for vertex in self._vertices:
            graph.add_node(
                vertex.index,
                sequence=vertex.sequence_index,
                read_id=self.original_ids[vertex.sequence_index],
                is_start=vertex.is_start,
            )
        for edge in self._edges:
            graph.add_edge(edge.vertex1.index, edge.vertex2.index, overlap=edge.overlap, rate=edge.rate)
        return graph

    def to_sparse(self) -> coo_matrix:
        """Symmetric vertex-by-vertex matrix of overlap lengths.

        Parallel edges become duplicate entries and are summed on conversion
        to CSR/CSC.
        """

        size = len(self._vertices)
        if not self._edges:
            return coo_matrix((size, size), dtype=int)
        rows: List[int] = []
        cols: List[int] = []
        data: List[int] = []
        for edge in self._edges:
            u, v = edge.vertex1.index, edge.vertex2.index
            rows.extend((u, v))
            cols.extend((v, u))
            data.extend((edge.overlap, edge.overlap))
        return coo_matrix((np.array(data), (np.array(rows), np.array(cols))), shape=(size, size))


def compaction_map(size: int, embedded_ids: Iterable[int]) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(index, keep)`` where ``index[i]`` is the compacted id of read ``i``.

    ``keep`` is 1 for surviving reads and 0 for embedded ones; the prefix
    sum of it, minus one, numbers the survivors densely in input order.
    """

    keep = np.ones(size, dtype=np.int64)
    ids = np.fromiter(embedded_ids, dtype=np.int64)
    if ids.size:
        keep[ids] = 0
    return np.cumsum(keep) - 1, keep.astype(bool)


def resolve_embedding(
    embedding: Embedding,
    embeddings: Mapping[int, Embedding],
    sequences: Sequence[str],
) -> Embedding | None:
    """Follow the parent chain until the container is not embedded itself.

    Offsets and orientation are composed along the way. Returns None when
    the chain loops back on itself.
    """

    seen = {embedding.embedded_id}
    inner_len = len(sequences[embedding.embedded_id])
    while embedding.parent_id in embeddings:
        outer = embeddings[embedding.parent_id]
        if outer.parent_id in seen:
            return None
        seen.add(outer.embedded_id)
        parent_len = len(sequences[embedding.parent_id])
        if outer.reversed:
            offset = outer.offset + parent_len - embedding.offset - inner_len
        else:
            offset = outer.offset + embedding.offset
        embedding = Embedding(
            embedding.embedded_id,
            outer.parent_id,
            offset,
            embedding.reversed != outer.reversed,
            min(embedding.rate, outer.rate),
        )
    return embedding


def build_assembly_graph(
    sequences: Sequence[str],
    embeddings: Mapping[int, Embedding],
    links: Iterable[Link],
    *,
    embedded_ids: Iterable[int] = (),
) -> AssemblyGraph:
    """Drop embedded reads, renumber the rest and wire embeddings and edges.

    Links touching an embedded read are discarded. An embedding whose end
    falls past its parent is still attached, flagged as inconsistent. One
    whose chain ends at a removed read without a record is skipped.
    """

    removed = set(embeddings) | set(embedded_ids)
    index, keep = compaction_map(len(sequences), removed)
    survivors = [int(i) for i in np.flatnonzero(keep)]
    graph = AssemblyGraph([sequences[i] for i in survivors], original_ids=survivors)

    for embedded_id in sorted(embeddings):
        embedding = resolve_embedding(embeddings[embedded_id], embeddings, sequences)
        if embedding is None:
            logger.warning("Embedding of sequence %d forms a cycle; skipped", embedded_id)
            continue
        if not keep[embedding.parent_id]:
            logger.warning(
                "Sequence %d is embedded in removed sequence %d with no container of its own; skipped",
                embedded_id,
                embedding.parent_id,
            )
            continue
        read = sequences[embedded_id]
        parent_len = len(sequences[embedding.parent_id])
        consistent = embedding.offset >= 0 and embedding.offset + len(read) <= parent_len
        if not consistent:
            warnings.warn(
                f"sequence {embedded_id} (length {len(read)}) embedded in {embedding.parent_id} "
                f"at offset {embedding.offset} exceeds parent length {parent_len}",
                EmbeddingConsistencyWarning,
                stacklevel=2,
            )
        graph.add_embedded(
            int(index[embedding.parent_id]),
            AssemblyEmbedded(
                read_id=embedded_id,
                read=read,
                offset=embedding.offset,
                reversed=embedding.reversed,
                rate=embedding.rate,
                consistent=consistent,
            ),
        )

    total = kept = 0
    for link in links:
        total += 1
        if not keep[link.first_id] or not keep[link.second_id]:
            continue
        graph.add_edge(
            graph.get_vertex(int(index[link.first_id]), link.first_is_start),
            graph.get_vertex(int(index[link.second_id]), link.second_is_start),
            link.overlap,
            link.rate,
        )
        kept += 1

    logger.info(
        "Built graph: %d sequences, %d embedded, %d/%d overlaps kept",
        len(survivors),
        len(removed),
        kept,
        total,
    )
    return graph
