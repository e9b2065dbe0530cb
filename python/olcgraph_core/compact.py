"""Mergeable, persistable form of the assembly graph keyed by doubled read ids.

Read ``i`` owns vertex ids ``2*i`` (start) and ``2*i + 1`` (end). Edges found
by separate overlap passes are accumulated here and compacted once with
:meth:`CompactAssemblyGraph.build`.

Snapshot file structure (JSON)::

    {
        "version": 1,
        "sequences": ["ACGT...", ...],
        "edges": [[u, v, overlap, rate], ...],
        "embedded": [[parent, read, offset, reversed, rate], ...],
        "is_embedded": [read, ...]
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterator, NamedTuple, Sequence, Set, Tuple

from .graph import AssemblyGraph, Link, build_assembly_graph, overlap_link, resolve_embedding
from .records import Embedding, Overlap

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class PersistenceError(Exception):
    """A snapshot could not be written or read back."""


class EdgeInfo(NamedTuple):
    overlap: int
    rate: float


class EmbeddedInfo(NamedTuple):
    offset: int
    reversed: bool
    rate: float


def vertex_id(sequence_id: int, is_start: bool) -> int:
    return (sequence_id << 1) + (0 if is_start else 1)


class CompactAssemblyGraph:
    def __init__(self, sequences: Sequence[str]) -> None:
        self.sequences = sequences
        self.edges: Dict[int, Dict[int, EdgeInfo]] = {}
        self.embedded: Dict[int, Dict[int, EmbeddedInfo]] = {}
        self.embedded_ids: Set[int] = set()

    def _check_sequence(self, sequence_id: int) -> None:
        if not 0 <= sequence_id < len(self.sequences):
            raise ValueError(f"unknown sequence id {sequence_id}")

    def is_embedded(self, sequence_id: int) -> bool:
        return sequence_id in self.embedded_ids

    def embedded_count(self) -> int:
        return len(self.embedded_ids)

    def vertex_count(self) -> int:
        return len(self.edges)

    def edge_count(self) -> int:
        return sum(len(neighbours) for neighbours in self.edges.values()) // 2

    def add_edge(self, u: int, v: int, overlap: int, rate: float = 1.0) -> None:
        """Store an edge in both directions, replacing any edge between u and v."""

        self._check_sequence(u >> 1)
        self._check_sequence(v >> 1)
        if u >> 1 == v >> 1:
            raise ValueError(f"vertices {u} and {v} belong to the same sequence")
        info = EdgeInfo(int(overlap), float(rate))
        self.edges.setdefault(u, {})[v] = info
        self.edges.setdefault(v, {})[u] = info

    def add_embedded(
        self,
        parent_id: int,
        embedded_id: int,
        offset: int,
        reversed: bool = False,
        rate: float = 1.0,
    ) -> None:
        self._check_sequence(parent_id)
        self._check_sequence(embedded_id)
        if parent_id == embedded_id:
            raise ValueError(f"sequence {parent_id} cannot be embedded in itself")
        self.embedded_ids.add(embedded_id)
        self.embedded.setdefault(parent_id, {})[embedded_id] = EmbeddedInfo(
            int(offset), bool(reversed), float(rate)
        )

    def add_overlap(self, overlap: Overlap) -> None:
        link = overlap_link(overlap)
        self.add_edge(
            vertex_id(link.first_id, link.first_is_start),
            vertex_id(link.second_id, link.second_is_start),
            link.overlap,
            link.rate,
        )

    def add_embedding(self, embedding: Embedding) -> None:
        self.add_embedded(
            embedding.parent_id,
            embedding.embedded_id,
            embedding.offset,
            embedding.reversed,
            embedding.rate,
        )

    def merge(self, other: "CompactAssemblyGraph") -> None:
        """Fold the edges and embeddings of another pass over the same reads."""

        if len(other.sequences) != len(self.sequences):
            raise ValueError(
                f"cannot merge graphs over {len(other.sequences)} and {len(self.sequences)} sequences"
            )
        for u, neighbours in other.edges.items():
            for v, info in neighbours.items():
                if u < v:
                    self.add_edge(u, v, info.overlap, info.rate)
        for parent_id, children in other.embedded.items():
            for embedded_id, info in children.items():
                self.add_embedded(parent_id, embedded_id, info.offset, info.reversed, info.rate)
        self.embedded_ids |= other.embedded_ids

    def remove_embedded_from_edges(self) -> None:
        """Drop every edge endpoint that belongs to an embedded read."""

        for u in [u for u in self.edges if self.is_embedded(u >> 1)]:
            del self.edges[u]
        for neighbours in self.edges.values():
            for v in [v for v in neighbours if self.is_embedded(v >> 1)]:
                del neighbours[v]
        for u in [u for u, neighbours in self.edges.items() if not neighbours]:
            del self.edges[u]

    def embeddings(self) -> Dict[int, Embedding]:
        """One embedding per read; the lowest parent id wins."""

        found: Dict[int, Embedding] = {}
        for parent_id, children in sorted(self.embedded.items()):
            for embedded_id, info in children.items():
                if embedded_id not in found:
                    found[embedded_id] = Embedding(
                        embedded_id, parent_id, info.offset, info.reversed, info.rate
                    )
        return found

    def remove_duplicated_embeddings(self) -> None:
        """Keep the lowest parent id of every embedded read.

        Entries whose parent is itself embedded are moved onto the
        outermost non-embedded container.
        """

        records = self.embeddings()
        self.embedded = {}
        for embedded_id, record in records.items():
            resolved = resolve_embedding(record, records, self.sequences)
            if resolved is None:
                logger.warning("Embedding of sequence %d forms a cycle; dropped", embedded_id)
                continue
            self.embedded.setdefault(resolved.parent_id, {})[embedded_id] = EmbeddedInfo(
                resolved.offset, resolved.reversed, resolved.rate
            )

    def links(self) -> Iterator[Link]:
        for (u, v), info in self._edge_items():
            yield Link(u >> 1, (u & 1) == 0, v >> 1, (v & 1) == 0, info.overlap, info.rate)

    def build(self) -> AssemblyGraph:
        """Compact into the final graph; the compact form itself is left untouched."""

        return build_assembly_graph(
            self.sequences,
            self.embeddings(),
            self.links(),
            embedded_ids=self.embedded_ids,
        )

    def to_dict(self) -> Dict:
        return {
            "version": SNAPSHOT_VERSION,
            "sequences": [str(sequence) for sequence in self.sequences],
            "edges": [[u, v, info.overlap, info.rate] for (u, v), info in self._edge_items()],
            "embedded": [
                [parent_id, embedded_id, info.offset, info.reversed, info.rate]
                for parent_id, children in self.embedded.items()
                for embedded_id, info in children.items()
            ],
            "is_embedded": sorted(self.embedded_ids),
        }

    def _edge_items(self) -> Iterator[Tuple[Tuple[int, int], EdgeInfo]]:
        for u, neighbours in self.edges.items():
            for v, info in neighbours.items():
                if u < v:
                    yield (u, v), info

    @classmethod
    def from_dict(cls, data: Dict) -> "CompactAssemblyGraph":
        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise PersistenceError(f"unsupported snapshot version {version!r}")
        graph = cls(list(data["sequences"]))
        for u, v, overlap, rate in data["edges"]:
            graph.add_edge(int(u), int(v), overlap, rate)
        for parent_id, embedded_id, offset, reversed, rate in data["embedded"]:
            graph.add_embedded(int(parent_id), int(embedded_id), offset, reversed, rate)
        for embedded_id in data["is_embedded"]:
            graph._check_sequence(int(embedded_id))
            graph.embedded_ids.add(int(embedded_id))
        return graph

    def save(self, path: str | Path) -> None:
        """Write the snapshot next to ``path`` first, then move it into place."""

        path = Path(path)
        partial = path.with_name(path.name + ".partial")
        try:
            payload = json.dumps(self.to_dict())
            partial.write_text(payload, encoding="utf-8")
            os.replace(partial, path)
        except (OSError, TypeError, ValueError) as e:
            try:
                partial.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove partial snapshot %s", partial)
            raise PersistenceError(f"failed to save snapshot to {path}: {e}") from e
        logger.debug("Snapshot saved to %s", path)

    @classmethod
    def load(cls, path: str | Path) -> "CompactAssemblyGraph":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise PersistenceError(f"snapshot {path} is not a JSON object")
            return cls.from_dict(data)
        except PersistenceError:
            raise
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"failed to load snapshot from {path}: {e}") from e

    def __repr__(self) -> str:
        return (
            f"CompactAssemblyGraph(sequences={len(self.sequences)}, vertices={self.vertex_count()}, "
            f"edges={self.edge_count()}, embedded={self.embedded_count()})"
        )
