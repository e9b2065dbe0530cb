"""Overlap detection and assembly graph construction for OLC assembly."""

from .assembler import GraphAssembler
from .classifier import PairClassifier
from .compact import CompactAssemblyGraph, PersistenceError, vertex_id
from .config import OverlapConfiguration
from .diagonals import DiagonalAccumulator, DiagonalClusters
from .graph import (
    AssemblyEdge,
    AssemblyEmbedded,
    AssemblyGraph,
    AssemblyVertex,
    EmbeddingConsistencyWarning,
    build_assembly_graph,
    compaction_map,
    overlap_link,
)
from .records import DiagonalAlignment, Embedding, Overlap
from .seeds import SeedHit, SeedIndex, SeedIterator, SuffixArraySeedIndex
from .verification import normalised_damerau_levenshtein_distance, verify_edges

__all__ = [
    "GraphAssembler",
    "PairClassifier",
    "CompactAssemblyGraph",
    "PersistenceError",
    "vertex_id",
    "OverlapConfiguration",
    "DiagonalAccumulator",
    "DiagonalClusters",
    "AssemblyEdge",
    "AssemblyEmbedded",
    "AssemblyGraph",
    "AssemblyVertex",
    "EmbeddingConsistencyWarning",
    "build_assembly_graph",
    "compaction_map",
    "overlap_link",
    "DiagonalAlignment",
    "Embedding",
    "Overlap",
    "SeedHit",
    "SeedIndex",
    "SeedIterator",
    "SuffixArraySeedIndex",
    "normalised_damerau_levenshtein_distance",
    "verify_edges",
]
