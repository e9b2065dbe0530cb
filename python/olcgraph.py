"""Command line entrypoint for overlap detection and assembly graph construction."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Sequence

from Bio import SeqIO

from olcgraph_core import (
    AssemblyGraph,
    CompactAssemblyGraph,
    GraphAssembler,
    OverlapConfiguration,
    SuffixArraySeedIndex,
    verify_edges,
)

FASTQ_SUFFIXES = {".fq", ".fastq"}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find overlaps and build the assembly graph")
    parser.add_argument("reads", type=Path, nargs="*", help="FASTA or FASTQ files with the reads")
    parser.add_argument(
        "--resume",
        type=Path,
        help="Build the graph from a saved snapshot instead of searching overlaps",
    )
    parser.add_argument("--snapshot", type=Path, help="Write a snapshot of the overlaps found")
    parser.add_argument("--edges-tsv", type=Path, help="Write the graph edges as TSV")
    parser.add_argument("--seed-length", type=int, help="Seed (k-mer) length")
    parser.add_argument("--seed-step", type=int, help="Distance between seeds")
    parser.add_argument("--max-shift", type=int, help="Diagonal tolerance between hits")
    parser.add_argument(
        "--substitution-rate",
        type=float,
        default=None,
        help="Derive seed parameters from this substitution rate",
    )
    parser.add_argument(
        "--indel-rate",
        type=float,
        default=None,
        help="Derive seed parameters from this indel rate",
    )
    parser.add_argument(
        "--verify",
        type=float,
        metavar="MAX_DIFF",
        help="Check overlap regions with a normalised Damerau-Levenshtein threshold",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=1,
        help="Worker threads for the overlap search (1 disables threading)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress details")
    args = parser.parse_args(argv)
    if not args.reads and args.resume is None:
        parser.error("either read files or --resume is required")
    return args


def load_reads(paths: Sequence[Path]) -> List[str]:
    sequences: List[str] = []
    for path in paths:
        fmt = "fastq" if path.suffix.lower() in FASTQ_SUFFIXES else "fasta"
        for record in SeqIO.parse(path, fmt):
            sequences.append(str(record.seq.upper()))
    return sequences


def build_configuration(args: argparse.Namespace) -> OverlapConfiguration:
    overrides = {
        name: value
        for name, value in (
            ("seed_length", args.seed_length),
            ("seed_step", args.seed_step),
            ("max_diagonal_shift", args.max_shift),
        )
        if value is not None
    }
    if args.substitution_rate is not None or args.indel_rate is not None:
        return OverlapConfiguration.from_error_rates(
            args.substitution_rate if args.substitution_rate is not None else 0.02,
            args.indel_rate if args.indel_rate is not None else 0.01,
            **overrides,
        )
    return OverlapConfiguration(**overrides)


def write_edges(path: Path, graph: AssemblyGraph) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write("read1\tend1\tread2\tend2\toverlap\trate\n")
        for edge in graph.edges:
            v1, v2 = edge.vertex1, edge.vertex2
            handle.write(
                f"{graph.original_ids[v1.sequence_index]}\t{'start' if v1.is_start else 'end'}\t"
                f"{graph.original_ids[v2.sequence_index]}\t{'start' if v2.is_start else 'end'}\t"
                f"{edge.overlap}\t{edge.rate:.4f}\n"
            )


def print_progress(done: int, total: int) -> None:
    width = 50
    filled = int(width * done / total) if total else width
    print(f"\r[{'#' * filled}{' ' * (width - filled)}] {100 * done / max(total, 1):6.2f}%", end="", file=sys.stderr)
    if done == total:
        print(file=sys.stderr)


def run(args: argparse.Namespace) -> AssemblyGraph:
    if args.resume is not None:
        start = time.time()
        compact = CompactAssemblyGraph.load(args.resume)
        compact.remove_duplicated_embeddings()
        compact.remove_embedded_from_edges()
        graph = compact.build()
        search_time = 0.0
        build_time = time.time() - start
        reads_count = len(compact.sequences)
    else:
        reads = load_reads(args.reads)
        if not reads:
            raise RuntimeError("No reads were parsed from the supplied files")
        reads_count = len(reads)
        config = build_configuration(args)

        start = time.time()
        index = SuffixArraySeedIndex(
            reads, min_suffix_len=config.seed_length, key_length=config.seed_length
        )
        assembler = GraphAssembler(
            reads,
            index,
            config,
            progress=None if args.verbose else print_progress,
        )
        assembler.find_overlaps(use_threads=args.threads > 1, max_workers=max(args.threads, 1))
        search_time = time.time() - start

        start = time.time()
        graph = assembler.build()
        build_time = time.time() - start

        if args.snapshot is not None:
            assembler.to_compact().save(args.snapshot)

    print("Overlap graph complete")
    print(f"Reads processed       : {reads_count}")
    print(f"Surviving sequences   : {len(graph.sequences)}")
    print(f"Embedded sequences    : {graph.embedded_count()}")
    print(f"Edges                 : {len(graph.edges)}")
    print(f"Overlap search time   : {search_time:.3f}s")
    print(f"Graph build time      : {build_time:.3f}s")

    if args.verify is not None:
        accepted, rejected = verify_edges(graph, max_diff=args.verify)
        print(f"Verified edges        : {len(accepted)} ok, {len(rejected)} above {args.verify}")

    if args.edges_tsv is not None:
        write_edges(args.edges_tsv, graph)
    return graph


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run(args)


if __name__ == "__main__":
    main()
