"""Command line entry point: run a search variant against a reference.

Examples:
    beamwalk --variant beam_search --vertices 2000 --queries 50 --beam-width 32
    beamwalk --variant greedy_walk --shortest-path --vertices 500
    beamwalk --config my_config.json --graph graph.npz
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from beamwalk.config import SearchConfig, get_default_config
from beamwalk.datasets import make_proximity_graph, make_queries
from beamwalk.errors import BeamwalkError
from beamwalk.runner import BatchReport, Runner, make_variant
from beamwalk.search.graph import Graph

EXIT_PASS = 0
EXIT_MISMATCH = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beamwalk",
        description="Run a graph search variant and check it against an exact reference",
    )
    parser.add_argument("--variant", help="Search variant (beam_search, greedy_walk, iproduct_ubmk)")
    parser.add_argument("--config", help="JSON file with a SearchConfig")
    parser.add_argument("--graph", help="Graph .npz file written by Graph.save (default: synthetic)")

    data = parser.add_argument_group("synthetic dataset")
    data.add_argument("--vertices", type=int, default=1000, help="Number of vertices")
    data.add_argument("--dimension", type=int, default=16, help="Embedding dimension")
    data.add_argument("--degree", type=int, default=8, help="kNN degree before symmetrizing")
    data.add_argument("--queries", type=int, default=20, help="Number of queries")
    data.add_argument("--seed", type=int, default=None, help="Random seed")
    data.add_argument(
        "--shortest-path", action="store_true",
        help="Issue root/goal shortest-path queries instead of similarity queries",
    )

    search = parser.add_argument_group("search")
    search.add_argument("--metric", help="inner_product, l2 or cosine")
    search.add_argument("--beam-width", type=int, help="Beam width")
    search.add_argument("-k", type=int, help="Results per query")
    search.add_argument("--max-steps", type=int, help="Expansion cap per query")
    search.add_argument("--workers", type=int, help="Parallel workers")

    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def load_config(args: argparse.Namespace) -> SearchConfig:
    """Config file (or defaults) with command line overrides applied."""
    config = SearchConfig.from_json(args.config) if args.config else get_default_config()

    overrides = {
        "variant": args.variant,
        "metric": args.metric,
        "beam_width": args.beam_width,
        "k": args.k,
        "max_steps": args.max_steps,
        "workers": args.workers,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(config, **overrides)


def print_report(batch: BatchReport) -> None:
    for report in batch.reports:
        status = "PASS" if report.match else "FAIL"
        detail = (
            f"recall={report.recall:.3f} precision={report.precision:.3f} rr={report.reciprocal_rank:.3f}"
            if report.recall is not None
            else f"sse={report.error:.6g}"
        )
        if report.failure:
            detail += f" ({report.failure})"
        print(f"[{status}] query {report.index}: root={report.query.root} {detail}")

    summary = batch.summary()
    recall = "n/a" if summary["mean_recall"] is None else f"{summary['mean_recall']:.3f}"
    print(
        f"{summary['variant']}: {summary['matches']}/{summary['queries']} matched, "
        f"total_sse={summary['total_sse']:.6g}, mean_recall={recall}, "
        f"elapsed={summary['elapsed']:.3f}s"
    )
    print("PASSED" if batch.passed else "FAILED")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        config = load_config(args)
    except (ValueError, TypeError, OSError) as exc:
        # TypeError: unknown keys in a config file
        print(f"error: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        # Fail on an unknown variant before loading or generating any graph
        make_variant(config.variant, config)
        graph = Graph.load(args.graph) if args.graph else make_proximity_graph(
            args.vertices, dimension=args.dimension, degree=args.degree, seed=args.seed
        )
        runner = Runner(graph, config)
        queries = make_queries(
            graph,
            args.queries,
            k=config.k,
            with_embeddings=not args.shortest_path,
            seed=args.seed,
        )
        batch = runner.run_batch(queries)
    except (BeamwalkError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print_report(batch)
    return EXIT_PASS if batch.passed else EXIT_MISMATCH


if __name__ == "__main__":
    sys.exit(main())
