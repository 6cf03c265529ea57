"""
clout_trust/cli.py — Command-line interface for trust scoring.

Reads an allocation graph (JSON mapping or CSV of allocation records), runs
one of the engines and prints the result as JSON.

Usage:
    python -m clout_trust compute graph.json                 # production scores
    python -m clout_trust compute allocations.csv --points   # CSV, 0–100 points
    python -m clout_trust compare graph.json                 # standard vs modified
    python -m clout_trust grants apps.json --total-funding 50000 --minimum-grant 1000
    python -m clout_trust audit graph.json --algorithm standard

Exit codes: 0 success, 1 rejected input or failed computation, 2 usage error.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from clout_trust.config import TRUST_MODES, TrustConfig
from clout_trust.exceptions import TrustComputationError


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(level: str = "INFO") -> None:
    """Configure root logger with timestamps on stderr (stdout carries JSON)."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(level=numeric, format=fmt, datefmt=datefmt, stream=sys.stderr)


logger = logging.getLogger("clout_trust.cli")


# ── Shared helpers ────────────────────────────────────────────────────────────

def _load_graph(args: argparse.Namespace) -> dict:
    """Load the input file according to its extension."""
    from clout_trust.graph.builder import load_allocations_csv, load_graph_json

    path = args.input
    if path.lower().endswith(".csv"):
        return load_allocations_csv(
            path,
            giver_col=args.giver_col,
            receiver_col=args.receiver_col,
            weight_col=args.weight_col,
            points=args.points,
        )
    return load_graph_json(path)


def _build_config(args: argparse.Namespace) -> TrustConfig:
    overrides = {
        "decay_factor": args.decay_factor,
        "max_iterations": args.max_iterations,
        "convergence_threshold": args.threshold,
        "mode": getattr(args, "mode", None),
        "anchor_vertex": getattr(args, "anchor", None),
    }
    if args.command == "grants":
        overrides["grant_decay_factor"] = overrides.pop("decay_factor")
        overrides["grant_max_iterations"] = overrides.pop("max_iterations")
        overrides["grant_convergence_threshold"] = overrides.pop("convergence_threshold")
    return TrustConfig(**{k: v for k, v in overrides.items() if v is not None})


def _emit(payload, output: str | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        logger.info("Result written to: %s", output)
    else:
        print(text)


# ── Subcommand: compute ──────────────────────────────────────────────────────

def cmd_compute(args: argparse.Namespace) -> int:
    """Production computation: scores, ranks and display scores."""
    from clout_trust.engine import run_trust_computation

    graph = _load_graph(args)
    result = run_trust_computation(graph, _build_config(args))
    _emit(result.to_dict(), args.output)
    return 0 if result.success else 1


# ── Subcommand: compare ──────────────────────────────────────────────────────

def cmd_compare(args: argparse.Namespace) -> int:
    """Standard and modified scores side by side."""
    from clout_trust.engine import compare_trust_algorithms
    from clout_trust.graph.builder import mutual_trust_pairs

    graph = _load_graph(args)
    pairs = mutual_trust_pairs(graph)
    if pairs:
        logger.info("%d mutual trust pair(s) in the graph.", len(pairs))
    comparison = compare_trust_algorithms(graph, _build_config(args))
    _emit(comparison.to_dict(), args.output)
    return 0


# ── Subcommand: grants ───────────────────────────────────────────────────────

def cmd_grants(args: argparse.Namespace) -> int:
    """Rank grant applications and recommend funding."""
    from clout_trust.grants.allocation import compute_grant_allocations, funding_summary

    graph = _load_graph(args)
    allocations = compute_grant_allocations(
        graph, args.total_funding, args.minimum_grant, _build_config(args)
    )
    summary = funding_summary(allocations, args.total_funding, args.minimum_grant)
    _emit(
        {
            "allocations": [a.to_dict() for a in allocations],
            "summary": summary,
        },
        args.output,
    )
    return 0


# ── Subcommand: audit ────────────────────────────────────────────────────────

def cmd_audit(args: argparse.Namespace) -> int:
    """Self-exclusion audit; exit 1 if any giver can move its own score."""
    from clout_trust.propagation.audit import audit_self_exclusion, audit_summary

    graph = _load_graph(args)
    findings = audit_self_exclusion(
        graph,
        algorithm=args.algorithm,
        config=_build_config(args),
        seed=args.seed,
        random_variants=args.random_variants,
    )
    summary = audit_summary(findings)
    _emit(summary, args.output)
    return 0 if summary["passed"] else 1


# ── Argument parser ──────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clout-trust",
        description="EigenTrust-style trust scores for allocation graphs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Production scores (standard engine)
  python -m clout_trust compute graph.json

  # Decoupled engine from a CSV of 0-100 trust points
  python -m clout_trust compute allocations.csv --points --mode modified

  # Grant round recommendations
  python -m clout_trust grants apps.json --total-funding 50000 --minimum-grant 1000
        """,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # Shared flags for every subcommand
    def add_common_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", metavar="INPUT", help="Graph JSON or allocation CSV")
        p.add_argument("--giver-col", default="giver_id", metavar="COL",
                       help="CSV giver column (default: giver_id)")
        p.add_argument("--receiver-col", default="receiver_id", metavar="COL",
                       help="CSV receiver column (default: receiver_id)")
        p.add_argument("--weight-col", default="proportion", metavar="COL",
                       help="CSV weight column (default: proportion)")
        p.add_argument("--points", action="store_true",
                       help="CSV weights are trust points (0-100), not proportions")
        p.add_argument("--decay-factor", type=float, default=None, metavar="ALPHA",
                       help="Decay factor α in [0, 1] (default: 0.15)")
        p.add_argument("--max-iterations", type=int, default=None, metavar="N",
                       help="Iteration cap (default: 100)")
        p.add_argument("--threshold", type=float, default=None, metavar="EPS",
                       help="Convergence threshold (default: 1e-6)")
        p.add_argument("--output", default=None, metavar="PATH",
                       help="Write JSON here instead of stdout")

    p_compute = subparsers.add_parser("compute", help="Production trust scores")
    add_common_flags(p_compute)
    p_compute.add_argument("--mode", default=None, choices=list(TRUST_MODES),
                           help="Engine (default: standard)")
    p_compute.add_argument("--anchor", default=None, metavar="VERTEX",
                           help="Anchor vertex for --mode anchored")
    p_compute.set_defaults(func=cmd_compute)

    p_compare = subparsers.add_parser("compare", help="Standard vs modified scores")
    add_common_flags(p_compare)
    p_compare.set_defaults(func=cmd_compare)

    p_grants = subparsers.add_parser("grants", help="Grant funding recommendations")
    add_common_flags(p_grants)
    p_grants.add_argument("--total-funding", type=float, required=True, metavar="AMOUNT",
                          help="Round budget")
    p_grants.add_argument("--minimum-grant", type=float, default=0.0, metavar="AMOUNT",
                          help="Per-applicant minimum grant (default: 0)")
    p_grants.set_defaults(func=cmd_grants)

    p_audit = subparsers.add_parser("audit", help="Self-exclusion audit")
    add_common_flags(p_audit)
    p_audit.add_argument("--algorithm", default="modified", choices=["standard", "modified"],
                         help="Engine to audit (default: modified)")
    p_audit.add_argument("--seed", type=int, default=None,
                         help="Seed for random reallocations")
    p_audit.add_argument("--random-variants", type=int, default=5, metavar="N",
                         help="Random reallocations per vertex (default: 5)")
    p_audit.set_defaults(func=cmd_audit)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)
    try:
        return args.func(args)
    except (TrustComputationError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
