"""Command-line interface for psmckit.

Usage:
    psmckit maximize problem.yaml   Run one M-step and show the result
    psmckit info problem.yaml       Show problem information
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from argparse import Namespace


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="psmckit",
        description="Maximization step for piecewise-constant coalescent HMMs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  psmckit maximize step.yaml                     Re-estimate rates
  psmckit maximize step.yaml -p 1*4+25*2+1*4     Override the segment pattern
  psmckit maximize step.yaml --fixed-recombination -o step.final.txt
  psmckit info step.yaml                         Show problem structure
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # =========================================================================
    # maximize command
    # =========================================================================
    max_parser = subparsers.add_parser(
        "maximize",
        help="Run one maximization step",
        description="Load a problem file and re-estimate the model rates.",
    )
    max_parser.add_argument("problem", help="Problem file (.yaml)")
    max_parser.add_argument(
        "-p", "--time-segment-pattern",
        help="Segment pattern, e.g. 1*4+25*2+1*4 (default: from file)",
    )
    max_parser.add_argument(
        "--fixed-recombination",
        action="store_true",
        help="Hold the recombination rate at its prior value",
    )
    max_parser.add_argument(
        "--max-iter",
        type=int,
        default=None,
        help="Maximum optimizer iterations (default: scipy default)",
    )
    max_parser.add_argument(
        "--xtol",
        type=float,
        default=1e-4,
        help="Parameter tolerance for Powell (default: 1e-4)",
    )
    max_parser.add_argument(
        "--ftol",
        type=float,
        default=1e-4,
        help="Objective tolerance for Powell (default: 1e-4)",
    )
    max_parser.add_argument(
        "-o", "--output",
        help="Output file: .yaml/.yml for a problem-ready model, else a tab-separated table",
    )

    # =========================================================================
    # info command
    # =========================================================================
    info_parser = subparsers.add_parser(
        "info",
        help="Show problem information",
        description="Display the prior model, segment pattern and counts.",
    )
    info_parser.add_argument("problem", help="Problem file (.yaml)")

    return parser


def _get_version() -> str:
    """Get package version."""
    try:
        from psmckit._version import __version__

        return __version__
    except ImportError:
        return "unknown"


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_problem(problem_path: str):
    """Load problem from file; None on failure."""
    from psmckit.io import load_problem

    path = Path(problem_path)
    if not path.exists():
        print(f"Error: Problem file not found: {path}", file=sys.stderr)
        return None

    try:
        return load_problem(path)
    except Exception as e:
        print(f"Error loading problem: {e}", file=sys.stderr)
        return None


def cmd_maximize(args: Namespace) -> int:
    """Maximize command."""
    from psmckit.estimation import PowellOptimizer
    from psmckit.exceptions import PSMCKitError
    from psmckit.io import model_to_yaml, write_model_table

    if args.max_iter is not None and args.max_iter < 1:
        print("Error: --max-iter must be >= 1", file=sys.stderr)
        return 1
    if args.xtol <= 0.0 or args.ftol <= 0.0:
        print("Error: --xtol and --ftol must be > 0", file=sys.stderr)
        return 1

    print(f"Loading problem: {args.problem}")
    problem = _load_problem(args.problem)
    if problem is None:
        return 1

    try:
        problem = problem.with_options(
            time_segment_pattern=args.time_segment_pattern,
            fixed_recombination=True if args.fixed_recombination else None,
        )
        optimizer = PowellOptimizer(maxiter=args.max_iter, xtol=args.xtol, ftol=args.ftol)
        print("Running maximization step...")
        result = problem.solve(optimizer)
    except PSMCKitError as e:
        print(f"Error during maximization: {e}", file=sys.stderr)
        return 1

    print()
    print(result.summary())

    if args.output:
        out_path = Path(args.output)
        if out_path.suffix.lower() in (".yaml", ".yml"):
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(model_to_yaml(result.model, result.time_segment_pattern))
        else:
            write_model_table(result.model, out_path)
        print(f"\nModel saved to: {out_path}")

    return 0


def cmd_info(args: Namespace) -> int:
    """Info command."""
    from psmckit.model.pattern import format_time_segment_pattern

    print(f"Loading problem: {args.problem}")
    problem = _load_problem(args.problem)
    if problem is None:
        return 1

    model = problem.prior_model
    stats = problem.statistics

    print()
    print("=" * 50)
    print(f"PROBLEM: {problem.name}")
    print("=" * 50)
    print()

    print("Model:")
    print("-" * 30)
    print(f"  {'mutation_rate':<20} = {model.mutation_rate}")
    print(f"  {'recombination_rate':<20} = {model.recombination_rate}")
    print(f"  {'nr_states':<20} = {model.nr_states}")
    print()

    print("Time intervals:")
    print("-" * 30)
    bounds = model.time_intervals.boundaries
    for i, lam in enumerate(model.lambda_vec):
        print(f"  [{i:>3}] {bounds[i]:>12.6g} - {bounds[i + 1]:<12.6g} lambda = {lam:.6g}")
    print()

    print("Settings:")
    print("-" * 30)
    print(f"  Time segments:  {format_time_segment_pattern(problem.pattern)}")
    print(f"  Recombination:  {'fixed' if problem.fixed_recombination else 'estimated'}")
    print()

    print("Statistics:")
    print("-" * 30)
    print(f"  Transitions:    {stats.transitions.shape}, total = {stats.total_transitions:.6g}")
    print(f"  Emissions:      {stats.emissions.shape}, total = {stats.total_emissions:.6g}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)

    commands = {
        "maximize": cmd_maximize,
        "info": cmd_info,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
