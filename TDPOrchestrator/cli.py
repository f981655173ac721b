#!/bin/python
"""
Command-line entry point for a TDP (Test, Diagnose, Plan) run over GZoltar output.

Examples:
    python -m TDPOrchestrator .gzoltar/sfl/txt
    python -m TDPOrchestrator .gzoltar/sfl/txt --initial 1,5,7 --oracle recorded
    python -m TDPOrchestrator .gzoltar/sfl/txt --oracle maven --project-root .
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core.artifacts import prepare_artifacts, write_json
from .core.config import TDPConfig
from .core.events import JsonlEventWriter, LoggingObserver
from .core.orchestrator import TDPOrchestrator
from .core.utils import parse_selection, setup_logging
from .coverage import CoverageConfigError, CoverageSuite, load_gzoltar
from .diagnosis.goodness import goodness_table
from .diagnosis.ranking import rank_elements
from .discovery import DiscoveryError, JUnitSourceCatalog
from .execution import CommandOracle, ExecutionError, RecordedSuiteOracle, ScriptedOracle


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Diagnose failing tests and plan the most informative next test."
    )
    parser.add_argument(
        "gzoltar_dir",
        nargs="?",
        default=".gzoltar/sfl/txt",
        help="Directory with spectra.csv, tests.csv and matrix.txt (default: .gzoltar/sfl/txt)",
    )
    parser.add_argument(
        "--initial",
        type=str,
        default=None,
        help="Initial observations: comma-separated 1-based indices and/or test names (default: all tests)",
    )
    parser.add_argument("--max-iterations", type=int, default=10)
    parser.add_argument("--max-diagnoses", type=int, default=20)
    parser.add_argument(
        "--convergence-threshold",
        type=float,
        default=0.95,
        help="Stop once the best diagnosis reaches this probability; 1.0 requires a single diagnosis",
    )
    parser.add_argument("--max-candidates", type=int, default=10_000)
    parser.add_argument("--max-cardinality", type=int, default=None)
    parser.add_argument(
        "--oracle",
        choices=["recorded", "scripted", "maven", "gradle"],
        default="recorded",
        help="How planned tests get their outcome (default: replay recorded outcomes)",
    )
    parser.add_argument("--outcomes", type=str, default=None, help="JSON object {test: pass|fail} for --oracle scripted")
    parser.add_argument("--project-root", type=str, default=".", help="Build root for --oracle maven/gradle")
    parser.add_argument("--test-timeout", type=int, default=300, help="Seconds per build-tool test run")
    parser.add_argument("--oracle-timeout", type=float, default=None, help="Seconds to wait for any oracle answer")
    parser.add_argument("--test-root", type=str, default=None, help="Java test sources to list extra candidate tests")
    parser.add_argument("--workers", type=int, default=1, help="Threads for candidate scoring")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--work-dir", type=str, default="runs/tdp")
    parser.add_argument("--run-name", type=str, default=None, help="Label for the run directory and log lines")
    parser.add_argument("--log-dir", type=str, default="logs")
    parser.add_argument("--verbose", "-v", action="store_true", default=False)
    return parser


def _build_oracle(args: argparse.Namespace, suite: CoverageSuite):
    if args.oracle == "scripted":
        if not args.outcomes:
            raise ExecutionError("--oracle scripted requires --outcomes")
        return ScriptedOracle.from_json(args.outcomes)
    if args.oracle in ("maven", "gradle"):
        return CommandOracle(args.project_root, build_tool=args.oracle, timeout_seconds=args.test_timeout)
    return RecordedSuiteOracle(suite)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger = setup_logging("tdp", args.run_name or "tdp", log_dir=args.log_dir,
                           level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = TDPConfig(
            max_iterations=args.max_iterations,
            max_diagnoses=args.max_diagnoses,
            convergence_threshold=args.convergence_threshold,
            max_candidates=args.max_candidates,
            max_cardinality=args.max_cardinality,
            max_workers=args.workers,
            seed=args.seed,
            oracle_timeout_seconds=args.oracle_timeout,
            work_dir=args.work_dir,
        )
    except ValueError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2

    try:
        suite = load_gzoltar(args.gzoltar_dir)
    except CoverageConfigError as exc:
        logger.error(str(exc))
        return 2

    try:
        oracle = _build_oracle(args, suite)
    except (ExecutionError, ValueError) as exc:
        logger.error(str(exc))
        return 2

    artifacts = prepare_artifacts(config.resolved_work_dir(), label=args.run_name)
    write_json(artifacts.config_json, {**config.to_json_dict(), "gzoltar_dir": str(args.gzoltar_dir), "oracle": args.oracle})

    orchestrator = TDPOrchestrator(
        oracle,
        config=config,
        observers=[LoggingObserver(logger), JsonlEventWriter(artifacts.events_jsonl, meta={"gzoltar_dir": str(args.gzoltar_dir)})],
    )
    try:
        catalog = JUnitSourceCatalog(args.test_root) if args.test_root else None
        state = orchestrator.initialize(suite, parse_selection(args.initial), catalog=catalog)
    except (CoverageConfigError, DiscoveryError) as exc:
        logger.error(str(exc))
        return 2

    ranking = rank_elements(state.stats)
    write_json(artifacts.ranking_json, {
        "ochiai": [{"element": s.element, "score": s.score} for s in ranking],
        "goodness": goodness_table(state.stats),
    })
    for s in ranking[:5]:
        logger.info(f"Ochiai {s.score:.4f}  {s.element}")

    outcome = orchestrator.run(state)
    write_json(artifacts.outcome_json, outcome.to_json_dict())
    logger.info(f"Run artifacts written to {artifacts.run_dir}")

    if outcome.diagnosis is None:
        logger.info(f"No diagnosis: {outcome.detail}")
        return 1
    label = "Final diagnosis" if outcome.converged else "Best diagnosis (not converged)"
    logger.info(f"{label} [{outcome.diagnosis.probability:.3f}]: {list(outcome.diagnosis.sorted_components)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
