"""
Command line runner for declarative test plans.

Loads JSON plans, runs each one through an engine and prints a summary.
"""

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from api_test_engine.config import LOG_LEVEL
from api_test_engine.plan import (
    PlanConfig,
    PlanError,
    PlanLoader,
    build_engine,
    save_sample_plan,
)
from api_test_engine.utils.http_transport import HttpxTransport
from api_test_engine.utils.result_recorder import DispatchResult, ResultRecorder

logger = logging.getLogger(__name__)


def positive_float(value: str) -> float:
    """Argparse type for a strictly positive number of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration.

    Uses ``API_TEST_LOG_LEVEL`` unless ``verbose`` asks for DEBUG.
    """
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")


def load_plans(loader: PlanLoader, plan_paths: list[str]) -> dict[str, PlanConfig]:
    """Load plans from files and directories.

    Args:
        loader: Loader used for parsing
        plan_paths: Paths to plan files or directories

    Returns:
        Dictionary mapping plan names to plans
    """
    plans = {}
    for plan_path in plan_paths:
        path = Path(plan_path)
        if path.is_file():
            plan = loader.load_plan_file(path)
            plans[plan.name] = plan
        elif path.is_dir():
            plans.update(loader.load_plan_directory(path))
        else:
            logger.warning(f"Path not found: {plan_path}")
    return plans


async def run_plan(plan: PlanConfig, timeout: float | None = None) -> list[DispatchResult]:
    """Run a single plan and collect one result per endpoint.

    Args:
        plan: Plan to run
        timeout: Transport timeout overriding the plan's own

    Returns:
        Recorded dispatch results
    """
    engine = build_engine(plan)
    recorder = ResultRecorder()
    recorder.attach(engine)

    if timeout is None:
        timeout = plan.timeout

    async with HttpxTransport(timeout=timeout) as transport:
        recorder.mark_start()
        await engine.run(transport)

    return recorder.results


def print_summary(results: list[DispatchResult]) -> int:
    """Print results summary.

    Args:
        results: Dispatch results from every plan

    Returns:
        Process exit code, 1 when anything failed
    """
    if not results:
        print("No endpoints were dispatched.")
        return 0

    passed = sum(1 for r in results if r.success)
    failed = len(results) - passed

    print("\n" + "=" * 60)
    print("DISPATCH RESULTS SUMMARY")
    print("=" * 60)

    for result in results:
        print(result)
        if result.error:
            print(f"    Error: {result.error}")

    print(f"\nTotal: {len(results)} endpoints")
    print(f"Passed: {passed}")
    print(f"Failed: {failed}")

    if failed > 0:
        print(f"\n{failed} endpoint(s) failed!")
        return 1

    print("\nAll endpoints passed!")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the plan runner."""
    parser = argparse.ArgumentParser(description="Run hierarchical HTTP test plans")
    parser.add_argument(
        "plans",
        nargs="*",
        help="Test plan files or directories",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help="Transport timeout in seconds (default: taken from each plan)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate the plans, do not send any request",
    )
    parser.add_argument(
        "--write-sample",
        metavar="PATH",
        help="Write a sample plan to PATH and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.write_sample:
        save_sample_plan(args.write_sample)
        return 0

    if not args.plans:
        parser.error("at least one plan file or directory is required")

    loader = PlanLoader()
    try:
        plans = load_plans(loader, args.plans)
    except PlanError as e:
        print(f"Failed to load plans: {e}")
        return 1

    if not plans:
        print("No test plans found!")
        return 1

    for plan in plans.values():
        for issue in loader.validate_plan(plan):
            logger.warning(f"{plan.name}: {issue}")

    if args.check:
        print(f"Validated {len(plans)} plan(s)")
        return 0

    results = []
    try:
        for plan in plans.values():
            logger.info(f"Running plan: {plan.name}")
            results.extend(asyncio.run(run_plan(plan, args.timeout)))
    except KeyboardInterrupt:
        print("\nRun interrupted!")
        return 1

    return print_summary(results)


if __name__ == "__main__":
    sys.exit(main())
