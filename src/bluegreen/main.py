"""Command-line entry point: ``bluegreen-manager <jobName> [params] [--noop] [--force]``."""

from __future__ import annotations

import argparse
import logging
import shlex
import sys
from collections.abc import Sequence
from datetime import timedelta

from bluegreen.core.clock import SystemClock, ThreadSleeper
from bluegreen.core.config import AppSettings
from bluegreen.core.exceptions import CmdlineError, ConfigurationError
from bluegreen.core.logging_config import configure_logging
from bluegreen.jobs.factory import JobFactory, explain_jobs
from bluegreen.jobs.history_service import HistoryService
from bluegreen.models.history import JobStatus
from bluegreen.persistence import create_persistence
from bluegreen.tasks.dependencies import build_task_dependencies

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_CMDLINE_ERROR = 1
EXIT_PROCESSING_ERROR = 2


def parse_db_map(entries: Sequence[str] | None) -> dict[str, str]:
    """Turn ``["orders=orders-stage", ...]`` into a dict."""
    db_map: dict[str, str] = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise CmdlineError(f"--dbMap entry '{entry}' is not of the form liveLogicalName=stageInstanceName")
        db_map[key.strip()] = value.strip()
    return db_map


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bluegreen-manager",
        description="Runs blue-green deployment jobs against registered environments",
        epilog=explain_jobs(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("job_name", help="Job to run, see the list below")
    parser.add_argument("--liveEnv", dest="liveEnv")
    parser.add_argument("--stageEnv", dest="stageEnv")
    parser.add_argument("--oldLiveEnv", dest="oldLiveEnv")
    parser.add_argument("--newLiveEnv", dest="newLiveEnv")
    parser.add_argument("--fixedLbName", dest="fixedLbName")
    parser.add_argument("--dbMap", dest="dbMap", nargs="+", metavar="LOGICAL=INSTANCE",
                        help="Maps each live logical database to the stage rds instance name to create")
    parser.add_argument("--packages", dest="packages", nargs="+", metavar="PACKAGE",
                        help="stagingDeploy: packages to deploy that differ from the live env")
    parser.add_argument("--stopServices", dest="stopServices", nargs="+", metavar="SERVICE",
                        help="Teardown jobs: services to stop before the vm is deleted")
    parser.add_argument("--noop", action="store_true", help="Report what would be done, change nothing")
    parser.add_argument("--force", action="store_true", help="Rerun tasks a recent prior run finished")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def make_job_factory(settings: AppSettings) -> JobFactory:
    clock = SystemClock()
    history_store, environment_store = create_persistence(settings)
    history_service = HistoryService(store=history_store, clock=clock)
    deps = build_task_dependencies(settings, environment_store, ThreadSleeper())
    return JobFactory(
        history_service=history_service,
        environment_store=environment_store,
        deps=deps,
        clock=clock,
        max_age=timedelta(seconds=settings.job.max_age_relevant_prior_job_s),
    )


def run(argv: Sequence[str], settings: AppSettings | None = None,
        job_factory: JobFactory | None = None) -> int:
    """Parse ``argv``, run the job, and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # --help exits 0; argparse usage errors exit 2
        return EXIT_SUCCESS if exc.code == 0 else EXIT_CMDLINE_ERROR
    settings = settings or AppSettings()
    configure_logging(settings.log_level, verbose=args.verbose)
    command_line = shlex.join(["bluegreen-manager", *argv])
    logger.info("Command line: %s", command_line)

    try:
        params = {
            "liveEnv": args.liveEnv,
            "stageEnv": args.stageEnv,
            "oldLiveEnv": args.oldLiveEnv,
            "newLiveEnv": args.newLiveEnv,
            "fixedLbName": args.fixedLbName,
            "dbMap": parse_db_map(args.dbMap),
            "packages": args.packages or [],
            "stopServices": args.stopServices or [],
        }
        factory = job_factory or make_job_factory(settings)
        job = factory.make_job(args.job_name, params, command_line, noop=args.noop, force=args.force)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        print(f"\n{exc}\n", file=sys.stderr)
        return EXIT_CMDLINE_ERROR

    try:
        job.process()
    except Exception:
        logger.exception("Job %s failed", job.name)
        return EXIT_PROCESSING_ERROR
    return EXIT_SUCCESS if job.status == JobStatus.DONE else EXIT_PROCESSING_ERROR


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
