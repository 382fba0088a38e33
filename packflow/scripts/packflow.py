#!/usr/bin/env python3
"""
packflow: run the packaging tasks declared in a YAML config

Usage:
  packflow --config packflow.yaml             # base dir = config's directory
  packflow --config packflow.yaml --workdir . # base dir = given directory

Exit status: 0 completed, 1 task failed, 2 usage error,
3 invalid configuration, 4 task failed with an I/O error.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional
import logging

from packflow import __version__
from packflow.core.configuration import ConfigurationLoader
from packflow.core.errors import ConfigurationError, ErrorKind
from packflow.core.models import RunReport, RunStatus
from packflow.core.orchestrator import TaskOrchestrator
from packflow.core.report import print_report
from packflow.utils.logging_config import LOGGER_NAME, default_level, setup_logging

EXIT_OK = 0
EXIT_TASK_FAILED = 1
EXIT_USAGE = 2
EXIT_CONFIG_INVALID = 3
EXIT_IO_ERROR = 4


def exit_code_for(report: RunReport) -> int:
    if report.status is RunStatus.COMPLETED:
        return EXIT_OK
    failed = report.failed
    if failed is not None and failed.error_kind is ErrorKind.IO_ERROR:
        return EXIT_IO_ERROR
    return EXIT_TASK_FAILED


def cmd_run(args: argparse.Namespace) -> int:
    setup_logging(
        level=args.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
        file_logging=not args.no_log_file,
    )
    log = logging.getLogger(LOGGER_NAME)
    log.info("starting packflow %s", __version__)

    try:
        loader = ConfigurationLoader(Path(args.config))
        tasks = loader.load_tasks()
        context = loader.resolve_context(args.workdir)
    except ConfigurationError as e:
        log.error("configuration invalid: %s", e)
        return EXIT_CONFIG_INVALID
    log.info("base directory: %s", context.base_dir)

    orchestrator = TaskOrchestrator(tasks, context, dry_run=args.dry_run)
    report = orchestrator.run()

    if args.report:
        print_report(report, tasks)
    if report.status is RunStatus.COMPLETED:
        log.info("All %d task(s) executed successfully!", len(tasks))
    else:
        failed = report.failed
        log.error(
            "run aborted at task %d (%s): %s",
            failed.index, failed.error_kind.value, failed.message,
        )
    return exit_code_for(report)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="packflow", description="Run declarative packaging tasks (copy / replace / run)")
    parser.add_argument("-c", "--config", required=True, help="Path to the YAML task configuration")
    parser.add_argument("-w", "--workdir", default=None, help="Base directory for relative paths (default: the config's directory)")
    parser.add_argument("--dry-run", action="store_true", default=False, help="Only load and list the tasks")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper, default=default_level())
    parser.add_argument("--log-file", default=None, help="Log file path (default: packflow_data/packflow.log)")
    parser.add_argument("--no-log-file", action="store_true", default=False, help="Log to the console only")
    parser.add_argument("--no-report", dest="report", action="store_false", default=True, help="Do not print the summary table")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.set_defaults(func=cmd_run)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
