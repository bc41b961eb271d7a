"""
Command line entry point.

    sitesync [daily|weekly|monthly]
    sitesync rollout status
    sitesync rollout deploy <phase>
    sitesync rollout adjust <phase> <percentage>
    sitesync report

Maintenance runs exit 0 iff no procedure failed or raised. Rollout
commands exit 0 iff the command was accepted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from sitesync.bootstrap import (
    build_orchestrator,
    build_report_store,
    build_rollout_controller,
    configure_logging,
)
from sitesync.config import Settings, get_settings
from sitesync.errors import ConfigurationError, NotFound, RolloutError, StoreIOError
from sitesync.models.rollout import RolloutPhase
from sitesync.schemas.report import MaintenanceReport, ProcedureStatus, ScheduleKind

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    ProcedureStatus.PASSED: "ok",
    ProcedureStatus.WARNING: "warn",
    ProcedureStatus.FAILED: "FAIL",
    ProcedureStatus.ERROR: "ERROR",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitesync", description="Cross-page maintenance for a documentation site")
    commands = parser.add_subparsers(dest="command")

    for schedule in ScheduleKind:
        commands.add_parser(schedule.value, help=f"Run {schedule.value} maintenance")

    rollout = commands.add_parser("rollout", help="Inspect or change phased rollout state")
    actions = rollout.add_subparsers(dest="action", required=True)
    actions.add_parser("status", help="Show every phase")
    deploy = actions.add_parser("deploy", help="Deploy a phase")
    deploy.add_argument("phase", type=int)
    adjust = actions.add_parser("adjust", help="Set the rollout percentage of a deployed phase")
    adjust.add_argument("phase", type=int)
    adjust.add_argument("percentage", type=int)

    commands.add_parser("report", help="Print the latest maintenance report")
    return parser


def print_report(report: MaintenanceReport) -> None:
    print(f"{report.schedule.value.capitalize()} maintenance {report.run_id}: {report.status}")
    for procedure in report.procedures:
        print(f"  [{STATUS_ICONS[procedure.status]:>5}] {procedure.name}: {procedure.message}")

    summary = report.summary
    print(
        f"{summary.procedures_run} procedures: {summary.passed} passed, {summary.warnings} warnings, "
        f"{summary.failed} failed, {summary.errors} errors"
    )
    if report.recommendations:
        print("Recommendations:")
        for rec in report.recommendations:
            print(f"  [{rec.priority.value}] {rec.category}: {rec.message}")
    if not report.persisted:
        print("Report could not be saved; see the log for details")


def print_phases(phases: Sequence[RolloutPhase]) -> None:
    for phase in phases:
        deployed = phase.deployed_at.isoformat() if phase.deployed_at else "-"
        print(
            f"Phase {phase.order}: {phase.name} [{phase.status.value}] "
            f"{phase.rollout_percentage}% deployed_at={deployed}"
        )


def run_rollout(args: argparse.Namespace, settings: Settings) -> int:
    controller = build_rollout_controller(settings)
    try:
        if args.action == "deploy":
            phase = controller.deploy(args.phase)
            print(f"Phase {phase.order} ({phase.name}) deployed at {phase.rollout_percentage}%")
        elif args.action == "adjust":
            phase = controller.adjust_rollout(args.phase, args.percentage)
            print(f"Phase {phase.order} ({phase.name}) rollout set to {phase.rollout_percentage}%")
        else:
            print_phases(controller.status())
    except (RolloutError, NotFound) as e:
        print(f"Rejected: {e}", file=sys.stderr)
        return 1
    return 0


def run_report(settings: Settings) -> int:
    report = build_report_store(settings).latest()
    if report is None:
        print(f"No maintenance report found in {settings.reports_path}")
        return 1
    print_report(report)
    return 0 if report.ok else 1


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list:
        args_list = [ScheduleKind.DAILY.value]
    args = build_parser().parse_args(args_list)

    settings = settings or get_settings()
    configure_logging(settings)

    try:
        if args.command == "rollout":
            return run_rollout(args, settings)
        if args.command == "report":
            return run_report(settings)

        report = build_orchestrator(settings).run(ScheduleKind(args.command))
    except (ConfigurationError, StoreIOError) as e:
        logger.error(f"{e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print_report(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
