"""Command-line front end for the reconciliation workflow.

Usage:
    # List periods
    insurance-recon periods

    # Create a period and upload this month's bureau exports
    insurance-recon create 2024-05
    insurance-recon --period 2024-05 upload exports/*.xlsx

    # Check what is still missing, then process
    insurance-recon --period 2024-05 missing
    insurance-recon --period 2024-05 process

    # Merge adjustments and export the personal deductions
    insurance-recon --period 2024-05 upload-adjustments adjustments/*.xlsx
    insurance-recon --period 2024-05 process-adjustments
    insurance-recon --period 2024-05 export personal
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from insurance_recon.clients.recon_api import ReconAPIClient
from insurance_recon.config import configure_logging
from insurance_recon.domain.display import ALL_DEPARTMENTS, department_options, ordered_summary
from insurance_recon.domain.types import PART_LABELS, SCHEME_LABELS, Part, Scheme
from insurance_recon.notices import Notice, NoticeLevel
from insurance_recon.workflow import ReconciliationWorkflow

logger = structlog.get_logger(__name__)

NOTICE_PREFIX = {
    NoticeLevel.INFO: "[i]",
    NoticeLevel.SUCCESS: "[✓]",
    NoticeLevel.ERROR: "[✗]",
}


def _print_notice(notice: Notice) -> None:
    stream = sys.stderr if notice.level is NoticeLevel.ERROR else sys.stdout
    print(f"{NOTICE_PREFIX[notice.level]} {notice.message}", file=stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insurance-recon",
        description="Social-insurance payroll reconciliation client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--period", help="Period to work on (YYYY-MM, default: latest)")
    parser.add_argument("--api-url", help="Backend base URL (default: RECON_API_URL)")
    parser.add_argument("--export-dir", type=Path, help="Directory for downloaded spreadsheets")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("periods", help="List periods")
    create = sub.add_parser("create", help="Create a period")
    create.add_argument("year_month", help="YYYY-MM")
    sub.add_parser("files", help="List uploaded files")
    sub.add_parser("missing", help="Show required files not yet uploaded")

    upload = sub.add_parser("upload", help="Upload normal files in one batch")
    upload.add_argument("paths", nargs="+", type=Path)
    upload.add_argument("--part", choices=[p.value for p in Part], help="Override part for all files")
    upload.add_argument("--scheme", choices=[s.value for s in Scheme], help="Override scheme for all files")

    adjust = sub.add_parser("upload-adjustments", help="Upload adjustment files")
    adjust.add_argument("paths", nargs="+", type=Path)

    sub.add_parser("process", help="Process the period")
    sub.add_parser("process-adjustments", help="Merge adjustment deltas")
    sub.add_parser("summary", help="Show the period summary")

    charges = sub.add_parser("charges", help="Show grouped charges")
    charges.add_argument("part", choices=[p.value for p in Part])
    charges.add_argument("--search", default="", help="Name or ID number")
    charges.add_argument("--department", default=ALL_DEPARTMENTS)

    export = sub.add_parser("export", help="Export charges spreadsheet")
    export.add_argument("part", choices=[p.value for p in Part])

    export_scheme = sub.add_parser("export-scheme", help="Export one scheme's detail")
    export_scheme.add_argument("scheme", choices=[s.value for s in Scheme])
    export_scheme.add_argument("part", choices=[p.value for p in Part])

    sub.add_parser("reset", help="Clear all data of the period")
    sub.add_parser("delete", help="Delete the period")
    sub.add_parser("clear-files", help="Remove normal files")
    sub.add_parser("clear-adjustments", help="Remove adjustment files")

    roster = sub.add_parser("roster-upload", help="Upload an employee roster")
    roster.add_argument("path", type=Path)
    sub.add_parser("roster-import", help="Import the latest roster on file")
    sub.add_parser("roster-template", help="Download the roster template")

    return parser


def _print_periods(workflow: ReconciliationWorkflow) -> None:
    for period in workflow.periods:
        marker = "*" if period.id == workflow.selected_period_id else " "
        print(f"{marker} {period.year_month}  {period.status_label}")


def _print_files(workflow: ReconciliationWorkflow) -> None:
    for f in workflow.view.files:
        kind = "补退" if f.is_adjustment else "正常"
        print(
            f"{kind}  {PART_LABELS[f.part]}  {SCHEME_LABELS[f.scheme]:<6}  "
            f"{f.rows:>6} 行  {f.original_name}"
        )


def _print_missing(workflow: ReconciliationWorkflow) -> None:
    missing = workflow.missing_uploads
    if not missing:
        print("必需文件已齐全")
        return
    for combo in missing:
        print(f"缺少: {combo.label}")


def _print_summary(workflow: ReconciliationWorkflow) -> None:
    for row in ordered_summary(workflow.view.summary):
        tag = "补退" if row.is_adjustment else "    "
        print(
            f"{tag}  {SCHEME_LABELS[row.scheme]:<6}  {PART_LABELS[row.part]}  "
            f"{row.headcount:>5} 人  基数 {row.base_total:>14,.2f}  金额 {row.amount_total:>12,.2f}"
        )


def _print_charges(workflow: ReconciliationWorkflow, part: Part, search: str, department: str) -> None:
    if part is Part.PERSONAL:
        rows = workflow.personal_rows(search, department)
        departments = department_options(workflow.view.personal)
    else:
        rows = workflow.unit_rows(search, department)
        departments = department_options(workflow.view.unit)
    for row in rows:
        seq = str(row.sequence) if row.sequence is not None else ""
        tag = "补退" if row.charge.is_adjustment else ""
        charge = row.charge
        print(
            f"{seq:>4}  {charge.name:<8}  {charge.id_number:<18}  {charge.department:<10}  "
            f"{charge.subtotal:>10,.2f}  {tag}"
        )
    if departments:
        print(f"部门: {', '.join(departments)}")


async def _select_period(workflow: ReconciliationWorkflow, year_month: str | None) -> bool:
    await workflow.load_periods()
    if year_month is None:
        return workflow.selected_period_id is not None
    for period in workflow.periods:
        if period.year_month == year_month:
            if period.id != workflow.selected_period_id:
                await workflow.select_period(period.id)
            return True
    workflow.notices.error(f"账期 {year_month} 不存在")
    return False


async def run(args: argparse.Namespace) -> int:
    async with ReconAPIClient(base_url=args.api_url) as api:
        workflow = ReconciliationWorkflow(api, export_dir=args.export_dir)
        workflow.notices.subscribe(_print_notice)

        command = args.command
        if command == "create":
            await workflow.load_periods()
            await workflow.create_period(args.year_month)
            return 1 if workflow.notices.errors() else 0

        if command == "roster-template":
            path = await workflow.download_roster_template()
            if path:
                print(path)
            return 1 if workflow.notices.errors() else 0

        if not await _select_period(workflow, args.period) and command != "periods":
            if not workflow.notices.errors():
                workflow.notices.info("暂无账期，请先创建")
            return 1

        if command == "periods":
            _print_periods(workflow)
        elif command == "files":
            _print_files(workflow)
        elif command == "missing":
            _print_missing(workflow)
        elif command == "upload":
            workflow.select_paths(args.paths)
            for index in range(len(workflow.drafts)):
                workflow.update_draft(
                    index,
                    part=Part(args.part) if args.part else None,
                    scheme=Scheme(args.scheme) if args.scheme else None,
                )
            await workflow.submit_batch()
            _print_missing(workflow)
        elif command == "upload-adjustments":
            workflow.select_adjustment_paths(args.paths)
            await workflow.upload_adjustments()
        elif command == "process":
            if await workflow.process():
                _print_summary(workflow)
        elif command == "process-adjustments":
            if await workflow.process_adjustments():
                _print_summary(workflow)
        elif command == "summary":
            _print_summary(workflow)
        elif command == "charges":
            _print_charges(workflow, Part(args.part), args.search, args.department)
        elif command == "export":
            path = await workflow.export_charges(Part(args.part))
            if path:
                print(path)
        elif command == "export-scheme":
            path = await workflow.export_scheme_charges(Scheme(args.scheme), Part(args.part))
            if path:
                print(path)
        elif command == "reset":
            await workflow.reset_period()
        elif command == "delete":
            await workflow.delete_period()
        elif command == "clear-files":
            await workflow.clear_files()
        elif command == "clear-adjustments":
            await workflow.clear_adjustments()
        elif command == "roster-upload":
            await workflow.upload_roster(args.path.name, args.path.read_bytes())
        elif command == "roster-import":
            await workflow.import_latest_roster()

        return 1 if workflow.notices.errors() else 0


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130
    except OSError as e:
        logger.error("cli_error", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
