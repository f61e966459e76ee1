"""Reconciliation workflow over the backend API.

This module coordinates the monthly import cycle:

1. Select or create a period
2. Classify and upload the bureau exports (normal files)
3. Check that all nine required (part, scheme) files are present
4. Process the period into summaries and per-person charges
5. Optionally upload adjustment files and merge their deltas
6. Export, reset or delete the period

The workflow holds a read-mostly cache of the selected period. It never
computes aggregates itself; every mutating call is followed by replacing the
affected cache entries with what the backend returns. Responses are tagged
with the period that was selected when the request was sent and are dropped
if the selection has changed in the meantime.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import structlog

from insurance_recon.actions import ActionKind, ActionTracker
from insurance_recon.clients.recon_api import ReconAPIClient, ReconAPIError
from insurance_recon.config import get_settings
from insurance_recon.domain import completeness
from insurance_recon.domain.classification import (
    BatchDraft,
    build_drafts,
    invalid_drafts,
    to_upload_items,
)
from insurance_recon.domain.display import ALL_DEPARTMENTS, GroupedRow, grouped_view
from insurance_recon.domain.errors import WorkflowValidationError
from insurance_recon.domain.types import (
    PART_LABELS,
    SCHEME_LABELS,
    BatchUploadItem,
    Part,
    Period,
    PeriodSummary,
    PersonalCharge,
    RequiredCombination,
    RosterEntry,
    Scheme,
    SchemeChargeDetail,
    SourceFile,
    UnitCharge,
)
from insurance_recon.notices import NoticeBoard

logger = structlog.get_logger(__name__)

T = TypeVar("T")

YEAR_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class PeriodView:
    """Cached backend state for one period."""

    period_id: int | None = None
    files: list[SourceFile] = field(default_factory=list)
    summary: list[PeriodSummary] = field(default_factory=list)
    personal: list[PersonalCharge] = field(default_factory=list)
    unit: list[UnitCharge] = field(default_factory=list)
    roster: list[RosterEntry] = field(default_factory=list)

    def clear_aggregates(self) -> None:
        self.summary = []
        self.personal = []
        self.unit = []


@dataclass
class BatchOutcome:
    """Per-file results of one batch upload."""

    items: list[BatchUploadItem]

    @property
    def succeeded(self) -> list[BatchUploadItem]:
        return [item for item in self.items if item.succeeded]

    @property
    def failed(self) -> list[BatchUploadItem]:
        return [item for item in self.items if not item.succeeded]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)


@dataclass
class SchemeDetailView:
    scheme: Scheme
    part: Part
    is_adjustment: bool | None = None
    rows: list[SchemeChargeDetail] = field(default_factory=list)


def charges_export_name(year_month: str | None, part: Part) -> str:
    return f"{year_month or 'period'}-{PART_LABELS[part]}扣款明细.xlsx"


def scheme_export_name(year_month: str | None, scheme: Scheme, part: Part) -> str:
    return f"{year_month or 'period'}-{SCHEME_LABELS[scheme]}-{PART_LABELS[part]}明细.xlsx"


def validate_year_month(year_month: str) -> str:
    """Return the trimmed YYYY-MM value.

    Raises:
        WorkflowValidationError: if the value is empty or malformed.
    """
    value = year_month.strip()
    if not value:
        raise WorkflowValidationError("请选择账期")
    if not YEAR_MONTH_PATTERN.match(value):
        raise WorkflowValidationError(f"账期格式应为 YYYY-MM: {value}")
    return value


# =============================================================================
# WORKFLOW
# =============================================================================


class ReconciliationWorkflow:
    """Client-side coordinator of the period import cycle."""

    def __init__(
        self,
        api_client: ReconAPIClient,
        notices: NoticeBoard | None = None,
        export_dir: Path | None = None,
    ):
        self._api = api_client
        self.notices = notices or NoticeBoard()
        self.actions = ActionTracker()
        self._export_dir = export_dir or Path(get_settings().export_dir)
        self._logger = logger.bind(component="reconciliation_workflow")

        self.periods: list[Period] = []
        self.selected_period_id: int | None = None
        self.view = PeriodView()
        self.drafts: list[BatchDraft] = []
        self.adjustment_uploads: list[tuple[str, bytes]] = []
        self.scheme_detail: SchemeDetailView | None = None

        # Bumped per period-data load so only the latest load applies
        self._load_seq = 0

    # === Derived state ===

    @property
    def selected_period(self) -> Period | None:
        for period in self.periods:
            if period.id == self.selected_period_id:
                return period
        return None

    @property
    def normal_files(self) -> list[SourceFile]:
        return completeness.normal_files(self.view.files)

    @property
    def adjustment_files(self) -> list[SourceFile]:
        return completeness.adjustment_files(self.view.files)

    @property
    def missing_uploads(self) -> list[RequiredCombination]:
        return completeness.missing_uploads(self.view.files)

    @property
    def can_process(self) -> bool:
        return completeness.can_process(self.view.files)

    @property
    def can_process_adjustments(self) -> bool:
        return completeness.can_process_adjustments(self.view.files)

    def personal_rows(
        self, search_text: str = "", department: str = ALL_DEPARTMENTS
    ) -> list[GroupedRow[PersonalCharge]]:
        return grouped_view(self.view.personal, search_text, department)

    def unit_rows(
        self, search_text: str = "", department: str = ALL_DEPARTMENTS
    ) -> list[GroupedRow[UnitCharge]]:
        return grouped_view(self.view.unit, search_text, department)

    # === Internal helpers ===

    def _is_current(self, period_id: int) -> bool:
        return self.selected_period_id == period_id

    def _discard_stale(self, action: ActionKind, period_id: int) -> bool:
        """True (and logged) when the selection moved away from period_id."""
        if self._is_current(period_id):
            return False
        self._logger.info(
            "stale_response_discarded",
            action=action.value,
            period_id=period_id,
            selected_period_id=self.selected_period_id,
        )
        return True

    def _require_period(self, action: ActionKind) -> int | None:
        if self.selected_period_id is None:
            self.notices.info("请先选择账期", action=action.value)
            return None
        return self.selected_period_id

    def _can_start(self, action: ActionKind, period_id: int | None = None) -> bool:
        if self.actions.is_in_flight(action):
            self.notices.info("操作进行中，请稍候", action=action.value, period_id=period_id)
            return False
        return True

    def _report_failure(
        self,
        action: ActionKind,
        error: Exception,
        fallback: str,
        period_id: int | None = None,
    ) -> None:
        message = str(error) or fallback
        self._logger.warning(
            "action_failed", action=action.value, period_id=period_id, error=message
        )
        self.notices.error(message, action=action.value, period_id=period_id)

    async def _soft(self, call: Awaitable[list[T]], collaborator: str, period_id: int) -> list[T]:
        """Await a non-essential fetch, falling back to an empty list."""
        try:
            return await call
        except ReconAPIError as exc:
            self._logger.warning(
                "soft_fetch_failed",
                collaborator=collaborator,
                period_id=period_id,
                error=str(exc),
            )
            return []

    async def _fetch_aggregates(
        self, period_id: int
    ) -> tuple[list[PeriodSummary], list[PersonalCharge], list[UnitCharge]]:
        summary, personal, unit = await asyncio.gather(
            self._api.get_summary(period_id),
            self._api.get_personal_charges(period_id),
            self._api.get_unit_charges(period_id),
        )
        return summary, personal, unit

    def _replace_aggregates(
        self,
        period_id: int,
        summary: list[PeriodSummary],
        personal: list[PersonalCharge],
        unit: list[UnitCharge],
    ) -> None:
        """Replace cached aggregates wholesale; never merge."""
        self.view.period_id = period_id
        self.view.summary = list(summary)
        self.view.personal = list(personal)
        self.view.unit = list(unit)

    # === Period registry ===

    async def load_periods(self) -> list[Period]:
        """Fetch periods and select the latest one if nothing is selected."""
        action = ActionKind.LOAD_PERIODS
        if not self._can_start(action):
            return self.periods
        try:
            async with self.actions.track(action):
                periods = await self._api.list_periods()
        except ReconAPIError as exc:
            self._logger.warning("periods_load_failed", error=str(exc))
            self.notices.error("加载账期失败", action=action.value)
            return self.periods

        self.periods = periods
        self._logger.info("periods_loaded", count=len(periods))
        if self.selected_period_id is None and periods:
            await self.select_period(periods[-1].id)
        return periods

    async def select_period(self, period_id: int | None) -> None:
        """Switch the selected period and load its data.

        Pending drafts and adjustment selections belong to the period they
        were picked for and are dropped on every switch.
        """
        self.selected_period_id = period_id
        self.scheme_detail = None
        self.drafts = []
        self.adjustment_uploads = []
        if period_id is None:
            self._load_seq += 1
            self.view = PeriodView()
            return
        await self.load_period_data()

    async def load_period_data(self) -> PeriodView | None:
        """Load files, aggregates and roster of the selected period.

        The file list is required; the other fetches fall back to empty
        lists so a missing endpoint does not block the rest.
        """
        action = ActionKind.LOAD_PERIOD_DATA
        period_id = self.selected_period_id
        if period_id is None:
            self.view = PeriodView()
            return None

        self._load_seq += 1
        seq = self._load_seq
        try:
            async with self.actions.track(action, supersede=True):
                files, summary, personal, unit, roster = await asyncio.gather(
                    self._api.list_files(period_id),
                    self._soft(self._api.get_summary(period_id), "summary", period_id),
                    self._soft(self._api.get_personal_charges(period_id), "personal", period_id),
                    self._soft(self._api.get_unit_charges(period_id), "unit", period_id),
                    self._soft(self._api.get_roster(period_id), "roster", period_id),
                )
        except ReconAPIError as exc:
            if seq != self._load_seq or self._discard_stale(action, period_id):
                return None
            self._logger.warning("period_data_load_failed", period_id=period_id, error=str(exc))
            self.notices.error("加载账期数据失败", action=action.value, period_id=period_id)
            self.view = PeriodView(period_id=period_id)
            return None

        if seq != self._load_seq or self._discard_stale(action, period_id):
            return None

        self.view = PeriodView(
            period_id=period_id,
            files=files,
            summary=summary,
            personal=personal,
            unit=unit,
            roster=roster,
        )
        self._logger.info(
            "period_data_loaded",
            period_id=period_id,
            files=len(files),
            summary=len(summary),
            personal=len(personal),
            unit=len(unit),
            roster=len(roster),
        )
        return self.view

    async def create_period(self, year_month: str) -> Period | None:
        action = ActionKind.CREATE_PERIOD
        try:
            value = validate_year_month(year_month)
        except WorkflowValidationError as exc:
            self.notices.info(str(exc), action=action.value)
            return None
        if not self._can_start(action):
            return None

        try:
            async with self.actions.track(action):
                created = await self._api.create_period(value)
                self.periods = await self._api.list_periods()
        except ReconAPIError as exc:
            self._report_failure(action, exc, "创建账期失败")
            return None

        self.notices.success(f"账期 {created.year_month} 已创建", action=action.value, period_id=created.id)
        await self.select_period(created.id)
        return created

    async def reset_period(self) -> bool:
        """Clear all files and results of the selected period on the server."""
        action = ActionKind.RESET
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return False

        try:
            async with self.actions.track(action):
                await self._api.reset_period(period_id)
                periods = await self._api.list_periods()
        except ReconAPIError as exc:
            self._report_failure(action, exc, "重置失败", period_id)
            return False

        self.notices.success("账期已重置，所有数据已清空", action=action.value, period_id=period_id)
        self.periods = periods
        if not self._discard_stale(action, period_id):
            self.view = PeriodView(period_id=period_id)
            self.drafts = []
            self.adjustment_uploads = []
            self.scheme_detail = None
        return True

    async def delete_period(self) -> bool:
        action = ActionKind.DELETE
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return False

        try:
            async with self.actions.track(action):
                await self._api.delete_period(period_id)
                periods = await self._api.list_periods()
        except ReconAPIError as exc:
            self._report_failure(action, exc, "删除失败", period_id)
            return False

        self.notices.success("账期已删除", action=action.value, period_id=period_id)
        self.periods = periods
        if self._is_current(period_id):
            await self.select_period(periods[0].id if periods else None)
        return True

    # === Classification intake ===

    def select_files(self, uploads: Iterable[tuple[str, bytes]]) -> list[BatchDraft]:
        """Start a new batch from (file name, content) pairs."""
        self.drafts = build_drafts(uploads)
        self._logger.debug(
            "drafts_created",
            count=len(self.drafts),
            unclassified=len(invalid_drafts(self.drafts)),
        )
        return self.drafts

    def select_paths(self, paths: Iterable[Path]) -> list[BatchDraft]:
        return self.select_files((path.name, path.read_bytes()) for path in paths)

    def update_draft(
        self,
        index: int,
        part: Part | None = None,
        scheme: Scheme | None = None,
    ) -> BatchDraft:
        """Override the guessed tag of one draft. None keeps the field."""
        draft = self.drafts[index]
        if part is not None:
            draft.part = part
        if scheme is not None:
            draft.scheme = scheme
        return draft

    def discard_drafts(self) -> None:
        self.drafts = []

    # === Upload coordinator ===

    def _report_failed_items(self, action: ActionKind, outcome: BatchOutcome, period_id: int) -> None:
        for item in outcome.failed:
            self.notices.error(
                f"{item.original_name}: {item.error}", action=action.value, period_id=period_id
            )

    async def _refresh_files(self, period_id: int) -> bool:
        files = await self._api.list_files(period_id)
        if self._discard_stale(ActionKind.LOAD_PERIOD_DATA, period_id):
            return False
        self.view.period_id = period_id
        self.view.files = files
        return True

    async def _refresh_after_upload(self, action: ActionKind, period_id: int) -> bool:
        """Refresh the file list once an upload imported something.

        A failed refresh is reported but does not fail the upload itself.
        """
        try:
            return await self._refresh_files(period_id)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "刷新文件列表失败", period_id)
            return False

    async def submit_batch(self) -> BatchOutcome | None:
        """Upload the classified drafts of the selected period.

        A failed request keeps the drafts for a retry. Per-file errors in a
        successful response are reported one by one; when at least one file
        was imported the file list is refreshed and the drafts are cleared.
        """
        action = ActionKind.BATCH_UPLOAD
        period_id = self._require_period(action)
        if period_id is None:
            return None
        if not self.drafts:
            self.notices.info("请先选择文件", action=action.value, period_id=period_id)
            return None
        try:
            items = to_upload_items(self.drafts)
        except WorkflowValidationError as exc:
            self.notices.error(str(exc), action=action.value, period_id=period_id)
            return None
        if not self._can_start(action, period_id):
            return None

        try:
            async with self.actions.track(action):
                results = await self._api.upload_files_batch(period_id, items)
                outcome = BatchOutcome(results)
                if outcome.success_count > 0:
                    self.notices.success(
                        f"成功上传 {outcome.success_count} 份文件",
                        action=action.value,
                        period_id=period_id,
                    )
                self._report_failed_items(action, outcome, period_id)
                if outcome.success_count > 0 and await self._refresh_after_upload(action, period_id):
                    self.drafts = []
        except ReconAPIError as exc:
            self._report_failure(action, exc, "批量上传失败", period_id)
            return None

        self._logger.info(
            "batch_upload_complete",
            period_id=period_id,
            succeeded=outcome.success_count,
            failed=len(outcome.failed),
        )
        return outcome

    def select_adjustment_files(self, uploads: Iterable[tuple[str, bytes]]) -> None:
        self.adjustment_uploads = list(uploads)

    def select_adjustment_paths(self, paths: Iterable[Path]) -> None:
        self.select_adjustment_files((path.name, path.read_bytes()) for path in paths)

    async def upload_adjustments(self) -> BatchOutcome | None:
        """Upload the selected adjustment files of the selected period.

        Any failed item turns the summary into an error notice; the success
        summary is posted only when every file was imported. The selection
        is cleared only after the refreshed file list has been applied.
        """
        action = ActionKind.ADJUSTMENT_UPLOAD
        period_id = self._require_period(action)
        if period_id is None:
            return None
        if not self.adjustment_uploads:
            self.notices.info("请先选择补退文件", action=action.value, period_id=period_id)
            return None
        if not self._can_start(action, period_id):
            return None

        try:
            async with self.actions.track(action):
                results = await self._api.upload_adjustments_batch(period_id, self.adjustment_uploads)
                outcome = BatchOutcome(results)
                if outcome.failed:
                    self.notices.error(
                        f"部分文件上传失败：{len(outcome.failed)} 个文件。"
                        f"成功上传：{outcome.success_count} 个文件。",
                        action=action.value,
                        period_id=period_id,
                    )
                else:
                    self.notices.success(
                        f"补退文件批量上传成功，共处理 {outcome.success_count} 个文件",
                        action=action.value,
                        period_id=period_id,
                    )
                self._report_failed_items(action, outcome, period_id)
                if outcome.success_count > 0 and await self._refresh_after_upload(action, period_id):
                    self.adjustment_uploads = []
        except ReconAPIError as exc:
            self._report_failure(action, exc, "补退文件上传失败", period_id)
            return None

        self._logger.info(
            "adjustment_upload_complete",
            period_id=period_id,
            succeeded=outcome.success_count,
            failed=len(outcome.failed),
        )
        return outcome

    async def clear_files(self) -> bool:
        """Remove the normal files of the selected period."""
        return await self._clear(ActionKind.CLEAR_FILES, self._api.clear_files, "社保文件已清空")

    async def clear_adjustments(self) -> bool:
        return await self._clear(
            ActionKind.CLEAR_ADJUSTMENTS, self._api.clear_adjustments, "补退文件已清空"
        )

    async def _clear(
        self,
        action: ActionKind,
        call: Callable[[int], Awaitable[dict[str, Any]]],
        success_message: str,
    ) -> bool:
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return False

        try:
            async with self.actions.track(action):
                await call(period_id)
                self.notices.success(success_message, action=action.value, period_id=period_id)
                if await self._refresh_files(period_id):
                    self.view.clear_aggregates()
        except ReconAPIError as exc:
            self._report_failure(action, exc, "清空失败", period_id)
            return False
        return True

    # === Processing ===

    async def process(self) -> bool:
        """Aggregate the selected period and replace the cached results."""
        action = ActionKind.PROCESS
        period_id = self._require_period(action)
        if period_id is None:
            return False
        if not self.can_process:
            labels = "、".join(combo.label for combo in self.missing_uploads)
            self.notices.info(f"缺少以下文件，无法处理：{labels}", action=action.value, period_id=period_id)
            return False
        if not self._can_start(action, period_id):
            return False

        try:
            async with self.actions.track(action):
                result = await self._api.process_period(period_id)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "处理失败", period_id)
            return False

        self.notices.success("数据处理成功", action=action.value, period_id=period_id)
        if self._discard_stale(action, period_id):
            return True
        self._replace_aggregates(period_id, result.summary, result.personal, result.unit)
        self._logger.info(
            "period_processed",
            period_id=period_id,
            summary=len(result.summary),
            personal=len(result.personal),
            unit=len(result.unit),
        )
        return True

    async def process_adjustments(self) -> bool:
        """Merge adjustment deltas on the server, then re-fetch the results.

        The merge endpoint does not return the aggregates, so summary,
        personal and unit charges are fetched again in three calls.
        """
        action = ActionKind.PROCESS_ADJUSTMENTS
        period_id = self._require_period(action)
        if period_id is None:
            return False
        if not self.can_process_adjustments:
            self.notices.info("请先上传补退文件", action=action.value, period_id=period_id)
            return False
        if not self._can_start(action, period_id):
            return False

        try:
            async with self.actions.track(action):
                await self._api.process_adjustments(period_id)
                self.notices.success(
                    "补退数据处理完成，已累加到现有扣款明细中",
                    action=action.value,
                    period_id=period_id,
                )
                summary, personal, unit = await self._fetch_aggregates(period_id)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "补退数据处理失败", period_id)
            return False

        if self._discard_stale(action, period_id):
            return True
        self._replace_aggregates(period_id, summary, personal, unit)
        self._logger.info(
            "adjustments_processed",
            period_id=period_id,
            summary=len(summary),
            personal=len(personal),
            unit=len(unit),
        )
        return True

    # === Scheme detail ===

    async def show_scheme_charges(
        self, scheme: Scheme, part: Part, is_adjustment: bool | None = None
    ) -> SchemeDetailView | None:
        action = ActionKind.SCHEME_DETAIL
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return None

        detail = SchemeDetailView(scheme=scheme, part=part, is_adjustment=is_adjustment)
        self.scheme_detail = detail
        try:
            async with self.actions.track(action):
                detail.rows = await self._api.get_scheme_charges(period_id, scheme, part, is_adjustment)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "获取明细失败", period_id)
            return None

        if self._discard_stale(action, period_id) or self.scheme_detail is not detail:
            return None
        return detail

    # === Exports ===

    def _write_export(self, file_name: str, content: bytes) -> Path:
        self._export_dir.mkdir(parents=True, exist_ok=True)
        target = self._export_dir / file_name
        target.write_bytes(content)
        return target

    async def export_charges(self, part: Part) -> Path | None:
        """Download the charge spreadsheet of one part into the export dir."""
        action = ActionKind.EXPORT
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return None
        year_month = self.selected_period.year_month if self.selected_period else None

        try:
            async with self.actions.track(action):
                content = await self._api.download_charges_excel(period_id, part)
                target = self._write_export(charges_export_name(year_month, part), content)
        except (ReconAPIError, OSError) as exc:
            self._report_failure(action, exc, "导出失败", period_id)
            return None

        self.notices.success(f"{PART_LABELS[part]}扣款明细已导出", action=action.value, period_id=period_id)
        self._logger.info("charges_exported", period_id=period_id, part=part.value, path=str(target))
        return target

    async def export_scheme_charges(self, scheme: Scheme, part: Part) -> Path | None:
        action = ActionKind.SCHEME_EXPORT
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return None
        year_month = self.selected_period.year_month if self.selected_period else None

        try:
            async with self.actions.track(action):
                content = await self._api.download_scheme_charges_excel(period_id, scheme, part)
                target = self._write_export(scheme_export_name(year_month, scheme, part), content)
        except (ReconAPIError, OSError) as exc:
            self._report_failure(action, exc, "导出失败", period_id)
            return None

        self.notices.success(
            f"{SCHEME_LABELS[scheme]}-{PART_LABELS[part]}明细已导出",
            action=action.value,
            period_id=period_id,
        )
        return target

    # === Roster ===

    async def upload_roster(self, file_name: str, content: bytes) -> int | None:
        action = ActionKind.ROSTER_UPLOAD
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return None

        try:
            async with self.actions.track(action):
                imported = await self._api.upload_roster(period_id, file_name, content)
                roster = await self._api.get_roster(period_id)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "花名册上传失败", period_id)
            return None

        self.notices.success(f"花名册已导入 {imported} 条", action=action.value, period_id=period_id)
        if not self._discard_stale(action, period_id):
            self.view.roster = roster
        return imported

    async def import_latest_roster(self) -> int | None:
        action = ActionKind.ROSTER_IMPORT
        period_id = self._require_period(action)
        if period_id is None or not self._can_start(action, period_id):
            return None

        try:
            async with self.actions.track(action):
                result = await self._api.import_latest_roster(period_id)
                roster = await self._api.get_roster(period_id)
        except ReconAPIError as exc:
            self._report_failure(action, exc, "一键导入失败", period_id)
            return None

        imported = int(result.get("imported", 0))
        self.notices.success(
            str(result.get("message") or f"花名册已导入 {imported} 条"),
            action=action.value,
            period_id=period_id,
        )
        if not self._discard_stale(action, period_id):
            self.view.roster = roster
        return imported

    async def download_roster_template(self, file_name: str = "花名册模板.xlsx") -> Path | None:
        action = ActionKind.ROSTER_TEMPLATE
        if not self._can_start(action):
            return None
        try:
            async with self.actions.track(action):
                content = await self._api.download_roster_template()
                target = self._write_export(file_name, content)
        except (ReconAPIError, OSError) as exc:
            self._report_failure(action, exc, "模板下载失败")
            return None
        self.notices.success("花名册模板已下载", action=action.value)
        return target

