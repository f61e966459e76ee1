"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("RECON_API_URL", "http://recon.test/api")
os.environ.setdefault("RECON_API_TOKEN", "test-token")

from insurance_recon.clients.recon_api import ReconAPIError  # noqa: E402
from insurance_recon.domain.completeness import REQUIRED_COMBINATIONS  # noqa: E402
from insurance_recon.domain.types import (  # noqa: E402
    BatchUploadItem,
    FileKind,
    Part,
    Period,
    PeriodSummary,
    PersonalCharge,
    ProcessResult,
    RosterEntry,
    Scheme,
    SchemeChargeDetail,
    SourceFile,
    UnitCharge,
)


def make_file(
    file_id: int,
    part: Part,
    scheme: Scheme,
    kind: FileKind = FileKind.NORMAL,
    period_id: int = 1,
) -> SourceFile:
    return SourceFile(
        id=file_id,
        period_id=period_id,
        scheme=scheme,
        part=part,
        kind=kind,
        rows=10,
        original_name=f"{part.value}-{scheme.value}.xlsx",
    )


def required_files(period_id: int = 1) -> list[SourceFile]:
    """One normal file for each of the nine required pairs."""
    return [
        make_file(index + 1, combo.part, combo.scheme, period_id=period_id)
        for index, combo in enumerate(REQUIRED_COMBINATIONS)
    ]


@dataclass
class FakeAPI:
    """In-memory stand-in for ReconAPIClient.

    ``failures`` maps a method name to the error it raises; ``hooks`` maps a
    method name to a callable run before the method returns.
    """

    periods: list[Period] = field(default_factory=list)
    files: dict[int, list[SourceFile]] = field(default_factory=dict)
    summary: dict[int, list[PeriodSummary]] = field(default_factory=dict)
    personal: dict[int, list[PersonalCharge]] = field(default_factory=dict)
    unit: dict[int, list[UnitCharge]] = field(default_factory=dict)
    roster: dict[int, list[RosterEntry]] = field(default_factory=dict)
    scheme_details: list[SchemeChargeDetail] = field(default_factory=list)
    batch_results: list[BatchUploadItem] = field(default_factory=list)
    files_after_upload: list[SourceFile] | None = None
    process_result: ProcessResult | None = None
    export_content: bytes = b"PK\x03\x04xlsx"
    failures: dict[str, Exception] = field(default_factory=dict)
    hooks: dict[str, Callable[[], None]] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    next_period_id: int = 100

    def _hit(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        hook = self.hooks.get(name)
        if hook is not None:
            hook()
        error = self.failures.get(name)
        if error is not None:
            raise error

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def __aenter__(self) -> "FakeAPI":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def list_periods(self) -> list[Period]:
        self._hit("list_periods")
        return list(self.periods)

    async def create_period(self, year_month: str) -> Period:
        self._hit("create_period", year_month)
        period = Period(id=self.next_period_id, year_month=year_month)
        self.next_period_id += 1
        self.periods.append(period)
        return period

    async def delete_period(self, period_id: int) -> dict[str, Any]:
        self._hit("delete_period", period_id)
        self.periods = [p for p in self.periods if p.id != period_id]
        return {"message": "deleted"}

    async def reset_period(self, period_id: int) -> dict[str, Any]:
        self._hit("reset_period", period_id)
        self.files[period_id] = []
        return {"message": "reset"}

    async def list_files(self, period_id: int) -> list[SourceFile]:
        self._hit("list_files", period_id)
        return list(self.files.get(period_id, []))

    async def upload_files_batch(self, period_id: int, items: Any) -> list[BatchUploadItem]:
        self._hit("upload_files_batch", period_id, items)
        if self.files_after_upload is not None:
            self.files[period_id] = list(self.files_after_upload)
        return list(self.batch_results)

    async def upload_adjustments_batch(self, period_id: int, uploads: Any) -> list[BatchUploadItem]:
        self._hit("upload_adjustments_batch", period_id, uploads)
        if self.files_after_upload is not None:
            self.files[period_id] = list(self.files_after_upload)
        return list(self.batch_results)

    async def clear_files(self, period_id: int) -> dict[str, Any]:
        self._hit("clear_files", period_id)
        self.files[period_id] = [f for f in self.files.get(period_id, []) if f.is_adjustment]
        return {"message": "cleared", "cleared": "normal"}

    async def clear_adjustments(self, period_id: int) -> dict[str, Any]:
        self._hit("clear_adjustments", period_id)
        self.files[period_id] = [f for f in self.files.get(period_id, []) if not f.is_adjustment]
        return {"message": "cleared", "cleared": "adjustment"}

    async def process_period(self, period_id: int) -> ProcessResult:
        self._hit("process_period", period_id)
        if self.process_result is not None:
            return self.process_result
        return ProcessResult(
            period_id=period_id,
            summary=list(self.summary.get(period_id, [])),
            personal=list(self.personal.get(period_id, [])),
            unit=list(self.unit.get(period_id, [])),
        )

    async def process_adjustments(self, period_id: int) -> dict[str, Any]:
        self._hit("process_adjustments", period_id)
        return {"period_id": period_id}

    async def get_summary(self, period_id: int) -> list[PeriodSummary]:
        self._hit("get_summary", period_id)
        return list(self.summary.get(period_id, []))

    async def get_personal_charges(self, period_id: int) -> list[PersonalCharge]:
        self._hit("get_personal_charges", period_id)
        return list(self.personal.get(period_id, []))

    async def get_unit_charges(self, period_id: int) -> list[UnitCharge]:
        self._hit("get_unit_charges", period_id)
        return list(self.unit.get(period_id, []))

    async def get_scheme_charges(
        self, period_id: int, scheme: Scheme, part: Part, is_adjustment: bool | None = None
    ) -> list[SchemeChargeDetail]:
        self._hit("get_scheme_charges", period_id, scheme, part, is_adjustment)
        return list(self.scheme_details)

    async def download_charges_excel(self, period_id: int, part: Part) -> bytes:
        self._hit("download_charges_excel", period_id, part)
        return self.export_content

    async def download_scheme_charges_excel(self, period_id: int, scheme: Scheme, part: Part) -> bytes:
        self._hit("download_scheme_charges_excel", period_id, scheme, part)
        return self.export_content

    async def get_roster(self, period_id: int) -> list[RosterEntry]:
        self._hit("get_roster", period_id)
        return list(self.roster.get(period_id, []))

    async def upload_roster(self, period_id: int, file_name: str, content: bytes) -> int:
        self._hit("upload_roster", period_id, file_name)
        self.roster[period_id] = [RosterEntry(name="张三", id_number="110101199001011234")]
        return 1

    async def import_latest_roster(self, period_id: int) -> dict[str, Any]:
        self._hit("import_latest_roster", period_id)
        return {"imported": 3, "message": "已导入 3 条"}

    async def download_roster_template(self) -> bytes:
        self._hit("download_roster_template")
        return self.export_content


@pytest.fixture
def fake_api():
    """FakeAPI with two periods; period 1 has all required files."""
    return FakeAPI(
        periods=[
            Period(id=1, year_month="2024-04", status="processed"),
            Period(id=2, year_month="2024-05", status="draft"),
        ],
        files={1: required_files(1), 2: []},
    )


@pytest.fixture
def api_error():
    return ReconAPIError("服务器错误", status_code=500)


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def sample_personal_charges():
    return [
        PersonalCharge(name="张三", id_number="110101199001011234", department="财务部",
                       subtotal=Decimal("-12.00"), is_adjustment=True),
        PersonalCharge(name="李四", id_number="110101199202022345", department="技术部",
                       subtotal=Decimal("350.10")),
        PersonalCharge(name="张三", id_number="110101199001011234", department="财务部",
                       subtotal=Decimal("420.50")),
    ]


@pytest.fixture
def mock_files_response():
    """Mock file list payload."""
    return [
        {
            "id": 1,
            "period_id": 1,
            "file_name": "a1b2.xlsx",
            "stored_path": "/data/a1b2.xlsx",
            "scheme": "pension",
            "part": "unit",
            "file_type": "normal",
            "rows": 120,
            "status": "imported",
            "original_name": "单位养老明细.xlsx",
            "uploaded_at": "2024-05-03T10:00:00Z",
        },
        {
            "id": 2,
            "period_id": 1,
            "file_name": "c3d4.xlsx",
            "stored_path": "/data/c3d4.xlsx",
            "scheme": "medical",
            "part": "personal",
            "rows": 118,
            "status": "imported",
            "original_name": "个人医疗明细.xlsx",
            "uploaded_at": "2024-05-03T10:01:00Z",
        },
    ]
