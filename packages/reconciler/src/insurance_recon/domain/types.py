"""Domain types for social-insurance reconciliation.

Backend payloads arrive as JSON dictionaries; the ``from_dict`` constructors
below turn them into typed records. Amounts are kept as ``Decimal`` so that
totals shown to the user never pick up float noise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class Part(str, Enum):
    """Who pays the contribution."""

    PERSONAL = "personal"
    UNIT = "unit"


class Scheme(str, Enum):
    """Insurance schemes reported by the social-security bureau."""

    PENSION = "pension"
    MEDICAL = "medical"
    SERIOUS_ILLNESS = "serious_illness"
    UNEMPLOYMENT = "unemployment"
    INJURY = "injury"


class PeriodStatus(str, Enum):
    """Lifecycle of an accounting period. Driven by the backend only."""

    DRAFT = "draft"
    PROCESSING = "processing"
    PROCESSED = "processed"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class FileKind(str, Enum):
    NORMAL = "normal"
    ADJUSTMENT = "adjustment"


PART_LABELS: dict[Part, str] = {
    Part.PERSONAL: "个人",
    Part.UNIT: "单位",
}

SCHEME_LABELS: dict[Scheme, str] = {
    Scheme.PENSION: "养老保险",
    Scheme.MEDICAL: "医疗保险",
    Scheme.SERIOUS_ILLNESS: "大额医疗",
    Scheme.UNEMPLOYMENT: "失业保险",
    Scheme.INJURY: "工伤保险",
}

STATUS_LABELS: dict[str, str] = {
    PeriodStatus.DRAFT.value: "草稿",
    PeriodStatus.PROCESSING.value: "处理中",
    PeriodStatus.PROCESSED.value: "已处理",
    PeriodStatus.COMPLETED.value: "已完成",
    PeriodStatus.ARCHIVED.value: "已归档",
}

# Display order for summary tables
SCHEME_ORDER: tuple[Scheme, ...] = (
    Scheme.PENSION,
    Scheme.MEDICAL,
    Scheme.SERIOUS_ILLNESS,
    Scheme.UNEMPLOYMENT,
    Scheme.INJURY,
)

# Injury insurance is paid by the employer only
ALLOWED_PARTS: dict[Scheme, tuple[Part, ...]] = {
    Scheme.PENSION: (Part.PERSONAL, Part.UNIT),
    Scheme.MEDICAL: (Part.PERSONAL, Part.UNIT),
    Scheme.SERIOUS_ILLNESS: (Part.PERSONAL, Part.UNIT),
    Scheme.UNEMPLOYMENT: (Part.PERSONAL, Part.UNIT),
    Scheme.INJURY: (Part.UNIT,),
}


def status_label(status: str) -> str:
    """Return the display label for a period status, or the raw value."""
    return STATUS_LABELS.get(status, status)


def parse_part(value: Any) -> Part | None:
    """Return the Part for a raw value, or None when it is not one."""
    try:
        return Part(value)
    except ValueError:
        return None


def parse_scheme(value: Any) -> Scheme | None:
    """Return the Scheme for a raw value, or None when it is not one."""
    try:
        return Scheme(value)
    except ValueError:
        return None


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class RequiredCombination:
    """A (part, scheme) pair that must be covered by a normal file."""

    part: Part
    scheme: Scheme

    @property
    def key(self) -> str:
        return f"{self.part.value}-{self.scheme.value}"

    @property
    def label(self) -> str:
        return f"{PART_LABELS[self.part]}{SCHEME_LABELS[self.scheme]}"


@dataclass
class Period:
    """An accounting period (year-month)."""

    id: int
    year_month: str
    status: str = PeriodStatus.DRAFT.value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Period":
        return cls(
            id=_to_int(data.get("id")),
            year_month=str(data.get("year_month", "")),
            status=str(data.get("status") or PeriodStatus.DRAFT.value),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )

    @property
    def status_label(self) -> str:
        return status_label(self.status)


@dataclass
class SourceFile:
    """A bureau export uploaded for a period."""

    id: int
    period_id: int
    scheme: Scheme
    part: Part
    kind: FileKind
    rows: int
    original_name: str
    file_name: str = ""
    status: str = ""
    uploaded_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceFile":
        # Older backends omit file_type; those rows are normal files
        kind_raw = data.get("file_type") or FileKind.NORMAL.value
        return cls(
            id=_to_int(data.get("id")),
            period_id=_to_int(data.get("period_id")),
            scheme=Scheme(data["scheme"]),
            part=Part(data["part"]),
            kind=FileKind(kind_raw),
            rows=_to_int(data.get("rows")),
            original_name=str(data.get("original_name") or data.get("file_name") or ""),
            file_name=str(data.get("file_name", "")),
            status=str(data.get("status", "")),
            uploaded_at=_parse_timestamp(data.get("uploaded_at")),
        )

    @property
    def is_adjustment(self) -> bool:
        return self.kind is FileKind.ADJUSTMENT

    @property
    def key(self) -> str:
        return f"{self.part.value}-{self.scheme.value}"


@dataclass
class PeriodSummary:
    """Per (scheme, part) aggregate computed by the backend."""

    scheme: Scheme
    part: Part
    headcount: int
    base_total: Decimal
    amount_total: Decimal
    is_adjustment: bool = False
    id: int = 0
    period_id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PeriodSummary":
        return cls(
            scheme=Scheme(data["scheme"]),
            part=Part(data["part"]),
            headcount=_to_int(data.get("headcount")),
            base_total=_to_decimal(data.get("base_total")),
            amount_total=_to_decimal(data.get("amount_total")),
            is_adjustment=bool(data.get("is_adjustment", False)),
            id=_to_int(data.get("id")),
            period_id=_to_int(data.get("period_id")),
        )


@dataclass
class PersonalCharge:
    """Per-person deduction from the employee's salary."""

    name: str
    id_number: str
    department: str = ""
    base: Decimal = Decimal("0")
    pension: Decimal = Decimal("0")
    medical_maternity: Decimal = Decimal("0")
    serious_illness: Decimal = Decimal("0")
    unemployment: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    is_adjustment: bool = False
    id: int = 0
    period_id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PersonalCharge":
        return cls(
            name=str(data.get("name", "")),
            id_number=str(data.get("id_number", "")),
            department=str(data.get("department") or ""),
            base=_to_decimal(data.get("base")),
            pension=_to_decimal(data.get("pension")),
            medical_maternity=_to_decimal(data.get("medical_maternity")),
            serious_illness=_to_decimal(data.get("serious_illness")),
            unemployment=_to_decimal(data.get("unemployment")),
            subtotal=_to_decimal(data.get("subtotal")),
            is_adjustment=bool(data.get("is_adjustment", False)),
            id=_to_int(data.get("id")),
            period_id=_to_int(data.get("period_id")),
        )


@dataclass
class UnitCharge:
    """Per-person contribution paid by the employer."""

    name: str
    id_number: str
    department: str = ""
    base: Decimal = Decimal("0")
    pension: Decimal = Decimal("0")
    medical_maternity: Decimal = Decimal("0")
    serious_illness: Decimal = Decimal("0")
    injury: Decimal = Decimal("0")
    unemployment: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    is_adjustment: bool = False
    id: int = 0
    period_id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UnitCharge":
        return cls(
            name=str(data.get("name", "")),
            id_number=str(data.get("id_number", "")),
            department=str(data.get("department") or ""),
            base=_to_decimal(data.get("base")),
            pension=_to_decimal(data.get("pension")),
            medical_maternity=_to_decimal(data.get("medical_maternity")),
            serious_illness=_to_decimal(data.get("serious_illness")),
            injury=_to_decimal(data.get("injury")),
            unemployment=_to_decimal(data.get("unemployment")),
            subtotal=_to_decimal(data.get("subtotal")),
            is_adjustment=bool(data.get("is_adjustment", False)),
            id=_to_int(data.get("id")),
            period_id=_to_int(data.get("period_id")),
        )


Charge = PersonalCharge | UnitCharge


@dataclass
class RosterEntry:
    """Employee roster line used by the backend to attach departments."""

    name: str
    id_number: str
    department: str = ""
    title: str = ""
    remarks: str = ""
    id: int = 0
    period_id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RosterEntry":
        return cls(
            name=str(data.get("name", "")),
            id_number=str(data.get("id_number", "")),
            department=str(data.get("department") or ""),
            title=str(data.get("title") or ""),
            remarks=str(data.get("remarks") or ""),
            id=_to_int(data.get("id")),
            period_id=_to_int(data.get("period_id")),
        )


@dataclass
class SchemeChargeDetail:
    """One person's line in a single-scheme breakdown."""

    name: str
    id_number: str
    department: str = ""
    base: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemeChargeDetail":
        return cls(
            name=str(data.get("name", "")),
            id_number=str(data.get("id_number", "")),
            department=str(data.get("department") or ""),
            base=_to_decimal(data.get("base")),
            amount=_to_decimal(data.get("amount")),
        )


@dataclass
class BatchUploadItem:
    """Per-file outcome of a batch upload."""

    original_name: str
    file_name: str = ""
    scheme: Scheme | None = None
    part: Part | None = None
    imported: int = 0
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BatchUploadItem":
        return cls(
            original_name=str(data.get("original_name") or data.get("file_name") or ""),
            file_name=str(data.get("file_name", "")),
            scheme=parse_scheme(data.get("scheme")),
            part=parse_part(data.get("part")),
            imported=_to_int(data.get("imported")),
            error=str(data["error"]) if data.get("error") else None,
        )

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ProcessResult:
    """Aggregates returned by a processing run."""

    period_id: int
    summary: list[PeriodSummary] = field(default_factory=list)
    personal: list[PersonalCharge] = field(default_factory=list)
    unit: list[UnitCharge] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProcessResult":
        return cls(
            period_id=_to_int(data.get("period_id")),
            summary=[PeriodSummary.from_dict(item) for item in data.get("summary") or []],
            personal=[PersonalCharge.from_dict(item) for item in data.get("personal") or []],
            unit=[UnitCharge.from_dict(item) for item in data.get("unit") or []],
        )
