"""Display ordering for charge and summary tables.

Charge tables may hold both a base row and adjustment rows for the same
person. Rows are grouped per person in first-seen order, base rows lead
their group, and only the first row of a group carries a sequence number.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Generic, TypeVar

from insurance_recon.domain.types import (
    SCHEME_ORDER,
    Part,
    PeriodSummary,
    PersonalCharge,
    UnitCharge,
)

ALL_DEPARTMENTS = "__all__"

ChargeT = TypeVar("ChargeT", PersonalCharge, UnitCharge)


@dataclass(frozen=True)
class GroupedRow(Generic[ChargeT]):
    """A charge row annotated for grouped display."""

    charge: ChargeT
    group_key: str
    is_first_in_group: bool
    sequence: int | None


def group_key(charge: PersonalCharge | UnitCharge) -> str:
    return f"{charge.name}_{charge.id_number}"


def matches_filter(
    charge: PersonalCharge | UnitCharge,
    search_text: str = "",
    department: str = ALL_DEPARTMENTS,
) -> bool:
    """Name matches case-insensitively, id number as a plain substring."""
    if search_text:
        name_match = search_text.lower() in charge.name.lower()
        id_match = search_text in charge.id_number
        if not (name_match or id_match):
            return False
    if department and department != ALL_DEPARTMENTS:
        if not charge.department:
            return False
        if department.lower() not in charge.department.lower():
            return False
    return True


def filter_charges(
    charges: Iterable[ChargeT],
    search_text: str = "",
    department: str = ALL_DEPARTMENTS,
) -> list[ChargeT]:
    return [c for c in charges if matches_filter(c, search_text, department)]


def group_charges(charges: Iterable[ChargeT]) -> list[GroupedRow[ChargeT]]:
    """Group rows per person, base rows before adjustments."""
    groups: dict[str, list[ChargeT]] = {}
    for charge in charges:
        groups.setdefault(group_key(charge), []).append(charge)

    rows: list[GroupedRow[ChargeT]] = []
    for sequence, (key, members) in enumerate(groups.items(), start=1):
        # sorted() is stable, so rows of the same kind keep input order
        ordered = sorted(members, key=lambda c: c.is_adjustment)
        for index, charge in enumerate(ordered):
            rows.append(
                GroupedRow(
                    charge=charge,
                    group_key=key,
                    is_first_in_group=index == 0,
                    sequence=sequence if index == 0 else None,
                )
            )
    return rows


def grouped_view(
    charges: Iterable[ChargeT],
    search_text: str = "",
    department: str = ALL_DEPARTMENTS,
) -> list[GroupedRow[ChargeT]]:
    """Filter then group; recomputed from scratch on every call."""
    return group_charges(filter_charges(charges, search_text, department))


def department_options(charges: Iterable[PersonalCharge | UnitCharge]) -> list[str]:
    """Sorted distinct non-empty departments."""
    return sorted({c.department for c in charges if c.department})


def ordered_summary(summary: Sequence[PeriodSummary]) -> list[PeriodSummary]:
    """Base rows first, then adjustments, each by scheme then part."""
    scheme_rank = {scheme: index for index, scheme in enumerate(SCHEME_ORDER)}
    part_rank = {Part.PERSONAL: 0, Part.UNIT: 1}
    return sorted(
        summary,
        key=lambda s: (s.is_adjustment, scheme_rank[s.scheme], part_rank[s.part]),
    )


def part_totals(
    summary: Iterable[PeriodSummary], part: Part, include_adjustments: bool = True
) -> tuple[Decimal, Decimal]:
    """Return (base_total, amount_total) across schemes for one part."""
    base_total = Decimal("0")
    amount_total = Decimal("0")
    for row in summary:
        if row.part is not part:
            continue
        if row.is_adjustment and not include_adjustments:
            continue
        base_total += row.base_total
        amount_total += row.amount_total
    return base_total, amount_total
