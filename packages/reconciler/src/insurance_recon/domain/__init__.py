"""Domain types and pure workflow rules."""

from insurance_recon.domain.classification import (
    BatchDraft,
    ClassificationGuess,
    UploadItem,
    build_drafts,
    guess_part_scheme,
    to_upload_items,
)
from insurance_recon.domain.completeness import (
    REQUIRED_COMBINATIONS,
    can_process,
    can_process_adjustments,
    missing_uploads,
)
from insurance_recon.domain.display import (
    ALL_DEPARTMENTS,
    GroupedRow,
    department_options,
    group_charges,
    grouped_view,
)
from insurance_recon.domain.errors import (
    DomainError,
    IncompleteClassificationError,
    WorkflowValidationError,
)
from insurance_recon.domain.types import (
    BatchUploadItem,
    FileKind,
    Part,
    Period,
    PeriodStatus,
    PeriodSummary,
    PersonalCharge,
    ProcessResult,
    RequiredCombination,
    RosterEntry,
    Scheme,
    SchemeChargeDetail,
    SourceFile,
    UnitCharge,
)

__all__ = [
    # Types
    "Part",
    "Scheme",
    "PeriodStatus",
    "FileKind",
    "Period",
    "SourceFile",
    "PeriodSummary",
    "PersonalCharge",
    "UnitCharge",
    "RosterEntry",
    "SchemeChargeDetail",
    "BatchUploadItem",
    "ProcessResult",
    "RequiredCombination",
    # Classification
    "BatchDraft",
    "ClassificationGuess",
    "UploadItem",
    "build_drafts",
    "guess_part_scheme",
    "to_upload_items",
    # Completeness
    "REQUIRED_COMBINATIONS",
    "missing_uploads",
    "can_process",
    "can_process_adjustments",
    # Display
    "ALL_DEPARTMENTS",
    "GroupedRow",
    "group_charges",
    "grouped_view",
    "department_options",
    # Errors
    "DomainError",
    "WorkflowValidationError",
    "IncompleteClassificationError",
]
