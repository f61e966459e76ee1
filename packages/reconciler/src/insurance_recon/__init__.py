"""Insurance Recon - client for social-insurance payroll reconciliation."""

__version__ = "0.1.0"

from insurance_recon.actions import ActionKind, ActionStatus, ActionTracker
from insurance_recon.clients import ReconAPIClient, ReconAPIError
from insurance_recon.config import configure_logging, get_settings
from insurance_recon.domain import (
    BatchDraft,
    Part,
    Period,
    Scheme,
    SourceFile,
    guess_part_scheme,
    missing_uploads,
)
from insurance_recon.notices import Notice, NoticeBoard, NoticeLevel
from insurance_recon.workflow import BatchOutcome, PeriodView, ReconciliationWorkflow

__all__ = [
    # Version
    "__version__",
    # Workflow
    "ReconciliationWorkflow",
    "PeriodView",
    "BatchOutcome",
    "ActionKind",
    "ActionStatus",
    "ActionTracker",
    # Notices
    "Notice",
    "NoticeBoard",
    "NoticeLevel",
    # API Client
    "ReconAPIClient",
    "ReconAPIError",
    # Domain
    "Part",
    "Scheme",
    "Period",
    "SourceFile",
    "BatchDraft",
    "guess_part_scheme",
    "missing_uploads",
    # Config
    "get_settings",
    "configure_logging",
]
