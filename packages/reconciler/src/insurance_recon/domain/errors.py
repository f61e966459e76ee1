"""Domain-level error types."""


class DomainError(ValueError):
    """Base class for client-side domain errors."""


class WorkflowValidationError(DomainError):
    """Input rejected before any request is sent."""


class IncompleteClassificationError(WorkflowValidationError):
    """One or more batch drafts lack a valid (part, scheme) tag."""

    def __init__(self, file_names: list[str]):
        self.file_names = file_names
        super().__init__(
            "请为所有文件指定险种与扣款部分: " + ", ".join(file_names)
        )
