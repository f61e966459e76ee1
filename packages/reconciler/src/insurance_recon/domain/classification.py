"""File classification intake.

Bureau exports are named by hand ("2024年5月单位养老明细.xlsx", ...), so the
(part, scheme) tag of each upload is guessed from its file name and then
confirmed or overridden by the user before the batch is submitted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from insurance_recon.domain.errors import IncompleteClassificationError
from insurance_recon.domain.types import ALLOWED_PARTS, Part, Scheme

PART_KEYWORDS: tuple[tuple[str, Part], ...] = (
    ("单位", Part.UNIT),
    ("个人", Part.PERSONAL),
)

# First match wins. "大额医疗" must resolve before the bare "医疗" keyword.
SCHEME_KEYWORDS: tuple[tuple[tuple[str, ...], Scheme], ...] = (
    (("工伤",), Scheme.INJURY),
    (("失业",), Scheme.UNEMPLOYMENT),
    (("大额", "互助"), Scheme.SERIOUS_ILLNESS),
    (("养老",), Scheme.PENSION),
    (("医疗",), Scheme.MEDICAL),
)


@dataclass(frozen=True)
class ClassificationGuess:
    """Best-effort tag inferred from a file name. None means unknown."""

    part: Part | None
    scheme: Scheme | None


def guess_part_scheme(file_name: str) -> ClassificationGuess:
    """Infer (part, scheme) from a file name by keyword precedence."""
    name = file_name.lower()

    part: Part | None = None
    for keyword, candidate in PART_KEYWORDS:
        if keyword in name:
            part = candidate
            break

    scheme: Scheme | None = None
    for keywords, candidate_scheme in SCHEME_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            scheme = candidate_scheme
            break

    return ClassificationGuess(part=part, scheme=scheme)


@dataclass
class BatchDraft:
    """A selected file awaiting submission, with its (part, scheme) tag."""

    file_name: str
    content: bytes
    part: Part | None = None
    scheme: Scheme | None = None

    @classmethod
    def from_upload(cls, file_name: str, content: bytes) -> BatchDraft:
        guess = guess_part_scheme(file_name)
        return cls(
            file_name=file_name,
            content=content,
            part=guess.part,
            scheme=guess.scheme,
        )

    @classmethod
    def from_path(cls, path: Path) -> BatchDraft:
        return cls.from_upload(path.name, path.read_bytes())

    @property
    def is_complete(self) -> bool:
        return self.part is not None and self.scheme is not None

    @property
    def is_valid(self) -> bool:
        """Complete, and the scheme accepts the chosen part."""
        if self.part is None or self.scheme is None:
            return False
        return self.part in ALLOWED_PARTS[self.scheme]


@dataclass(frozen=True)
class UploadItem:
    """A fully classified file ready for the batch endpoint."""

    file_name: str
    content: bytes
    part: Part
    scheme: Scheme


def build_drafts(uploads: Iterable[tuple[str, bytes]]) -> list[BatchDraft]:
    """Create drafts for newly selected files, pre-filled with guesses."""
    return [BatchDraft.from_upload(name, content) for name, content in uploads]


def invalid_drafts(drafts: Iterable[BatchDraft]) -> list[BatchDraft]:
    return [draft for draft in drafts if not draft.is_valid]


def to_upload_items(drafts: Iterable[BatchDraft]) -> list[UploadItem]:
    """Convert drafts to upload items.

    Raises:
        IncompleteClassificationError: if any draft lacks a valid tag.
    """
    drafts = list(drafts)
    rejected = invalid_drafts(drafts)
    if rejected:
        raise IncompleteClassificationError([draft.file_name for draft in rejected])

    items: list[UploadItem] = []
    for draft in drafts:
        # is_valid guarantees both are set
        assert draft.part is not None and draft.scheme is not None
        items.append(
            UploadItem(
                file_name=draft.file_name,
                content=draft.content,
                part=draft.part,
                scheme=draft.scheme,
            )
        )
    return items
