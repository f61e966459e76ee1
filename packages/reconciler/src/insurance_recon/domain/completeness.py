"""Completeness check for the files required before processing."""

from collections.abc import Iterable

from insurance_recon.domain.types import Part, RequiredCombination, Scheme, SourceFile

REQUIRED_COMBINATIONS: tuple[RequiredCombination, ...] = (
    RequiredCombination(Part.PERSONAL, Scheme.PENSION),
    RequiredCombination(Part.PERSONAL, Scheme.MEDICAL),
    RequiredCombination(Part.PERSONAL, Scheme.SERIOUS_ILLNESS),
    RequiredCombination(Part.PERSONAL, Scheme.UNEMPLOYMENT),
    RequiredCombination(Part.UNIT, Scheme.PENSION),
    RequiredCombination(Part.UNIT, Scheme.MEDICAL),
    RequiredCombination(Part.UNIT, Scheme.SERIOUS_ILLNESS),
    RequiredCombination(Part.UNIT, Scheme.UNEMPLOYMENT),
    RequiredCombination(Part.UNIT, Scheme.INJURY),
)


def normal_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    return [f for f in files if not f.is_adjustment]


def adjustment_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    return [f for f in files if f.is_adjustment]


def missing_uploads(files: Iterable[SourceFile]) -> list[RequiredCombination]:
    """Return the required pairs not covered by any normal file.

    Adjustment files never count towards coverage.
    """
    uploaded = {f.key for f in normal_files(files)}
    return [combo for combo in REQUIRED_COMBINATIONS if combo.key not in uploaded]


def can_process(files: Iterable[SourceFile]) -> bool:
    """True when every required pair has a normal file."""
    files = list(files)
    return bool(normal_files(files)) and not missing_uploads(files)


def can_process_adjustments(files: Iterable[SourceFile]) -> bool:
    return bool(adjustment_files(files))
