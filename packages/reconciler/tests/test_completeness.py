"""Tests for the required-file completeness check."""

from conftest import make_file, required_files

from insurance_recon.domain.completeness import (
    REQUIRED_COMBINATIONS,
    can_process,
    can_process_adjustments,
    missing_uploads,
)
from insurance_recon.domain.types import FileKind, Part, RequiredCombination, Scheme


def test_nine_required_combinations():
    """Test the fixed set of required pairs."""
    assert len(REQUIRED_COMBINATIONS) == 9
    assert RequiredCombination(Part.PERSONAL, Scheme.INJURY) not in REQUIRED_COMBINATIONS


def test_all_missing_without_files():
    """Test that every pair is missing without files."""
    assert missing_uploads([]) == list(REQUIRED_COMBINATIONS)
    assert not can_process([])


def test_all_present():
    """Test that nothing is missing with all nine files."""
    files = required_files()

    assert missing_uploads(files) == []
    assert can_process(files)


def test_one_missing():
    """Test that the single uncovered pair is reported."""
    files = [f for f in required_files() if not (f.part is Part.UNIT and f.scheme is Scheme.INJURY)]

    missing = missing_uploads(files)

    assert len(files) == 8
    assert missing == [RequiredCombination(Part.UNIT, Scheme.INJURY)]
    assert not can_process(files)


def test_adjustment_files_do_not_count():
    """Test that adjustment files never cover a required pair."""
    files = [f for f in required_files() if not (f.part is Part.PERSONAL and f.scheme is Scheme.PENSION)]
    files.append(make_file(99, Part.PERSONAL, Scheme.PENSION, kind=FileKind.ADJUSTMENT))

    missing = missing_uploads(files)

    assert missing == [RequiredCombination(Part.PERSONAL, Scheme.PENSION)]


def test_duplicate_files_for_same_pair():
    """Test that two files for one pair are accepted."""
    files = required_files() + [make_file(50, Part.UNIT, Scheme.PENSION)]

    assert missing_uploads(files) == []


def test_can_process_adjustments_needs_adjustment_file():
    """Test that adjustment processing needs an adjustment file."""
    files = required_files()
    assert not can_process_adjustments(files)

    files.append(make_file(99, Part.UNIT, Scheme.MEDICAL, kind=FileKind.ADJUSTMENT))
    assert can_process_adjustments(files)
