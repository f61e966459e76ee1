"""Tests for file-name classification and batch drafts."""

import pytest

from insurance_recon.domain.classification import (
    BatchDraft,
    build_drafts,
    guess_part_scheme,
    invalid_drafts,
    to_upload_items,
)
from insurance_recon.domain.errors import IncompleteClassificationError
from insurance_recon.domain.types import Part, Scheme


class TestGuessPartScheme:
    """Tests for the keyword heuristic."""

    def test_unit_injury(self):
        """Test unit injury file name."""
        guess = guess_part_scheme("单位工伤明细.xlsx")

        assert guess.part is Part.UNIT
        assert guess.scheme is Scheme.INJURY

    def test_serious_illness_beats_medical(self):
        """A name with both 大额 and 医疗 is serious illness."""
        guess = guess_part_scheme("个人大额医疗明细.xlsx")

        assert guess.part is Part.PERSONAL
        assert guess.scheme is Scheme.SERIOUS_ILLNESS

    def test_mutual_aid_is_serious_illness(self):
        """Test that 互助 maps to serious illness."""
        assert guess_part_scheme("单位互助医疗.xls").scheme is Scheme.SERIOUS_ILLNESS

    def test_plain_medical(self):
        """Test a plain medical file name."""
        assert guess_part_scheme("个人医疗.xlsx").scheme is Scheme.MEDICAL

    def test_pension(self):
        """Test a pension file name with a date prefix."""
        assert guess_part_scheme("2024年5月单位养老.xlsx").scheme is Scheme.PENSION

    def test_unemployment_beats_pension(self):
        """Test that unemployment wins over pension."""
        assert guess_part_scheme("养老失业合并.xlsx").scheme is Scheme.UNEMPLOYMENT

    def test_injury_checked_first(self):
        """Test that injury wins over every other scheme keyword."""
        assert guess_part_scheme("工伤失业养老.xlsx").scheme is Scheme.INJURY

    def test_unit_beats_personal(self):
        """Test that 单位 wins over 个人."""
        assert guess_part_scheme("单位个人养老.xlsx").part is Part.UNIT

    def test_unknown_name(self):
        """Test that a name without keywords stays unclassified."""
        guess = guess_part_scheme("export_0503.xlsx")

        assert guess.part is None
        assert guess.scheme is None

    def test_is_deterministic(self):
        """Test that the same name always gives the same guess."""
        assert guess_part_scheme("单位大额医疗.xlsx") == guess_part_scheme("单位大额医疗.xlsx")


class TestBatchDraft:
    """Tests for draft completeness and conversion."""

    def test_build_drafts_prefills_guess(self):
        """Test that new drafts carry the guessed tag."""
        drafts = build_drafts([("单位养老.xlsx", b"a"), ("明细.xlsx", b"b")])

        assert drafts[0].part is Part.UNIT
        assert drafts[0].scheme is Scheme.PENSION
        assert drafts[0].is_complete
        assert not drafts[1].is_complete

    def test_personal_injury_is_invalid(self):
        """Test that personal injury is complete but not valid."""
        draft = BatchDraft("个人工伤.xlsx", b"", part=Part.PERSONAL, scheme=Scheme.INJURY)

        assert draft.is_complete
        assert not draft.is_valid

    def test_from_path_reads_content(self, tmp_path):
        """Test building a draft from a file on disk."""
        path = tmp_path / "个人失业.xlsx"
        path.write_bytes(b"data")

        draft = BatchDraft.from_path(path)

        assert draft.file_name == "个人失业.xlsx"
        assert draft.content == b"data"
        assert draft.part is Part.PERSONAL
        assert draft.scheme is Scheme.UNEMPLOYMENT

    def test_to_upload_items(self):
        """Test converting valid drafts to upload items."""
        drafts = build_drafts([("单位工伤.xlsx", b"x"), ("个人养老.xlsx", b"y")])

        items = to_upload_items(drafts)

        assert [(i.part, i.scheme) for i in items] == [
            (Part.UNIT, Scheme.INJURY),
            (Part.PERSONAL, Scheme.PENSION),
        ]

    def test_to_upload_items_rejects_incomplete(self):
        """Test that an unclassified draft blocks conversion."""
        drafts = build_drafts([("单位工伤.xlsx", b"x"), ("unknown.xlsx", b"y")])

        with pytest.raises(IncompleteClassificationError) as exc_info:
            to_upload_items(drafts)

        assert exc_info.value.file_names == ["unknown.xlsx"]

    def test_invalid_drafts_lists_only_bad_ones(self):
        """Test that only unclassified drafts are listed as invalid."""
        drafts = build_drafts([("单位工伤.xlsx", b"x"), ("unknown.xlsx", b"y")])

        assert [d.file_name for d in invalid_drafts(drafts)] == ["unknown.xlsx"]
